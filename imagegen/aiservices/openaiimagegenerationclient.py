# aiservices/openaiimagegenerationclient.py
from __future__ import annotations

import logging
from typing import Any, List, Optional

from openai import APIConnectionError, APIStatusError, OpenAI, OpenAIError
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..schemas import ImageDescriptor, ImageGenerationParams
from .errors import (
    ImageGenerationError,
    MalformedResponse,
    MissingCredentialError,
    TransportError,
    UpstreamRejected,
)
from .imagegenerationclient import ImageGenerationClient

logger = logging.getLogger(__name__)


class OpenAIImageGenerationClient(ImageGenerationClient):
    """
    Works with:
      - api.openai.com (native)
      - OpenAI-compatible image gateways (set openai_base_url)
    """

    def __init__(self, settings: Optional[Settings] = None, sdk_client: Any = None) -> None:
        self.settings = settings or get_settings()

        if sdk_client is None:
            api_key = self.settings.openai_api_key.get_secret_value().strip()
            if not api_key:
                raise MissingCredentialError(
                    "OpenAI API key is required. Set OPENAI_API_KEY or IMAGEGEN_OPENAI_API_KEY."
                )
            # Retries stay off: every request maps to exactly one upstream call
            sdk_client = OpenAI(
                api_key=api_key,
                base_url=self.settings.openai_base_url,
                timeout=self.settings.request_timeout,
                max_retries=0,
            )
        self._client = sdk_client

    # --- Generation -----------------------------------------------------------

    def generate(self, params: ImageGenerationParams) -> List[ImageDescriptor]:
        try:
            resp = self._client.images.generate(**params.as_payload())
        except APIStatusError as exc:
            raise self._rejection_from(exc) from exc
        except APIConnectionError as exc:
            # Also covers APITimeoutError
            raise TransportError(f"Could not reach the image API: {exc}") from exc
        except OpenAIError as exc:
            raise ImageGenerationError(str(exc)) from exc

        data = getattr(resp, "data", None)
        if not data:
            raise MalformedResponse(f"No image descriptors in response: {resp}")
        try:
            return [self._to_descriptor(item) for item in data]
        except ValidationError as exc:
            raise MalformedResponse(f"Unreadable image descriptor in response: {exc}") from exc

    # --- Internals ------------------------------------------------------------

    @staticmethod
    def _to_descriptor(item: Any) -> ImageDescriptor:
        if isinstance(item, dict):
            return ImageDescriptor.model_validate(item)
        return ImageDescriptor(
            url=getattr(item, "url", None),
            b64_json=getattr(item, "b64_json", None),
            revised_prompt=getattr(item, "revised_prompt", None),
        )

    @staticmethod
    def _rejection_from(exc: APIStatusError) -> UpstreamRejected:
        """Unwrap the vendor error envelope ``{"error": {"message", "code"}}``."""
        body = exc.body
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            body = body["error"]

        message = exc.message
        code = getattr(exc, "code", None)
        if isinstance(body, dict):
            if isinstance(body.get("message"), str) and body["message"]:
                message = body["message"]
            code = body.get("code") or code

        return UpstreamRejected(message, status_code=exc.status_code, code=code)
