"""Domain logic for turning a prompt into one upstream image generation call."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import status

from .aiservices.errors import ImageGenerationError, MissingCredentialError
from .aiservices.imagegenerationclient import ImageGenerationClient
from .aiservices.openaiimagegenerationclient import OpenAIImageGenerationClient
from .config import Settings, get_settings
from .normalizer import (
    CONFIGURATION_ERROR_MESSAGE,
    GenerationFailure,
    GenerationResult,
    normalize_error,
    normalize_success,
)
from .schemas import ImageGenerationParams

logger = logging.getLogger(__name__)


class ImageGenerationService:
    """Binds the configured upstream client to the request/response contract.

    The client is created once from ``settings``. A missing credential does not
    crash the process; it is kept as ``configuration_error`` and every request
    is answered with a configuration failure instead.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: Optional[ImageGenerationClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.configuration_error: Optional[MissingCredentialError] = None
        self._client = client
        if self._client is None:
            try:
                self._client = OpenAIImageGenerationClient(self.settings)
            except MissingCredentialError as exc:
                logger.error("Image generation is not configured: %s", exc)
                self.configuration_error = exc

    @property
    def configured(self) -> bool:
        return self.configuration_error is None

    def build_params(self, prompt: str) -> ImageGenerationParams:
        return ImageGenerationParams(
            prompt=prompt,
            model=self.settings.image_model,
            n=1,
            size=self.settings.image_size,
            response_format=self.settings.response_format,
            quality=self.settings.image_quality,
            style=self.settings.image_style,
        )

    def generate_image(self, prompt: str) -> GenerationResult:
        """Generate a single image for an already validated, trimmed prompt."""
        if self.configuration_error is not None:
            return GenerationFailure(
                CONFIGURATION_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        params = self.build_params(prompt)
        logger.info("Requesting image generation: %s", params.as_payload())
        try:
            descriptors = self._client.generate(params)
        except ImageGenerationError as exc:
            failure = normalize_error(exc)
            logger.warning(
                "Image generation failed (%s -> %s): %s",
                type(exc).__name__,
                failure.status_code,
                exc,
            )
            return failure
        except Exception as exc:
            logger.exception("Image generation failed for prompt '%s'", prompt)
            return normalize_error(exc)

        result = normalize_success(descriptors, params.response_format)
        if isinstance(result, GenerationFailure):
            logger.error("No usable %s field in upstream response: %s", params.response_format, descriptors)
        else:
            logger.info("Image generated for prompt '%s'", prompt)
        return result


@lru_cache
def get_image_service() -> ImageGenerationService:
    return ImageGenerationService(get_settings())
