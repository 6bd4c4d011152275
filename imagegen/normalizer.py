"""Map the outcome of an image generation call onto the client-facing contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from fastapi import status

from .aiservices.errors import (
    ImageGenerationError,
    MalformedResponse,
    TransportError,
    UpstreamRejected,
)
from .schemas import ImageDescriptor, ResponseFormat

CONFIGURATION_ERROR_MESSAGE = "Server configuration error: missing API key."
DATA_NOT_FOUND_MESSAGE = "Image data was not found in the upstream response."
CONTENT_POLICY_MESSAGE = (
    "Your prompt was rejected by the content policy. Please revise it and try again."
)
RATE_LIMIT_MESSAGE = "Too many requests. Please wait a moment and try again."
GENERIC_ERROR_MESSAGE = "An error occurred while generating the image."

_CONTENT_POLICY_CODES = {"content_policy_violation", "moderation_blocked"}


@dataclass(frozen=True)
class GenerationSuccess:
    image: str
    response_format: ResponseFormat


@dataclass(frozen=True)
class GenerationFailure:
    message: str
    status_code: int


GenerationResult = Union[GenerationSuccess, GenerationFailure]


def normalize_success(
    descriptors: Sequence[ImageDescriptor], response_format: ResponseFormat
) -> GenerationResult:
    """Pick the requested field off the first descriptor."""
    image: Optional[str] = None
    if descriptors:
        image = getattr(descriptors[0], response_format, None)
    if not image:
        return GenerationFailure(DATA_NOT_FOUND_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return GenerationSuccess(image=image, response_format=response_format)


def is_content_policy_violation(error: UpstreamRejected) -> bool:
    if error.code in _CONTENT_POLICY_CODES:
        return True
    return "safety system" in (error.message or "").lower()


def normalize_error(error: BaseException) -> GenerationFailure:
    """Classify a failed call. First match wins."""
    if isinstance(error, UpstreamRejected):
        if is_content_policy_violation(error):
            return GenerationFailure(CONTENT_POLICY_MESSAGE, status.HTTP_400_BAD_REQUEST)
        if error.status_code == status.HTTP_429_TOO_MANY_REQUESTS:
            return GenerationFailure(RATE_LIMIT_MESSAGE, status.HTTP_429_TOO_MANY_REQUESTS)
        return GenerationFailure(
            error.message or GENERIC_ERROR_MESSAGE,
            error.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    if isinstance(error, MalformedResponse):
        return GenerationFailure(DATA_NOT_FOUND_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if isinstance(error, TransportError):
        return GenerationFailure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if isinstance(error, ImageGenerationError) and error.message:
        return GenerationFailure(error.message, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return GenerationFailure(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)
