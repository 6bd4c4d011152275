"""Exceptions raised by image generation clients."""
from typing import Optional


class ImageGenerationError(Exception):
    """Base exception for image generation failures"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class MissingCredentialError(ImageGenerationError):
    """Raised when a client is constructed without an API key"""
    pass


class TransportError(ImageGenerationError):
    """The upstream service could not be reached or did not answer in time"""
    pass


class UpstreamRejected(ImageGenerationError):
    """The upstream service answered with a structured error"""
    def __init__(self, message: str, status_code: int, code: Optional[str] = None):
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class MalformedResponse(ImageGenerationError):
    """The upstream call succeeded but the payload holds no usable image"""
    pass
