"""Pydantic models shared by the FastAPI endpoints and the image clients."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, StrictStr, field_validator


ResponseFormat = Literal["url", "b64_json"]


class ImageRequest(BaseModel):
    prompt: StrictStr = Field(..., description="Text prompt for image generation")

    @field_validator("prompt")
    @classmethod
    def _strip_prompt(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prompt must not be blank")
        return value


class ImageGenerationParams(BaseModel):
    prompt: str
    model: str
    n: int = 1
    size: str
    response_format: ResponseFormat = "url"
    quality: Optional[str] = None
    style: Optional[str] = None

    def as_payload(self) -> Dict[str, Any]:
        """Render the keyword arguments for ``images.generate``."""
        payload = self.model_dump(exclude_none=True)
        # gpt-image models always answer with base64 and reject the parameter
        if self.model.startswith("gpt-image"):
            payload.pop("response_format", None)
        return payload


class ImageDescriptor(BaseModel):
    url: Optional[str] = None
    b64_json: Optional[str] = None
    revised_prompt: Optional[str] = None


class ImageUrlResponse(BaseModel):
    imageUrl: str = Field(..., description="Hosted URL of the generated image")


class ImageB64Response(BaseModel):
    b64Json: str = Field(..., description="Base64-encoded image payload")


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    imageModel: str
    responseFormat: ResponseFormat
    configured: bool
