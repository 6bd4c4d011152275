from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the image generation proxy."""

    #----------------------------------------------------------
    # External API settings
    #----------------------------------------------------------
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("IMAGEGEN_OPENAI_API_KEY", "OPENAI_API_KEY", "openai_api_key"),
        description="API key for authenticating with the external image generation service.",
    )

    openai_base_url: Optional[str] = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints. Uses the SDK default when unset.",
    )

    request_timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Timeout in seconds applied to the outbound image generation call.",
    )

    #----------------------------------------------------------
    # Generation settings
    #----------------------------------------------------------
    image_model: str = Field(
        default="dall-e-3",
        description="Model identifier passed to the image generation API.",
    )
    image_size: str = Field(
        default="1024x1024",
        description="Square resolution requested for every image, e.g. 512x512.",
    )
    response_format: Literal["url", "b64_json"] = Field(
        default="url",
        description="Return a hosted image URL or the inline base64 payload.",
    )
    image_quality: Optional[str] = Field(
        default=None,
        description="Optional quality hint (standard, hd, low, medium, high).",
    )
    image_style: Optional[str] = Field(
        default=None,
        description="Optional style hint (vivid, natural).",
    )

    #----------------------------------------------------------
    # HTTP settings
    #----------------------------------------------------------
    cors_allow_origins: List[str] = Field(
        default=["*"],
        description="Origins allowed to call the API from a browser.",
    )

    model_config = SettingsConfigDict(
        env_prefix="IMAGEGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
