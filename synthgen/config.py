from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class Settings(BaseSettings):
    """Runtime configuration for the synthgen backend."""

    #----------------------------------------------------------
    # Provider selection
    #----------------------------------------------------------
    image_provider: Literal["gemini", "openai", "mock"] = Field(
        default="gemini",
        description="Which external generation provider receives the uploaded images.",
    )

    #----------------------------------------------------------
    # Google Gemini (generativelanguage REST API)
    #----------------------------------------------------------
    gemini_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "SYNTHGEN_GEMINI_API_KEY"),
        description="API key for the Gemini generateContent endpoint.",
    )
    gemini_model_id: str = Field(
        default="gemini-2.0-flash-exp",
        description="Gemini model used for image-to-image variations.",
    )
    gemini_api_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Generative Language API.",
    )

    #----------------------------------------------------------
    # OpenAI-compatible AI gateway
    #----------------------------------------------------------
    gateway_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("AI_GATEWAY_API_KEY", "SYNTHGEN_GATEWAY_API_KEY"),
        description="Bearer token for the OpenAI-compatible AI gateway.",
    )
    gateway_model_id: str = Field(
        default="google/gemini-2.5-flash-image-preview",
        description="Model identifier requested from the AI gateway.",
    )
    gateway_base_url: str = Field(
        default="https://ai.gateway.lovable.dev/v1",
        description="Base URL of the OpenAI-compatible AI gateway.",
    )

    #----------------------------------------------------------
    # Request handling
    #----------------------------------------------------------
    request_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Timeout applied to each outbound provider call.",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level used when the server is started as a script.",
    )

    model_config = SettingsConfigDict(
        env_prefix="SYNTHGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
        raise ConfigurationError(f"Invalid server configuration: {fields or 'settings'}") from exc
