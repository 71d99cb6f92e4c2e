"""Application-wide configuration settings."""

from functools import lru_cache
from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central settings object loaded from env vars or defaults."""

    mistral_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("MISTRAL_API_KEY", "MIXTRAL_API_KEY"),
    )
    mistral_api_url: str = Field(
        default="https://api.mistral.ai/v1",
        validation_alias=AliasChoices("MISTRAL_API_URL", "MIXTRAL_API_URL"),
    )
    mistral_ocr_model: str = Field(
        default="mistral-ocr-latest",
        validation_alias=AliasChoices("MISTRAL_OCR_MODEL", "MIXTRAL_MODEL"),
    )
    mistral_responses_model: str = Field(
        default="mistral-large-latest",
        validation_alias=AliasChoices("MISTRAL_RESPONSES_MODEL"),
    )

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017/po-scanner",
        validation_alias=AliasChoices("MONGODB_URI"),
    )
    mongodb_db: str = Field(default="po-scanner", validation_alias=AliasChoices("MONGODB_DB"))
    mongodb_collection: str = "purchase_orders"
    mongodb_max_pool_size: int = 10

    request_timeout_seconds: int = 120
    max_upload_bytes: int = 20 * 1024 * 1024
    fallback_text_limit: int = 12_000
    list_limit: int = 200

    host: str = "0.0.0.0"
    port: int = 4000
    allowed_origins: List[str] = ["*"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance for dependency injection."""

    return Settings()
