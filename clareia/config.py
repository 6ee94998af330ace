# clareia/config.py
"""
Service configuration loaded from the environment (prefix ``CLAREIA_``) or a
local ``.env`` file. The extraction endpoint and its credential have no
defaults; outside demo mode, loading settings without them fails immediately.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLAREIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Generative service (generateContent endpoint, x-goog-api-key auth)
    extraction_url: Optional[str] = None
    api_key: Optional[SecretStr] = None

    # Low temperature keeps the structured output stable
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    top_k: int = Field(default=40, ge=1)
    top_p: float = Field(default=0.95, gt=0.0, le=1.0)
    max_output_tokens: int = Field(default=4096, ge=1, le=8192)

    request_timeout: float = Field(default=60.0, gt=0)
    transport_retries: int = Field(default=1, ge=0, le=3)

    # Serve the example statement instead of calling the service
    demo_mode: bool = False

    # Optional document readers (off: placeholder text for PDFs and images)
    pdf_text_layer: bool = False
    image_ocr: bool = False

    max_upload_mb: int = Field(default=10, ge=1)
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _require_service_credentials(self) -> "Settings":
        if self.demo_mode:
            return self
        missing = []
        if not self.extraction_url:
            missing.append("CLAREIA_EXTRACTION_URL")
        if self.api_key is None or not self.api_key.get_secret_value().strip():
            missing.append("CLAREIA_API_KEY")
        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)} "
                "(or set CLAREIA_DEMO_MODE=true)"
            )
        return self

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    return Settings()
