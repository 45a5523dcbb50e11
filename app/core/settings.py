"""Process configuration, read from the environment (and `.env` when present).

Field names double as environment variable names (matched case-insensitively),
so `OPENAI_API_KEY` fills `openai_api_key`.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)

# Only ever used when APP_ENV=development.
_DEVELOPMENT_JWT_SECRET = "lexidraft-development-secret-change-me"
_MIN_JWT_SECRET_LENGTH = 32

_DEFAULT_DOCUMENT_TYPES = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "lexidraft-api"
    app_env: str = Field(default="production", description="development | production")
    database_url: str = Field(description="Async SQLAlchemy URL, e.g. postgresql+asyncpg://...")

    # Own tokens are HS256; Firebase ID tokens are only accepted when a project id is set.
    # JWT_SECRET is mandatory outside development.
    jwt_secret: str = ""
    jwt_access_token_ttl_seconds: int = Field(default=3600, ge=60)
    jwt_refresh_token_ttl_seconds: int = Field(default=7 * 24 * 3600, ge=60)
    firebase_project_id: str | None = None
    firebase_jwks_url: str = _FIREBASE_JWKS_URL

    document_storage_backend: str = "local"
    local_storage_base_path: str = "./data/documents"
    max_document_upload_mb: int = Field(default=10, ge=1)
    documents_allowed_mime_types: list[str] = Field(
        default_factory=lambda: list(_DEFAULT_DOCUMENT_TYPES)
    )

    share_link_base_url: str = Field(
        default="http://localhost:5000",
        validation_alias=AliasChoices("SHARE_LINK_BASE_URL", "FRONTEND_URL", "share_link_base_url"),
        description="Public frontend origin; share URLs are <origin>/shared/<token>.",
    )

    # Drafting and analysis return 502 while no API key is configured.
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = "https://api.openai.com/v1"
    openai_timeout_seconds: float = Field(default=60.0, ge=1.0)
    openai_max_prompt_chars: int = Field(
        default=60_000,
        ge=1_000,
        description="Contract text embedded in a prompt is cut to this many characters.",
    )

    @model_validator(mode="after")
    def _require_jwt_secret(self) -> Settings:
        if not self.jwt_secret and self.is_development:
            self.jwt_secret = _DEVELOPMENT_JWT_SECRET
        if not self.jwt_secret:
            raise ValueError("JWT_SECRET must be set unless APP_ENV=development")
        if len(self.jwt_secret) < _MIN_JWT_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET must be at least {_MIN_JWT_SECRET_LENGTH} characters")
        if self.jwt_secret == _DEVELOPMENT_JWT_SECRET and not self.is_development:
            raise ValueError("The development JWT secret cannot be used outside development")
        return self

    @property
    def max_document_upload_bytes(self) -> int:
        return self.max_document_upload_mb * 1024 * 1024

    @property
    def is_development(self) -> bool:
        return self.app_env.strip().lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
