from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    COVERS_DIRNAME,
    DEFAULT_MAX_UPLOAD_BYTES,
    METADATA_FILENAME,
    MULTIPART_OVERHEAD_BYTES,
    PROJECT_ROOT,
    STAGING_DIRNAME,
)


class Settings(BaseSettings):
    """
    Application configuration.

    All variables are prefixed with BD_ (e.g. BD_UPLOADS_PATH, BD_LOG_LEVEL).
    The listen port also honours a bare PORT, as set by most PaaS hosts.
    """

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = Field(
        default=3000,
        gt=0,
        lt=65536,
        validation_alias=AliasChoices("PORT", "BD_PORT"),
    )
    CORS_ORIGINS: str = "*"

    # Storage
    UPLOADS_PATH: Path = Field(default_factory=lambda: PROJECT_ROOT / "uploads")
    PUBLIC_PATH: Path = Field(default_factory=lambda: PROJECT_ROOT / "public")
    MAX_UPLOAD_BYTES: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, gt=0)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    model_config = SettingsConfigDict(
        env_prefix="BD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def covers_path(self) -> Path:
        return self.UPLOADS_PATH / COVERS_DIRNAME

    @property
    def staging_path(self) -> Path:
        return self.UPLOADS_PATH / STAGING_DIRNAME

    @property
    def metadata_path(self) -> Path:
        return self.UPLOADS_PATH / METADATA_FILENAME

    @property
    def max_request_bytes(self) -> int:
        return self.MAX_UPLOAD_BYTES + MULTIPART_OVERHEAD_BYTES

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Load settings from environment, failing fast on malformed values."""
    from pydantic import ValidationError

    try:
        return Settings.model_validate({})
    except ValidationError as e:
        invalid = [str(err["loc"][0]) for err in e.errors()]
        raise SystemExit(
            f"Invalid environment variable(s): {', '.join(invalid)}"
        ) from None
