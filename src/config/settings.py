"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (or a .env file) with
sensible defaults. Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without a bucket.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StartupConfigurationError(RuntimeError):
    """Raised when required settings are missing; the app must not start."""

    def __init__(self, missing_fields: list[str]) -> None:
        self.missing_fields = missing_fields
        super().__init__(
            f"Missing required configuration: {', '.join(missing_fields)}"
        )


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Booleans accept 1/true/yes/on.
    """

    # API Configuration
    api_title: str = "S3 Video Streamer"
    api_version: str = "0.1.0"

    # Server
    port: int = Field(
        default=3000,
        description="Port used when running the module directly"
    )
    static_dir: str = Field(
        default="static",
        description="Directory holding the built frontend. Unknown paths fall back to its index.html."
    )

    # S3 Storage Configuration
    aws_region: str = Field(
        default="",
        description="AWS region of the bucket. Required unless in mock mode."
    )
    aws_access_key_id: str = Field(
        default="",
        description="Access key ID. Required unless in mock mode."
    )
    aws_secret_access_key: str = Field(
        default="",
        description="Secret access key. Required unless in mock mode."
    )
    aws_s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint for S3-compatible stores (MinIO, R2, ...)"
    )
    aws_s3_bucket_name: str = Field(
        default="",
        description="Bucket holding the videos. Required unless in mock mode."
    )
    aws_s3_force_path_style: bool = Field(
        default=False,
        description="Use path-style addressing. Most self-hosted stores need this."
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of a real bucket. Enables local dev without object storage."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("aws_s3_force_path_style", "storage_mock_mode", mode="before")
    @classmethod
    def _parse_flag(cls, value: object) -> bool:
        """Anything other than 1/true/yes/on (including empty) is off."""
        if isinstance(value, bool):
            return value
        return str(value or "").strip().lower() in ("1", "true", "yes", "on")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        if self.storage_mock_mode:
            return missing

        if not self.aws_region:
            missing.append("AWS_REGION")
        if not self.aws_access_key_id:
            missing.append("AWS_ACCESS_KEY_ID")
        if not self.aws_secret_access_key:
            missing.append("AWS_SECRET_ACCESS_KEY")
        if not self.aws_s3_bucket_name:
            missing.append("AWS_S3_BUCKET_NAME")

        return missing

    def ensure_valid(self) -> None:
        """Raise StartupConfigurationError if anything required is missing."""
        missing = self.validate_required_fields()
        if missing:
            raise StartupConfigurationError(missing)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
