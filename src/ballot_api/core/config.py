"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    if not value.strip():
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="Async SQLAlchemy connection string (postgresql+asyncpg or sqlite+aiosqlite)",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # JWT (administrators and voter sessions)
    jwt_secret_key: str = Field(min_length=32, description="Secret key for signing JWTs (minimum 32 characters)")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_token_expire_minutes: int = Field(
        default=30,
        description="Administrator access token expiration in minutes",
        gt=0,
    )
    jwt_refresh_token_expire_days: int = Field(
        default=7,
        description="Administrator refresh token expiration in days",
        gt=0,
    )
    voter_session_expire_minutes: int = Field(
        default=15,
        description="Lifetime of the voter session token issued after a voting login",
        gt=0,
    )
    voter_token_secret: str | None = Field(
        default=None,
        min_length=32,
        description="Key for deriving anonymized voter tokens on ballots (defaults to jwt_secret_key)",
    )

    @property
    def ballot_token_key(self) -> str:
        """Key used to derive the anonymized voter token stored on each vote."""
        return self.voter_token_secret or self.jwt_secret_key

    # One-time codes
    otc_expiry_seconds: int = Field(
        default=300,
        description="Validity window of a one-time code in seconds",
        gt=0,
    )
    otc_resend_max_requests: int = Field(
        default=3,
        description="Maximum code requests per phone number within the resend window",
        gt=0,
    )
    otc_resend_window_seconds: int = Field(
        default=300,
        description="Sliding window for code resend rate limiting in seconds",
        gt=0,
    )
    otc_verify_max_attempts: int = Field(
        default=5,
        description="Maximum failed code submissions per voter within the resend window",
        gt=0,
    )

    # Election phase scheduling
    phase_scheduler_enabled: bool = Field(
        default=True,
        description="Run the background loop that applies the configured phase schedule",
    )
    phase_check_interval_seconds: int = Field(
        default=10,
        description="Seconds between automatic phase checks",
        gt=0,
    )
    voting_locations: str = Field(
        default="",
        description="Comma-separated list of voting locations a voter may choose at verification",
    )

    @property
    def voting_location_list(self) -> list[str]:
        """Parse configured voting locations into a list."""
        return _split_csv(self.voting_locations)

    # SMS delivery (MobileSasa)
    sms_api_url: str = Field(
        default="https://api.mobilesasa.com/v1/send",
        description="MobileSasa send endpoint",
    )
    sms_timeout: float = Field(
        default=10.0,
        description="SMS provider request timeout in seconds",
        gt=0,
    )
    sms_default_sender_id: str = Field(
        default="MobiPoll",
        description="Sender ID used when the election settings do not define one",
    )
    sms_default_country_code: str = Field(
        default="254",
        description="Country calling code applied to local (0-prefixed) phone numbers",
    )

    # Import / export
    import_batch_size: int = Field(
        default=5000,
        description="Rows per chunk when reading voter CSV files",
        gt=0,
    )
    export_dir: str = Field(
        default="./exports",
        description="Directory for export output files",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )
    cors_origin_regex: str = Field(
        default="",
        description="Regex pattern for allowed CORS origins",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return _split_csv(self.cors_origins)

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )
    rate_limit_per_minute: int = Field(
        default=200,
        description="Maximum API requests per minute per IP address",
        gt=0,
    )
    trusted_proxy_headers: str = Field(
        default="CF-Connecting-IP,X-Forwarded-For,X-Real-IP",
        description="Comma-separated list of HTTP headers to check for real client IP, in priority order",
    )

    @property
    def trusted_proxy_header_list(self) -> list[str]:
        """Parse trusted proxy headers string into a list."""
        return _split_csv(self.trusted_proxy_headers)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
