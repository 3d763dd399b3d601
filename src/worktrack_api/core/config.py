"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


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
        description="SQLAlchemy async connection string",
    )

    # Sessions
    session_secret_key: str = Field(
        min_length=32,
        description="Secret key for signing session tokens (minimum 32 characters)",
    )
    session_algorithm: str = Field(default="HS256", description="Session token signing algorithm")
    session_expire_minutes: int = Field(
        default=1440,
        description="Session lifetime in minutes",
        gt=0,
    )
    session_cookie_name: str = Field(
        default="worktrack_session",
        description="Name of the HttpOnly cookie carrying the session token",
    )
    session_cookie_secure: bool = Field(
        default=True,
        description="Only send the session cookie over HTTPS",
    )

    # Invitations
    invitation_validity_hours: int = Field(
        default=24,
        description="Hours an invitation token stays redeemable",
        gt=0,
    )
    invitation_base_url: str = Field(
        default="http://localhost:5000",
        description="Public base URL used to build invitation links",
    )

    @field_validator("invitation_base_url")
    @classmethod
    def validate_invitation_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            msg = "invitation_base_url must be an http(s) URL"
            raise ValueError(msg)
        return v.rstrip("/")

    # Email (SMTP)
    smtp_enabled: bool = Field(
        default=False,
        description="Deliver invitation emails over SMTP (otherwise deliveries are only logged)",
    )
    smtp_host: str = Field(default="localhost", description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port", gt=0)
    smtp_username: str | None = Field(default=None, description="SMTP login user")
    smtp_password: str | None = Field(default=None, description="SMTP login password")
    smtp_use_tls: bool = Field(default=True, description="Upgrade the SMTP connection with STARTTLS")
    smtp_from: str = Field(
        default="worktrack@example.com",
        description="Sender address for invitation emails",
    )
    smtp_timeout: float = Field(
        default=10.0,
        description="SMTP connection timeout in seconds",
        gt=0,
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

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_prefix: str = Field(
        default="/api",
        description="API path prefix",
    )
    rate_limit_per_minute: int = Field(
        default=200,
        description="Maximum API requests per minute per IP address",
        gt=0,
    )
    login_rate_limit_per_minute: int = Field(
        default=10,
        description="Maximum login and invitation-redemption attempts per minute per IP address",
        gt=0,
    )
    trusted_proxy_headers: str = Field(
        default="CF-Connecting-IP,X-Forwarded-For,X-Real-IP",
        description="Comma-separated list of HTTP headers to check for real client IP, in priority order",
    )

    @property
    def trusted_proxy_header_list(self) -> list[str]:
        """Parse trusted proxy headers string into a list."""
        if not self.trusted_proxy_headers.strip():
            return []
        return [h.strip() for h in self.trusted_proxy_headers.split(",") if h.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        if not self.cors_origins.strip():
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
