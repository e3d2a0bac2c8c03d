"""Application configuration using Pydantic settings."""

from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(..., description="Catalog database connection URL")

    # Admin authentication
    admin_password: Optional[str] = Field(None, description="Shared admin password")
    session_secret: str = Field(..., min_length=32, description="Secret for signing admin session cookies")
    session_algorithm: str = "HS256"
    admin_session_hours: int = 8
    admin_cookie_name: str = "admin_session"

    # Object Storage
    minio_endpoint: str = "localhost:9000"
    minio_access_key: Optional[str] = None
    minio_secret_key: Optional[str] = None
    minio_secure: bool = False
    storage_bucket_videos: str = "videos"
    storage_public_base_url: Optional[str] = None  # Defaults to <scheme>://<endpoint>/<bucket>
    upload_url_expire_seconds: int = 900  # 15 minutes
    sync_page_size: int = 1000

    # Intro video
    intro_splash_url: str = ""
    intro_enter_url: str = ""
    intro_marker: str = "WEBSITE VID heaven"

    # Rate Limits
    rate_limit_enabled: bool = True
    login_rate_limit: str = "5/minute"

    # Observability
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    enable_prometheus: bool = True

    # Development
    environment: Literal["development", "production"] = "development"
    debug: bool = False
    reload: bool = False
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [origin.strip() for origin in v.split(",")]

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver."""
        url = self.database_url
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def cookie_secure(self) -> bool:
        return self.environment == "production"


class IntroConfig(BaseModel):
    """Intro video configuration, built once at startup."""

    splash_url: str = Field(..., min_length=1)
    enter_url: str = Field(..., min_length=1)
    marker: str = Field(..., min_length=1, description="File name substring identifying the intro video row")

    @field_validator("splash_url", "enter_url", "marker")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @classmethod
    def from_settings(cls, s: "Settings") -> "IntroConfig":
        return cls(
            splash_url=s.intro_splash_url,
            enter_url=s.intro_enter_url,
            marker=s.intro_marker,
        )


# Global settings instance
settings = Settings()
