"""Application settings using Pydantic BaseSettings."""

from functools import lru_cache
from typing import TYPE_CHECKING, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from loginguard.auth.login_tracker import TrackerConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    environment: str = Field(default="development")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    # Security
    cors_origins: str = Field(default="http://localhost:3000,http://localhost:5173")
    max_request_bytes: int = Field(default=65536)
    # When set, `clear` and the ops endpoint require a matching X-Admin-Token header.
    admin_token: str = Field(default="")

    # Login attempt tracking
    max_attempts_per_email: int = Field(default=5)
    max_attempts_per_ip: int = Field(default=10)
    lockout_seconds: int = Field(default=15 * 60)
    attempt_window_seconds: int = Field(default=15 * 60)
    cleanup_interval_seconds: int = Field(default=60 * 60)

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment.lower() == "production"

    def tracker_config(self) -> "TrackerConfig":
        """Build the login tracker configuration from these settings."""
        from loginguard.auth.login_tracker import TrackerConfig

        return TrackerConfig(
            max_attempts_per_email=self.max_attempts_per_email,
            max_attempts_per_ip=self.max_attempts_per_ip,
            lockout_seconds=self.lockout_seconds,
            attempt_window_seconds=self.attempt_window_seconds,
            cleanup_interval_seconds=self.cleanup_interval_seconds,
        )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        vv = (v or "").strip().lower()
        if vv not in {"development", "staging", "production"}:
            raise ValueError("ENVIRONMENT must be one of: development, staging, production")
        return vv

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: str, info):  # type: ignore[override]
        env = (info.data.get("environment") or "development").strip().lower()
        origins = [o.strip() for o in (v or "").split(",") if o.strip()]
        if env == "production":
            # Fail closed: require https origins only.
            bad = [o for o in origins if o.startswith("http://")]
            if bad:
                raise ValueError(f"In production, CORS_ORIGINS must be https-only; got: {bad}")
        return v

    @field_validator(
        "max_attempts_per_email",
        "max_attempts_per_ip",
        "lockout_seconds",
        "attempt_window_seconds",
    )
    @classmethod
    def validate_positive(cls, v: int, info):  # type: ignore[override]
        if v <= 0:
            raise ValueError(f"{info.field_name.upper()} must be a positive integer")
        return v

    @model_validator(mode="after")
    def validate_cross_field_constraints(self) -> "Settings":
        # 0 disables the periodic sweep; requests still sweep opportunistically.
        if self.cleanup_interval_seconds < 0:
            raise ValueError("CLEANUP_INTERVAL_SECONDS must be >= 0")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
