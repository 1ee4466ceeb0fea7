"""Settings read from the environment (or a `.env` file) with pydantic-settings."""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """The configuration cannot be used in the current environment."""


DEFAULT_JWT_SECRET = "dev-insecure-key-change-me"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Every setting maps to the upper-cased environment variable of the same name."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="development or production; production refuses insecure settings"
    )

    # CORS
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated origins allowed to call the API from a browser"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./lockbox.db",
        description="SQLAlchemy URL, SQLite or PostgreSQL"
    )
    # Pool settings, PostgreSQL only.
    db_pool_size: int = Field(default=5, description="Number of persistent database connections")
    db_max_overflow: int = Field(default=10, description="Extra connections allowed during traffic bursts")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds before a connection is recycled")

    # Authentication
    # AUTH_ENABLED=false makes the first active administrator act for every
    # request. Development only.
    jwt_secret_key: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="HMAC key signing the bearer tokens"
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_hours: int = Field(default=24, description="Lifetime of issued tokens")
    auth_enabled: bool = Field(
        default=True,
        description="Require a bearer token on every API endpoint"
    )

    # Throttling
    rate_limit_per_minute: int = Field(
        default=120,
        description="Requests allowed per client and minute, 0 disables throttling"
    )

    # Instance
    full_base_url: Optional[str] = Field(
        default=None,
        description="Public URL of the instance, e.g. https://vault.example.com"
    )
    config_dir: str = Field(
        default="./config",
        description="Directory holding the instance configuration file"
    )
    config_file_name: str = Field(default="lockbox.json")
    process_user: str = Field(
        default="www-data",
        description="OS user the web server runs as (used in help messages)"
    )
    self_registration_provider: Optional[str] = Field(
        default=None,
        description="Self registration provider (empty = registration closed)"
    )

    # Folders
    folders_enabled: bool = Field(default=True, description="Enable the folders feature")

    # Metadata types settings
    allow_creation_of_v4_folders: bool = Field(default=True)
    allow_creation_of_v5_folders: bool = Field(default=True)
    allow_v4_v5_upgrade: bool = Field(default=False)
    allow_v5_v4_downgrade: bool = Field(default=False)
    allow_usage_of_personal_keys: bool = Field(default=True)

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root logger level"
    )
    log_format: str = Field(
        default="json",
        description="json (one object per line) or text"
    )

    @property
    def config_file_path(self) -> Path:
        return Path(self.config_dir) / self.config_file_name

    def get_cors_origins(self) -> List[str]:
        """``CORS_ALLOWED_ORIGINS`` split on commas. A ``*`` entry is refused."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        if "*" in origins:
            raise ValueError("CORS_ALLOWED_ORIGINS cannot contain '*'; list the allowed origins explicitly.")
        return origins

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("full_base_url", "self_registration_provider")
    @classmethod
    def empty_as_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    def insecure_settings(self) -> List[str]:
        """Settings left at values only acceptable on a development machine."""
        problems = []
        if self.jwt_secret_key == DEFAULT_JWT_SECRET:
            problems.append("JWT_SECRET_KEY still has its default value (generate one with: openssl rand -hex 32).")
        if not self.auth_enabled:
            problems.append("AUTH_ENABLED is false.")
        if self.full_base_url is None:
            problems.append("FULL_BASE_URL is not set.")
        local = [o for o in self.get_cors_origins() if "localhost" in o or "127.0.0.1" in o]
        if local:
            problems.append(f"CORS_ALLOWED_ORIGINS contains local origins: {', '.join(local)}.")
        return problems

    def validate_production_config(self) -> None:
        """Refuse to start a production instance with insecure settings.

        Raises:
            ConfigurationError: listing every problem found, in production only.
        """
        problems = self.insecure_settings()
        if problems and self.environment == Environment.PRODUCTION:
            raise ConfigurationError("Refusing to start in production:\n  - " + "\n  - ".join(problems))


settings = Settings()
