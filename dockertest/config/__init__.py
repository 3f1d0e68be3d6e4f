"""Configuration management for dockertest.

A single Settings class holds every option as a flat field, read from
``DOCKERTEST_*`` environment variables or a ``.env`` file, and exposes
logical groups as read-only views.

Usage:
    from dockertest.config import Settings

    settings = Settings(debug=True)
    settings.engine.docker_binary
    settings.credentials.postgres_password

The module-level ``settings`` instance is only a default for callers that
do not build their own. The lifecycle controller always receives its
settings explicitly, so tests never share mutable flags.
"""

from typing import Literal, Optional

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .credentials import CredentialsConfig
from .engine import EngineConfig
from .logging import LoggingConfig


class Settings(BaseSettings):
    """dockertest settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="DOCKERTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Engine
    docker_binary: str = Field(default="docker", description="Container engine CLI")
    machine_binary: str = Field(
        default="docker-machine",
        description="Remote execution environment CLI",
    )
    machine_name: Optional[str] = Field(
        default=None,
        description="docker-machine VM to run the engine in; unset means local",
    )
    debug: bool = Field(
        default=False,
        description="Keep containers after teardown so they can be inspected",
    )
    bind_localhost: bool = Field(
        default=False,
        description="Publish ports on 127.0.0.1 and probe there instead of the container IP",
    )
    command_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Upper bound for a single engine invocation (seconds)",
    )
    probe_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Default reachability deadline for a new container (seconds)",
    )

    # SQL preset credentials
    mysql_username: str = Field(default="root")
    mysql_password: str = Field(default="root")
    postgres_username: str = Field(default="postgres")
    postgres_password: str = Field(default="docker")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")

    @field_validator("machine_name")
    @classmethod
    def blank_machine_name_is_unset(cls, v):
        """Treat an empty DOCKERTEST_MACHINE_NAME as not configured."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v):
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            structlog.get_logger("config").warning(
                "Unknown log level, falling back to INFO", log_level=v
            )
            return "INFO"
        return level

    @property
    def engine(self) -> EngineConfig:
        """Access engine configuration group."""
        return EngineConfig(
            docker_binary=self.docker_binary,
            machine_binary=self.machine_binary,
            machine_name=self.machine_name,
            debug=self.debug,
            bind_localhost=self.bind_localhost,
            command_timeout=self.command_timeout,
            probe_timeout=self.probe_timeout,
        )

    @property
    def credentials(self) -> CredentialsConfig:
        """Access SQL credentials group."""
        return CredentialsConfig(
            mysql_username=self.mysql_username,
            mysql_password=self.mysql_password,
            postgres_username=self.postgres_username,
            postgres_password=self.postgres_password,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(log_level=self.log_level, log_format=self.log_format)


# Global settings instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    "EngineConfig",
    "CredentialsConfig",
    "LoggingConfig",
]
