"""Logging configuration."""

from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseSettings):
    """Structured logging settings."""

    model_config = SettingsConfigDict(env_prefix="DOCKERTEST_", extra="ignore")

    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")
