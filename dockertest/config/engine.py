"""Container engine configuration."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineConfig(BaseSettings):
    """Container engine invocation settings."""

    model_config = SettingsConfigDict(env_prefix="DOCKERTEST_", extra="ignore")

    docker_binary: str = Field(default="docker")
    machine_binary: str = Field(default="docker-machine")
    machine_name: Optional[str] = Field(default=None)
    debug: bool = Field(default=False)
    bind_localhost: bool = Field(default=False)
    command_timeout: float = Field(default=120.0, gt=0)
    probe_timeout: float = Field(default=60.0, gt=0)
