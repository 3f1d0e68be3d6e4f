"""Credentials used by the SQL service presets."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CredentialsConfig(BaseSettings):
    """Usernames and passwords baked into the SQL containers at startup."""

    model_config = SettingsConfigDict(env_prefix="DOCKERTEST_", extra="ignore")

    mysql_username: str = Field(default="root")
    mysql_password: str = Field(default="root")
    postgres_username: str = Field(default="postgres")
    postgres_password: str = Field(default="docker")
