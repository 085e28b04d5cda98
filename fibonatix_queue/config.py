from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """
    Application configuration loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env.development (development environment only)
    3. .env file
    4. Default values below

    The gateway keys (Transform, Service, ...) are kept as raw strings.
    They are parsed by the security and queue resolvers, which report
    bad values as ConfigurationError naming the offending key.
    """

    # Environment
    environment: str = "development"
    debug: bool = True

    # Application
    app_name: str = "FibonatixQueue"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Security strategy
    transform: Optional[str] = Field(default=None, validation_alias="Transform")
    connection_string: Optional[str] = Field(default=None, validation_alias="ConnectionString")
    password: Optional[str] = Field(default=None, validation_alias="Password", repr=False)
    algorithm: Optional[str] = Field(default=None, validation_alias="Algorithm")

    # Backend strategy
    service: Optional[str] = Field(default=None, validation_alias="Service")  # "Redis" or "MongoDB"
    queue_name: str = "fibonatix"
    redis_key_prefix: str = "fibonatix:queue:"
    mongo_database: str = "FibonatixQueue"
    mongo_collection: str = "messages"

    # Azure Storage clients (":" is not allowed in env var names, hence "__")
    blob_descriptor: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "ConnectionStrings:LocalDBTesting:blob",
            "ConnectionStrings__LocalDBTesting__blob",
        ),
    )
    queue_descriptor: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "ConnectionStrings:LocalDBTesting:queue",
            "ConnectionStrings__LocalDBTesting__queue",
        ),
    )
    azure_prefer_managed_identity: bool = True

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.development"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )


def load_config(**overrides) -> AppConfig:
    """
    Build configuration from the environment.

    The development overlay file only applies when ENVIRONMENT is
    "development"; other environments read .env alone.
    """
    config = AppConfig(**overrides)
    if config.environment != "development":
        config = AppConfig(_env_file=".env", **overrides)
    return config


@lru_cache()
def get_config() -> AppConfig:
    """Process-wide configuration (read once)."""
    return load_config()
