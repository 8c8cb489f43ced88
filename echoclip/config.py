"""Configuration management with YAML and environment variable support."""

from pathlib import Path
from typing import ClassVar, Literal, Optional

import yaml
from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads configuration from YAML file."""

    def get_field_value(self, field, field_name: str):
        # Not used with prepare method
        pass

    def prepare_field_value(self, field_name: str, field, value, value_is_complex: bool):
        return value

    def __call__(self):
        yaml_path = Path("config.yaml")
        if not yaml_path.exists():
            return {}

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return data


class HttpConfig(BaseModel):
    """Outbound request limits applied to every provider call."""

    timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 10.0


class CredentialsConfig(BaseModel):
    """Where provider API keys are looked up.

    ``env`` reads the provider's ``apiKeyEnv`` variable (after loading
    ``env_file``); ``keyring`` reads the OS secret store, keyed by provider id.
    """

    backend: Literal["env", "keyring"] = "env"
    keyring_service: str = "echoclip"
    env_file: Optional[Path] = Path(".env")


class StorageConfig(BaseModel):
    """Location of the persisted provider registry."""

    providers_path: Path = Path("config.json")

    @field_validator("providers_path", mode="before")
    @classmethod
    def convert_providers_path(cls, v):
        """Convert string to Path object."""
        if isinstance(v, str):
            return Path(v)
        return v


class RoutingConfig(BaseModel):
    """Provider dispatch behavior.

    With ``strict_provider_types`` off, records with an unrecognized ``type``
    are sent through the OpenAI-compatible adapter. With it on they fail with
    an ``UNSUPPORTED_PROVIDER`` result instead.
    """

    strict_provider_types: bool = False


class LoggingConfig(BaseModel):
    level: str = "WARNING"


class Settings(BaseSettings):
    """Main application settings with YAML and environment variable support.

    Configuration sources (in priority order):
    1. Environment variables (prefix: ECHOCLIP_, delimiter: __)
    2. YAML file (config.yaml)
    3. Field defaults
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="ECHOCLIP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    http: HttpConfig = HttpConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    storage: StorageConfig = StorageConfig()
    routing: RoutingConfig = RoutingConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        """Customize settings sources to include YAML configuration.

        Priority order (highest to lowest):
        1. Init settings (explicit keyword arguments)
        2. Environment variables
        3. YAML file
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )


# Singleton instance
settings = Settings()
