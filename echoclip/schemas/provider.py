"""Pydantic models for provider records and the persisted app config.

Records are stored as camelCase JSON (``apiBase``, ``apiKeyEnv``,
``defaultProviderId``) so the file stays compatible with the desktop settings
UI. Python code uses the snake_case attribute names.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ProviderType(str, Enum):
    """Backend families with a built-in adapter."""

    OPENAI = "openai"
    OPENAI_COMPATIBLE = "openaiCompatible"
    OLLAMA = "ollama"
    GEMINI = "gemini"


# Keyed providers fall back to these variables when a record has no apiKeyEnv.
DEFAULT_API_KEY_ENV: dict[str, str] = {
    ProviderType.OPENAI.value: "OPENAI_API_KEY",
    ProviderType.OPENAI_COMPATIBLE.value: "OPENAI_COMPAT_KEY",
    ProviderType.GEMINI.value: "GEMINI_API_KEY",
}


class ProviderSpec(BaseModel):
    """One user-configured provider.

    ``type`` is kept as a plain string so that records written by other
    versions of the settings UI still load; routing decides what to do with
    values outside ``ProviderType``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    label: str = "Provider"
    type: str
    api_base: Optional[str] = Field(default=None, alias="apiBase")
    host: Optional[str] = None
    model: str
    api_key_env: Optional[str] = Field(default=None, alias="apiKeyEnv")

    @field_validator("model")
    @classmethod
    def model_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("model must be a non-empty string")
        return v

    @model_validator(mode="after")
    def endpoint_for_type(self) -> "ProviderSpec":
        """Require the endpoint field that matches the provider type."""
        if self.type == ProviderType.OLLAMA.value:
            if not self.host:
                raise ValueError("ollama providers require 'host'")
        elif self.type != ProviderType.GEMINI.value and not self.api_base:
            # Gemini has a public default endpoint; everything else is
            # addressed through the OpenAI-compatible adapter.
            raise ValueError(f"{self.type} providers require 'apiBase'")
        return self

    @property
    def key_env_name(self) -> Optional[str]:
        """Environment variable holding this provider's API key."""
        return self.api_key_env or DEFAULT_API_KEY_ENV.get(self.type)

    def to_record(self) -> dict:
        """Serialize to the camelCase JSON shape, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


def default_providers() -> list[ProviderSpec]:
    """Seed providers used when no registry file exists yet."""
    return [
        ProviderSpec(
            id="prov-openai",
            label="OpenAI (prod)",
            type=ProviderType.OPENAI.value,
            api_base="https://api.openai.com/v1",
            api_key_env="OPENAI_API_KEY",
            model="gpt-4o-mini",
        ),
        ProviderSpec(
            id="prov-compat",
            label="OpenAI-Compatible (local)",
            type=ProviderType.OPENAI_COMPATIBLE.value,
            api_base="http://localhost:11434/v1",
            api_key_env="OPENAI_COMPAT_KEY",
            model="gpt-4o-mini",
        ),
        ProviderSpec(
            id="prov-ollama",
            label="Ollama (localhost)",
            type=ProviderType.OLLAMA.value,
            host="http://localhost:11434",
            model="llama3.1:8b",
        ),
    ]


class AppConfig(BaseModel):
    """Persisted application preferences plus the provider list."""

    model_config = ConfigDict(populate_by_name=True)

    hotkey: str = "Alt+Space"
    target_lang: str = Field(default="", alias="targetLang")
    default_provider_id: Optional[str] = Field(default="prov-openai", alias="defaultProviderId")
    providers: list[ProviderSpec] = Field(default_factory=default_providers)

    def find(self, provider_id: Optional[str]) -> Optional[ProviderSpec]:
        if not provider_id:
            return None
        for provider in self.providers:
            if provider.id == provider_id:
                return provider
        return None


class ProviderListing(BaseModel):
    """What the settings UI receives from ``ProviderRegistry.list``."""

    model_config = ConfigDict(populate_by_name=True)

    providers: list[ProviderSpec]
    default_provider_id: Optional[str] = Field(default=None, alias="defaultProviderId")


class ProbeResult(BaseModel):
    """Outcome of a reachability check against a provider."""

    available: bool
    detail: str = ""
    models: list[str] = Field(default_factory=list)
