"""Provider registry: the persistence boundary for provider records.

Loads and saves the app config JSON (``{hotkey, targetLang,
defaultProviderId, providers}``) and answers provider lookups. The LLM core
only ever receives immutable ``AppConfig`` snapshots from here; nothing else
writes the file.

Usage:
    from echoclip.services.registry import get_registry

    registry = get_registry()
    spec = registry.resolve()               # default provider
    spec = registry.resolve("prov-ollama")  # explicit id
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from pydantic import ValidationError

from echoclip.schemas.provider import AppConfig, ProviderListing, ProviderSpec

if TYPE_CHECKING:
    from echoclip.config import Settings

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

# Fields accepted from a provider record, keyed by their persisted name.
_RECORD_FIELDS = {
    "id": "id",
    "label": "label",
    "type": "type",
    "apiBase": "api_base",
    "api_base": "api_base",
    "host": "host",
    "model": "model",
    "apiKeyEnv": "api_key_env",
    "api_key_env": "api_key_env",
}


class ProviderNotFoundError(LookupError):
    """Raised when a registry operation names an unknown provider id."""

    def __init__(self, provider_id: str):
        super().__init__(f"Provider not found: {provider_id}")
        self.provider_id = provider_id


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_provider_id() -> str:
    """Generate an id of the form ``prov-<base36 millisecond timestamp>``."""
    return "prov-" + _base36(int(time.time() * 1000))


def _normalize_record(data: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase or snake_case keys to field names, dropping empty values."""
    normalized: dict[str, Any] = {}
    for key, value in data.items():
        field = _RECORD_FIELDS.get(key)
        if field is None or value is None or value == "":
            continue
        normalized[field] = value
    return normalized


class ProviderRegistry:
    """JSON-file backed store of provider records and preferences."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._config: Optional[AppConfig] = None

    # ------------------------------------------------------------------
    # Loading / saving
    # ------------------------------------------------------------------

    def load(self) -> AppConfig:
        """(Re)read the config file, falling back to defaults.

        A missing file yields the seed providers. Unreadable JSON is logged
        and replaced by defaults. Individual invalid provider records are
        skipped with a warning so one bad entry does not hide the rest.
        """
        if not self.path.exists():
            self._config = AppConfig()
            return self._config

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s, using defaults: %s", self.path, e)
            self._config = AppConfig()
            return self._config

        if not isinstance(raw, dict):
            logger.warning("Ignoring %s: top-level value is not an object", self.path)
            self._config = AppConfig()
            return self._config

        raw_providers = raw.pop("providers", None)
        try:
            config = AppConfig.model_validate(raw)
        except ValidationError as e:
            logger.warning("Invalid preferences in %s, using defaults: %s", self.path, e)
            config = AppConfig()

        if isinstance(raw_providers, list):
            providers: list[ProviderSpec] = []
            for record in raw_providers:
                try:
                    providers.append(ProviderSpec.model_validate(record))
                except ValidationError as e:
                    logger.warning("Skipping invalid provider record %r: %s", record, e)
            config = config.model_copy(update={"providers": providers})

        self._config = config
        return config

    def snapshot(self) -> AppConfig:
        """Return the current config, loading it on first use."""
        if self._config is None:
            return self.load()
        return self._config

    def _write(self, config: AppConfig) -> None:
        document = {
            "hotkey": config.hotkey,
            "targetLang": config.target_lang,
            "defaultProviderId": config.default_provider_id,
            "providers": [p.to_record() for p in config.providers],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        self._config = config
        logger.debug("Saved %d providers to %s", len(config.providers), self.path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> ProviderListing:
        config = self.snapshot()
        return ProviderListing(
            providers=list(config.providers),
            default_provider_id=config.default_provider_id,
        )

    def resolve(self, provider_id: Optional[str] = None) -> Optional[ProviderSpec]:
        """Pick the provider for an invocation.

        An explicit id must exist. Without one, the default provider is used,
        then the first provider. Returns ``None`` when nothing resolves.
        """
        config = self.snapshot()
        if provider_id:
            spec = config.find(provider_id)
            if spec is None:
                logger.warning("Requested provider %s is not configured", provider_id)
            return spec

        spec = config.find(config.default_provider_id)
        if spec is not None:
            return spec
        return config.providers[0] if config.providers else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def save(self, provider: Union[ProviderSpec, dict[str, Any]]) -> ProviderSpec:
        """Insert or update a provider record.

        Missing ids are generated and a missing label becomes "Provider".
        Updating an existing id overlays only the fields that were supplied.

        Raises:
            pydantic.ValidationError: If the merged record is invalid.
        """
        if isinstance(provider, ProviderSpec):
            incoming = provider.model_dump(exclude_none=True)
        else:
            incoming = _normalize_record(provider)

        config = self.snapshot()
        provider_id = incoming.get("id") or new_provider_id()
        existing = config.find(provider_id)

        merged: dict[str, Any] = existing.model_dump(exclude_none=True) if existing else {}
        merged.update(incoming)
        merged["id"] = provider_id
        merged.setdefault("label", "Provider")
        spec = ProviderSpec.model_validate(merged)

        if existing is not None:
            providers = [spec if p.id == provider_id else p for p in config.providers]
        else:
            providers = [*config.providers, spec]

        self._write(config.model_copy(update={"providers": providers}))
        logger.info("%s provider %s (%s)", "Updated" if existing else "Added", spec.id, spec.type)
        return spec

    def delete(self, provider_id: str) -> None:
        """Remove a provider; reassign the default to the first remaining one."""
        config = self.snapshot()
        if config.find(provider_id) is None:
            raise ProviderNotFoundError(provider_id)

        providers = [p for p in config.providers if p.id != provider_id]
        default_id = config.default_provider_id
        if default_id == provider_id:
            default_id = providers[0].id if providers else None

        self._write(config.model_copy(update={
            "providers": providers,
            "default_provider_id": default_id,
        }))
        logger.info("Deleted provider %s", provider_id)

    def set_default(self, provider_id: str) -> None:
        config = self.snapshot()
        if config.find(provider_id) is None:
            raise ProviderNotFoundError(provider_id)
        self._write(config.model_copy(update={"default_provider_id": provider_id}))

    def update_preferences(
        self,
        *,
        hotkey: Optional[str] = None,
        target_lang: Optional[str] = None,
    ) -> AppConfig:
        """Update hotkey and/or default target language and persist."""
        changes: dict[str, Any] = {}
        if hotkey is not None:
            changes["hotkey"] = hotkey
        if target_lang is not None:
            changes["target_lang"] = target_lang
        config = self.snapshot().model_copy(update=changes)
        self._write(config)
        return config


def get_registry(settings: Optional["Settings"] = None) -> ProviderRegistry:
    """Registry at ``settings.storage.providers_path``."""
    if settings is None:
        from echoclip.config import settings as default_settings

        settings = default_settings
    return ProviderRegistry(settings.storage.providers_path)
