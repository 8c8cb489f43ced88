"""Credential resolution for keyed providers.

Two interchangeable backends sit behind one ``CredentialResolver`` interface:

- ``EnvCredentialResolver`` reads the provider's ``apiKeyEnv`` variable,
  loading a ``.env`` file first.
- ``KeyringCredentialResolver`` reads the OS secret store, using the
  provider id as the account name.

Which one is used is a deployment choice (``credentials.backend`` in
settings), not a property of the provider type.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import keyring
from dotenv import load_dotenv
from keyring.errors import KeyringError, PasswordDeleteError

from echoclip.schemas.provider import ProviderSpec

if TYPE_CHECKING:
    from echoclip.config import Settings

logger = logging.getLogger(__name__)


class CredentialResolver(ABC):
    """Resolve the secret for a provider."""

    @abstractmethod
    def resolve(self, spec: ProviderSpec) -> Optional[str]:
        """Return the API key, or ``None`` when it is not available."""
        ...

    @abstractmethod
    def describe(self, spec: ProviderSpec) -> str:
        """Name the place the key is looked up, for missing-key messages."""
        ...


class EnvCredentialResolver(CredentialResolver):
    def __init__(self, env_file: Optional[Path] = None) -> None:
        if env_file is not None and Path(env_file).exists():
            # Existing environment variables win over the file.
            load_dotenv(env_file, override=False)

    def resolve(self, spec: ProviderSpec) -> Optional[str]:
        name = spec.key_env_name
        if not name:
            return None
        value = os.getenv(name, "").strip()
        return value or None

    def describe(self, spec: ProviderSpec) -> str:
        return f"env: {spec.key_env_name or 'API key'}"


class KeyringCredentialResolver(CredentialResolver):
    """Secrets kept in the OS keychain under ``service`` / provider id."""

    def __init__(self, service: str = "echoclip") -> None:
        self.service = service

    def resolve(self, spec: ProviderSpec) -> Optional[str]:
        try:
            value = keyring.get_password(self.service, spec.id)
        except KeyringError as e:
            logger.warning("Credential store unavailable for %s: %s", spec.id, e)
            return None
        return value.strip() if value and value.strip() else None

    def describe(self, spec: ProviderSpec) -> str:
        return f"credential store: {spec.id}"

    def store(self, account: str, secret: str) -> None:
        """Save a secret for a provider id. Raises ``KeyringError`` on failure."""
        keyring.set_password(self.service, account, secret)
        logger.info("Stored API key for %s in credential store", account)

    def delete(self, account: str) -> bool:
        """Remove a stored secret; returns False when there was none."""
        try:
            keyring.delete_password(self.service, account)
        except PasswordDeleteError:
            return False
        return True


def get_credential_resolver(settings: Optional["Settings"] = None) -> CredentialResolver:
    """Return the resolver selected by ``settings.credentials.backend``."""
    if settings is None:
        from echoclip.config import settings as default_settings

        settings = default_settings

    creds = settings.credentials
    if creds.backend == "keyring":
        return KeyringCredentialResolver(service=creds.keyring_service)
    return EnvCredentialResolver(env_file=creds.env_file)
