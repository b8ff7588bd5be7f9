"""Secret store collaborators.

The provider layer only reads API keys, looked up by the lowercase provider
name on every call. ``SecretStore`` is the interface; the two implementations
here read keys from the environment (loaded through python-dotenv) or from an
in-memory mapping.
"""

import os
from typing import Dict, Mapping, Optional, Protocol

from . import config  # noqa: F401  (loads .env before the environment is read)


class SecretStore(Protocol):
    """Read-only access to per-provider API keys."""

    def has_api_key(self, provider_key: str) -> bool:
        ...

    def get_api_key(self, provider_key: str) -> Optional[str]:
        ...


class EnvironmentSecretStore:
    """Reads ``<PROVIDER>_API_KEY`` environment variables.

    The variable is read on every lookup so keys rotated in the environment
    are picked up without restarting.
    """

    def __init__(self, suffix: str = "_API_KEY"):
        self.suffix = suffix

    def variable_name(self, provider_key: str) -> str:
        return f"{provider_key.upper()}{self.suffix}"

    def get_api_key(self, provider_key: str) -> Optional[str]:
        value = os.getenv(self.variable_name(provider_key))
        return value or None

    def has_api_key(self, provider_key: str) -> bool:
        return self.get_api_key(provider_key) is not None


class InMemorySecretStore:
    """Secret store backed by a plain mapping."""

    def __init__(self, keys: Optional[Mapping[str, str]] = None):
        self._keys: Dict[str, str] = {k.lower(): v for k, v in (keys or {}).items()}

    def get_api_key(self, provider_key: str) -> Optional[str]:
        return self._keys.get(provider_key.lower()) or None

    def has_api_key(self, provider_key: str) -> bool:
        return self.get_api_key(provider_key) is not None
