"""
Credential Provider - Financial Clinic Survey Service
finclinic/services/credentials.py

Injected access to the three token kinds a device may hold. Values are
opaque strings and are never logged.
"""
import logging
from typing import Dict, Optional

from finclinic.services.local_store import LocalStore

logger = logging.getLogger(__name__)

# Credential keys
SIMPLE_SESSION_KEY = "simple_auth_session"
FULL_SESSION_KEY = "auth_token"
ADMIN_SESSION_KEY = "admin_access_token"

CREDENTIAL_KEYS = (SIMPLE_SESSION_KEY, FULL_SESSION_KEY, ADMIN_SESSION_KEY)


class CredentialProvider:
    """get / set / clear over the credential keys."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def clear(self, key: str) -> None:
        raise NotImplementedError

    def clear_all(self) -> None:
        for key in CREDENTIAL_KEYS:
            self.clear(key)

    def present(self) -> Dict[str, bool]:
        """Which credential kinds are set (safe to log or return)."""
        return {key: bool(self.get(key)) for key in CREDENTIAL_KEYS}


class StoreCredentialProvider(CredentialProvider):
    """Credentials persisted in the device's local store."""

    def __init__(self, store: LocalStore):
        self.store = store

    def get(self, key: str) -> Optional[str]:
        return self.store.get_raw(key) or None

    def set(self, key: str, value: str) -> None:
        if key not in CREDENTIAL_KEYS:
            raise KeyError(f"Unknown credential key '{key}'")
        self.store.set_raw(key, value)

    def clear(self, key: str) -> None:
        self.store.delete(key)


class InMemoryCredentialProvider(CredentialProvider):
    """Process-local credentials, mainly for tests and scripts."""

    def __init__(self, **tokens: str):
        self._tokens: Dict[str, str] = {k: v for k, v in tokens.items() if v}

    def get(self, key: str) -> Optional[str]:
        return self._tokens.get(key)

    def set(self, key: str, value: str) -> None:
        if key not in CREDENTIAL_KEYS:
            raise KeyError(f"Unknown credential key '{key}'")
        self._tokens[key] = value

    def clear(self, key: str) -> None:
        self._tokens.pop(key, None)
