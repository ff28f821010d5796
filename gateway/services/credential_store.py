"""
Persistence for merchant installations, issued client keys and OAuth state.

Each record type lives in its own key-value namespace and is looked up by a
single string key. Access tokens are encrypted before they reach the store.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from gateway.clients.kv_store import KeyValueStore
from gateway.core.errors import FAILED_AUTH_INIT, ConfigurationError
from gateway.models import ClientCredential, MerchantRecord
from gateway.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

CLIENT_KEY_PREFIX = "key:"


class CredentialStore:
    """Owns MerchantRecord and ClientCredential persistence."""

    def __init__(
        self,
        *,
        shops: KeyValueStore,
        api_keys: KeyValueStore,
        token_cipher: TokenCipherService,
        client_key_ttl_seconds: int,
    ) -> None:
        self._shops = shops
        self._api_keys = api_keys
        self._cipher = token_cipher
        self._client_key_ttl = client_key_ttl_seconds

    def save_merchant(self, record: MerchantRecord) -> None:
        """Persist ``record``, replacing any previous installation."""
        self._shops.put(
            record.shop,
            {
                "shop": record.shop,
                "access_token_encrypted": self._cipher.encrypt(record.access_token),
                "scope": list(record.scope),
                "installed_at": record.installed_at.isoformat(),
            },
        )

    def get_merchant(self, shop: str) -> Optional[MerchantRecord]:
        data = self._shops.get(shop)
        if not data:
            return None
        return MerchantRecord(
            shop=data["shop"],
            access_token=self._cipher.decrypt(data["access_token_encrypted"]),
            scope=tuple(data.get("scope") or ()),
            installed_at=data["installed_at"],
        )

    def is_installed(self, shop: str) -> bool:
        return self._shops.get(shop) is not None

    def delete_merchant(self, shop: str) -> None:
        self._shops.delete(shop)

    def save_client_credential(self, client_key: str, credential: ClientCredential) -> None:
        self._api_keys.put(
            f"{CLIENT_KEY_PREFIX}{client_key}",
            {
                "shop": credential.shop,
                "access_token_encrypted": self._cipher.encrypt(credential.access_token),
                "created_at": credential.created_at.isoformat(),
            },
            ttl_seconds=self._client_key_ttl,
        )

    def get_client_credential(self, client_key: str) -> Optional[ClientCredential]:
        if not client_key:
            return None
        data = self._api_keys.get(f"{CLIENT_KEY_PREFIX}{client_key}")
        if not data:
            return None
        return ClientCredential(
            shop=data["shop"],
            access_token=self._cipher.decrypt(data["access_token_encrypted"]),
            created_at=data["created_at"],
        )



class StateStore:
    """Single-use correlation tokens binding an OAuth start to its callback."""

    def __init__(self, store: KeyValueStore, *, ttl_seconds: int = 600) -> None:
        self._store = store
        self._ttl = ttl_seconds

    def issue(self, shop: str) -> str:
        """Create and persist a fresh state token for ``shop``."""
        state = secrets.token_urlsafe(32)
        try:
            self._store.put(state, shop, ttl_seconds=self._ttl)
        except Exception as exc:
            logger.error("Failed to store auth state for %s: %s", shop, exc)
            raise ConfigurationError(FAILED_AUTH_INIT) from exc
        return state

    def consume(self, state: str) -> Optional[str]:
        """Return the shop bound to ``state`` and delete the entry."""
        try:
            shop = self._store.get(state)
        finally:
            self._store.delete(state)
        return shop if isinstance(shop, str) else None


__all__ = ["CLIENT_KEY_PREFIX", "CredentialStore", "StateStore"]
