"""Expose constructed client wrappers."""

from .gateway_client import (
    AppNotInstalledError,
    CredentialCache,
    GatewayClient,
    GatewayClientError,
)
from .kv_store import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from .shopify import OAuthTokenExchangeError, ShopifyClient, UpstreamResponse

__all__ = [
    "AppNotInstalledError",
    "CredentialCache",
    "GatewayClient",
    "GatewayClientError",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "OAuthTokenExchangeError",
    "SQLiteKeyValueStore",
    "ShopifyClient",
    "UpstreamResponse",
]
