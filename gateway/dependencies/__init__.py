"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_api_proxy_service,
    get_app_entry_resolver,
    get_credential_issuer,
    get_credential_store,
    get_oauth_handshake_service,
    get_shopify_client,
    get_state_store,
    get_token_cipher_service,
    get_webhook_service,
)
from .config import get_app_settings

__all__ = [
    "get_api_proxy_service",
    "get_app_entry_resolver",
    "get_app_settings",
    "get_credential_issuer",
    "get_credential_store",
    "get_oauth_handshake_service",
    "get_shopify_client",
    "get_state_store",
    "get_token_cipher_service",
    "get_webhook_service",
]
