"""
Factory functions to provide shared stores, clients and services as FastAPI
dependencies.

Stores and clients are process-wide singletons; services are assembled per
request from overridable dependencies.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from gateway.clients import KeyValueStore, ShopifyClient, SQLiteKeyValueStore
from gateway.core.config import AppSettings, get_settings
from gateway.dependencies.config import get_app_settings
from gateway.services import (
    ApiProxyService,
    AppEntryResolver,
    CredentialIssuer,
    CredentialStore,
    OAuthHandshakeService,
    StateStore,
    TokenCipherService,
    WebhookService,
)

SHOPS_NAMESPACE = "shops"
AUTH_STATES_NAMESPACE = "auth_states"
API_KEYS_NAMESPACE = "api_keys"


@lru_cache()
def _settings() -> AppSettings:
    """Internal helper to cache settings for client factories."""
    return get_settings()


def _kv_store(namespace: str) -> KeyValueStore:
    return SQLiteKeyValueStore(_settings().storage.db_path, namespace)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.provider.api_secret
    return TokenCipherService(secret=secret)


@lru_cache()
def get_credential_store() -> CredentialStore:
    """Provide the installation and client key store."""
    settings = _settings()
    return CredentialStore(
        shops=_kv_store(SHOPS_NAMESPACE),
        api_keys=_kv_store(API_KEYS_NAMESPACE),
        token_cipher=get_token_cipher_service(),
        client_key_ttl_seconds=settings.oauth.client_key_ttl_seconds,
    )


@lru_cache()
def get_state_store() -> StateStore:
    """Provide the OAuth state store."""
    settings = _settings()
    return StateStore(
        _kv_store(AUTH_STATES_NAMESPACE),
        ttl_seconds=settings.oauth.state_ttl_seconds,
    )


@lru_cache()
def get_shopify_client() -> ShopifyClient:
    """Create a singleton provider client."""
    settings = _settings()
    return ShopifyClient(
        settings.provider, timeout=settings.oauth.upstream_timeout_seconds
    )


def get_oauth_handshake_service(
    state_store: Annotated[StateStore, Depends(get_state_store)],
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
    shopify_client: Annotated[ShopifyClient, Depends(get_shopify_client)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> OAuthHandshakeService:
    return OAuthHandshakeService(
        state_store=state_store,
        credential_store=credential_store,
        shopify_client=shopify_client,
        provider_settings=settings.provider,
    )


def get_credential_issuer(
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> CredentialIssuer:
    return CredentialIssuer(
        credential_store,
        provider_domain=settings.provider.provider_domain,
        app_listing_url=settings.provider.app_listing_url,
    )


def get_api_proxy_service(
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
    shopify_client: Annotated[ShopifyClient, Depends(get_shopify_client)],
) -> ApiProxyService:
    return ApiProxyService(credential_store, shopify_client)


def get_webhook_service(
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> WebhookService:
    return WebhookService(
        credential_store,
        secret=settings.provider.api_secret,
        provider_domain=settings.provider.provider_domain,
    )


def get_app_entry_resolver(
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> AppEntryResolver:
    return AppEntryResolver(
        credential_store,
        provider_domain=settings.provider.provider_domain,
        admin_app_slug=settings.provider.admin_app_slug,
        strict_host_validation=settings.security.strict_host_validation,
    )


__all__ = [
    "API_KEYS_NAMESPACE",
    "AUTH_STATES_NAMESPACE",
    "SHOPS_NAMESPACE",
    "get_api_proxy_service",
    "get_app_entry_resolver",
    "get_credential_issuer",
    "get_credential_store",
    "get_oauth_handshake_service",
    "get_shopify_client",
    "get_state_store",
    "get_token_cipher_service",
    "get_webhook_service",
]
