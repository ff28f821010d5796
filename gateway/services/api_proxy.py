"""Relay authenticated client calls to the merchant's Admin API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from gateway.clients.shopify import ShopifyClient, UpstreamResponse
from gateway.core.errors import (
    INVALID_API_KEY,
    INVALID_ENDPOINT,
    MISSING_AUTH,
    MISSING_ENDPOINT,
    AuthenticationError,
    ProxyError,
    ValidationError,
)
from gateway.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class ApiProxyService:
    """Resolve a client key and forward exactly one upstream call.

    Endpoints are not allow-listed; the merchant's granted scope bounds what
    a client key can reach.
    """

    def __init__(self, credential_store: CredentialStore, shopify_client: ShopifyClient) -> None:
        self._store = credential_store
        self._shopify = shopify_client

    async def proxy(
        self,
        client_key: str | None,
        endpoint: str | None,
        method: str = "GET",
        data: Any = None,
    ) -> UpstreamResponse:
        if not client_key:
            raise AuthenticationError(MISSING_AUTH)
        credential = self._store.get_client_credential(client_key)
        if credential is None:
            raise AuthenticationError(INVALID_API_KEY)
        if not endpoint:
            raise ValidationError(MISSING_ENDPOINT)

        try:
            return await self._shopify.forward(
                credential.shop,
                credential.access_token,
                endpoint=endpoint,
                method=method or "GET",
                data=data,
            )
        except httpx.InvalidURL as exc:
            logger.warning("Rejected unusable endpoint for %s: %s", credential.shop, exc)
            raise ValidationError(INVALID_ENDPOINT) from exc
        except httpx.HTTPError as exc:
            logger.error("Proxy error for %s %s on %s: %s", method, endpoint, credential.shop, exc)
            raise ProxyError(str(exc) or type(exc).__name__) from exc


__all__ = ["ApiProxyService"]
