"""
Client for third-party callers (e.g. a browser extension) of the gateway.

Credentials are never held in module or instance state: callers pass a
``CredentialCache`` into every call and keep whichever cache comes back.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional
from urllib.parse import urlencode

import httpx

from gateway.core.errors import APP_NOT_INSTALLED
from gateway.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)


class GatewayClientError(Exception):
    """Raised when the gateway rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AppNotInstalledError(GatewayClientError):
    """The merchant must complete the OAuth flow at ``install_url`` first."""

    def __init__(self, shop: str, install_url: str) -> None:
        super().__init__(APP_NOT_INSTALLED, 403)
        self.shop = shop
        self.install_url = install_url


@dataclass(frozen=True)
class CredentialCache:
    """Client-side copy of an issued client key with local expiry tracking."""

    shop: Optional[str] = None
    client_key: Optional[str] = None
    expires_at: Optional[float] = None

    def is_valid_for(self, shop: Optional[str], now: float) -> bool:
        if not self.client_key or self.expires_at is None or self.expires_at <= now:
            return False
        return shop is None or shop == self.shop

    def cleared(self) -> "CredentialCache":
        return CredentialCache(shop=self.shop)


@dataclass(frozen=True)
class ApiResult:
    data: Any
    status_code: int
    credentials: CredentialCache


class GatewayClient:
    """Obtain client keys and make proxied Admin API calls through the gateway."""

    def __init__(
        self,
        base_url: str,
        *,
        token_ttl_seconds: int = 30 * 86400,
        retry_config: RetryConfig | None = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not base_url:
            raise ValueError("Gateway base URL is required")
        self._base_url = base_url.rstrip("/")
        self._token_ttl = token_ttl_seconds
        self._retry = retry_config or RetryConfig()
        self._timeout = timeout
        self._transport = transport
        self._clock = clock

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        )

    def install_url(self, shop: str) -> str:
        return f"{self._base_url}/auth?{urlencode({'shop': shop})}"

    def is_authenticated(self, cache: CredentialCache) -> bool:
        return cache.is_valid_for(None, self._clock())

    async def authenticate(self, shop: str, cache: CredentialCache | None = None) -> CredentialCache:
        """Return a usable credential for ``shop``, requesting one if needed."""
        cache = cache or CredentialCache()
        if cache.is_valid_for(shop, self._clock()):
            logger.debug("Using cached credential for %s", shop)
            return cache

        async with self._client() as client:
            response = await client.post("/api/auth", json={"shop": shop})
        payload = _json_or_empty(response)
        if not isinstance(payload, dict):
            payload = {}

        api_key = payload.get("api_key")
        if response.is_success and api_key:
            return CredentialCache(
                shop=shop,
                client_key=api_key,
                expires_at=self._clock() + self._token_ttl,
            )
        if payload.get("error") == APP_NOT_INSTALLED:
            raise AppNotInstalledError(shop, self.install_url(shop))
        raise GatewayClientError(
            payload.get("error") or "Authentication failed", response.status_code
        )

    async def api(
        self,
        endpoint: str,
        cache: CredentialCache,
        *,
        method: str = "GET",
        data: Any = None,
        reauthenticate: bool = True,
    ) -> ApiResult:
        """Proxy one Admin API call, re-authenticating once on a rejected key."""
        if not self.is_authenticated(cache):
            if not cache.shop:
                raise GatewayClientError("Not authenticated. Call authenticate() first.")
            cache = await self.authenticate(cache.shop, cache.cleared())

        async with self._client() as client:
            response = await request_with_retry(
                client.post,
                "/api/proxy",
                headers={"Authorization": f"Bearer {cache.client_key}"},
                json={"endpoint": endpoint, "method": method, "data": data},
                retry_config=self._retry,
            )
        payload = _json_or_empty(response)

        if response.status_code == 401 and reauthenticate and cache.shop:
            logger.debug("Client key rejected for %s; re-authenticating", cache.shop)
            fresh = await self.authenticate(cache.shop, cache.cleared())
            return await self.api(
                endpoint, fresh, method=method, data=data, reauthenticate=False
            )

        if not response.is_success:
            message = payload.get("error") if isinstance(payload, dict) else None
            raise GatewayClientError(
                message or f"API request failed: {response.status_code}",
                response.status_code,
            )
        return ApiResult(data=payload, status_code=response.status_code, credentials=cache)

    @staticmethod
    def logout(cache: CredentialCache) -> CredentialCache:
        return replace(cache, shop=None, client_key=None, expires_at=None)


def _json_or_empty(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}


__all__ = [
    "ApiResult",
    "AppNotInstalledError",
    "CredentialCache",
    "GatewayClient",
    "GatewayClientError",
]
