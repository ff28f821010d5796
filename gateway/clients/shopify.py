"""
Storefront provider API client.

Builds authorization URLs, exchanges authorization codes, registers the
mandatory compliance webhooks and forwards proxied Admin API calls. Every
call is a single attempt bounded by the configured timeout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from gateway.core.config import ProviderSettings

logger = logging.getLogger(__name__)

MANDATORY_WEBHOOK_TOPICS = (
    "customers/redact",
    "shop/redact",
    "customers/data_request",
)
BODYLESS_METHODS = frozenset({"GET", "HEAD"})
ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint returns an error."""


@dataclass
class UpstreamResponse:
    """Status and body relayed from the provider.

    ``body`` holds the decoded JSON payload when the provider answered with
    JSON; otherwise it is ``None`` and ``content`` carries the raw bytes.
    """

    status_code: int
    body: Any
    content: bytes = b""
    media_type: Optional[str] = None


class ShopifyClient:
    """Talk to a merchant's storefront admin endpoints."""

    def __init__(
        self,
        settings: ProviderSettings,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def admin_api_url(self, shop: str, endpoint: str) -> str:
        return f"https://{shop}/admin/api/{self._settings.api_version}{endpoint}"

    def build_authorization_url(self, shop: str, *, state: str, redirect_uri: str) -> str:
        """Construct the provider consent URL for ``shop``."""
        params = {
            "client_id": self._settings.api_key,
            "scope": ",".join(self._settings.scopes),
            "redirect_uri": redirect_uri,
            "state": state,
        }
        return f"https://{shop}/admin/oauth/authorize?{urlencode(params)}"

    async def exchange_authorization_code(self, shop: str, code: str) -> dict[str, Any]:
        """
        Exchange an authorization code for an offline access token.

        Returns the provider payload, which carries ``access_token`` and ``scope``.
        """
        payload = {
            "client_id": self._settings.api_key,
            "client_secret": self._settings.api_secret,
            "code": code,
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    f"https://{shop}/admin/oauth/access_token", json=payload
                )
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token endpoint unreachable: {type(exc).__name__}") from exc

        if not response.is_success:
            raise OAuthTokenExchangeError(f"Token endpoint returned {response.status_code}")

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError("Token endpoint returned invalid JSON.") from exc

        if not isinstance(token_payload, dict) or not token_payload.get("access_token"):
            raise OAuthTokenExchangeError("Incomplete token payload returned.")

        return token_payload

    async def register_mandatory_webhooks(
        self, shop: str, access_token: str, app_url: str
    ) -> list[str]:
        """Register compliance webhooks; returns the topics that failed."""
        failed: list[str] = []
        base = app_url.rstrip("/")
        async with self._client() as client:
            for topic in MANDATORY_WEBHOOK_TOPICS:
                webhook = {"topic": topic, "address": f"{base}/webhooks/{topic}", "format": "json"}
                try:
                    response = await client.post(
                        self.admin_api_url(shop, "/webhooks.json"),
                        headers={ACCESS_TOKEN_HEADER: access_token},
                        json={"webhook": webhook},
                    )
                except httpx.HTTPError as exc:
                    logger.error("Failed to register webhook %s for %s: %s", topic, shop, exc)
                    failed.append(topic)
                    continue
                if not response.is_success:
                    logger.warning(
                        "Webhook %s registration for %s returned %s",
                        topic,
                        shop,
                        response.status_code,
                    )
                    failed.append(topic)
        return failed

    async def forward(
        self,
        shop: str,
        access_token: str,
        *,
        endpoint: str,
        method: str = "GET",
        data: Any = None,
    ) -> UpstreamResponse:
        """Send one Admin API call and return the status and parsed body.

        Transport failures propagate as ``httpx.HTTPError`` and an endpoint that
        cannot form a URL raises ``httpx.InvalidURL``.
        """
        method = method.upper()
        request_kwargs: dict[str, Any] = {
            "headers": {ACCESS_TOKEN_HEADER: access_token},
        }
        if method not in BODYLESS_METHODS and data is not None:
            request_kwargs["json"] = data

        async with self._client() as client:
            response = await client.request(
                method, self.admin_api_url(shop, endpoint), **request_kwargs
            )

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None
        return UpstreamResponse(
            status_code=response.status_code,
            body=body,
            content=response.content,
            media_type=response.headers.get("content-type"),
        )


__all__ = [
    "ACCESS_TOKEN_HEADER",
    "MANDATORY_WEBHOOK_TOPICS",
    "OAuthTokenExchangeError",
    "ShopifyClient",
    "UpstreamResponse",
]
