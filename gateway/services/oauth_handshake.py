"""
Authorization-code handshake with the storefront provider.

``initiate`` issues a single-use state token and builds the consent URL;
``complete`` verifies the callback, exchanges the code and records the
installation. Validation and authentication failures short-circuit before
any upstream call is made.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Tuple

import httpx

from gateway.clients.shopify import OAuthTokenExchangeError, ShopifyClient
from gateway.core.config import ProviderSettings
from gateway.core.errors import (
    FAILED_TOKEN_EXCHANGE,
    INVALID_HMAC,
    INVALID_STATE,
    MISSING_OAUTH_PARAMS,
    AuthenticationError,
    ValidationError,
)
from gateway.models import MerchantRecord
from gateway.services.credential_store import CredentialStore, StateStore
from gateway.services.signatures import verify_authorization_signature
from gateway.services.validation import require_shop_domain

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/auth/callback"
_REQUIRED_CALLBACK_PARAMS = ("code", "shop", "state", "hmac")


@dataclass(frozen=True)
class AuthorizationRedirect:
    url: str
    state: str


class OAuthHandshakeService:
    """Drive one authorization attempt from initiation to persistence."""

    def __init__(
        self,
        *,
        state_store: StateStore,
        credential_store: CredentialStore,
        shopify_client: ShopifyClient,
        provider_settings: ProviderSettings,
    ) -> None:
        self._states = state_store
        self._credentials = credential_store
        self._shopify = shopify_client
        self._provider = provider_settings

    def admin_app_url(self, shop: str) -> str:
        """Where the merchant lands once the app is installed."""
        return f"https://{shop}/admin/apps/{self._provider.admin_app_slug}"

    def initiate(self, shop: str | None, *, app_url: str) -> AuthorizationRedirect:
        shop = require_shop_domain(shop, self._provider.provider_domain)
        state = self._states.issue(shop)
        redirect_uri = f"{app_url.rstrip('/')}{CALLBACK_PATH}"
        url = self._shopify.build_authorization_url(
            shop, state=state, redirect_uri=redirect_uri
        )
        logger.info("Starting OAuth flow for %s", shop)
        return AuthorizationRedirect(url=url, state=state)

    async def complete(
        self, query_params: Iterable[Tuple[str, str]], *, app_url: str
    ) -> MerchantRecord:
        """Verify an authorization callback and persist the installation."""
        pairs = list(query_params)
        params = dict(pairs)
        if any(not params.get(name) for name in _REQUIRED_CALLBACK_PARAMS):
            raise ValidationError(MISSING_OAUTH_PARAMS)

        shop = require_shop_domain(params["shop"], self._provider.provider_domain)

        saved_shop = self._states.consume(params["state"])
        if saved_shop is None or saved_shop != shop:
            logger.warning("OAuth state mismatch for %s", shop)
            raise AuthenticationError(INVALID_STATE, 403)

        if not verify_authorization_signature(pairs, self._provider.api_secret):
            logger.error("HMAC verification failed for OAuth callback from %s", shop)
            raise AuthenticationError(INVALID_HMAC, 403)

        try:
            token_payload = await self._shopify.exchange_authorization_code(
                shop, params["code"]
            )
        except OAuthTokenExchangeError as exc:
            logger.error("Token exchange failed for %s: %s", shop, exc)
            raise AuthenticationError(FAILED_TOKEN_EXCHANGE) from exc

        record = MerchantRecord(
            shop=shop,
            access_token=token_payload["access_token"],
            scope=token_payload.get("scope"),
        )
        self._credentials.save_merchant(record)
        logger.info("Stored installation for %s", shop)

        try:
            failed = await self._shopify.register_mandatory_webhooks(
                shop, record.access_token, app_url
            )
        except httpx.HTTPError as exc:
            logger.error("Webhook registration for %s aborted: %s", shop, exc)
        else:
            if failed:
                logger.warning(
                    "Webhook registration incomplete for %s: %s", shop, ", ".join(failed)
                )

        return record


__all__ = ["AuthorizationRedirect", "CALLBACK_PATH", "OAuthHandshakeService"]
