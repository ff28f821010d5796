"""Issue client keys to third-party clients for installed merchants."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Union

from gateway.core.errors import APP_NOT_INSTALLED
from gateway.models import ClientCredential
from gateway.services.credential_store import CredentialStore
from gateway.services.validation import require_shop_domain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialIssued:
    shop: str
    client_key: str


@dataclass(frozen=True)
class NotInstalled:
    """The merchant has not completed the OAuth flow yet."""

    shop: str
    install_url: str
    error: str = APP_NOT_INSTALLED


IssueResult = Union[CredentialIssued, NotInstalled]


class CredentialIssuer:
    """Mint opaque client keys bound to a merchant's stored access token."""

    def __init__(
        self,
        credential_store: CredentialStore,
        *,
        provider_domain: str = "myshopify.com",
        app_listing_url: str,
    ) -> None:
        self._store = credential_store
        self._provider_domain = provider_domain
        self._app_listing_url = app_listing_url

    def issue(self, shop: str | None) -> IssueResult:
        shop = require_shop_domain(shop, self._provider_domain)
        merchant = self._store.get_merchant(shop)
        if merchant is None:
            logger.info("Credential requested for %s before installation", shop)
            return NotInstalled(shop=shop, install_url=self._app_listing_url)

        client_key = secrets.token_urlsafe(32)
        self._store.save_client_credential(
            client_key,
            ClientCredential(shop=shop, access_token=merchant.access_token),
        )
        logger.info("Issued client key for %s", shop)
        return CredentialIssued(shop=shop, client_key=client_key)


__all__ = ["CredentialIssued", "CredentialIssuer", "IssueResult", "NotInstalled"]
