"""
Resolve what a request to the app's root URL should lead to.

Rendering is left to the HTTP layer; this module only decides which of the
fixed outcomes applies and where a redirect should point.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlencode

from gateway.services.credential_store import CredentialStore
from gateway.services.validation import is_valid_host, require_shop_domain

logger = logging.getLogger(__name__)


class AppEntry(str, Enum):
    LANDING = "landing"
    INSTALL = "install"
    ACCESS_DENIED = "access_denied"
    EMBEDDED = "embedded"
    ADMIN_REDIRECT = "admin_redirect"


@dataclass(frozen=True)
class AppEntryResult:
    entry: AppEntry
    shop: Optional[str] = None
    redirect_url: Optional[str] = None
    host: Optional[str] = None


class AppEntryResolver:
    def __init__(
        self,
        credential_store: CredentialStore,
        *,
        provider_domain: str,
        admin_app_slug: str,
        strict_host_validation: bool = True,
    ) -> None:
        self._store = credential_store
        self._provider_domain = provider_domain
        self._admin_app_slug = admin_app_slug
        self._strict_host = strict_host_validation

    def resolve(
        self,
        shop: Optional[str],
        *,
        embedded: Optional[str] = None,
        host: Optional[str] = None,
    ) -> AppEntryResult:
        if not shop:
            return AppEntryResult(AppEntry.LANDING)

        shop = require_shop_domain(shop, self._provider_domain)

        if not self._store.is_installed(shop):
            return AppEntryResult(
                AppEntry.INSTALL,
                shop=shop,
                redirect_url=f"/auth?{urlencode({'shop': shop})}",
            )

        if embedded == "1":
            if not host:
                logger.warning("Missing host parameter for embedded app on %s", shop)
                return AppEntryResult(AppEntry.ACCESS_DENIED, shop=shop)
            if not is_valid_host(host, shop):
                if self._strict_host:
                    logger.warning("Host validation failed for %s", shop)
                    return AppEntryResult(AppEntry.ACCESS_DENIED, shop=shop)
                logger.warning("Proceeding despite host validation failure for %s", shop)
            return AppEntryResult(AppEntry.EMBEDDED, shop=shop, host=host)

        return AppEntryResult(
            AppEntry.ADMIN_REDIRECT,
            shop=shop,
            redirect_url=f"https://{shop}/admin/apps/{self._admin_app_slug}",
        )


__all__ = ["AppEntry", "AppEntryResolver", "AppEntryResult"]
