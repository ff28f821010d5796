"""Input validation shared by every operation that takes a merchant domain."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from functools import lru_cache

from gateway.core.errors import INVALID_SHOP, ValidationError

logger = logging.getLogger(__name__)


@lru_cache()
def _shop_pattern(provider_domain: str) -> re.Pattern[str]:
    return re.compile(rf"^[a-zA-Z0-9][a-zA-Z0-9-]*\.{re.escape(provider_domain)}$")


def is_valid_shop_domain(shop: str | None, provider_domain: str = "myshopify.com") -> bool:
    if not shop:
        return False
    return _shop_pattern(provider_domain).fullmatch(shop) is not None


def require_shop_domain(shop: str | None, provider_domain: str = "myshopify.com") -> str:
    """Return ``shop`` unchanged or raise ``ValidationError``."""
    if not is_valid_shop_domain(shop, provider_domain):
        raise ValidationError(INVALID_SHOP)
    return shop  # type: ignore[return-value]


def is_valid_host(host: str | None, shop: str) -> bool:
    """Check that the admin ``host`` parameter refers to ``shop``.

    ``host`` is URL-safe base64 of e.g. ``store.myshopify.com/admin``.
    """
    if not host:
        return False
    padded = host + "=" * (-len(host) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as exc:
        logger.warning("Host validation error for %s: %s", shop, exc)
        return False
    shop_domain = shop.replace("https://", "").replace("http://", "").split("/")[0]
    return shop_domain in decoded


__all__ = ["is_valid_host", "is_valid_shop_domain", "require_shop_domain"]
