"""Verify and dispatch the provider's mandatory compliance webhooks."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any

from gateway.core.errors import INVALID_WEBHOOK, AuthenticationError, ValidationError
from gateway.services.credential_store import CredentialStore
from gateway.services.signatures import verify_webhook_signature
from gateway.services.validation import is_valid_shop_domain

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Shopify-Hmac-Sha256"


class WebhookTopic(str, Enum):
    CUSTOMERS_REDACT = "customers/redact"
    SHOP_REDACT = "shop/redact"
    CUSTOMERS_DATA_REQUEST = "customers/data_request"


class WebhookService:
    """Authenticate webhook bodies, then apply the topic's side effect.

    Dispatch is a handful of key-value operations so the provider receives
    its acknowledgement promptly.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        *,
        secret: str,
        provider_domain: str = "myshopify.com",
    ) -> None:
        self._store = credential_store
        self._secret = secret
        self._provider_domain = provider_domain

    def handle(self, raw_body: bytes, signature_header: str | None, topic: WebhookTopic) -> None:
        if not verify_webhook_signature(raw_body, signature_header, self._secret):
            logger.error("Webhook HMAC verification failed for topic %s", topic.value)
            raise AuthenticationError(INVALID_WEBHOOK)

        try:
            payload = json.loads(raw_body)
        except ValueError as exc:
            raise ValidationError("Webhook body is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise ValidationError("Webhook body must be a JSON object")

        if topic is WebhookTopic.SHOP_REDACT:
            self._redact_shop(payload)
        elif topic is WebhookTopic.CUSTOMERS_REDACT:
            logger.info("Customer redact webhook received for %s", payload.get("shop_domain"))
        elif topic is WebhookTopic.CUSTOMERS_DATA_REQUEST:
            logger.info("Customer data request webhook received for %s", payload.get("shop_domain"))

    def _redact_shop(self, payload: dict[str, Any]) -> None:
        shop = payload.get("shop_domain")
        if not shop:
            logger.warning("Shop redact webhook without shop_domain; nothing deleted")
            return
        if not isinstance(shop, str) or not is_valid_shop_domain(shop, self._provider_domain):
            logger.warning("Shop redact webhook named an invalid shop domain; nothing deleted")
            return
        self._store.delete_merchant(shop)
        logger.info("Shop data deleted for %s", shop)


__all__ = ["SIGNATURE_HEADER", "WebhookService", "WebhookTopic"]
