"""
HMAC-SHA256 signature helpers for provider-signed payloads.

Two schemes are supported:

* Authorization callbacks sign their query string. The ``hmac`` (and legacy
  ``signature``) parameters are removed, the rest are sorted by key and
  joined as ``key=value`` pairs with ``&``; the digest is lowercase hex.
* Webhooks sign the raw request body; the digest is base64 and delivered in
  a request header.

Every comparison goes through :func:`constant_time_equals`.
"""

from __future__ import annotations

import base64
import hmac
import logging
from collections.abc import Iterable, Mapping
from hashlib import sha256
from typing import Tuple, Union

logger = logging.getLogger(__name__)

SIGNATURE_PARAM = "hmac"
ALTERNATE_SIGNATURE_PARAM = "signature"

QueryParams = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def constant_time_equals(provided: str, expected: str) -> bool:
    """Compare two strings without short-circuiting on the first difference.

    Lengths are compared first; length alone says nothing about content.
    """
    provided_bytes = provided.encode("utf-8")
    expected_bytes = expected.encode("utf-8")
    if len(provided_bytes) != len(expected_bytes):
        return False
    return hmac.compare_digest(provided_bytes, expected_bytes)


def _pairs(params: QueryParams) -> list[tuple[str, str]]:
    if isinstance(params, Mapping):
        return [(str(key), str(value)) for key, value in params.items()]
    return [(str(key), str(value)) for key, value in params]


def canonical_query_string(params: QueryParams) -> str:
    """Render parameters in the order the provider signs them."""
    remaining = [
        (key, value)
        for key, value in _pairs(params)
        if key not in (SIGNATURE_PARAM, ALTERNATE_SIGNATURE_PARAM)
    ]
    remaining.sort(key=lambda pair: pair[0].encode("utf-8"))
    return "&".join(f"{key}={value}" for key, value in remaining)


def compute_authorization_signature(params: QueryParams, secret: str) -> str:
    """Return the lowercase hex HMAC the provider attaches to a callback."""
    message = canonical_query_string(params).encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, sha256).hexdigest()


def compute_webhook_signature(raw_body: bytes, secret: str) -> str:
    """Return the base64 HMAC the provider sends with a webhook body."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_authorization_signature(params: QueryParams, secret: str) -> bool:
    """Check the ``hmac`` parameter of an authorization callback query."""
    pairs = _pairs(params)
    provided = next(
        (value for key, value in pairs if key == SIGNATURE_PARAM), None
    )
    if not provided:
        logger.warning("No HMAC provided in authorization request")
        return False
    if not secret:
        logger.warning("No signing secret configured; rejecting request")
        return False
    expected = compute_authorization_signature(pairs, secret)
    return constant_time_equals(provided, expected)


def verify_webhook_signature(
    raw_body: bytes | None, signature_header: str | None, secret: str | None
) -> bool:
    """Check a webhook signature over the exact bytes that were received."""
    if not raw_body or not signature_header or not secret:
        logger.warning("Missing required parameters for webhook HMAC verification")
        return False
    expected = compute_webhook_signature(raw_body, secret)
    return constant_time_equals(signature_header, expected)


__all__ = [
    "ALTERNATE_SIGNATURE_PARAM",
    "SIGNATURE_PARAM",
    "canonical_query_string",
    "compute_authorization_signature",
    "compute_webhook_signature",
    "constant_time_equals",
    "verify_authorization_signature",
    "verify_webhook_signature",
]
