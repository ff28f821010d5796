try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import base64
import hashlib
import hmac

import pytest

from gateway.services.signatures import (
    canonical_query_string,
    compute_authorization_signature,
    compute_webhook_signature,
    constant_time_equals,
    verify_authorization_signature,
    verify_webhook_signature,
)

SECRET = "hush"


def _signed_params() -> dict[str, str]:
    params = {
        "shop": "store.myshopify.com",
        "code": "0907a61c0c8d55e99db179b68161bc00",
        "state": "abc123",
        "timestamp": "1337178173",
    }
    params["hmac"] = compute_authorization_signature(params, SECRET)
    return params


def test_canonical_query_string_sorts_and_drops_signatures() -> None:
    params = {"shop": "a", "hmac": "x", "code": "c", "signature": "y", "Zeta": "z"}
    assert canonical_query_string(params) == "Zeta=z&code=c&shop=a"


def test_authorization_signature_matches_reference_hmac() -> None:
    params = {"code": "c", "shop": "s.myshopify.com", "timestamp": "1"}
    expected = hmac.new(
        SECRET.encode(), b"code=c&shop=s.myshopify.com&timestamp=1", hashlib.sha256
    ).hexdigest()
    assert compute_authorization_signature(params, SECRET) == expected


def test_valid_authorization_signature_is_accepted() -> None:
    assert verify_authorization_signature(_signed_params(), SECRET)


def test_authorization_signature_accepts_pair_sequences() -> None:
    params = _signed_params()
    assert verify_authorization_signature(list(params.items()), SECRET)


def test_authorization_signature_missing_is_rejected() -> None:
    params = _signed_params()
    params.pop("hmac")
    assert verify_authorization_signature(params, SECRET) is False


@pytest.mark.parametrize("field", ["shop", "code", "state", "timestamp"])
def test_tampered_parameter_value_is_rejected(field: str) -> None:
    params = _signed_params()
    value = params[field]
    params[field] = value[:-1] + ("0" if value[-1] != "0" else "1")
    assert verify_authorization_signature(params, SECRET) is False


def test_tampered_signature_character_is_rejected() -> None:
    params = _signed_params()
    digest = params["hmac"]
    params["hmac"] = ("f" if digest[0] != "f" else "e") + digest[1:]
    assert verify_authorization_signature(params, SECRET) is False


def test_uppercase_hex_signature_is_rejected() -> None:
    params = _signed_params()
    params["hmac"] = params["hmac"].upper()
    assert verify_authorization_signature(params, SECRET) is False


def test_alternate_signature_parameter_is_ignored_when_signing() -> None:
    params = _signed_params()
    params["signature"] = "legacy"
    assert verify_authorization_signature(params, SECRET)


def test_webhook_signature_roundtrip() -> None:
    body = b'{"shop_domain":"store.myshopify.com"}'
    header = compute_webhook_signature(body, SECRET)
    expected = base64.b64encode(hmac.new(SECRET.encode(), body, hashlib.sha256).digest())
    assert header == expected.decode()
    assert verify_webhook_signature(body, header, SECRET)


def test_webhook_signature_rejects_modified_body() -> None:
    body = b'{"shop_domain":"store.myshopify.com"}'
    header = compute_webhook_signature(body, SECRET)
    assert verify_webhook_signature(body + b" ", header, SECRET) is False
    assert verify_webhook_signature(body.replace(b"store", b"stork"), header, SECRET) is False


@pytest.mark.parametrize(
    "body,header,secret",
    [(b"", "sig", SECRET), (b"{}", None, SECRET), (b"{}", "sig", ""), (None, "sig", SECRET)],
)
def test_webhook_signature_missing_inputs(body, header, secret) -> None:
    assert verify_webhook_signature(body, header, secret) is False


def test_constant_time_equals() -> None:
    assert constant_time_equals("abc", "abc")
    assert not constant_time_equals("abc", "abd")
    assert not constant_time_equals("abc", "abcd")
    assert not constant_time_equals("", "a")
