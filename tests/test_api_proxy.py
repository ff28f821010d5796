try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import httpx
import pytest

from gateway.clients import ShopifyClient
from gateway.core.config import ProviderSettings
from gateway.core.errors import AuthenticationError, ProxyError, ValidationError
from gateway.models import ClientCredential
from gateway.services import ApiProxyService

SHOP = "store.myshopify.com"


@pytest.fixture
def provider() -> ProviderSettings:
    return ProviderSettings(
        SHOPIFY_API_KEY="client-id",
        SHOPIFY_API_SECRET="client-secret",
        SHOPIFY_API_VERSION="2024-01",
    )


@pytest.fixture
def proxy(provider, credential_store, upstream) -> ApiProxyService:
    credential_store.save_client_credential(
        "client-key", ClientCredential(shop=SHOP, access_token="shpat-1")
    )
    return ApiProxyService(credential_store, ShopifyClient(provider, transport=upstream.transport))


@pytest.mark.anyio
async def test_proxy_forwards_get_without_body(proxy, upstream) -> None:
    upstream.responses["/admin/api/2024-01/orders.json"] = httpx.Response(
        200, json={"orders": [{"id": 1}]}
    )

    result = await proxy.proxy("client-key", "/orders.json", "GET", {"ignored": True})

    assert result.status_code == 200
    assert result.body == {"orders": [{"id": 1}]}
    assert len(upstream.calls) == 1
    request = upstream.calls[0]
    assert str(request.url) == f"https://{SHOP}/admin/api/2024-01/orders.json"
    assert request.method == "GET"
    assert request.headers["X-Shopify-Access-Token"] == "shpat-1"
    assert request.content == b""


@pytest.mark.anyio
async def test_proxy_forwards_body_for_writes(proxy, upstream) -> None:
    upstream.responses["/admin/api/2024-01/products.json"] = httpx.Response(
        201, json={"product": {"id": 9}}
    )

    result = await proxy.proxy("client-key", "/products.json", "post", {"product": {"title": "Hat"}})

    assert result.status_code == 201
    request = upstream.calls[0]
    assert request.method == "POST"
    assert json.loads(request.content) == {"product": {"title": "Hat"}}


@pytest.mark.anyio
async def test_proxy_relays_upstream_errors_verbatim(proxy, upstream) -> None:
    result = await proxy.proxy("client-key", "/missing.json")

    assert result.status_code == 404
    assert result.body == {"errors": "Not Found"}
    assert len(upstream.calls) == 1


@pytest.mark.anyio
@pytest.mark.parametrize("client_key", [None, "", "unknown-key"])
async def test_proxy_rejects_unknown_keys_without_upstream_calls(proxy, upstream, client_key) -> None:
    with pytest.raises(AuthenticationError):
        await proxy.proxy(client_key, "/orders.json")
    assert len(upstream.calls) == 0


@pytest.mark.anyio
async def test_proxy_rejects_expired_keys(proxy, upstream, clock) -> None:
    clock.advance(90 * 86400)
    with pytest.raises(AuthenticationError):
        await proxy.proxy("client-key", "/orders.json")
    assert len(upstream.calls) == 0


@pytest.mark.anyio
async def test_proxy_requires_endpoint(proxy, upstream) -> None:
    with pytest.raises(ValidationError):
        await proxy.proxy("client-key", "")
    assert upstream.calls == []


@pytest.mark.anyio
async def test_proxy_wraps_transport_failures(provider, credential_store) -> None:
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    credential_store.save_client_credential(
        "client-key", ClientCredential(shop=SHOP, access_token="shpat-1")
    )
    proxy = ApiProxyService(
        credential_store, ShopifyClient(provider, transport=httpx.MockTransport(unreachable))
    )

    with pytest.raises(ProxyError) as exc_info:
        await proxy.proxy("client-key", "/orders.json")
    assert exc_info.value.message == "Failed to proxy request"
    assert "connection refused" in exc_info.value.details


@pytest.mark.anyio
async def test_proxy_rejects_endpoints_that_cannot_form_a_url(proxy, upstream) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await proxy.proxy("client-key", "/orders.json\r\nX-Injected: yes")

    assert exc_info.value.message == "Invalid endpoint parameter"
    assert exc_info.value.status_code == 400
    assert upstream.calls == []


@pytest.mark.anyio
async def test_proxy_keeps_non_json_upstream_bodies_raw(proxy, upstream) -> None:
    upstream.responses["/admin/api/2024-01/outage.json"] = httpx.Response(
        502, content=b"<html>Bad Gateway</html>", headers={"content-type": "text/html"}
    )

    result = await proxy.proxy("client-key", "/outage.json")

    assert result.status_code == 502
    assert result.body is None
    assert result.content == b"<html>Bad Gateway</html>"
    assert result.media_type == "text/html"
