"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import httpx
import pytest

from gateway.clients import MemoryKeyValueStore
from gateway.services import CredentialStore, StateStore, TokenCipherService

API_SECRET = "test-api-secret"


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingUpstream:
    """Provider stand-in served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.token_status = 200
        self.webhook_status = 201
        self.fail_webhooks = False
        self.responses: dict[str, httpx.Response] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path
        if path == "/admin/oauth/access_token":
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_request"})
            return httpx.Response(
                200, json={"access_token": "shpat-upstream", "scope": "read_orders,read_products"}
            )
        if path.endswith("/webhooks.json"):
            if self.fail_webhooks:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(self.webhook_status, json={"webhook": {"id": 1}})
        if path in self.responses:
            return self.responses[path]
        return httpx.Response(404, json={"errors": "Not Found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def calls_to(self, suffix: str) -> list[httpx.Request]:
        return [call for call in self.calls if call.url.path.endswith(suffix)]


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def credential_store(clock: FakeClock) -> CredentialStore:
    return CredentialStore(
        shops=MemoryKeyValueStore(clock=clock),
        api_keys=MemoryKeyValueStore(clock=clock),
        token_cipher=TokenCipherService(secret="store-secret"),
        client_key_ttl_seconds=90 * 86400,
    )


@pytest.fixture
def state_store(clock: FakeClock) -> StateStore:
    return StateStore(MemoryKeyValueStore(clock=clock), ttl_seconds=600)


@pytest.fixture
def upstream() -> RecordingUpstream:
    return RecordingUpstream()
