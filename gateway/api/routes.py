"""
FastAPI routes for the storefront OAuth gateway.
"""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from typing import Annotated, Any, Optional, TypeVar

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from gateway.core.config import AppSettings
from gateway.core.errors import MISSING_AUTH, AuthenticationError
from gateway.dependencies import (
    get_api_proxy_service,
    get_app_entry_resolver,
    get_app_settings,
    get_credential_issuer,
    get_oauth_handshake_service,
    get_webhook_service,
)
from gateway.schemas import (
    ExtensionAuthRequest,
    ExtensionAuthResponse,
    NotInstalledResponse,
    ProxyRequest,
)
from gateway.services import (
    ApiProxyService,
    AppEntry,
    AppEntryResolver,
    CredentialIssuer,
    NotInstalled,
    OAuthHandshakeService,
    WebhookService,
    WebhookTopic,
)
from gateway.services.webhooks import SIGNATURE_HEADER

router = APIRouter()
logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

APP_NAME = "Storefront OAuth Gateway"
ACCESS_DENIED_MESSAGE = (
    "This app can only be accessed from within the Shopify admin dashboard."
)


def _app_url(request: Request, settings: AppSettings) -> str:
    if settings.app_url:
        return str(settings.app_url).rstrip("/")
    return str(request.base_url).rstrip("/")


async def _json_body(request: Request) -> dict[str, Any]:
    """Parse a JSON object body, treating anything else as empty."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _parse_body(schema: type[SchemaT], payload: dict[str, Any]) -> Optional[SchemaT]:
    """Validate a request body, returning ``None`` when its fields have the wrong types."""
    try:
        return schema.model_validate(payload)
    except SchemaValidationError as exc:
        logger.info("Rejected %s body: %d invalid field(s)", schema.__name__, exc.error_count())
        return None


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/")
async def app_entry(
    resolver: Annotated[AppEntryResolver, Depends(get_app_entry_resolver)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    shop: str | None = Query(None, description="Merchant domain opening the app."),
    embedded: str | None = Query(None),
    host: str | None = Query(None, description="Base64 admin host for embedded loads."),
) -> Response:
    result = resolver.resolve(shop, embedded=embedded, host=host)

    if result.entry in (AppEntry.INSTALL, AppEntry.ADMIN_REDIRECT):
        return RedirectResponse(url=result.redirect_url, status_code=HTTPStatus.FOUND)
    if result.entry is AppEntry.ACCESS_DENIED:
        return JSONResponse(
            {"error": "Access Denied", "message": ACCESS_DENIED_MESSAGE, "shop": result.shop},
            status_code=HTTPStatus.FORBIDDEN,
        )
    if result.entry is AppEntry.EMBEDDED:
        return JSONResponse(
            {
                "status": "embedded",
                "shop": result.shop,
                "host": result.host,
                "api_key": settings.provider.api_key,
            }
        )
    return JSONResponse({"status": "landing", "app": APP_NAME})


@router.get("/auth")
async def start_oauth_flow(
    request: Request,
    handshake: Annotated[OAuthHandshakeService, Depends(get_oauth_handshake_service)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    shop: str | None = Query(None, description="Merchant domain to install on."),
) -> Response:
    """Redirect the merchant to the provider consent screen."""
    redirect = handshake.initiate(shop, app_url=_app_url(request, settings))
    return RedirectResponse(url=redirect.url, status_code=HTTPStatus.FOUND)


@router.get("/auth/callback")
async def handle_oauth_callback(
    request: Request,
    handshake: Annotated[OAuthHandshakeService, Depends(get_oauth_handshake_service)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> Response:
    """Complete the OAuth exchange and send the merchant into the admin app."""
    record = await handshake.complete(
        request.query_params.multi_items(), app_url=_app_url(request, settings)
    )
    return RedirectResponse(
        url=handshake.admin_app_url(record.shop), status_code=HTTPStatus.FOUND
    )


@router.post("/api/auth", status_code=HTTPStatus.OK)
async def issue_client_key(
    request: Request,
    issuer: Annotated[CredentialIssuer, Depends(get_credential_issuer)],
) -> Response:
    """Issue a client key for a merchant that already installed the app."""
    payload = _parse_body(ExtensionAuthRequest, await _json_body(request))
    result = issuer.issue(payload.shop if payload else None)
    if isinstance(result, NotInstalled):
        body = NotInstalledResponse(error=result.error, install_url=result.install_url)
        return JSONResponse(body.model_dump(), status_code=HTTPStatus.FORBIDDEN)
    body = ExtensionAuthResponse(api_key=result.client_key, shop=result.shop)
    return JSONResponse(body.model_dump())


@router.post("/api/proxy")
async def proxy_admin_api(
    request: Request,
    proxy: Annotated[ApiProxyService, Depends(get_api_proxy_service)],
) -> Response:
    """Forward a described Admin API call using the caller's client key."""
    client_key = _bearer_token(request)
    if client_key is None:
        raise AuthenticationError(MISSING_AUTH)
    payload = _parse_body(ProxyRequest, await _json_body(request))
    if payload is None:
        # Key checks still run first; the missing endpoint is reported after them.
        upstream = await proxy.proxy(client_key, None)
    else:
        upstream = await proxy.proxy(
            client_key, payload.endpoint, payload.method, payload.data
        )
    if upstream.body is not None:
        return JSONResponse(upstream.body, status_code=upstream.status_code)
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.media_type,
    )


async def _receive_webhook(
    request: Request, service: WebhookService, topic: WebhookTopic
) -> Response:
    raw_body = await request.body()
    service.handle(raw_body, request.headers.get(SIGNATURE_HEADER), topic)
    return Response(status_code=HTTPStatus.OK)


@router.post("/webhooks/customers/redact")
async def customers_redact_webhook(
    request: Request,
    service: Annotated[WebhookService, Depends(get_webhook_service)],
) -> Response:
    return await _receive_webhook(request, service, WebhookTopic.CUSTOMERS_REDACT)


@router.post("/webhooks/shop/redact")
async def shop_redact_webhook(
    request: Request,
    service: Annotated[WebhookService, Depends(get_webhook_service)],
) -> Response:
    return await _receive_webhook(request, service, WebhookTopic.SHOP_REDACT)


@router.post("/webhooks/customers/data_request")
async def customers_data_request_webhook(
    request: Request,
    service: Annotated[WebhookService, Depends(get_webhook_service)],
) -> Response:
    return await _receive_webhook(request, service, WebhookTopic.CUSTOMERS_DATA_REQUEST)


__all__ = ["router"]
