"""
FastAPI application entrypoint for the storefront OAuth gateway.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gateway.api.routes import router as api_router
from gateway.core.config import get_settings
from gateway.core.errors import GatewayError, ProxyError
from gateway.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
    """Render any gateway error as ``{"error": ...}`` with its status code."""
    logger.warning(
        "%s on %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc.message,
    )
    content = {"error": exc.message}
    if isinstance(exc, ProxyError):
        content["details"] = exc.details
    return JSONResponse(content, status_code=exc.status_code)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Storefront OAuth Gateway",
        version="0.1.0",
        description="OAuth installation, client key issuance and Admin API proxy.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    )
    app.add_exception_handler(GatewayError, handle_gateway_error)
    app.include_router(api_router)
    return app


app = create_app()

__all__ = ["app", "create_app", "handle_gateway_error"]
