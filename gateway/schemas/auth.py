"""Schemas for the client-facing authentication and proxy endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class ExtensionAuthRequest(BaseModel):
    """Request a client key for an installed merchant."""

    shop: Optional[str] = Field(None, description="Merchant domain, e.g. store.myshopify.com.")


class ExtensionAuthResponse(BaseModel):
    success: bool = True
    api_key: str = Field(..., description="Opaque client key for the proxy endpoint.")
    shop: str


class NotInstalledResponse(BaseModel):
    error: str
    install_url: str


class ProxyRequest(BaseModel):
    """Describe one Admin API call to forward upstream."""

    endpoint: Optional[str] = Field(
        None, description="Path relative to the versioned Admin API, e.g. /orders.json."
    )
    method: str = "GET"
    data: Any = None


__all__ = [
    "ExtensionAuthRequest",
    "ExtensionAuthResponse",
    "NotInstalledResponse",
    "ProxyRequest",
]
