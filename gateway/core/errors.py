"""
Error taxonomy shared by the gateway services and HTTP layer.

Every error carries the HTTP status code the API layer should answer with,
and a message that is always safe to return to the caller.
"""

from __future__ import annotations

MISSING_ENV = "Missing required environment variables"
INVALID_SHOP = "Invalid shop domain"
INVALID_HMAC = "Invalid HMAC signature"
INVALID_STATE = "Invalid state parameter"
INVALID_WEBHOOK = "Invalid webhook signature"
APP_NOT_INSTALLED = "App not installed"
MISSING_AUTH = "Missing or invalid authorization"
INVALID_API_KEY = "Invalid API key"
MISSING_ENDPOINT = "Missing endpoint parameter"
INVALID_ENDPOINT = "Invalid endpoint parameter"
MISSING_OAUTH_PARAMS = "Missing required OAuth parameters"
FAILED_TOKEN_EXCHANGE = "Failed to exchange code for token"
FAILED_PROXY = "Failed to proxy request"
FAILED_AUTH_INIT = "Failed to initialize authentication"


class GatewayError(Exception):
    """Base class for errors surfaced to gateway callers."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(GatewayError):
    """Malformed or missing caller input."""

    status_code = 400


class AuthenticationError(GatewayError):
    """Signature, state, or credential failure."""

    status_code = 401


class ConfigurationError(GatewayError):
    """Missing or unusable operating parameters."""

    status_code = 500


class ProxyError(GatewayError):
    """The upstream API could not be reached while proxying a request."""

    status_code = 502

    def __init__(self, details: str) -> None:
        super().__init__(FAILED_PROXY)
        self.details = details


__all__ = [
    "APP_NOT_INSTALLED",
    "AuthenticationError",
    "ConfigurationError",
    "FAILED_AUTH_INIT",
    "FAILED_PROXY",
    "FAILED_TOKEN_EXCHANGE",
    "GatewayError",
    "INVALID_API_KEY",
    "INVALID_HMAC",
    "INVALID_ENDPOINT",
    "INVALID_SHOP",
    "INVALID_STATE",
    "INVALID_WEBHOOK",
    "MISSING_AUTH",
    "MISSING_ENDPOINT",
    "MISSING_ENV",
    "MISSING_OAUTH_PARAMS",
    "ProxyError",
    "ValidationError",
]
