"""Public schema exports."""

from .auth import (
    ExtensionAuthRequest,
    ExtensionAuthResponse,
    NotInstalledResponse,
    ProxyRequest,
)

__all__ = [
    "ExtensionAuthRequest",
    "ExtensionAuthResponse",
    "NotInstalledResponse",
    "ProxyRequest",
]
