"""Service layer exports."""

from .api_proxy import ApiProxyService
from .app_entry import AppEntry, AppEntryResolver, AppEntryResult
from .credential_issuer import CredentialIssued, CredentialIssuer, NotInstalled
from .credential_store import CredentialStore, StateStore
from .oauth_handshake import AuthorizationRedirect, OAuthHandshakeService
from .token_cipher import TokenCipherService
from .webhooks import WebhookService, WebhookTopic

__all__ = [
    "ApiProxyService",
    "AppEntry",
    "AppEntryResolver",
    "AppEntryResult",
    "AuthorizationRedirect",
    "CredentialIssued",
    "CredentialIssuer",
    "CredentialStore",
    "NotInstalled",
    "OAuthHandshakeService",
    "StateStore",
    "TokenCipherService",
    "WebhookService",
    "WebhookTopic",
]
