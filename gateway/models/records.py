"""
Domain models for installation and client credential persistence.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MerchantRecord(BaseModel):
    """A merchant's long-lived upstream access grant."""

    shop: str = Field(..., description="Merchant domain, e.g. store.myshopify.com.")
    access_token: str = Field(..., repr=False)
    scope: tuple[str, ...] = ()
    installed_at: datetime = Field(default_factory=_utcnow)

    @field_validator("scope", mode="before")
    @classmethod
    def _split_scope(cls, value: object) -> object:
        """The provider reports granted scopes as one comma-separated string."""
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        return value


class ClientCredential(BaseModel):
    """A short-lived client key grant bound to a merchant's access token."""

    shop: str
    access_token: str = Field(..., repr=False)
    created_at: datetime = Field(default_factory=_utcnow)


__all__ = ["ClientCredential", "MerchantRecord"]
