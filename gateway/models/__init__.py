"""Persisted record models."""

from .records import ClientCredential, MerchantRecord

__all__ = ["ClientCredential", "MerchantRecord"]
