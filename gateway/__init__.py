"""Storefront OAuth gateway."""
