"""
Mock integration clients (development / offline).
"""

from .local_catalog import LocalCatalogFetcher

__all__ = ["LocalCatalogFetcher"]
