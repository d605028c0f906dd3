"""
Integrations layer.
This package contains all code used to communicate with the catalog source:
- Remote catalog API (single-call, paged or spreadsheet-values endpoints)
- Local JSON catalog files for development

Key rule:
- The sync coordinator MUST NOT call external APIs directly.
- It calls a fetcher implementing fetch_full_catalog(credential).
- We use the LOCAL client during development and the REAL_HTTP client in production.

Switching implementations:
- The selection of local vs real clients happens in ONE place (pos_catalog/api/main.py).
"""

from .contracts.catalog import CatalogEntry, CatalogFilter, dedupe_by_code, filter_entries

__all__ = ["CatalogEntry", "CatalogFilter", "dedupe_by_code", "filter_entries"]
