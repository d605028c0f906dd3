"""
Local catalog persistence.

- catalog_store: SQLAlchemy-backed durable store (production)
- memory_store: in-memory store with the same interface (development/tests)
"""

from .catalog_store import CatalogStore
from .memory_store import InMemoryCatalogStore

__all__ = ["CatalogStore", "InMemoryCatalogStore"]
