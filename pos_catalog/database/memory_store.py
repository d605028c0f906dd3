"""
Lightweight in-memory catalog store for local development and tests.

Provides the same interface as pos_catalog.database.catalog_store so the
coordinator can run without a database file. Contents are lost on restart.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional

from pos_catalog.integrations.contracts.catalog import CatalogEntry


class InMemoryCatalogStore:
    def __init__(self) -> None:
        self._entries: Dict[int, CatalogEntry] = {}
        self._lock = threading.Lock()

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def is_empty(self) -> bool:
        return self.count() == 0

    def put_all(self, entries: Iterable[CatalogEntry]) -> None:
        # Build the next snapshot aside and swap it in under the lock.
        with self._lock:
            updated = dict(self._entries)
            for entry in entries:
                updated[entry.code] = entry
            self._entries = updated

    def get_all(self) -> List[CatalogEntry]:
        with self._lock:
            return sorted(self._entries.values(), key=lambda e: e.code)

    def get(self, code: int) -> Optional[CatalogEntry]:
        with self._lock:
            return self._entries.get(code)

    def close(self) -> None:
        """No-op; kept for interface compatibility."""
