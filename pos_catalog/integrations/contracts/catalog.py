"""
Product catalog contracts.

Defines the structure of catalog information shared by every layer:
- code, name, unit price, stock quantity

These contracts must be used by both:
- clients/mocks/local_catalog.py (local JSON source for development)
- clients/real_http/catalog_source.py (remote catalog API)
and by the stores under pos_catalog/database.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CatalogEntry:
    """One product as of the last successful sync. Identity is ``code``."""
    code: int
    name: str
    unit_price: Decimal
    stock_quantity: int = 0


@dataclass
class CatalogFilter:
    """Optional filters when querying the cached catalog."""
    in_stock_only: bool = False
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def filter_entries(entries: Iterable[CatalogEntry], f: CatalogFilter) -> List[CatalogEntry]:
    """Apply a CatalogFilter to a list of entries and return matching ones."""
    result = list(entries)

    if f.in_stock_only:
        result = [e for e in result if e.stock_quantity > 0]
    if f.min_price is not None:
        result = [e for e in result if e.unit_price >= f.min_price]
    if f.max_price is not None:
        result = [e for e in result if e.unit_price <= f.max_price]

    return result


def dedupe_by_code(entries: Iterable[CatalogEntry]) -> List[CatalogEntry]:
    """Keep the last entry seen for each code, preserving first-seen order."""
    by_code = {}
    for entry in entries:
        by_code[entry.code] = entry
    return list(by_code.values())
