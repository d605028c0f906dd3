from .catalog import CatalogEntry, CatalogFilter, dedupe_by_code, filter_entries

__all__ = ["CatalogEntry", "CatalogFilter", "dedupe_by_code", "filter_entries"]
