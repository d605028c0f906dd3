"""
Local Catalog Client (Mock/Local).

Purpose:
- Acts as a development-time catalog source when the remote API is not reachable.
- Loads product records from a local JSON file (flat array or {"data": [...]}).

Usage:
- Wired in pos_catalog/api/main.py when CATALOG_LOCAL_FILE is set
- Implements the same fetch_full_catalog(credential) contract as HttpCatalogFetcher

Swap:
Replace with clients/real_http/catalog_source.py once the source URL and token are configured.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, List

from pos_catalog.errors import FetchFailed, MalformedRemoteData
from pos_catalog.events.event_bus import LOADING_STATUS, EventBus, event_bus
from pos_catalog.integrations.catalog_normalizer import extract_records, normalize_records
from pos_catalog.integrations.contracts.catalog import CatalogEntry
from pos_catalog.utils.formatting import format_count

logger = logging.getLogger(__name__)


class LocalCatalogFetcher:
    def __init__(self, path: Path, *, data_field: str = "data", bus: EventBus = event_bus) -> None:
        self.path = Path(path)
        self.data_field = data_field
        self.bus = bus

    def _read(self) -> Any:
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    async def fetch_full_catalog(self, credential: str) -> List[CatalogEntry]:
        try:
            body = await asyncio.to_thread(self._read)
        except (OSError, ValueError) as exc:
            self.bus.publish(LOADING_STATUS, "Erro ao carregar os produtos do arquivo local.")
            raise FetchFailed(f"Cannot read local catalog {self.path}: {exc}") from exc

        try:
            records = extract_records(body, self.data_field)
        except MalformedRemoteData as exc:
            logger.warning("Local catalog %s is malformed: %s", self.path, exc)
            records = []

        entries = normalize_records(records)
        if records:
            self.bus.publish(LOADING_STATUS, f"{format_count(len(entries))} produtos carregados...")
        return entries
