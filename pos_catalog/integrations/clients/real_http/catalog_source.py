"""
Real Catalog HTTP Client.

Purpose:
- Downloads the full product catalog from the remote source
- Normalizes heterogeneous remote records into CatalogEntry
- Publishes progress on the loading:status channel after every response

Supported source shapes (SourceConfig.mode):
- single: one GET, flat array or records under a nested payload field
- paged: `page_size` records per GET, offset incremented until an empty page
- sheet: spreadsheet values endpoint, rows mapped by column index

Important:
- All-or-nothing: any transport/HTTP failure fails the whole fetch with FetchFailed.
- Keep this client as the ONLY place where catalog HTTP calls are made.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from pos_catalog.errors import FetchFailed, MalformedRemoteData
from pos_catalog.events.event_bus import LOADING_STATUS, EventBus, event_bus
from pos_catalog.integrations.catalog_normalizer import extract_records, normalize_records
from pos_catalog.integrations.contracts.catalog import CatalogEntry
from pos_catalog.utils.config_loader import SourceConfig
from pos_catalog.utils.formatting import format_count

logger = logging.getLogger(__name__)


class HttpCatalogFetcher:
    def __init__(
        self,
        source: SourceConfig,
        *,
        bus: EventBus = event_bus,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.source = source
        self.bus = bus
        self._transport = transport

    def _client(self, headers: Dict[str, str]) -> httpx.AsyncClient:
        transport = self._transport or httpx.AsyncHTTPTransport(retries=self.source.max_retries)
        return httpx.AsyncClient(
            headers=headers,
            timeout=self.source.timeout_seconds,
            transport=transport,
        )

    async def fetch_full_catalog(self, credential: str) -> List[CatalogEntry]:
        if not self.source.url:
            raise FetchFailed("Catalog source URL is not configured.")

        headers = {"Accept": "application/json"}
        if credential:
            headers["Authorization"] = f"Bearer {credential}"

        try:
            async with self._client(headers) as client:
                if self.source.mode == "paged":
                    entries = await self._fetch_paged(client)
                else:
                    entries = await self._fetch_single(client)
        except httpx.HTTPError as exc:
            logger.error("Catalog fetch from %s failed: %s", self.source.url, exc)
            self.bus.publish(LOADING_STATUS, "Erro ao carregar os produtos. Verifique sua conexão.")
            raise FetchFailed(f"Catalog fetch failed: {exc}", payload={"url": self.source.url}) from exc

        logger.info("Fetched %d catalog entries from %s", len(entries), self.source.url)
        return entries

    async def _fetch_single(self, client: httpx.AsyncClient) -> List[CatalogEntry]:
        data_field = "values" if self.source.mode == "sheet" else self.source.data_field
        records = await self._get_records(client, None, data_field)
        entries = self._normalize(records)
        if records:
            self._publish_progress(len(entries))
        return entries

    async def _fetch_paged(self, client: httpx.AsyncClient) -> List[CatalogEntry]:
        entries: List[CatalogEntry] = []
        previous_records: List[Any] = []
        offset = 0
        while True:
            params = {self.source.limit_param: self.source.page_size, self.source.offset_param: offset}
            records = await self._get_records(client, params, self.source.data_field)
            if not records:
                break
            if records == previous_records:
                logger.warning(
                    "Catalog source %s returned the same page for offset %d; stopping pagination",
                    self.source.url,
                    offset,
                )
                break
            previous_records = records
            page = self._normalize(records)
            if page:
                entries.extend(page)
                self._publish_progress(len(entries))
            offset += self.source.page_size
        return entries

    async def _get_records(
        self,
        client: httpx.AsyncClient,
        params: Optional[Dict[str, Any]],
        data_field: str,
    ) -> List[Any]:
        response = await client.get(self.source.url, params=params)
        response.raise_for_status()
        try:
            return extract_records(response.json() if response.content else None, data_field)
        except (MalformedRemoteData, ValueError) as exc:
            logger.warning("Malformed catalog response from %s (params=%s): %s", self.source.url, params, exc)
            return []

    def _normalize(self, records: List[Any]) -> List[CatalogEntry]:
        columns = self.source.columns if self.source.mode == "sheet" else None
        return normalize_records(records, columns)

    def _publish_progress(self, total: int) -> None:
        self.bus.publish(LOADING_STATUS, f"{format_count(total)} produtos carregados...")
