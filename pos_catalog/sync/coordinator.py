"""
Catalog sync coordinator.

Serves catalog reads from the local store and decides when the remote
catalog must be fetched:

- store empty: start (or join) the one fetch-and-persist cycle and wait for it
- store populated, revalidation due and online: start a background cycle and
  answer from the store without waiting for it
- otherwise: answer from the store, no network activity

At most one cycle runs at any time. Every caller that arrives while a cycle
is in flight shares that cycle's result or error.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, List, Optional, Set

from pos_catalog.events.event_bus import LOADING_STATUS, EventBus, event_bus
from pos_catalog.errors import FetchFailed
from pos_catalog.integrations.contracts.catalog import CatalogEntry
from pos_catalog.sync.connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)

DEFAULT_REVALIDATE_AFTER = timedelta(minutes=30)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncState(str, Enum):
    IDLE = "idle"
    INITIAL_SYNC_IN_FLIGHT = "initial_sync_in_flight"
    READY = "ready"
    REVALIDATING = "revalidating_in_background"


class CatalogSyncCoordinator:
    def __init__(
        self,
        store,
        fetcher,
        credentials,
        *,
        bus: EventBus = event_bus,
        connectivity: Optional[ConnectivityMonitor] = None,
        revalidate_after: timedelta = DEFAULT_REVALIDATE_AFTER,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.credentials = credentials
        self.bus = bus
        self.connectivity = connectivity or ConnectivityMonitor()
        self.revalidate_after = revalidate_after
        self._clock = clock

        self.in_flight: Optional[asyncio.Task] = None
        self._last_cycle: Optional[asyncio.Task] = None
        self.last_revalidation_at: Optional[datetime] = None
        self._initialized = False
        self._ready = False
        self._cycles_finished = 0
        self._background: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> SyncState:
        if self.in_flight is not None:
            return SyncState.REVALIDATING if self._ready else SyncState.INITIAL_SYNC_IN_FLIGHT
        return SyncState.READY if self._ready else SyncState.IDLE

    @property
    def is_syncing(self) -> bool:
        return self.in_flight is not None

    def revalidation_due(self, now: Optional[datetime] = None) -> bool:
        if self.last_revalidation_at is None:
            return True
        now = now or self._clock()
        return now - self.last_revalidation_at > self.revalidate_after

    # ------------------------------------------------------------------ #
    # Public operations
    # ------------------------------------------------------------------ #
    async def get_products(self) -> List[CatalogEntry]:
        if not self._initialized:
            self._initialized = True
            if self.last_revalidation_at is None:
                self.last_revalidation_at = self._clock()

        finished_before = self._cycles_finished
        if await self._store_call(self.store.is_empty):
            if self.in_flight is None:
                if self._cycles_finished != finished_before and self._last_cycle is not None:
                    # A cycle overlapped the emptiness check; share its outcome.
                    return await self._last_cycle
                logger.info("Catalog cache is empty; starting initial sync")
                self._start_cycle()
            return await asyncio.shield(self.in_flight)

        self._ready = True
        if self.in_flight is None and self.revalidation_due() and self.connectivity.probe_url:
            await self.connectivity.check()
        self._maybe_revalidate()
        return await self._store_call(self.store.get_all)

    async def force_sync(self) -> List[CatalogEntry]:
        """Run a fetch-and-persist cycle now, joining the running one if any."""
        self._initialized = True
        self.last_revalidation_at = self._clock()
        if self.in_flight is None:
            logger.info("Forced catalog sync requested")
            self._start_cycle()
        else:
            logger.info("Forced catalog sync joins the cycle already in flight")
        try:
            return await asyncio.shield(self.in_flight)
        except Exception:
            self.last_revalidation_at = None
            raise

    async def aclose(self) -> None:
        """Wait for background revalidations to settle."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    async def _store_call(self, fn: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(fn, *args)

    def _maybe_revalidate(self) -> None:
        now = self._clock()
        if self.in_flight is not None or not self.revalidation_due(now):
            return
        if not self.connectivity.is_online():
            logger.debug("Catalog revalidation due but offline; serving cached snapshot")
            return

        self.last_revalidation_at = now
        logger.info("Starting background catalog revalidation")
        cycle = self._start_cycle()
        watcher = asyncio.create_task(self._watch_revalidation(cycle))
        self._background.add(watcher)
        watcher.add_done_callback(self._background.discard)

    def _start_cycle(self) -> asyncio.Task:
        task = asyncio.create_task(self._sync_cycle())
        task.add_done_callback(self._log_cycle_outcome)
        self.in_flight = task
        self._last_cycle = task
        return task

    async def _sync_cycle(self) -> List[CatalogEntry]:
        try:
            self.bus.publish(LOADING_STATUS, "Buscando produtos no servidor...")
            try:
                credential = await self.credentials.get_token()
            except FetchFailed:
                self.bus.publish(LOADING_STATUS, "Erro ao autenticar no servidor de produtos.")
                raise
            entries = await self.fetcher.fetch_full_catalog(credential)
            await self._store_call(self.store.put_all, entries)
            snapshot = await self._store_call(self.store.get_all)
            self._ready = self._ready or bool(snapshot)
            self.bus.publish(LOADING_STATUS, "Sincronização concluída!")
            logger.info("Catalog sync complete: %d entries fetched, %d cached", len(entries), len(snapshot))
            return snapshot
        finally:
            if self.in_flight is asyncio.current_task():
                self.in_flight = None
            self._cycles_finished += 1

    async def _watch_revalidation(self, cycle: asyncio.Task) -> None:
        try:
            await cycle
        except Exception as exc:
            logger.warning("Background catalog revalidation failed; serving stale cache: %s", exc, exc_info=True)
            self.last_revalidation_at = None

    @staticmethod
    def _log_cycle_outcome(task: asyncio.Task) -> None:
        if task.cancelled():
            logger.warning("Catalog sync cycle was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Catalog sync cycle ended with %s: %s", type(exc).__name__, exc)
