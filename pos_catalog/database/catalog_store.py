"""
Durable catalog store backed by SQLAlchemy (SQLite file by default).

The engine is created on first access and kept for the process lifetime.
Implements the same interface as pos_catalog.database.memory_store.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from sqlalchemy import create_engine, func, insert, select, update
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pos_catalog.database.models import Base, CatalogProduct, entry_to_row
from pos_catalog.errors import StorageUnavailable
from pos_catalog.integrations.contracts.catalog import CatalogEntry, dedupe_by_code

logger = logging.getLogger(__name__)


def _engine_for(database_url: str) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(database_url, pool_pre_ping=True)

    # Store calls are dispatched to worker threads.
    connect_args = {"check_same_thread": False}
    if url.database in (None, "", ":memory:"):
        return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)

    Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, connect_args=connect_args)


class CatalogStore:
    """
    Keyed, durable table of catalog entries.

    ``put_all`` writes the whole batch in one transaction, so a concurrent
    ``get_all`` sees either the previous snapshot or the new one.
    """

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self._engine: Optional[Engine] = None
        self._SessionLocal: Optional[sessionmaker] = None
        self._open_lock = threading.Lock()
        # Set when every session shares one connection (StaticPool).
        self._shared_connection_lock: Optional[threading.RLock] = None

    # ------------------------------------------------------------------ #
    # Schema / lifecycle
    # ------------------------------------------------------------------ #
    def _ensure_open(self) -> sessionmaker:
        with self._open_lock:
            if self._SessionLocal is not None:
                return self._SessionLocal
            try:
                engine = _engine_for(self.database_url)
                Base.metadata.create_all(bind=engine)
            except (SQLAlchemyError, OSError) as exc:
                raise StorageUnavailable(f"Cannot open catalog store at {self.database_url}: {exc}") from exc
            self._engine = engine
            if isinstance(engine.pool, StaticPool):
                self._shared_connection_lock = threading.RLock()
            self._SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
            logger.info("Opened catalog store at %s", self.database_url)
            return self._SessionLocal

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session_factory = self._ensure_open()
        lock = self._shared_connection_lock
        with lock if lock is not None else nullcontext():
            s = session_factory()
            try:
                yield s
                s.commit()
            except SQLAlchemyError as exc:
                s.rollback()
                raise StorageUnavailable(f"Catalog store operation failed: {exc}") from exc
            except Exception:
                s.rollback()
                raise
            finally:
                s.close()

    def close(self) -> None:
        with self._open_lock:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._SessionLocal = None
            self._shared_connection_lock = None

    # ------------------------------------------------------------------ #
    # Catalog
    # ------------------------------------------------------------------ #
    def count(self) -> int:
        with self._session() as s:
            return int(s.execute(select(func.count()).select_from(CatalogProduct)).scalar_one())

    def is_empty(self) -> bool:
        return self.count() == 0

    def put_all(self, entries: Iterable[CatalogEntry]) -> None:
        batch = dedupe_by_code(entries)
        if not batch:
            return
        synced_at = datetime.now(timezone.utc)
        with self._session() as s:
            existing = set(s.execute(select(CatalogProduct.code)).scalars().all())
            updates = [entry_to_row(e, synced_at) for e in batch if e.code in existing]
            inserts = [entry_to_row(e, synced_at) for e in batch if e.code not in existing]
            if updates:
                s.execute(update(CatalogProduct), updates)
            if inserts:
                s.execute(insert(CatalogProduct), inserts)
        logger.info("Catalog store upserted %d entries (%d new)", len(batch), len(inserts))

    def get_all(self) -> List[CatalogEntry]:
        with self._session() as s:
            rows = s.execute(select(CatalogProduct).order_by(CatalogProduct.code)).scalars().all()
            return [row.to_entry() for row in rows]

    def get(self, code: int) -> Optional[CatalogEntry]:
        with self._session() as s:
            row = s.get(CatalogProduct, code)
            return row.to_entry() if row else None
