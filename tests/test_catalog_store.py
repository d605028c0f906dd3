"""Tests for the SQLAlchemy-backed and in-memory catalog stores."""

import threading
import time

import pytest
from sqlalchemy import event

from pos_catalog.database.catalog_store import CatalogStore
from pos_catalog.database.memory_store import InMemoryCatalogStore
from pos_catalog.errors import StorageUnavailable
from tests.helpers import make_entry


@pytest.fixture(params=["sqlite_file", "sqlite_memory", "memory"])
def any_store(request, tmp_path):
    if request.param == "sqlite_file":
        s = CatalogStore(f"sqlite:///{tmp_path / 'nested' / 'catalog.db'}")
    elif request.param == "sqlite_memory":
        s = CatalogStore("sqlite:///:memory:")
    else:
        s = InMemoryCatalogStore()
    yield s
    s.close()


def test_new_store_is_empty(any_store):
    assert any_store.is_empty()
    assert any_store.count() == 0
    assert any_store.get_all() == []


def test_put_all_then_get_all_returns_entries(any_store):
    any_store.put_all([make_entry(2, price="1234.56", stock=5), make_entry(1)])

    entries = any_store.get_all()

    assert [e.code for e in entries] == [1, 2]
    assert entries[1] == make_entry(2, price="1234.56", stock=5)
    assert not any_store.is_empty()


def test_put_all_overwrites_existing_code(any_store):
    any_store.put_all([make_entry(1, name="Antigo", price="5.00")])
    any_store.put_all([make_entry(1, name="Novo", price="6.50")])

    assert any_store.get_all() == [make_entry(1, name="Novo", price="6.50")]
    assert any_store.get(1).name == "Novo"
    assert any_store.get(99) is None


def test_put_all_keeps_entries_not_in_batch(any_store):
    any_store.put_all([make_entry(1), make_entry(2)])
    any_store.put_all([make_entry(3)])

    assert [e.code for e in any_store.get_all()] == [1, 2, 3]


def test_duplicate_code_in_one_batch_keeps_last(any_store):
    any_store.put_all([make_entry(4, name="Primeiro"), make_entry(4, name="Último")])

    assert [(e.code, e.name) for e in any_store.get_all()] == [(4, "Último")]


def test_put_all_with_empty_batch_is_noop(any_store):
    any_store.put_all([])
    assert any_store.is_empty()


def test_sqlite_store_survives_reopen(tmp_path):
    url = f"sqlite:///{tmp_path / 'catalog.db'}"
    first = CatalogStore(url)
    first.put_all([make_entry(10, price="38.90")])
    first.close()

    reopened = CatalogStore(url)
    try:
        assert reopened.get_all() == [make_entry(10, price="38.90")]
    finally:
        reopened.close()


def test_unreachable_database_raises_storage_unavailable(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way")
    store = CatalogStore(f"sqlite:///{blocker / 'catalog.db'}")

    with pytest.raises(StorageUnavailable):
        store.is_empty()


def test_corrupt_database_file_raises_storage_unavailable(tmp_path):
    path = tmp_path / "catalog.db"
    path.write_bytes(b"this is definitely not sqlite" * 100)
    store = CatalogStore(f"sqlite:///{path}")

    with pytest.raises(StorageUnavailable):
        store.is_empty()


def _start_reader(store, seen):
    def read():
        seen.append([(e.code, e.name) for e in store.get_all()])

    reader = threading.Thread(target=read)
    reader.start()
    # Give the reader time to run while the batch is still being written.
    time.sleep(0.1)
    return reader


@pytest.mark.parametrize("url_kind", ["file", "memory"])
def test_concurrent_reader_never_sees_partial_batch(url_kind, tmp_path):
    url = f"sqlite:///{tmp_path / 'catalog.db'}" if url_kind == "file" else "sqlite:///:memory:"
    store = CatalogStore(url)
    store.put_all([make_entry(1, name="old")])
    seen, readers = [], []

    def after_execute(conn, clauseelement, *args):
        if getattr(clauseelement, "is_dml", False) and not readers:
            readers.append(_start_reader(store, seen))

    event.listen(store._engine, "after_execute", after_execute)
    try:
        store.put_all([make_entry(1, name="new"), make_entry(2, name="new")])
        readers[0].join(timeout=5)
    finally:
        event.remove(store._engine, "after_execute", after_execute)
        store.close()

    assert seen[0] in ([(1, "old")], [(1, "new"), (2, "new")])


def test_memory_store_reader_never_sees_partial_batch():
    store = InMemoryCatalogStore()
    store.put_all([make_entry(1, name="old")])
    seen, readers = [], []

    def slow_batch():
        yield make_entry(1, name="new")
        readers.append(_start_reader(store, seen))
        yield make_entry(2, name="new")

    store.put_all(slow_batch())
    readers[0].join(timeout=5)

    assert seen[0] == [(1, "new"), (2, "new")]
