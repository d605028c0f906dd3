"""Pytest fixtures for the catalog store, fetchers and sync coordinator."""

import pytest

from pos_catalog.database.catalog_store import CatalogStore
from pos_catalog.database.memory_store import InMemoryCatalogStore
from pos_catalog.events.event_bus import LOADING_STATUS, EventBus
from pos_catalog.integrations.clients.real_http.oauth_token import StaticTokenProvider
from pos_catalog.sync.connectivity import ConnectivityMonitor
from pos_catalog.sync.coordinator import CatalogSyncCoordinator
from tests.helpers import FakeClock, FakeFetcher, make_entry


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def status_messages(bus):
    messages = []
    bus.subscribe(LOADING_STATUS, messages.append)
    return messages


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    s = InMemoryCatalogStore() if request.param == "memory" else CatalogStore(f"sqlite:///{tmp_path / 'catalog.db'}")
    yield s
    s.close()


@pytest.fixture
def fetcher():
    return FakeFetcher(entries=[make_entry(3), make_entry(1), make_entry(2)])


@pytest.fixture
def connectivity():
    return ConnectivityMonitor(online=True)


@pytest.fixture
def coordinator(store, fetcher, bus, clock, connectivity):
    return CatalogSyncCoordinator(
        store,
        fetcher,
        StaticTokenProvider("secret-token"),
        bus=bus,
        connectivity=connectivity,
        clock=clock,
    )
