"""Tests for the HTTP catalog fetcher and the local file fetcher (httpx.MockTransport)."""

import json

import httpx
import pytest

from pos_catalog.errors import FetchFailed
from pos_catalog.integrations.clients.mocks.local_catalog import LocalCatalogFetcher
from pos_catalog.integrations.clients.real_http.catalog_source import HttpCatalogFetcher
from pos_catalog.integrations.clients.real_http.oauth_token import StaticTokenProvider
from pos_catalog.sync.coordinator import CatalogSyncCoordinator
from pos_catalog.utils.config_loader import SourceConfig

URL = "https://catalog.test/api/produtos"


def _records(start, count):
    return [{"codigo": i, "nome": f"Produto {i}", "valorVenda": "9,90", "estoque": 1} for i in range(start, start + count)]


def _paged_handler(sizes, seen=None):
    """Serve pages of the given sizes, then an empty page."""

    def handler(request):
        if seen is not None:
            seen.append(request)
        offset = int(request.url.params["offset"])
        limit = int(request.url.params["limit"])
        page = offset // limit
        size = sizes[page] if page < len(sizes) else 0
        return httpx.Response(200, json={"data": _records(offset + 1, size)})

    return handler


def _fetcher(bus, handler, **source):
    return HttpCatalogFetcher(SourceConfig(url=URL, **source), bus=bus, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_single_shape_flat_array(bus, status_messages):
    fetcher = _fetcher(bus, lambda request: httpx.Response(200, json=_records(1, 3)))

    entries = await fetcher.fetch_full_catalog("tok")

    assert [e.code for e in entries] == [1, 2, 3]
    assert status_messages == ["3 produtos carregados..."]


@pytest.mark.asyncio
async def test_single_shape_with_nested_payload_field(bus):
    body = {"result": {"produtos": _records(10, 2)}}
    fetcher = _fetcher(bus, lambda request: httpx.Response(200, json=body), data_field="result.produtos")

    entries = await fetcher.fetch_full_catalog("tok")

    assert [e.code for e in entries] == [10, 11]


@pytest.mark.asyncio
async def test_bearer_credential_sent_on_every_request(bus):
    seen = []
    fetcher = _fetcher(bus, _paged_handler([2, 2], seen), mode="paged", page_size=2)

    await fetcher.fetch_full_catalog("secret-token")

    assert len(seen) == 3
    assert all(r.headers["Authorization"] == "Bearer secret-token" for r in seen)


@pytest.mark.asyncio
async def test_paged_shape_reports_running_totals(bus, status_messages):
    seen = []
    fetcher = _fetcher(bus, _paged_handler([500, 500, 234], seen), mode="paged", page_size=500)

    entries = await fetcher.fetch_full_catalog("tok")

    assert len(entries) == 1234
    assert [int(r.url.params["offset"]) for r in seen] == [0, 500, 1000, 1500]
    assert status_messages == [
        "500 produtos carregados...",
        "1.000 produtos carregados...",
        "1.234 produtos carregados...",
    ]


@pytest.mark.asyncio
async def test_paged_shape_uses_configured_parameter_names(bus):
    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(200, json={"data": []})

    fetcher = _fetcher(bus, handler, mode="paged", page_size=50, limit_param="pageSize", offset_param="skip")

    assert await fetcher.fetch_full_catalog("tok") == []
    assert seen == [{"pageSize": "50", "skip": "0"}]


@pytest.mark.asyncio
async def test_malformed_record_is_dropped_without_error(bus, status_messages):
    body = {"data": _records(1, 100) + [{"nome": "Sem código"}]}
    fetcher = _fetcher(bus, lambda request: httpx.Response(200, json=body))

    entries = await fetcher.fetch_full_catalog("tok")

    assert len(entries) == 100
    assert status_messages == ["100 produtos carregados..."]


@pytest.mark.asyncio
async def test_body_without_expected_array_counts_as_empty(bus, status_messages):
    fetcher = _fetcher(bus, lambda request: httpx.Response(200, json={"erro": "sem dados"}))

    assert await fetcher.fetch_full_catalog("tok") == []
    assert status_messages == []


@pytest.mark.asyncio
async def test_non_json_body_counts_as_empty(bus):
    fetcher = _fetcher(bus, lambda request: httpx.Response(200, text="<html>manutenção</html>"))

    assert await fetcher.fetch_full_catalog("tok") == []


@pytest.mark.asyncio
async def test_http_error_status_raises_fetch_failed_and_publishes(bus, status_messages):
    fetcher = _fetcher(bus, lambda request: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(FetchFailed) as excinfo:
        await fetcher.fetch_full_catalog("tok")

    assert excinfo.value.payload == {"url": URL}
    assert status_messages == ["Erro ao carregar os produtos. Verifique sua conexão."]


@pytest.mark.asyncio
async def test_failure_on_later_page_fails_whole_fetch(bus):
    def handler(request):
        if request.url.params["offset"] != "0":
            return httpx.Response(503)
        return httpx.Response(200, json={"data": _records(1, 2)})

    fetcher = _fetcher(bus, handler, mode="paged", page_size=2)

    with pytest.raises(FetchFailed):
        await fetcher.fetch_full_catalog("tok")


@pytest.mark.asyncio
async def test_transport_timeout_raises_fetch_failed(bus):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    fetcher = _fetcher(bus, handler)

    with pytest.raises(FetchFailed):
        await fetcher.fetch_full_catalog("tok")


@pytest.mark.asyncio
async def test_missing_source_url_raises_fetch_failed(bus):
    fetcher = HttpCatalogFetcher(SourceConfig(url=""), bus=bus)

    with pytest.raises(FetchFailed):
        await fetcher.fetch_full_catalog("tok")


@pytest.mark.asyncio
async def test_sheet_shape_maps_rows_by_column(bus):
    def row(code, name, stock, price):
        cells = [""] * 25
        cells[0], cells[4], cells[19], cells[24] = code, name, stock, price
        return cells

    body = {"range": "Produtos!A2:AJ", "values": [row("1", "Cimento", "10", "38,90"), row("", "Linha vazia", "", ""), row("2", "Areia", "1.200", "7,50")]}
    fetcher = _fetcher(bus, lambda request: httpx.Response(200, json=body), mode="sheet")

    entries = await fetcher.fetch_full_catalog("tok")

    assert [(e.code, e.name, e.stock_quantity) for e in entries] == [(1, "Cimento", 10), (2, "Areia", 1200)]


@pytest.mark.asyncio
async def test_three_page_sync_publishes_progress_between_start_and_completion(bus, status_messages, store, clock):
    fetcher = _fetcher(bus, _paged_handler([500, 500, 234]), mode="paged", page_size=500)
    coordinator = CatalogSyncCoordinator(store, fetcher, StaticTokenProvider("tok"), bus=bus, clock=clock)

    products = await coordinator.get_products()

    assert len(products) == 1234
    assert status_messages == [
        "Buscando produtos no servidor...",
        "500 produtos carregados...",
        "1.000 produtos carregados...",
        "1.234 produtos carregados...",
        "Sincronização concluída!",
    ]


@pytest.mark.asyncio
async def test_local_fetcher_reads_json_file(tmp_path, bus, status_messages, monkeypatch):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"data": _records(1, 2) + [{"nome": "sem código"}]}), encoding="utf-8")
    fetcher = LocalCatalogFetcher(path, bus=bus)
    reads = []
    original_read = fetcher._read
    monkeypatch.setattr(fetcher, "_read", lambda: reads.append(path) or original_read())

    entries = await fetcher.fetch_full_catalog("")

    assert [e.code for e in entries] == [1, 2]
    assert reads == [path]
    assert status_messages == ["2 produtos carregados..."]


@pytest.mark.asyncio
async def test_local_fetcher_missing_file_raises_fetch_failed(tmp_path, bus):
    fetcher = LocalCatalogFetcher(tmp_path / "missing.json", bus=bus)

    with pytest.raises(FetchFailed):
        await fetcher.fetch_full_catalog("")


@pytest.mark.asyncio
async def test_paged_page_without_valid_records_publishes_nothing(bus, status_messages):
    def handler(request):
        offset = int(request.url.params["offset"])
        if offset == 0:
            return httpx.Response(200, json={"data": _records(1, 2)})
        if offset == 2:
            return httpx.Response(200, json={"data": [{"nome": "sem código"}, {"nome": "outro"}]})
        if offset == 4:
            return httpx.Response(200, json={"data": _records(5, 1)})
        return httpx.Response(200, json={"data": []})

    fetcher = _fetcher(bus, handler, mode="paged", page_size=2)

    entries = await fetcher.fetch_full_catalog("tok")

    assert [e.code for e in entries] == [1, 2, 5]
    assert status_messages == ["2 produtos carregados...", "3 produtos carregados..."]


@pytest.mark.asyncio
async def test_paged_source_ignoring_offset_stops_on_repeated_page(bus, status_messages):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": _records(1, 2)})

    fetcher = _fetcher(bus, handler, mode="paged", page_size=2)

    entries = await fetcher.fetch_full_catalog("tok")

    assert len(seen) == 2
    assert [e.code for e in entries] == [1, 2]
    assert status_messages == ["2 produtos carregados..."]
