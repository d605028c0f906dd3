"""
FastAPI application - catalog service entry point

Run with: uvicorn pos_catalog.api.main:app --host 127.0.0.1 --port 8000
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
import os
from dataclasses import asdict
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from pos_catalog.database.catalog_store import CatalogStore
from pos_catalog.errors import FetchFailed, QuoteValidationError, StorageUnavailable
from pos_catalog.events.event_bus import LOADING_STATUS, EventBus, event_bus
from pos_catalog.integrations.clients.mocks.local_catalog import LocalCatalogFetcher
from pos_catalog.integrations.clients.real_http.catalog_source import HttpCatalogFetcher
from pos_catalog.integrations.clients.real_http.oauth_token import credentials_from_config
from pos_catalog.integrations.contracts.catalog import CatalogEntry, CatalogFilter, filter_entries
from pos_catalog.quoting.budget import DeliveryAddress, budget_total, build_budget_item, format_budget_message, search_products
from pos_catalog.sync.connectivity import ConnectivityMonitor
from pos_catalog.sync.coordinator import CatalogSyncCoordinator
from pos_catalog.utils.config_loader import CatalogConfig, load_catalog_config

# Setup logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)


# ============================================================================
# SCHEMAS
# ============================================================================

class ProductOut(BaseModel):
    code: int
    name: str
    unit_price: Decimal
    stock_quantity: int

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "ProductOut":
        return cls(code=entry.code, name=entry.name, unit_price=entry.unit_price, stock_quantity=entry.stock_quantity)


class ProductListResponse(BaseModel):
    products: List[ProductOut]
    count: int


class QuoteItemIn(BaseModel):
    code: int
    quantity: int = 1
    discount: Decimal = Decimal(0)


class AddressIn(BaseModel):
    street: Optional[str] = None
    number: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    cep: Optional[str] = None


class QuotePreviewRequest(BaseModel):
    items: List[QuoteItemIn] = Field(default_factory=list)
    payment_method: Literal["Pix", "Crédito", "Débito"] = "Pix"
    has_delivery: bool = False
    address: Optional[AddressIn] = None


class QuoteLineOut(BaseModel):
    code: int
    name: str
    unit_price: Decimal
    quantity: int
    discount_percent: Decimal
    total: Decimal


class QuotePreviewResponse(BaseModel):
    items: List[QuoteLineOut]
    total: Decimal
    message: str


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

def build_coordinator(cfg: CatalogConfig, bus: EventBus = event_bus) -> CatalogSyncCoordinator:
    """Wire store, fetcher and credentials. CATALOG_LOCAL_FILE switches to the local mock source."""
    store = CatalogStore(cfg.store.database_url)

    local_file = os.getenv("CATALOG_LOCAL_FILE")
    if local_file:
        fetcher = LocalCatalogFetcher(Path(local_file), data_field=cfg.source.data_field, bus=bus)
    else:
        fetcher = HttpCatalogFetcher(cfg.source, bus=bus)

    return CatalogSyncCoordinator(
        store,
        fetcher,
        credentials_from_config(cfg.auth),
        bus=bus,
        connectivity=ConnectivityMonitor(probe_url=cfg.sync.connectivity_probe_url),
        revalidate_after=timedelta(minutes=cfg.sync.revalidate_after_minutes),
    )


def get_coordinator(request: Request) -> CatalogSyncCoordinator:
    return request.app.state.coordinator


async def _products(coordinator: CatalogSyncCoordinator) -> List[CatalogEntry]:
    try:
        return await coordinator.get_products()
    except FetchFailed as e:
        logger.error(f"Catalog unavailable: {str(e)}")
        raise HTTPException(status_code=502, detail="Não foi possível carregar os produtos. Tente novamente.")
    except StorageUnavailable as e:
        logger.error(f"Catalog store unavailable: {str(e)}", exc_info=True)
        raise HTTPException(status_code=503, detail="Armazenamento local indisponível.")


# ============================================================================
# APPLICATION
# ============================================================================

def create_app(
    coordinator: Optional[CatalogSyncCoordinator] = None,
    config: Optional[CatalogConfig] = None,
    bus: EventBus = event_bus,
) -> FastAPI:
    if coordinator is None:
        coordinator = build_coordinator(config or load_catalog_config(), bus=bus)

    app = FastAPI(
        title="POS Catalog API",
        description="Cached product catalog and quote previews for the point-of-sale tool",
        version="1.0.0",
    )
    app.state.coordinator = coordinator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_router = APIRouter()

    @app.get("/health", tags=["Health"])
    async def health_check(coord: CatalogSyncCoordinator = Depends(get_coordinator)):
        """Store size, sync state and connectivity."""
        try:
            cached = await asyncio.to_thread(coord.store.count)
            store_status = "connected"
        except StorageUnavailable:
            cached = None
            store_status = "unavailable"
        return {
            "status": "healthy" if store_status == "connected" else "degraded",
            "store": {"status": store_status, "entries": cached},
            "sync": {
                "state": coord.state.value,
                "in_flight": coord.is_syncing,
                "last_revalidation_at": coord.last_revalidation_at.isoformat() if coord.last_revalidation_at else None,
            },
            "online": coord.connectivity.is_online(),
            "timestamp": datetime.now().isoformat(),
        }

    @api_router.get("/products", response_model=ProductListResponse, tags=["Products"])
    async def api_list_products(
        in_stock_only: bool = Query(False),
        min_price: Optional[Decimal] = Query(None, ge=0),
        max_price: Optional[Decimal] = Query(None, ge=0),
        coord: CatalogSyncCoordinator = Depends(get_coordinator),
    ):
        """All cached products. The first call on an empty cache waits for the initial sync."""
        entries = filter_entries(
            await _products(coord),
            CatalogFilter(in_stock_only=in_stock_only, min_price=min_price, max_price=max_price),
        )
        return ProductListResponse(products=[ProductOut.from_entry(e) for e in entries], count=len(entries))

    @api_router.post("/products/sync", response_model=ProductListResponse, tags=["Products"])
    async def api_force_sync(coord: CatalogSyncCoordinator = Depends(get_coordinator)):
        """Fetch the full catalog now and persist it."""
        try:
            entries = await coord.force_sync()
        except FetchFailed as e:
            logger.error(f"Forced sync failed: {str(e)}")
            raise HTTPException(status_code=502, detail="Falha ao sincronizar os produtos.")
        except StorageUnavailable as e:
            logger.error(f"Forced sync could not persist: {str(e)}", exc_info=True)
            raise HTTPException(status_code=503, detail="Armazenamento local indisponível.")
        return ProductListResponse(products=[ProductOut.from_entry(e) for e in entries], count=len(entries))

    @api_router.get("/products/search", response_model=ProductListResponse, tags=["Products"])
    async def api_search_products(
        q: str = Query("", description="Text searched in product name and code."),
        limit: int = Query(100, ge=1, le=500),
        coord: CatalogSyncCoordinator = Depends(get_coordinator),
    ):
        matches = search_products(await _products(coord), q, limit=limit)
        return ProductListResponse(products=[ProductOut.from_entry(e) for e in matches], count=len(matches))

    @api_router.post("/quotes/preview", response_model=QuotePreviewResponse, tags=["Quotes"])
    async def api_quote_preview(request: QuotePreviewRequest, coord: CatalogSyncCoordinator = Depends(get_coordinator)):
        """Price the requested lines against the cached catalog and build the budget message."""
        by_code = {e.code: e for e in await _products(coord)}
        missing = {
            f"items[{i}].code": "Produto não encontrado"
            for i, item in enumerate(request.items)
            if item.code not in by_code
        }
        try:
            if missing:
                raise QuoteValidationError(missing)
            lines = [build_budget_item(by_code[item.code], item.quantity, item.discount) for item in request.items]
        except QuoteValidationError as e:
            raise HTTPException(status_code=422, detail={"message": str(e), "field_errors": e.field_errors})

        address = DeliveryAddress(**request.address.model_dump()) if request.address else None
        return QuotePreviewResponse(
            items=[QuoteLineOut(**asdict(line)) for line in lines],
            total=budget_total(lines),
            message=format_budget_message(lines, request.payment_method, address=address, has_delivery=request.has_delivery),
        )

    app.include_router(api_router, prefix="/api/v1")

    @app.websocket("/ws/loading-status")
    async def websocket_loading_status(websocket: WebSocket):
        """Streams every loading:status message published while connected."""
        loop = asyncio.get_running_loop()
        queue: "asyncio.Queue[str]" = asyncio.Queue()
        subscription = bus.subscribe(LOADING_STATUS, lambda message: loop.call_soon_threadsafe(queue.put_nowait, str(message)))

        async def forward():
            while True:
                await websocket.send_text(await queue.get())

        sender = None
        try:
            await websocket.accept()
            sender = asyncio.create_task(forward())
            # Incoming frames are ignored; receiving only detects the disconnect.
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info("Loading-status websocket disconnected")
        finally:
            bus.unsubscribe(subscription)
            if sender is not None:
                sender.cancel()

    return app


app = create_app()
