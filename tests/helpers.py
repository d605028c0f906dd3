"""Test doubles shared by the test modules."""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from pos_catalog.integrations.contracts.catalog import CatalogEntry


def make_entry(code, name=None, price="10.00", stock=1):
    return CatalogEntry(code=code, name=name or f"Produto {code}", unit_price=Decimal(price), stock_quantity=stock)


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeFetcher:
    """Records calls; optionally waits on ``gate`` before answering."""

    def __init__(self, entries=None, error=None):
        self.entries = list(entries or [])
        self.error = error
        self.calls = 0
        self.credentials = []
        self.gate = None

    async def fetch_full_catalog(self, credential):
        self.calls += 1
        self.credentials.append(credential)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return list(self.entries)
