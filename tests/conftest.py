"""Shared test fixtures."""

from datetime import datetime

import pytest

from tradebook.core.models import Direction, TradeRecord, new_id, to_utc
from tradebook.infrastructure.storage.client import InMemoryStore
from tradebook.services.importer import ImportService
from tradebook.services.journal import JournalService


@pytest.fixture
def store() -> InMemoryStore:
    """Store with no collections yet (first read seeds sample data)."""
    return InMemoryStore()


@pytest.fixture
def journal(store) -> JournalService:
    return JournalService(store)


@pytest.fixture
def empty_journal() -> JournalService:
    """Journal whose trade and report collections exist but are empty."""
    return JournalService(InMemoryStore({"trades": [], "brokerReports": []}))


@pytest.fixture
def importer(empty_journal) -> ImportService:
    return ImportService(empty_journal)


@pytest.fixture
def make_trade():
    def _make(pnl, day="2025-04-01T10:00:00", **fields):
        fields.setdefault("direction", Direction.LONG)
        return TradeRecord(
            id=new_id(),
            symbol=fields.pop("symbol", "AAPL"),
            timestamp=to_utc(datetime.fromisoformat(day)),
            pnl=pnl,
            **fields,
        )
    return _make


@pytest.fixture
def broker_csv() -> str:
    """Two-row broker export: AAPL +53.00 (long), TSLA -19.00 (short)."""
    return (
        "symbol,_priceFormat,_priceFormatType,_tickSize,buyFillId,sellFillId,"
        "qty,buyPrice,sellPrice,pnl,boughtTimestamp,soldTimestamp,duration\n"
        "AAPL,-2,0,0.25,101,102,1,100,110,$53.00,04/01/2025 09:30:00,04/01/2025 09:45:00,15min\n"
        "TSLA,-2,0,0.25,103,104,2,110,100,-19.00,04/01/2025 14:10:00,04/01/2025 14:30:00,20min\n"
    )
