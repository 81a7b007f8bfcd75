"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest
from prometheus_client import CollectorRegistry

from trade_ledger.engine import CounterpartyEngine, TradeEngine
from trade_ledger.events import EventBus, RecordingListener
from trade_ledger.models import (
    CounterpartyType,
    CreateCounterpartyRequest,
    CreateTradeRequest,
    TradeType,
)
from trade_ledger.store import InMemoryCounterpartyStore, InMemoryTradeStore

TODAY = date(2024, 6, 14)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def today() -> date:
    """Fixed business date."""
    return TODAY


@pytest.fixture
def registry() -> CollectorRegistry:
    """Fresh Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def counterparty_store() -> InMemoryCounterpartyStore:
    return InMemoryCounterpartyStore()


@pytest.fixture
def trade_store(counterparty_store: InMemoryCounterpartyStore) -> InMemoryTradeStore:
    return InMemoryTradeStore(counterparties=counterparty_store)


@pytest.fixture
def recorder() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def bus(recorder: RecordingListener) -> EventBus:
    return EventBus([recorder])


@pytest.fixture
def counterparty_engine(
    counterparty_store: InMemoryCounterpartyStore,
    trade_store: InMemoryTradeStore,
    bus: EventBus,
) -> CounterpartyEngine:
    return CounterpartyEngine(counterparty_store, trade_store, bus)


@pytest.fixture
def trade_engine(
    trade_store: InMemoryTradeStore,
    counterparty_store: InMemoryCounterpartyStore,
    bus: EventBus,
) -> TradeEngine:
    return TradeEngine(trade_store, counterparty_store, bus, today=lambda: TODAY)


def make_counterparty_request(**overrides) -> CreateCounterpartyRequest:
    """Valid counterparty request with optional field overrides."""
    fields = {
        "name": "Goldman Sachs",
        "code": "GS001",
        "type": CounterpartyType.INSTITUTIONAL,
        "email": "trading@gs.com",
        "phone_number": "+1-555-0100",
        "address": "200 West Street, New York, NY",
    }
    fields.update(overrides)
    return CreateCounterpartyRequest(**fields)


def make_trade_request(counterparty_id: int, **overrides) -> CreateTradeRequest:
    """Valid trade request with optional field overrides."""
    fields = {
        "trade_reference": "TRD-001",
        "counterparty_id": counterparty_id,
        "instrument": "AAPL",
        "trade_type": TradeType.BUY,
        "quantity": Decimal("100"),
        "price": Decimal("150.00"),
        "trade_date": TODAY,
        "settlement_date": date(2024, 6, 17),
        "currency": "USD",
    }
    fields.update(overrides)
    return CreateTradeRequest(**fields)


@pytest.fixture
def counterparty_id(counterparty_engine: CounterpartyEngine) -> int:
    """Id of a freshly created ACTIVE counterparty (GS001)."""
    return counterparty_engine.create_counterparty(make_counterparty_request()).id
