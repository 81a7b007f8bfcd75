"""Tests for the event bus and Prometheus metrics listener."""

import logging
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from prometheus_client import CollectorRegistry

from conftest import TODAY, make_counterparty_request, make_trade_request
from trade_ledger.engine import CounterpartyEngine, TradeEngine
from trade_ledger.events import (
    EventBus,
    EventType,
    LifecycleEvent,
    LifecycleListener,
    RecordingListener,
)
from trade_ledger.metrics import TradingMetrics
from trade_ledger.models import CounterpartyStatus, TradeStatus
from trade_ledger.store import InMemoryCounterpartyStore, InMemoryTradeStore


class TestEventType:
    """Tests for EventType helpers."""

    def test_entity(self) -> None:
        """Test the entity derived from each event type."""
        assert EventType.TRADE_SETTLED.entity == "trade"
        assert EventType.COUNTERPARTY_DELETED.entity == "counterparty"

    def test_is_timing(self) -> None:
        """Test which event types carry timings."""
        assert EventType.TRADE_CREATION_TIME.is_timing
        assert EventType.COUNTERPARTY_CREATION_TIME.is_timing
        assert not EventType.TRADE_CREATED.is_timing


class TestEventBus:
    """Tests for EventBus fan-out."""

    def test_delivers_in_subscription_order(self) -> None:
        """Test listeners receive events in subscription order."""
        seen = []
        first, second = MagicMock(), MagicMock()
        first.on_event.side_effect = lambda e: seen.append("first")
        second.on_event.side_effect = lambda e: seen.append("second")
        bus = EventBus([first])
        bus.subscribe(second)

        bus.emit(EventType.TRADE_CREATED, subject="1")

        assert seen == ["first", "second"]
        event = first.on_event.call_args[0][0]
        assert isinstance(event, LifecycleEvent)
        assert event.subject == "1"

    def test_failing_listener_is_isolated(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test a failing listener is logged and skipped."""
        broken = MagicMock()
        broken.on_event.side_effect = ValueError("boom")
        recorder = RecordingListener()
        bus = EventBus([broken, recorder])

        with caplog.at_level(logging.ERROR, logger="trade_ledger.events"):
            bus.emit(EventType.TRADE_DELETED)

        assert len(recorder.events) == 1
        assert "failed handling trade.deleted" in caplog.text

    def test_unsubscribe(self) -> None:
        """Test an unsubscribed listener gets no events."""
        recorder = RecordingListener()
        bus = EventBus([recorder])
        bus.unsubscribe(recorder)

        bus.emit(EventType.TRADE_CREATED)

        assert recorder.events == []
        assert bus.listeners == ()

    def test_listener_protocol(self) -> None:
        """Test TradingMetrics satisfies the listener protocol."""
        assert isinstance(RecordingListener(), LifecycleListener)
        assert isinstance(TradingMetrics(CollectorRegistry()), LifecycleListener)


class TestTradingMetrics:
    """Tests for TradingMetrics driven through the engines."""

    @pytest.fixture
    def metrics(self, registry: CollectorRegistry, bus: EventBus) -> TradingMetrics:
        metrics = TradingMetrics(registry)
        bus.subscribe(metrics)
        return metrics

    @staticmethod
    def sample(registry: CollectorRegistry, name: str, **labels: str) -> float | None:
        return registry.get_sample_value(name, labels)

    def test_trade_created(
        self, metrics: TradingMetrics, registry: CollectorRegistry, trade_engine: TradeEngine, counterparty_id: int
    ) -> None:
        """Test trade creation counters and gauges."""
        trade_engine.create_trade(make_trade_request(counterparty_id))

        assert self.sample(registry, "trading_trades_created_total", instrument="AAPL", type="BUY") == 1.0
        assert self.sample(registry, "trading_trades_active") == 1.0
        assert self.sample(registry, "trading_trades_pending") == 1.0
        assert self.sample(registry, "trading_trades_creation_seconds_count", instrument="AAPL") == 1.0

    def test_lifecycle_gauges(
        self, metrics: TradingMetrics, registry: CollectorRegistry, trade_engine: TradeEngine, counterparty_id: int
    ) -> None:
        """Test gauges follow a trade through settlement."""
        trade = trade_engine.create_trade(make_trade_request(counterparty_id))

        trade_engine.update_trade_status(trade.id, TradeStatus.CONFIRMED)
        assert self.sample(registry, "trading_trades_pending") == 0.0
        assert self.sample(registry, "trading_trades_active") == 1.0
        assert self.sample(registry, "trading_trades_confirmed_total", instrument="AAPL", type="BUY") == 1.0

        trade_engine.update_trade_status(trade.id, TradeStatus.SETTLED)
        assert self.sample(registry, "trading_trades_active") == 0.0
        assert self.sample(registry, "trading_trades_settled_total", instrument="AAPL", type="BUY") == 1.0
        assert self.sample(registry, "trading_trades_settled_value") == 15000.0
        assert (
            self.sample(registry, "trading_trades_processing_seconds_count", operation="STATUS_UPDATE")
            == 2.0
        )

    def test_reopened_trade_counts_as_pending(
        self, metrics: TradingMetrics, registry: CollectorRegistry, trade_engine: TradeEngine, counterparty_id: int
    ) -> None:
        """Test a trade moved back to PENDING is counted again."""
        trade = trade_engine.create_trade(make_trade_request(counterparty_id))
        trade_engine.update_trade_status(trade.id, TradeStatus.CANCELLED)

        trade_engine.update_trade_status(trade.id, TradeStatus.PENDING)

        assert self.sample(registry, "trading_trades_pending") == 1.0
        assert self.sample(registry, "trading_trades_active") == 1.0

    def test_trade_deleted(
        self, metrics: TradingMetrics, registry: CollectorRegistry, trade_engine: TradeEngine, counterparty_id: int
    ) -> None:
        """Test deleting a pending trade lowers the gauges."""
        trade = trade_engine.create_trade(make_trade_request(counterparty_id))

        trade_engine.delete_trade(trade.id)

        assert self.sample(registry, "trading_trades_pending") == 0.0
        assert self.sample(registry, "trading_trades_active") == 0.0

    def test_failures_counted(
        self, metrics: TradingMetrics, registry: CollectorRegistry, trade_engine: TradeEngine, counterparty_id: int
    ) -> None:
        """Test failed creations are counted by error type."""
        with pytest.raises(Exception):
            trade_engine.create_trade(make_trade_request(999))

        assert (
            self.sample(
                registry,
                "trading_trades_failed_total",
                instrument="AAPL",
                type="BUY",
                error_type="COUNTERPARTY_NOT_FOUND",
            )
            == 1.0
        )
        assert self.sample(registry, "trading_trades_pending") == 0.0

    def test_counterparty_gauge(
        self,
        metrics: TradingMetrics,
        registry: CollectorRegistry,
        counterparty_engine: CounterpartyEngine,
    ) -> None:
        """Test the active counterparty gauge."""
        active = counterparty_engine.create_counterparty(make_counterparty_request())
        counterparty_engine.create_counterparty(
            make_counterparty_request(code="X01", status=CounterpartyStatus.INACTIVE)
        )
        assert self.sample(registry, "trading_counterparties_active") == 1.0
        assert self.sample(registry, "trading_counterparties_created_total", type="INSTITUTIONAL") == 2.0

        counterparty_engine.update_counterparty_status(active.id, CounterpartyStatus.SUSPENDED)
        assert self.sample(registry, "trading_counterparties_active") == 0.0
        assert self.sample(registry, "trading_counterparties_deactivated_total", type="INSTITUTIONAL") == 1.0

        counterparty_engine.update_counterparty_status(active.id, CounterpartyStatus.ACTIVE)
        counterparty_engine.delete_counterparty(active.id)
        assert self.sample(registry, "trading_counterparties_active") == 0.0
        assert self.sample(registry, "trading_counterparties_activated_total", type="INSTITUTIONAL") == 1.0

    def test_ignores_unhandled_events(self, registry: CollectorRegistry) -> None:
        """Test unhandled event types are ignored."""
        metrics = TradingMetrics(registry)

        metrics.on_event(LifecycleEvent(EventType.TRADE_UPDATED))

        assert self.sample(registry, "trading_trades_active") == 0.0

    def test_settled_without_value(self, registry: CollectorRegistry) -> None:
        """Test a settled event without a value."""
        metrics = TradingMetrics(registry)

        metrics.on_event(
            LifecycleEvent(EventType.TRADE_SETTLED, tags={"instrument": "X", "type": "SELL"})
        )

        assert self.sample(registry, "trading_trades_settled_value") == 0.0

    def test_separate_registries(self) -> None:
        """Test each instance owns its registry."""
        first, second = CollectorRegistry(), CollectorRegistry()
        TradingMetrics(first).on_event(
            LifecycleEvent(EventType.COUNTERPARTY_ACTIVATED, tags={"type": "CORPORATE"})
        )
        TradingMetrics(second)

        assert self.sample(first, "trading_counterparties_active") == 1.0
        assert self.sample(second, "trading_counterparties_active") == 0.0


class TestSyncGauges:
    """Tests for TradingMetrics.sync_gauges."""

    def test_matches_store_contents(self, registry: CollectorRegistry) -> None:
        """Test gauges are reset from the stores."""
        counterparties = InMemoryCounterpartyStore()
        trades = InMemoryTradeStore(counterparties=counterparties)
        # Engines with no metrics listener attached
        cp_engine = CounterpartyEngine(counterparties, trades)
        trade_engine = TradeEngine(trades, counterparties, today=lambda: TODAY)
        cp_id = cp_engine.create_counterparty(make_counterparty_request()).id
        cp_engine.create_counterparty(
            make_counterparty_request(code="X01", status=CounterpartyStatus.INACTIVE)
        )
        for ref, status in [("T-1", None), ("T-2", TradeStatus.CONFIRMED), ("T-3", TradeStatus.SETTLED)]:
            trade = trade_engine.create_trade(make_trade_request(cp_id, trade_reference=ref))
            if status is not None:
                trade_engine.update_trade_status(trade.id, status)
        metrics = TradingMetrics(registry)

        metrics.sync_gauges(trade_engine, cp_engine)

        assert registry.get_sample_value("trading_trades_pending") == 1.0
        assert registry.get_sample_value("trading_trades_active") == 2.0
        assert registry.get_sample_value("trading_counterparties_active") == 1.0
        assert registry.get_sample_value("trading_trades_settled_value") == float(Decimal("15000.00"))
