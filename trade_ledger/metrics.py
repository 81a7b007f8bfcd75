"""Prometheus metrics for ledger activity.

``TradingMetrics`` is a lifecycle listener: it only changes when the
engines publish events, and it owns its own ``CollectorRegistry`` so
several ledgers (or tests) never share counters.

Money values stay Decimal inside the engines and are converted to float
only at the Prometheus boundary.
"""

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

from trade_ledger.events import EventType, LifecycleEvent
from trade_ledger.models import CounterpartyStatus, TradeStatus

if TYPE_CHECKING:
    from trade_ledger.engine import CounterpartyEngine, TradeEngine

logger = logging.getLogger(__name__)

# Trades still moving through settlement
OPEN_TRADE_STATUSES = frozenset({TradeStatus.PENDING.value, TradeStatus.CONFIRMED.value})


class TradingMetrics:
    """Counters, timings and state gauges fed by lifecycle events.

    Parameters
    ----------
    registry : CollectorRegistry | None
        Registry to register collectors on. A fresh one is created if omitted.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        self.trades_created = Counter(
            "trading_trades_created_total",
            "Total number of trades created",
            ["instrument", "type"],
            registry=self.registry,
        )
        self.trades_confirmed = Counter(
            "trading_trades_confirmed_total",
            "Total number of trades confirmed",
            ["instrument", "type"],
            registry=self.registry,
        )
        self.trades_settled = Counter(
            "trading_trades_settled_total",
            "Total number of trades settled",
            ["instrument", "type"],
            registry=self.registry,
        )
        self.trades_failed = Counter(
            "trading_trades_failed_total",
            "Total number of trade creations that failed",
            ["instrument", "type", "error_type"],
            registry=self.registry,
        )
        self.counterparties_created = Counter(
            "trading_counterparties_created_total",
            "Total number of counterparties created",
            ["type"],
            registry=self.registry,
        )
        self.counterparties_activated = Counter(
            "trading_counterparties_activated_total",
            "Total number of counterparties activated",
            ["type"],
            registry=self.registry,
        )
        self.counterparties_deactivated = Counter(
            "trading_counterparties_deactivated_total",
            "Total number of counterparties deactivated",
            ["type"],
            registry=self.registry,
        )

        self.trade_creation_seconds = Histogram(
            "trading_trades_creation_seconds",
            "Time taken to create a trade",
            ["instrument"],
            registry=self.registry,
        )
        self.trade_processing_seconds = Histogram(
            "trading_trades_processing_seconds",
            "Time taken to process a trade",
            ["operation"],
            registry=self.registry,
        )
        self.counterparty_creation_seconds = Histogram(
            "trading_counterparties_creation_seconds",
            "Time taken to create a counterparty",
            ["type"],
            registry=self.registry,
        )

        self.active_trades = Gauge(
            "trading_trades_active",
            "Number of trades that are PENDING or CONFIRMED",
            registry=self.registry,
        )
        self.pending_trades = Gauge(
            "trading_trades_pending",
            "Number of PENDING trades",
            registry=self.registry,
        )
        self.active_counterparties = Gauge(
            "trading_counterparties_active",
            "Number of ACTIVE counterparties",
            registry=self.registry,
        )
        self.settled_value = Gauge(
            "trading_trades_settled_value",
            "Total value of settled trades",
            registry=self.registry,
        )

        self._dispatch = self._handlers()

    def on_event(self, event: LifecycleEvent) -> None:
        handler = self._dispatch.get(event.event_type)
        if handler is not None:
            handler(event)

    def sync_gauges(
        self, trade_engine: "TradeEngine", counterparty_engine: "CounterpartyEngine"
    ) -> None:
        """Reset the state gauges from the stores' current contents."""
        pending = trade_engine.count_trades_by_status(TradeStatus.PENDING)
        confirmed = trade_engine.count_trades_by_status(TradeStatus.CONFIRMED)
        settled = sum(
            (view.total_value for view in trade_engine.get_trades_by_status(TradeStatus.SETTLED)),
            Decimal("0"),
        )

        self.pending_trades.set(pending)
        self.active_trades.set(pending + confirmed)
        self.active_counterparties.set(counterparty_engine.count_active_counterparties())
        self.settled_value.set(float(settled))
        logger.debug(
            "Gauges synced: pending=%d, active=%d, settled_value=%s",
            pending,
            pending + confirmed,
            settled,
        )

    def _handlers(self):
        return {
            EventType.TRADE_CREATED: self._trade_created,
            EventType.TRADE_CONFIRMED: self._trade_confirmed,
            EventType.TRADE_SETTLED: self._trade_settled,
            EventType.TRADE_FAILED: self._trade_failed,
            EventType.TRADE_STATUS_CHANGED: self._trade_status_changed,
            EventType.TRADE_DELETED: self._trade_deleted,
            EventType.TRADE_CREATION_TIME: self._trade_creation_time,
            EventType.TRADE_PROCESSING_TIME: self._trade_processing_time,
            EventType.COUNTERPARTY_CREATED: self._counterparty_created,
            EventType.COUNTERPARTY_ACTIVATED: self._counterparty_activated,
            EventType.COUNTERPARTY_DEACTIVATED: self._counterparty_deactivated,
            EventType.COUNTERPARTY_DELETED: self._counterparty_deleted,
            EventType.COUNTERPARTY_CREATION_TIME: self._counterparty_creation_time,
        }

    def _trade_created(self, event: LifecycleEvent) -> None:
        self.trades_created.labels(
            instrument=event.tags["instrument"], type=event.tags["type"]
        ).inc()
        self.active_trades.inc()
        self.pending_trades.inc()

    def _trade_confirmed(self, event: LifecycleEvent) -> None:
        self.trades_confirmed.labels(
            instrument=event.tags["instrument"], type=event.tags["type"]
        ).inc()

    def _trade_settled(self, event: LifecycleEvent) -> None:
        self.trades_settled.labels(
            instrument=event.tags["instrument"], type=event.tags["type"]
        ).inc()
        if event.value is not None:
            self.settled_value.inc(float(event.value))

    def _trade_failed(self, event: LifecycleEvent) -> None:
        self.trades_failed.labels(
            instrument=event.tags["instrument"],
            type=event.tags["type"],
            error_type=event.tags["error_type"],
        ).inc()

    def _trade_status_changed(self, event: LifecycleEvent) -> None:
        old, new = event.tags["from_status"], event.tags["to_status"]
        if old == new:
            return
        if old == TradeStatus.PENDING.value:
            self.pending_trades.dec()
        elif new == TradeStatus.PENDING.value:
            self.pending_trades.inc()
        if old in OPEN_TRADE_STATUSES and new not in OPEN_TRADE_STATUSES:
            self.active_trades.dec()
        elif new in OPEN_TRADE_STATUSES and old not in OPEN_TRADE_STATUSES:
            self.active_trades.inc()

    def _trade_deleted(self, event: LifecycleEvent) -> None:
        status = event.tags.get("status")
        if status == TradeStatus.PENDING.value:
            self.pending_trades.dec()
        if status in OPEN_TRADE_STATUSES:
            self.active_trades.dec()

    def _trade_creation_time(self, event: LifecycleEvent) -> None:
        self.trade_creation_seconds.labels(instrument=event.tags["instrument"]).observe(
            event.duration_seconds or 0.0
        )

    def _trade_processing_time(self, event: LifecycleEvent) -> None:
        self.trade_processing_seconds.labels(operation=event.tags["operation"]).observe(
            event.duration_seconds or 0.0
        )

    def _counterparty_created(self, event: LifecycleEvent) -> None:
        self.counterparties_created.labels(type=event.tags["type"]).inc()
        if event.tags.get("status") == CounterpartyStatus.ACTIVE.value:
            self.active_counterparties.inc()

    def _counterparty_activated(self, event: LifecycleEvent) -> None:
        self.counterparties_activated.labels(type=event.tags["type"]).inc()
        self.active_counterparties.inc()

    def _counterparty_deactivated(self, event: LifecycleEvent) -> None:
        self.counterparties_deactivated.labels(type=event.tags["type"]).inc()
        self.active_counterparties.dec()

    def _counterparty_deleted(self, event: LifecycleEvent) -> None:
        if event.tags.get("status") == CounterpartyStatus.ACTIVE.value:
            self.active_counterparties.dec()

    def _counterparty_creation_time(self, event: LifecycleEvent) -> None:
        self.counterparty_creation_seconds.labels(type=event.tags["type"]).observe(
            event.duration_seconds or 0.0
        )
