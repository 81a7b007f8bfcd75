"""Wiring of stores, engines and listeners from configuration."""

import logging
from dataclasses import dataclass

from prometheus_client import CollectorRegistry

from trade_ledger.config import TradeLedgerConfig
from trade_ledger.engine import CounterpartyEngine, TradeEngine
from trade_ledger.events import EventBus
from trade_ledger.metrics import TradingMetrics
from trade_ledger.scenarios import SampleDataScenario
from trade_ledger.sinks import KafkaEventSink
from trade_ledger.store import (
    InMemoryCounterpartyStore,
    InMemoryTradeStore,
    PostgresCounterpartyStore,
    PostgresDatabase,
    PostgresTradeStore,
)

logger = logging.getLogger(__name__)


@dataclass
class Ledger:
    """A fully wired ledger: both engines sharing one event bus."""

    trades: TradeEngine
    counterparties: CounterpartyEngine
    events: EventBus
    metrics: TradingMetrics
    sink: KafkaEventSink | None = None
    database: PostgresDatabase | None = None

    def close(self) -> None:
        """Flush the event sink and close the database connection."""
        if self.sink is not None:
            self.sink.close()
        if self.database is not None:
            self.database.close()


def build_ledger(
    config: TradeLedgerConfig | None = None,
    registry: CollectorRegistry | None = None,
) -> Ledger:
    """Build a ledger for the configured store backend.

    Parameters
    ----------
    config : TradeLedgerConfig | None
        Configuration; defaults to an in-memory ledger without Kafka.
    registry : CollectorRegistry | None
        Registry for the metrics collectors.

    Returns
    -------
    Ledger
        Ledger with metrics (and the Kafka sink, if enabled) subscribed,
        seeded with the reference data when ``config.seed_sample_data`` is set
        and the store is empty.
    """
    config = config or TradeLedgerConfig()

    database = None
    if config.store_backend == "postgres":
        database = PostgresDatabase(config.postgres.connection_string)
        database.create_schema()
        counterparty_store = PostgresCounterpartyStore(database)
        trade_store = PostgresTradeStore(database)
    else:
        counterparty_store = InMemoryCounterpartyStore()
        trade_store = InMemoryTradeStore(counterparties=counterparty_store)

    metrics = TradingMetrics(registry)
    events = EventBus([metrics])

    sink = None
    if config.kafka.enabled:
        sink = KafkaEventSink(config.kafka)
        events.subscribe(sink)

    trade_engine = TradeEngine(trade_store, counterparty_store, events, config.engine)
    counterparty_engine = CounterpartyEngine(counterparty_store, trade_store, events, config.engine)
    metrics.sync_gauges(trade_engine, counterparty_engine)

    if config.seed_sample_data:
        SampleDataScenario(trade_engine, counterparty_engine, config.sample_data).bootstrap()

    logger.info(
        "Ledger ready: store=%s, kafka=%s",
        config.store_backend,
        "enabled" if sink is not None else "disabled",
    )
    return Ledger(
        trades=trade_engine,
        counterparties=counterparty_engine,
        events=events,
        metrics=metrics,
        sink=sink,
        database=database,
    )
