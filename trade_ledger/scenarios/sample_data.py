"""Sample-data scenario for seeding an empty ledger."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Callable

from trade_ledger.config import SampleDataConfig
from trade_ledger.engine import CounterpartyEngine, TradeEngine
from trade_ledger.generators import CounterpartyGenerator, TradeRequestGenerator
from trade_ledger.models import (
    CounterpartyType,
    CreateCounterpartyRequest,
    CreateTradeRequest,
    TradeStatus,
    TradeType,
)

logger = logging.getLogger(__name__)

REFERENCE_COUNTERPARTIES = [
    CreateCounterpartyRequest(
        name="Global Investment Bank",
        code="GIB001",
        type=CounterpartyType.INSTITUTIONAL,
        email="trading@gib.com",
        phone_number="+1-555-0101",
        address="123 Wall Street, New York, NY 10005",
    ),
    CreateCounterpartyRequest(
        name="Tech Solutions Corp",
        code="TSC001",
        type=CounterpartyType.CORPORATE,
        email="finance@techsolutions.com",
        phone_number="+1-555-0102",
        address="456 Silicon Valley Blvd, San Francisco, CA 94105",
    ),
    CreateCounterpartyRequest(
        name="Alpha Hedge Fund",
        code="AHF001",
        type=CounterpartyType.INSTITUTIONAL,
        email="operations@alphafund.com",
        phone_number="+1-555-0103",
        address="789 Financial District, Chicago, IL 60601",
    ),
]

# (reference, counterparty code, instrument, type, quantity, price,
#  trade date offset, settlement date offset, target status, notes)
REFERENCE_TRADES = [
    ("TRD-2024-001", "GIB001", "AAPL", TradeType.BUY, "1000", "150.25", -5, -3,
     TradeStatus.SETTLED, "Initial sample trade for Apple Inc."),
    ("TRD-2024-002", "TSC001", "GOOGL", TradeType.SELL, "500", "2750.80", -2, 0,
     TradeStatus.CONFIRMED, "Google stock sale"),
    ("TRD-2024-003", "AHF001", "MSFT", TradeType.BUY, "750", "380.45", -1, 2,
     TradeStatus.PENDING, "Microsoft acquisition for portfolio"),
]

# Status path walked through the engine to reach each target status
STATUS_PATHS = {
    TradeStatus.PENDING: [],
    TradeStatus.CONFIRMED: [TradeStatus.CONFIRMED],
    TradeStatus.SETTLED: [TradeStatus.CONFIRMED, TradeStatus.SETTLED],
}


class SampleDataScenario:
    """Seed a ledger through its engines so every lifecycle event fires.

    The reference data set is three ACTIVE counterparties with one trade
    each (one SETTLED, one CONFIRMED, one PENDING). Optionally, Faker
    generated counterparties and trades are added on top.
    """

    def __init__(
        self,
        trade_engine: TradeEngine,
        counterparty_engine: CounterpartyEngine,
        config: SampleDataConfig | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize sample-data scenario.

        Parameters
        ----------
        trade_engine : TradeEngine
            Engine trades are created through.
        counterparty_engine : CounterpartyEngine
            Engine counterparties are created through.
        config : SampleDataConfig | None
            Sizes, seed and locale for generated data.
        today : Callable[[], date]
            Clock the trade dates are relative to.
        """
        self.trade_engine = trade_engine
        self.counterparty_engine = counterparty_engine
        self.config = config or SampleDataConfig()
        self.today = today

    def bootstrap(self, generated: bool = False) -> bool:
        """Seed the ledger if it holds no counterparties, then log statistics.

        Returns
        -------
        bool
            True if data was seeded.
        """
        logger.info("=== Trade ledger starting ===")
        seeded = False
        if self.counterparty_engine.count_counterparties() == 0:
            logger.info("Ledger is empty, initializing sample data...")
            self.seed_reference_data()
            if generated:
                self.seed_generated_data()
            seeded = True

        self.log_statistics()
        logger.info("=== Trade ledger started ===")
        return seeded

    def seed_reference_data(self) -> None:
        """Create the three reference counterparties and their trades."""
        logger.info("Creating sample counterparties...")
        ids = {}
        for request in REFERENCE_COUNTERPARTIES:
            view = self.counterparty_engine.create_counterparty(request)
            ids[view.counterparty.code] = view.id

        logger.info("Creating sample trades...")
        today = self.today()
        for (reference, code, instrument, trade_type, quantity, price,
             trade_offset, settlement_offset, status, notes) in REFERENCE_TRADES:
            view = self.trade_engine.create_trade(
                CreateTradeRequest(
                    trade_reference=reference,
                    counterparty_id=ids[code],
                    instrument=instrument,
                    trade_type=trade_type,
                    quantity=Decimal(quantity),
                    price=Decimal(price),
                    trade_date=today + timedelta(days=trade_offset),
                    settlement_date=today + timedelta(days=settlement_offset),
                    currency="USD",
                    notes=notes,
                )
            )
            for next_status in STATUS_PATHS[status]:
                self.trade_engine.update_trade_status(view.id, next_status)

        logger.info("Sample data initialization completed")

    def seed_generated_data(self) -> None:
        """Create Faker generated counterparties, each with a few trades."""
        counterparty_gen = CounterpartyGenerator(seed=self.config.seed, locale=self.config.locale)
        trade_gen = TradeRequestGenerator(
            seed=self.config.seed,
            locale=self.config.locale,
            reference_prefix="GEN",
            today=self.today(),
        )

        for _ in range(self.config.num_counterparties):
            request = counterparty_gen.generate()
            while self.counterparty_engine.get_counterparty_by_code(request.code) is not None:
                request = counterparty_gen.generate()
            counterparty = self.counterparty_engine.create_counterparty(request)
            for _ in range(self.config.trades_per_counterparty):
                self.trade_engine.create_trade(trade_gen.generate(counterparty.id))

        logger.info(
            "Generated %d counterparties with %d trades each",
            self.config.num_counterparties,
            self.config.trades_per_counterparty,
        )

    def get_summary(self) -> dict[str, Any]:
        """Get ledger counts.

        Returns
        -------
        dict[str, Any]
            Counterparty and trade counts, trades broken down by status.
        """
        return {
            "total_counterparties": self.counterparty_engine.count_counterparties(),
            "active_counterparties": self.counterparty_engine.count_active_counterparties(),
            "total_trades": self.trade_engine.count_trades(),
            "trades_by_status": {
                status.value: self.trade_engine.count_trades_by_status(status)
                for status in TradeStatus
            },
        }

    def log_statistics(self) -> dict[str, Any]:
        summary = self.get_summary()
        by_status = summary["trades_by_status"]
        logger.info("Ledger statistics:")
        logger.info(
            "  Counterparties: %d total, %d active",
            summary["total_counterparties"],
            summary["active_counterparties"],
        )
        logger.info(
            "  Trades: %d total (%d pending, %d confirmed, %d settled)",
            summary["total_trades"],
            by_status[TradeStatus.PENDING.value],
            by_status[TradeStatus.CONFIRMED.value],
            by_status[TradeStatus.SETTLED.value],
        )
        return summary

    def shutdown_report(self) -> int:
        """Log final statistics and warn about trades left PENDING.

        Returns
        -------
        int
            Number of PENDING trades.
        """
        logger.info("=== Trade ledger shutting down ===")
        summary = self.log_statistics()
        pending = summary["trades_by_status"][TradeStatus.PENDING.value]
        if pending > 0:
            logger.warning("Shutting down with %d pending trades", pending)
        logger.info("=== Trade ledger shutdown complete ===")
        return pending
