#!/usr/bin/env python3
"""Seed a trade ledger with sample counterparties and trades.

Seeds the reference data set (three counterparties, three trades) and,
optionally, Faker generated data on top. Defaults come from the
environment (see ``TradeLedgerConfig.from_env``).

Usage:
    python scripts/seed_sample_data.py
    python scripts/seed_sample_data.py --generated --counterparties 20 --trades 5
    python scripts/seed_sample_data.py --store postgres --kafka
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from trade_ledger.config import TradeLedgerConfig
from trade_ledger.exceptions import TradeLedgerError
from trade_ledger.ledger import build_ledger
from trade_ledger.logging import setup_logging
from trade_ledger.scenarios import SampleDataScenario

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point."""
    config = TradeLedgerConfig.from_env()

    parser = argparse.ArgumentParser(description="Seed a trade ledger with sample data")
    parser.add_argument(
        "--store",
        choices=["memory", "postgres"],
        default=config.store_backend,
        help=f"Store backend (default: {config.store_backend})",
    )
    parser.add_argument(
        "--generated",
        action="store_true",
        help="Add Faker generated counterparties and trades",
    )
    parser.add_argument(
        "--counterparties",
        type=int,
        default=config.sample_data.num_counterparties,
        help="Generated counterparties (default: %(default)s)",
    )
    parser.add_argument(
        "--trades",
        type=int,
        default=config.sample_data.trades_per_counterparty,
        help="Generated trades per counterparty (default: %(default)s)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=config.sample_data.seed,
    )
    parser.add_argument(
        "--kafka",
        action="store_true",
        default=config.kafka.enabled,
        help="Stream lifecycle events to Kafka",
    )
    parser.add_argument(
        "--log-level",
        default=config.log_level,
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON",
    )

    args = parser.parse_args()
    if args.counterparties < 0 or args.trades < 0:
        parser.error("--counterparties and --trades must not be negative")

    # stdout carries the JSON summary
    setup_logging(
        args.log_level, "json" if args.json_logs else config.log_format, stream=sys.stderr
    )

    config.store_backend = args.store
    config.kafka.enabled = args.kafka
    config.sample_data.num_counterparties = args.counterparties
    config.sample_data.trades_per_counterparty = args.trades
    config.sample_data.seed = args.seed
    # The scenario below does the seeding
    config.seed_sample_data = False

    try:
        ledger = build_ledger(config)
    except TradeLedgerError as e:
        logger.error("Could not build ledger: %s", e)
        sys.exit(1)

    try:
        scenario = SampleDataScenario(ledger.trades, ledger.counterparties, config.sample_data)
        seeded = scenario.bootstrap(generated=args.generated)
        if not seeded:
            logger.info("Ledger already holds data, nothing seeded")
        print(json.dumps(scenario.get_summary(), indent=2))
        scenario.shutdown_report()
    except TradeLedgerError as e:
        logger.error("Seeding failed: %s", e)
        sys.exit(1)
    finally:
        ledger.close()


if __name__ == "__main__":
    main()
