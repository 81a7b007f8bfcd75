"""Storage collaborators for counterparties and trades."""

from trade_ledger.store.base import CounterpartyRepository, TradeRepository
from trade_ledger.store.memory import InMemoryCounterpartyStore, InMemoryTradeStore
from trade_ledger.store.postgres import (
    PostgresCounterpartyStore,
    PostgresDatabase,
    PostgresTradeStore,
)

__all__ = [
    "CounterpartyRepository",
    "InMemoryCounterpartyStore",
    "InMemoryTradeStore",
    "PostgresCounterpartyStore",
    "PostgresDatabase",
    "PostgresTradeStore",
    "TradeRepository",
]
