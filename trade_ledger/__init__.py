"""trade-ledger: trade lifecycle and validation engine."""

from trade_ledger.config import TradeLedgerConfig
from trade_ledger.engine import CounterpartyEngine, TradeEngine
from trade_ledger.events import EventBus, EventType, LifecycleEvent
from trade_ledger.exceptions import ErrorResponse, TradeLedgerError

__version__ = "0.1.0"

__all__ = [
    "CounterpartyEngine",
    "ErrorResponse",
    "EventBus",
    "EventType",
    "LifecycleEvent",
    "TradeEngine",
    "TradeLedgerConfig",
    "TradeLedgerError",
    "__version__",
]
