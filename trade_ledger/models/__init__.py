"""Domain models for the trade ledger."""

from trade_ledger.models.base import Event
from trade_ledger.models.counterparty import Counterparty
from trade_ledger.models.enums import (
    DELETABLE_TRADE_STATUSES,
    STANDARD_TRANSITIONS,
    CounterpartyStatus,
    CounterpartyType,
    TradeStatus,
    TradeType,
    is_standard_transition,
)
from trade_ledger.models.requests import CreateCounterpartyRequest, CreateTradeRequest
from trade_ledger.models.trade import Trade
from trade_ledger.models.views import CounterpartyView, TradeView

__all__ = [
    "DELETABLE_TRADE_STATUSES",
    "STANDARD_TRANSITIONS",
    "Counterparty",
    "CounterpartyStatus",
    "CounterpartyType",
    "CounterpartyView",
    "CreateCounterpartyRequest",
    "CreateTradeRequest",
    "Event",
    "Trade",
    "TradeStatus",
    "TradeType",
    "TradeView",
    "is_standard_transition",
]
