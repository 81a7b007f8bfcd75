"""Lifecycle engines for trades and counterparties."""

from trade_ledger.engine.counterparties import CounterpartyEngine
from trade_ledger.engine.trades import TradeEngine

__all__ = ["CounterpartyEngine", "TradeEngine"]
