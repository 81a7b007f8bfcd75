"""Sample-data generators."""

from trade_ledger.generators.base import BaseGenerator
from trade_ledger.generators.ledger import CounterpartyGenerator, TradeRequestGenerator

__all__ = ["BaseGenerator", "CounterpartyGenerator", "TradeRequestGenerator"]
