"""Trade model."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from trade_ledger.models.enums import DELETABLE_TRADE_STATUSES, TradeStatus, TradeType


@dataclass(frozen=True)
class Trade:
    """Trade booked against a single counterparty.

    ``total_value`` is derived from quantity and price and is never stored.
    """

    trade_reference: str
    counterparty_id: int
    instrument: str
    trade_type: TradeType
    quantity: Decimal
    price: Decimal
    trade_date: date
    settlement_date: date
    currency: str
    status: TradeStatus = TradeStatus.PENDING
    notes: str | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_value(self) -> Decimal:
        """Quantity multiplied by price."""
        return self.quantity * self.price

    @property
    def is_deletable(self) -> bool:
        return self.status in DELETABLE_TRADE_STATUSES
