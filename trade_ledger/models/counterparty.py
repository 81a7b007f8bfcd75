"""Counterparty model."""

from dataclasses import dataclass
from datetime import datetime

from trade_ledger.models.enums import CounterpartyStatus, CounterpartyType


@dataclass(frozen=True)
class Counterparty:
    """External party on the other side of a trade.

    ``id`` is assigned by the store on first save; ``code`` is the unique
    business key.
    """

    code: str
    name: str
    type: CounterpartyType
    status: CounterpartyStatus = CounterpartyStatus.ACTIVE
    email: str | None = None
    phone_number: str | None = None
    address: str | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == CounterpartyStatus.ACTIVE
