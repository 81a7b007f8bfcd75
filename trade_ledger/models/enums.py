"""Enumeration types for ledger entities."""

from enum import Enum


class CounterpartyType(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    CORPORATE = "CORPORATE"
    INSTITUTIONAL = "INSTITUTIONAL"


class CounterpartyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class TradeType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class TradeStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SETTLED = "SETTLED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


# Statuses from which a trade may still be deleted.
DELETABLE_TRADE_STATUSES = frozenset(
    {TradeStatus.PENDING, TradeStatus.CANCELLED, TradeStatus.FAILED}
)

# Canonical settlement flow. Informational only: status updates are not
# checked against this table.
STANDARD_TRANSITIONS: dict[TradeStatus, frozenset[TradeStatus]] = {
    TradeStatus.PENDING: frozenset(
        {TradeStatus.CONFIRMED, TradeStatus.CANCELLED, TradeStatus.FAILED}
    ),
    TradeStatus.CONFIRMED: frozenset(
        {TradeStatus.SETTLED, TradeStatus.CANCELLED, TradeStatus.FAILED}
    ),
    TradeStatus.SETTLED: frozenset(),
    TradeStatus.CANCELLED: frozenset(),
    TradeStatus.FAILED: frozenset(),
}


def is_standard_transition(current: TradeStatus, new: TradeStatus) -> bool:
    """Return True if ``current -> new`` follows the canonical settlement flow."""
    return new in STANDARD_TRANSITIONS[current]
