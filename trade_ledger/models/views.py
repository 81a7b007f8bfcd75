"""Read models returned by the lifecycle engines."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from trade_ledger.models.counterparty import Counterparty
from trade_ledger.models.enums import TradeStatus
from trade_ledger.models.trade import Trade
from trade_ledger.serialization import dataclass_to_dict, serialize_value


@dataclass(frozen=True)
class CounterpartyView:
    """Counterparty as handed back to callers."""

    counterparty: Counterparty

    @property
    def id(self) -> int | None:
        return self.counterparty.id

    def to_dict(self) -> dict[str, Any]:
        return dataclass_to_dict(self.counterparty)


@dataclass(frozen=True)
class TradeView:
    """Trade plus a snapshot of its counterparty for display purposes."""

    trade: Trade
    counterparty_name: str | None
    counterparty_code: str | None

    @property
    def id(self) -> int | None:
        return self.trade.id

    @property
    def counterparty_id(self) -> int:
        return self.trade.counterparty_id

    @property
    def status(self) -> TradeStatus:
        return self.trade.status

    @property
    def total_value(self) -> Decimal:
        return self.trade.total_value

    @classmethod
    def of(cls, trade: Trade, counterparty: Counterparty) -> "TradeView":
        return cls(
            trade=trade,
            counterparty_name=counterparty.name,
            counterparty_code=counterparty.code,
        )

    def to_dict(self) -> dict[str, Any]:
        data = dataclass_to_dict(self.trade)
        data["counterparty_name"] = self.counterparty_name
        data["counterparty_code"] = self.counterparty_code
        data["total_value"] = serialize_value(self.total_value)
        return data
