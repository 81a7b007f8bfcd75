"""Create/update request payloads for the lifecycle engines.

Requests are plain mutable dataclasses: a transport layer fills them in
(directly or through ``from_dict``) and the engines validate them before
any store access. Fields are typed as what the engine expects, but may
hold ``None`` or raw values until validation has run.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, TypeVar

from trade_ledger.exceptions import ValidationError
from trade_ledger.models.enums import (
    CounterpartyStatus,
    CounterpartyType,
    TradeType,
)

E = TypeVar("E", bound=Enum)


@dataclass
class CreateCounterpartyRequest:
    """Payload for creating or replacing a counterparty."""

    name: str | None = None
    code: str | None = None
    type: CounterpartyType | None = None
    status: CounterpartyStatus | None = CounterpartyStatus.ACTIVE
    email: str | None = None
    phone_number: str | None = None
    address: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CreateCounterpartyRequest":
        """Build a request from a JSON-style mapping.

        Raises
        ------
        ValidationError
            If an enum field holds an unknown value.
        """
        violations: dict[str, str] = {}
        request = cls(
            name=data.get("name"),
            code=data.get("code"),
            type=_parse_enum(CounterpartyType, data.get("type"), "type", violations),
            status=_parse_enum(
                CounterpartyStatus, data.get("status"), "status", violations
            ),
            email=data.get("email"),
            phone_number=data.get("phone_number"),
            address=data.get("address"),
        )
        if violations:
            raise ValidationError(violations)
        return request


@dataclass
class CreateTradeRequest:
    """Payload for creating or replacing a trade.

    Trades are always created PENDING and updates never touch status; see
    ``TradeEngine.update_trade_status``.
    """

    trade_reference: str | None = None
    counterparty_id: int | None = None
    instrument: str | None = None
    trade_type: TradeType | None = None
    quantity: Decimal | None = None
    price: Decimal | None = None
    trade_date: date | None = None
    settlement_date: date | None = None
    currency: str | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CreateTradeRequest":
        """Build a request from a JSON-style mapping.

        Decimals are parsed from their string form so no float rounding
        leaks in.

        Raises
        ------
        ValidationError
            If a value cannot be parsed into its field type.
        """
        violations: dict[str, str] = {}
        request = cls(
            trade_reference=data.get("trade_reference"),
            counterparty_id=_parse_int(
                data.get("counterparty_id"), "counterparty_id", violations
            ),
            instrument=data.get("instrument"),
            trade_type=_parse_enum(TradeType, data.get("trade_type"), "trade_type", violations),
            quantity=_parse_decimal(data.get("quantity"), "quantity", violations),
            price=_parse_decimal(data.get("price"), "price", violations),
            trade_date=_parse_date(data.get("trade_date"), "trade_date", violations),
            settlement_date=_parse_date(
                data.get("settlement_date"), "settlement_date", violations
            ),
            currency=data.get("currency"),
            notes=data.get("notes"),
        )
        if violations:
            raise ValidationError(violations)
        return request


def _parse_enum(
    enum_cls: type[E], value: Any, name: str, violations: dict[str, str]
) -> E | None:
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        violations[name] = f"Invalid value '{value}', expected one of: {allowed}"
        return None


def _parse_int(value: Any, name: str, violations: dict[str, str]) -> int | None:
    if value is None or (isinstance(value, int) and not isinstance(value, bool)):
        return value
    try:
        return int(str(value))
    except ValueError:
        violations[name] = f"Invalid integer '{value}'"
        return None


def _parse_decimal(value: Any, name: str, violations: dict[str, str]) -> Decimal | None:
    if value is None or isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        violations[name] = f"Invalid decimal '{value}'"
        return None


def _parse_date(value: Any, name: str, violations: dict[str, str]) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        violations[name] = f"Invalid date '{value}', expected YYYY-MM-DD"
        return None
