"""Field-level validation for engine requests.

Runs before any store access. All violations of a request are collected
and raised together as a single ``ValidationError``.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from trade_ledger.exceptions import ValidationError
from trade_ledger.models.enums import (
    CounterpartyStatus,
    CounterpartyType,
    TradeType,
)
from trade_ledger.models.requests import CreateCounterpartyRequest, CreateTradeRequest

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

COUNTERPARTY_NAME_LENGTH = (2, 100)
COUNTERPARTY_CODE_LENGTH = (2, 20)
MAX_EMAIL_LENGTH = 100
MAX_PHONE_LENGTH = 20
MAX_ADDRESS_LENGTH = 500

TRADE_REFERENCE_LENGTH = (3, 50)
INSTRUMENT_LENGTH = (1, 100)
CURRENCY_LENGTH = 3
MAX_NOTES_LENGTH = 1000

# Quantities and prices are stored as NUMERIC(19, 4)
MAX_DECIMAL_INTEGER_DIGITS = 15
MAX_DECIMAL_SCALE = 4


def validate_counterparty_request(request: CreateCounterpartyRequest) -> None:
    """Check a counterparty request against its field constraints.

    Raises
    ------
    ValidationError
        If any field is missing or out of bounds.
    """
    violations: dict[str, str] = {}

    _check_text(violations, "name", request.name, "Name", *COUNTERPARTY_NAME_LENGTH)
    _check_text(violations, "code", request.code, "Code", *COUNTERPARTY_CODE_LENGTH)
    _check_enum(violations, "type", request.type, CounterpartyType, "Type")
    if request.status is not None:
        _check_enum(violations, "status", request.status, CounterpartyStatus, "Status")

    if request.email is not None:
        if len(request.email) > MAX_EMAIL_LENGTH:
            violations["email"] = f"Email cannot exceed {MAX_EMAIL_LENGTH} characters"
        elif not EMAIL_PATTERN.match(request.email):
            violations["email"] = "Email should be valid"
    if request.phone_number is not None and len(request.phone_number) > MAX_PHONE_LENGTH:
        violations["phone_number"] = (
            f"Phone number cannot exceed {MAX_PHONE_LENGTH} characters"
        )
    if request.address is not None and len(request.address) > MAX_ADDRESS_LENGTH:
        violations["address"] = f"Address cannot exceed {MAX_ADDRESS_LENGTH} characters"

    if violations:
        raise ValidationError(violations)


def validate_trade_request(request: CreateTradeRequest) -> None:
    """Check a trade request against its field constraints.

    Date ordering is a domain rule and is checked by the engine, not here.

    Raises
    ------
    ValidationError
        If any field is missing or out of bounds.
    """
    violations: dict[str, str] = {}

    _check_text(
        violations,
        "trade_reference",
        request.trade_reference,
        "Trade reference",
        *TRADE_REFERENCE_LENGTH,
    )
    if request.counterparty_id is None:
        violations["counterparty_id"] = "Counterparty ID is required"
    elif not isinstance(request.counterparty_id, int) or isinstance(
        request.counterparty_id, bool
    ):
        violations["counterparty_id"] = "Counterparty ID must be an integer"
    _check_text(violations, "instrument", request.instrument, "Instrument", *INSTRUMENT_LENGTH)
    _check_enum(violations, "trade_type", request.trade_type, TradeType, "Trade type")
    _check_positive(violations, "quantity", request.quantity, "Quantity")
    _check_positive(violations, "price", request.price, "Price")
    _check_date(violations, "trade_date", request.trade_date, "Trade date")
    _check_date(violations, "settlement_date", request.settlement_date, "Settlement date")

    if not isinstance(request.currency, str) or not request.currency.strip():
        violations["currency"] = "Currency is required"
    elif len(request.currency) != CURRENCY_LENGTH:
        violations["currency"] = f"Currency must be exactly {CURRENCY_LENGTH} characters"

    if request.notes is not None and len(request.notes) > MAX_NOTES_LENGTH:
        violations["notes"] = f"Notes cannot exceed {MAX_NOTES_LENGTH} characters"

    if violations:
        raise ValidationError(violations)


def validate_date_range(start: date | None, end: date | None) -> None:
    """Check the bounds of a trade date range query.

    Raises
    ------
    ValidationError
        If either bound is missing or not a date.
    """
    violations: dict[str, str] = {}
    _check_date(violations, "start", start, "Start date")
    _check_date(violations, "end", end, "End date")
    if violations:
        raise ValidationError(violations)


def _check_text(
    violations: dict[str, str],
    field: str,
    value: str | None,
    label: str,
    min_len: int,
    max_len: int,
) -> None:
    if value is None or not isinstance(value, str) or not value.strip():
        violations[field] = f"{label} is required"
    elif not min_len <= len(value) <= max_len:
        violations[field] = f"{label} must be between {min_len} and {max_len} characters"


def _check_enum(
    violations: dict[str, str],
    field: str,
    value: object,
    enum_cls: type[Enum],
    label: str,
) -> None:
    if value is None:
        violations[field] = f"{label} is required"
    elif not isinstance(value, enum_cls):
        violations[field] = f"{label} must be a {enum_cls.__name__}"


def _check_positive(
    violations: dict[str, str], field: str, value: Decimal | None, label: str
) -> None:
    if value is None:
        violations[field] = f"{label} is required"
    elif not isinstance(value, Decimal):
        violations[field] = f"{label} must be a decimal"
    elif not value.is_finite() or value <= 0:
        violations[field] = f"{label} must be greater than 0"
    else:
        _, digits, exponent = value.normalize().as_tuple()
        if -exponent > MAX_DECIMAL_SCALE:
            violations[field] = (
                f"{label} cannot have more than {MAX_DECIMAL_SCALE} decimal places"
            )
        elif len(digits) + exponent > MAX_DECIMAL_INTEGER_DIGITS:
            violations[field] = (
                f"{label} cannot exceed {MAX_DECIMAL_INTEGER_DIGITS} integer digits"
            )


def _check_date(
    violations: dict[str, str], field: str, value: date | None, label: str
) -> None:
    if value is None:
        violations[field] = f"{label} is required"
    elif not isinstance(value, date) or isinstance(value, datetime):
        violations[field] = f"{label} must be a date"