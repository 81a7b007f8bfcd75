"""Helpers shared by the lifecycle engines."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Any, TypeVar

from trade_ledger.config import EngineConfig
from trade_ledger.exceptions import SystemFailure, TradeLedgerError, ValidationError

E = TypeVar("E", bound=Enum)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


@contextmanager
def system_errors(logger: logging.Logger, operation: str) -> Iterator[None]:
    """Let ledger errors through unchanged and hide everything else.

    Any other exception is logged with its traceback and re-raised as a
    ``SystemFailure`` whose message carries no internals.
    """
    try:
        yield
    except TradeLedgerError:
        raise
    except Exception as e:
        logger.exception("Unexpected error during %s", operation)
        raise SystemFailure(UNEXPECTED_ERROR_MESSAGE) from e


def resolve_page_size(config: EngineConfig, page: int, size: int | None) -> int:
    """Validate paging arguments and return the effective page size.

    Sizes above ``config.max_page_size`` are clamped.

    Raises
    ------
    ValidationError
        If ``page`` is negative or ``size`` is below 1.
    """
    violations: dict[str, str] = {}
    if page < 0:
        violations["page"] = "Page index must not be negative"
    if size is not None and size < 1:
        violations["size"] = "Page size must be at least 1"
    if violations:
        raise ValidationError(violations)

    if size is None:
        return config.default_page_size
    return min(size, config.max_page_size)


def coerce_enum(enum_cls: type[E], value: Any, field: str) -> E:
    """Accept an enum member or its string value."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            {field: f"Invalid value '{value}', expected one of: {allowed}"}
        ) from None
