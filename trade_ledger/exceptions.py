"""Custom exception hierarchy for trade-ledger.

Every business outcome the lifecycle engines can reject is a subclass of
``TradeLedgerError`` carrying an ``ErrorKind`` and a stable ``code`` so a
transport layer can map failures without parsing messages.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    INVALID_REFERENCE = "INVALID_REFERENCE"
    INVALID_TEMPORAL_ORDER = "INVALID_TEMPORAL_ORDER"
    INVALID_STATE = "INVALID_STATE"
    VALIDATION = "VALIDATION"
    SYSTEM = "SYSTEM"


class TradeLedgerError(Exception):
    """Base exception for all trade-ledger errors."""

    kind: ErrorKind = ErrorKind.SYSTEM
    code: str = "TRADE_LEDGER_ERROR"


class EntityNotFoundError(TradeLedgerError):
    """Raised when a referenced entity does not exist."""

    kind = ErrorKind.NOT_FOUND
    code = "NOT_FOUND"


class TradeNotFoundError(EntityNotFoundError):
    """Raised when a trade id does not resolve."""

    code = "TRADE_NOT_FOUND"


class CounterpartyNotFoundError(EntityNotFoundError):
    """Raised when a counterparty id does not resolve."""

    code = "COUNTERPARTY_NOT_FOUND"


class DuplicateKeyError(TradeLedgerError):
    """Raised when a unique business key is already in use."""

    kind = ErrorKind.DUPLICATE_KEY
    code = "DUPLICATE_KEY"


class DuplicateReferenceError(DuplicateKeyError):
    """Raised when a trade reference is already taken."""

    code = "DUPLICATE_REFERENCE"


class DuplicateCodeError(DuplicateKeyError):
    """Raised when a counterparty code is already taken."""

    code = "DUPLICATE_CODE"


class InvalidReferenceError(TradeLedgerError):
    """Raised when a trade points at an unusable counterparty."""

    kind = ErrorKind.INVALID_REFERENCE
    code = "INVALID_REFERENCE"


class ReferentialIntegrityError(InvalidReferenceError, EntityNotFoundError):
    """Raised when a foreign key reference is violated."""

    kind = ErrorKind.INVALID_REFERENCE
    code = "COUNTERPARTY_NOT_FOUND"


class InactiveCounterpartyError(InvalidReferenceError):
    """Raised when the referenced counterparty is not ACTIVE."""

    code = "COUNTERPARTY_INACTIVE"


class InvalidSettlementDateError(TradeLedgerError):
    """Raised when the settlement date precedes the trade date."""

    kind = ErrorKind.INVALID_TEMPORAL_ORDER
    code = "INVALID_SETTLEMENT_DATE"


class InvalidEntityStateError(TradeLedgerError):
    """Raised when an entity is in an invalid state for the operation."""

    kind = ErrorKind.INVALID_STATE
    code = "INVALID_STATE"


class ValidationError(TradeLedgerError):
    """Raised when request fields violate their constraints.

    Parameters
    ----------
    violations : dict[str, str]
        Field name to human-readable message.
    """

    kind = ErrorKind.VALIDATION
    code = "VALIDATION_ERROR"

    def __init__(self, violations: dict[str, str], message: str = "Validation failed") -> None:
        super().__init__(message)
        self.violations = dict(violations)


class SystemFailure(TradeLedgerError):
    """Raised when an operation fails for reasons outside the business rules."""

    kind = ErrorKind.SYSTEM
    code = "SYSTEM_ERROR"


class StorageError(SystemFailure):
    """Raised when the backing store cannot complete an operation."""

    code = "STORAGE_ERROR"


class ConfigurationError(TradeLedgerError):
    """Raised when configuration is invalid or missing."""

    code = "CONFIGURATION_ERROR"


class SinkError(TradeLedgerError):
    """Raised when a sink operation fails."""

    code = "SINK_ERROR"


@dataclass
class ErrorResponse:
    """Structured failure payload handed to a transport layer."""

    code: str
    kind: ErrorKind
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    violations: dict[str, str] | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorResponse":
        """Build a response from any exception without leaking internals."""
        if isinstance(exc, ValidationError):
            return cls(
                code=exc.code,
                kind=exc.kind,
                message=str(exc),
                violations=exc.violations,
            )
        if isinstance(exc, TradeLedgerError) and exc.kind != ErrorKind.SYSTEM:
            return cls(code=exc.code, kind=exc.kind, message=str(exc))
        return cls(
            code="INTERNAL_ERROR",
            kind=ErrorKind.SYSTEM,
            message="An unexpected error occurred",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        data: dict[str, Any] = {
            "code": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.violations is not None:
            data["violations"] = dict(self.violations)
        return data
