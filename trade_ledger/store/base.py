"""Repository interfaces the lifecycle engines depend on.

Records are immutable; ``save`` returns the persisted copy (with id and
timestamps filled in) and callers must use that copy from then on.
Stores are the authoritative guard for unique keys: ``save`` raises
``DuplicateKeyError`` subclasses even when the engine pre-check passed.
"""

from contextlib import AbstractContextManager
from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable

from trade_ledger.models import (
    Counterparty,
    CounterpartyStatus,
    CounterpartyType,
    Trade,
    TradeStatus,
)


@runtime_checkable
class CounterpartyRepository(Protocol):
    def get(self, counterparty_id: int) -> Counterparty | None: ...

    def get_by_code(self, code: str) -> Counterparty | None: ...

    def exists_by_code(self, code: str, exclude_id: int | None = None) -> bool: ...

    def list_all(self) -> list[Counterparty]: ...

    def list_by_type(self, counterparty_type: CounterpartyType) -> list[Counterparty]: ...

    def list_by_status(self, status: CounterpartyStatus) -> list[Counterparty]: ...

    def search_by_name(self, fragment: str) -> list[Counterparty]: ...

    def list_page(self, page: int, size: int) -> list[Counterparty]: ...

    def count(self) -> int: ...

    def count_by_status(self, status: CounterpartyStatus) -> int: ...

    def save(self, counterparty: Counterparty) -> Counterparty: ...

    def delete(self, counterparty_id: int) -> None: ...

    def transaction(self) -> AbstractContextManager[None]: ...


@runtime_checkable
class TradeRepository(Protocol):
    def get(self, trade_id: int) -> Trade | None: ...

    def get_by_reference(self, trade_reference: str) -> Trade | None: ...

    def exists_by_reference(
        self, trade_reference: str, exclude_id: int | None = None
    ) -> bool: ...

    def list_all(self) -> list[Trade]: ...

    def list_by_counterparty(self, counterparty_id: int) -> list[Trade]: ...

    def list_by_status(self, status: TradeStatus) -> list[Trade]: ...

    def list_by_trade_date_range(self, start: date, end: date) -> list[Trade]: ...

    def list_since(self, cutoff: date) -> list[Trade]: ...

    def list_page(self, page: int, size: int) -> list[Trade]: ...

    def count(self) -> int: ...

    def count_by_status(self, status: TradeStatus) -> int: ...

    def count_by_counterparty(self, counterparty_id: int) -> int: ...

    def total_value_by_counterparty(self, counterparty_id: int) -> Decimal: ...

    def save(self, trade: Trade) -> Trade: ...

    def delete(self, trade_id: int) -> None: ...

    def transaction(self) -> AbstractContextManager[None]: ...
