"""In-memory stores with unique-key and relationship indexes."""

import itertools
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal

from trade_ledger.exceptions import (
    CounterpartyNotFoundError,
    DuplicateCodeError,
    DuplicateReferenceError,
    InvalidEntityStateError,
    ReferentialIntegrityError,
    TradeNotFoundError,
)
from trade_ledger.models import (
    Counterparty,
    CounterpartyStatus,
    CounterpartyType,
    Trade,
    TradeStatus,
)


def _page(records: list, page: int, size: int) -> list:
    if page < 0 or size <= 0:
        return []
    start = page * size
    return records[start : start + size]


@dataclass
class InMemoryCounterpartyStore:
    """In-memory counterparty store.

    ``code`` uniqueness is enforced on every save, independent of any
    pre-check done by the engine.
    """

    clock: Callable[[], datetime] = datetime.now

    counterparties: dict[int, Counterparty] = field(default_factory=dict)

    # Unique key index
    _code_index: dict[str, int] = field(default_factory=dict)
    _ids: Iterator[int] = field(default_factory=lambda: itertools.count(1))

    # Set by InMemoryTradeStore so deletes can refuse to orphan trades
    _trade_counter: Callable[[int], int] | None = None

    def get(self, counterparty_id: int) -> Counterparty | None:
        return self.counterparties.get(counterparty_id)

    def get_by_code(self, code: str) -> Counterparty | None:
        counterparty_id = self._code_index.get(code)
        return self.counterparties.get(counterparty_id) if counterparty_id else None

    def exists_by_code(self, code: str, exclude_id: int | None = None) -> bool:
        owner = self._code_index.get(code)
        return owner is not None and owner != exclude_id

    def list_all(self) -> list[Counterparty]:
        return list(self.counterparties.values())

    def list_by_type(self, counterparty_type: CounterpartyType) -> list[Counterparty]:
        return [c for c in self.counterparties.values() if c.type == counterparty_type]

    def list_by_status(self, status: CounterpartyStatus) -> list[Counterparty]:
        return [c for c in self.counterparties.values() if c.status == status]

    def search_by_name(self, fragment: str) -> list[Counterparty]:
        needle = fragment.lower()
        return [c for c in self.counterparties.values() if needle in c.name.lower()]

    def list_page(self, page: int, size: int) -> list[Counterparty]:
        ordered = sorted(self.counterparties.values(), key=lambda c: (c.name, c.id))
        return _page(ordered, page, size)

    def count(self) -> int:
        return len(self.counterparties)

    def count_by_status(self, status: CounterpartyStatus) -> int:
        return len(self.list_by_status(status))

    def save(self, counterparty: Counterparty) -> Counterparty:
        """Insert (``id is None``) or replace a counterparty."""
        if self.exists_by_code(counterparty.code, exclude_id=counterparty.id):
            raise DuplicateCodeError(
                f"Counterparty with code '{counterparty.code}' already exists"
            )

        now = self.clock()
        if counterparty.id is None:
            stored = replace(counterparty, id=next(self._ids), created_at=now, updated_at=now)
        else:
            existing = self.counterparties.get(counterparty.id)
            if existing is None:
                raise CounterpartyNotFoundError(
                    f"Counterparty not found with id: {counterparty.id}"
                )
            del self._code_index[existing.code]
            stored = replace(counterparty, created_at=existing.created_at, updated_at=now)

        self.counterparties[stored.id] = stored
        self._code_index[stored.code] = stored.id
        return stored

    def delete(self, counterparty_id: int) -> None:
        existing = self.counterparties.get(counterparty_id)
        if existing is None:
            raise CounterpartyNotFoundError(f"Counterparty not found with id: {counterparty_id}")
        if self._trade_counter is not None and self._trade_counter(counterparty_id) > 0:
            raise InvalidEntityStateError(
                f"Counterparty {counterparty_id} still has trades"
            )
        del self.counterparties[counterparty_id]
        del self._code_index[existing.code]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Restore the previous contents if the block raises.

        Records are immutable, so a shallow copy of the indexes is a
        complete snapshot.
        """
        counterparties = dict(self.counterparties)
        code_index = dict(self._code_index)
        try:
            yield
        except BaseException:
            self.counterparties = counterparties
            self._code_index = code_index
            raise


@dataclass
class InMemoryTradeStore:
    """In-memory trade store with a per-counterparty index.

    When built with a ``counterparties`` store, saves check the foreign key
    and the counterparty store refuses to delete counterparties that still
    own trades.
    """

    counterparties: InMemoryCounterpartyStore | None = None
    clock: Callable[[], datetime] = datetime.now

    trades: dict[int, Trade] = field(default_factory=dict)

    # Unique key and relationship indexes
    _reference_index: dict[str, int] = field(default_factory=dict)
    _counterparty_trades: dict[int, list[int]] = field(default_factory=dict)
    _ids: Iterator[int] = field(default_factory=lambda: itertools.count(1))

    def __post_init__(self) -> None:
        if self.counterparties is not None:
            self.counterparties._trade_counter = self.count_by_counterparty

    def get(self, trade_id: int) -> Trade | None:
        return self.trades.get(trade_id)

    def get_by_reference(self, trade_reference: str) -> Trade | None:
        trade_id = self._reference_index.get(trade_reference)
        return self.trades.get(trade_id) if trade_id else None

    def exists_by_reference(self, trade_reference: str, exclude_id: int | None = None) -> bool:
        owner = self._reference_index.get(trade_reference)
        return owner is not None and owner != exclude_id

    def list_all(self) -> list[Trade]:
        return list(self.trades.values())

    def list_by_counterparty(self, counterparty_id: int) -> list[Trade]:
        trade_ids = self._counterparty_trades.get(counterparty_id, [])
        return [self.trades[tid] for tid in sorted(trade_ids)]

    def list_by_status(self, status: TradeStatus) -> list[Trade]:
        return [t for t in self.trades.values() if t.status == status]

    def list_by_trade_date_range(self, start: date, end: date) -> list[Trade]:
        return [t for t in self.trades.values() if start <= t.trade_date <= end]

    def list_since(self, cutoff: date) -> list[Trade]:
        return [t for t in self.trades.values() if t.trade_date >= cutoff]

    def list_page(self, page: int, size: int) -> list[Trade]:
        # trade_date desc, created_at desc, newest id first on ties
        ordered = sorted(
            self.trades.values(),
            key=lambda t: (t.trade_date, t.created_at or datetime.min, t.id),
            reverse=True,
        )
        return _page(ordered, page, size)

    def count(self) -> int:
        return len(self.trades)

    def count_by_status(self, status: TradeStatus) -> int:
        return len(self.list_by_status(status))

    def count_by_counterparty(self, counterparty_id: int) -> int:
        return len(self._counterparty_trades.get(counterparty_id, []))

    def total_value_by_counterparty(self, counterparty_id: int) -> Decimal:
        return sum(
            (t.total_value for t in self.list_by_counterparty(counterparty_id)),
            Decimal("0"),
        )

    def save(self, trade: Trade) -> Trade:
        """Insert (``id is None``) or replace a trade."""
        if self.exists_by_reference(trade.trade_reference, exclude_id=trade.id):
            raise DuplicateReferenceError(
                f"Trade with reference '{trade.trade_reference}' already exists"
            )
        if self.counterparties is not None and self.counterparties.get(trade.counterparty_id) is None:
            raise ReferentialIntegrityError(
                f"Counterparty not found with id: {trade.counterparty_id}"
            )

        now = self.clock()
        if trade.id is None:
            stored = replace(trade, id=next(self._ids), created_at=now, updated_at=now)
        else:
            existing = self.trades.get(trade.id)
            if existing is None:
                raise TradeNotFoundError(f"Trade not found with id: {trade.id}")
            self._unindex(existing)
            stored = replace(trade, created_at=existing.created_at, updated_at=now)

        self.trades[stored.id] = stored
        self._reference_index[stored.trade_reference] = stored.id
        self._counterparty_trades.setdefault(stored.counterparty_id, []).append(stored.id)
        return stored

    def delete(self, trade_id: int) -> None:
        existing = self.trades.get(trade_id)
        if existing is None:
            raise TradeNotFoundError(f"Trade not found with id: {trade_id}")
        self._unindex(existing)
        del self.trades[trade_id]

    def _unindex(self, trade: Trade) -> None:
        del self._reference_index[trade.trade_reference]
        owned = self._counterparty_trades[trade.counterparty_id]
        owned.remove(trade.id)
        if not owned:
            del self._counterparty_trades[trade.counterparty_id]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Restore the previous contents if the block raises."""
        trades = dict(self.trades)
        reference_index = dict(self._reference_index)
        counterparty_trades = {k: list(v) for k, v in self._counterparty_trades.items()}
        try:
            yield
        except BaseException:
            self.trades = trades
            self._reference_index = reference_index
            self._counterparty_trades = counterparty_trades
            raise
