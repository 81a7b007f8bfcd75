"""Trade lifecycle engine.

Creates, replaces, re-statuses and deletes trades while enforcing the
rules that tie a trade to its counterparty:

- ``trade_reference`` is unique across all trades
- the counterparty must exist and be ACTIVE when the trade is written
- ``settlement_date`` is never before ``trade_date``
- CONFIRMED and SETTLED trades cannot be deleted

Status updates are not checked against a transition table; a move outside
the canonical PENDING -> CONFIRMED -> SETTLED flow is only logged.
"""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

from trade_ledger.config import EngineConfig
from trade_ledger.engine.common import coerce_enum, resolve_page_size, system_errors
from trade_ledger.events import EventBus, EventType
from trade_ledger.exceptions import (
    DuplicateReferenceError,
    ErrorKind,
    InactiveCounterpartyError,
    InvalidEntityStateError,
    InvalidSettlementDateError,
    ReferentialIntegrityError,
    TradeLedgerError,
    TradeNotFoundError,
    ValidationError,
)
from trade_ledger.models import (
    Counterparty,
    CounterpartyStatus,
    CreateTradeRequest,
    Trade,
    TradeStatus,
    TradeView,
    is_standard_transition,
)
from trade_ledger.store.base import CounterpartyRepository, TradeRepository
from trade_ledger.validation import validate_date_range, validate_trade_request

logger = logging.getLogger(__name__)

STATUS_UPDATE_OPERATION = "STATUS_UPDATE"
SYSTEM_ERROR_TYPE = "SYSTEM_ERROR"


class TradeEngine:
    """Validates and executes trade operations against the stores.

    Parameters
    ----------
    trades : TradeRepository
        Trade store.
    counterparties : CounterpartyRepository
        Counterparty store, used to resolve and gate trade references.
    events : EventBus | None
        Bus receiving lifecycle events. A private bus is created if omitted.
    config : EngineConfig | None
        Paging and "recent" window settings.
    today : Callable[[], date]
        Clock for ``get_recent_trades``.
    """

    def __init__(
        self,
        trades: TradeRepository,
        counterparties: CounterpartyRepository,
        events: EventBus | None = None,
        config: EngineConfig | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.trades = trades
        self.counterparties = counterparties
        self.events = events if events is not None else EventBus()
        self.config = config or EngineConfig()
        self.today = today

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_trade(self, request: CreateTradeRequest) -> TradeView:
        """Create a new PENDING trade.

        Checks run in a fixed order: field validation, duplicate reference,
        missing counterparty, inactive counterparty, settlement date.

        Raises
        ------
        ValidationError
            If request fields are missing or out of bounds.
        DuplicateReferenceError
            If the trade reference is already taken.
        ReferentialIntegrityError
            If the counterparty does not exist.
        InactiveCounterpartyError
            If the counterparty is not ACTIVE.
        InvalidSettlementDateError
            If the settlement date precedes the trade date.
        SystemFailure
            If anything unexpected goes wrong.
        """
        logger.debug("Creating new trade with reference: %s", request.trade_reference)
        started = time.perf_counter()

        validate_trade_request(request)
        try:
            with system_errors(logger, "create_trade"):
                with self.trades.transaction():
                    counterparty = self._check_trade(request, verb="create")
                    trade = self.trades.save(
                        Trade(
                            trade_reference=request.trade_reference,
                            counterparty_id=request.counterparty_id,
                            instrument=request.instrument,
                            trade_type=request.trade_type,
                            quantity=request.quantity,
                            price=request.price,
                            trade_date=request.trade_date,
                            settlement_date=request.settlement_date,
                            currency=request.currency,
                            status=TradeStatus.PENDING,
                            notes=request.notes,
                        )
                    )
        except TradeLedgerError as e:
            self._record_failure(request, e)
            raise

        view = TradeView.of(trade, counterparty)
        tags = _trade_tags(trade)
        self.events.emit(
            EventType.TRADE_CREATED,
            subject=str(trade.id),
            tags=tags,
            data=view.to_dict(),
        )
        self.events.emit(
            EventType.TRADE_CREATION_TIME,
            subject=str(trade.id),
            tags={"instrument": trade.instrument},
            duration_seconds=time.perf_counter() - started,
        )
        logger.info(
            "Created trade with id: %d and reference: %s", trade.id, trade.trade_reference
        )
        return view

    def update_trade(self, trade_id: int, request: CreateTradeRequest) -> TradeView:
        """Replace every field of a trade except its status.

        Raises
        ------
        TradeNotFoundError
            If no trade has ``trade_id``.
        DuplicateReferenceError
            If another trade already uses the reference.
        ReferentialIntegrityError, InactiveCounterpartyError, InvalidSettlementDateError
            As for ``create_trade``.
        """
        logger.debug("Updating trade with id: %d", trade_id)
        validate_trade_request(request)

        try:
            with system_errors(logger, "update_trade"):
                with self.trades.transaction():
                    existing = self._require(trade_id)
                    counterparty = self._check_trade(request, verb="update", exclude_id=trade_id)
                    trade = self.trades.save(
                        replace(
                            existing,
                            trade_reference=request.trade_reference,
                            counterparty_id=request.counterparty_id,
                            instrument=request.instrument,
                            trade_type=request.trade_type,
                            quantity=request.quantity,
                            price=request.price,
                            trade_date=request.trade_date,
                            settlement_date=request.settlement_date,
                            currency=request.currency,
                            notes=request.notes,
                        )
                    )
        except TradeLedgerError as e:
            _log_rejection("update trade", trade_id, e)
            raise

        view = TradeView.of(trade, counterparty)
        self.events.emit(
            EventType.TRADE_UPDATED,
            subject=str(trade.id),
            tags=_trade_tags(trade),
            data=view.to_dict(),
        )
        logger.info("Updated trade with id: %d", trade_id)
        return view

    def update_trade_status(self, trade_id: int, status: TradeStatus | str) -> TradeView:
        """Set a trade's status.

        Any status may follow any other. PENDING -> CONFIRMED and
        CONFIRMED -> SETTLED additionally publish confirmed/settled events.

        Raises
        ------
        TradeNotFoundError
            If no trade has ``trade_id``.
        ValidationError
            If ``status`` is not a trade status.
        """
        new_status = coerce_enum(TradeStatus, status, "status")
        logger.debug("Updating trade %d status to: %s", trade_id, new_status.value)
        started = time.perf_counter()

        with system_errors(logger, "update_trade_status"):
            with self.trades.transaction():
                existing = self._require(trade_id)
                old_status = existing.status
                if not is_standard_transition(old_status, new_status):
                    logger.warning(
                        "Trade %d moved outside the standard flow: %s -> %s",
                        trade_id,
                        old_status.value,
                        new_status.value,
                    )
                trade = self.trades.save(replace(existing, status=new_status))
            counterparty = self.counterparties.get(trade.counterparty_id)

        tags = _trade_tags(trade)
        if old_status == TradeStatus.PENDING and new_status == TradeStatus.CONFIRMED:
            self.events.emit(EventType.TRADE_CONFIRMED, subject=str(trade.id), tags=tags)
        elif old_status == TradeStatus.CONFIRMED and new_status == TradeStatus.SETTLED:
            self.events.emit(
                EventType.TRADE_SETTLED,
                subject=str(trade.id),
                tags=tags,
                value=trade.total_value,
            )

        view = _view(trade, counterparty)
        self.events.emit(
            EventType.TRADE_STATUS_CHANGED,
            subject=str(trade.id),
            tags={**tags, "from_status": old_status.value, "to_status": new_status.value},
            data=view.to_dict(),
        )
        self.events.emit(
            EventType.TRADE_PROCESSING_TIME,
            subject=str(trade.id),
            tags={"operation": STATUS_UPDATE_OPERATION},
            duration_seconds=time.perf_counter() - started,
        )
        logger.info("Updated trade %d status from %s to %s", trade_id, old_status.value, new_status.value)
        return view

    def delete_trade(self, trade_id: int) -> None:
        """Delete a trade that has not been confirmed or settled.

        Raises
        ------
        TradeNotFoundError
            If no trade has ``trade_id``.
        InvalidEntityStateError
            If the trade is CONFIRMED or SETTLED.
        """
        logger.debug("Deleting trade with id: %d", trade_id)

        try:
            with system_errors(logger, "delete_trade"):
                with self.trades.transaction():
                    trade = self._require(trade_id)
                    if not trade.is_deletable:
                        raise InvalidEntityStateError("Cannot delete confirmed or settled trades")
                    self.trades.delete(trade_id)
        except TradeLedgerError as e:
            _log_rejection("delete trade", trade_id, e)
            raise

        self.events.emit(
            EventType.TRADE_DELETED,
            subject=str(trade_id),
            tags={**_trade_tags(trade), "status": trade.status.value},
            data={"id": trade_id, "trade_reference": trade.trade_reference},
        )
        logger.info("Deleted trade with id: %d", trade_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_trade(self, trade_id: int) -> TradeView | None:
        logger.debug("Fetching trade with id: %d", trade_id)
        with system_errors(logger, "get_trade"):
            trade = self.trades.get(trade_id)
            return self._views([trade])[0] if trade else None

    def get_trade_by_reference(self, trade_reference: str) -> TradeView | None:
        logger.debug("Fetching trade with reference: %s", trade_reference)
        with system_errors(logger, "get_trade_by_reference"):
            trade = self.trades.get_by_reference(trade_reference)
            return self._views([trade])[0] if trade else None

    def list_trades(self) -> list[TradeView]:
        logger.debug("Fetching all trades")
        with system_errors(logger, "list_trades"):
            return self._views(self.trades.list_all())

    def list_trades_page(self, page: int = 0, size: int | None = None) -> list[TradeView]:
        """Return one page of trades, newest trade date first.

        ``page`` is 0-based; ``size`` defaults to the configured page size.
        """
        size = resolve_page_size(self.config, page, size)
        logger.debug("Fetching trades page %d with size %d", page, size)
        with system_errors(logger, "list_trades_page"):
            return self._views(self.trades.list_page(page, size))

    def get_trades_by_counterparty(self, counterparty_id: int) -> list[TradeView]:
        logger.debug("Fetching trades for counterparty id: %d", counterparty_id)
        with system_errors(logger, "get_trades_by_counterparty"):
            return self._views(self.trades.list_by_counterparty(counterparty_id))

    def get_trades_by_status(self, status: TradeStatus | str) -> list[TradeView]:
        status = coerce_enum(TradeStatus, status, "status")
        logger.debug("Fetching trades with status: %s", status.value)
        with system_errors(logger, "get_trades_by_status"):
            return self._views(self.trades.list_by_status(status))

    def get_trades_by_date_range(self, start: date, end: date) -> list[TradeView]:
        """Trades whose trade date falls within ``[start, end]``."""
        logger.debug("Fetching trades between %s and %s", start, end)
        validate_date_range(start, end)
        if start > end:
            return []
        with system_errors(logger, "get_trades_by_date_range"):
            return self._views(self.trades.list_by_trade_date_range(start, end))

    def get_pending_trades(self) -> list[TradeView]:
        return self.get_trades_by_status(TradeStatus.PENDING)

    def get_recent_trades(self, days: int | None = None) -> list[TradeView]:
        """Trades dated within the last ``days`` days, today included.

        Raises
        ------
        ValidationError
            If ``days`` is negative.
        """
        if days is None:
            days = self.config.recent_days
        if days < 0:
            raise ValidationError({"days": "Days must not be negative"})
        logger.debug("Fetching trades from last %d days", days)
        cutoff = self.today() - timedelta(days=days)
        with system_errors(logger, "get_recent_trades"):
            return self._views(self.trades.list_since(cutoff))

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def get_total_value_by_counterparty(self, counterparty_id: int) -> Decimal:
        """Sum of quantity * price over the counterparty's trades, zero if none."""
        with system_errors(logger, "get_total_value_by_counterparty"):
            return self.trades.total_value_by_counterparty(counterparty_id)

    def count_trades(self) -> int:
        with system_errors(logger, "count_trades"):
            return self.trades.count()

    def count_trades_by_status(self, status: TradeStatus | str) -> int:
        status = coerce_enum(TradeStatus, status, "status")
        with system_errors(logger, "count_trades_by_status"):
            return self.trades.count_by_status(status)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, trade_id: int) -> Trade:
        trade = self.trades.get(trade_id)
        if trade is None:
            raise TradeNotFoundError(f"Trade not found with id: {trade_id}")
        return trade

    def _check_trade(
        self,
        request: CreateTradeRequest,
        verb: str,
        exclude_id: int | None = None,
    ) -> Counterparty:
        if self.trades.exists_by_reference(request.trade_reference, exclude_id=exclude_id):
            raise DuplicateReferenceError(
                f"Trade with reference '{request.trade_reference}' already exists"
            )

        counterparty = self.counterparties.get(request.counterparty_id)
        if counterparty is None:
            raise ReferentialIntegrityError(
                f"Counterparty not found with id: {request.counterparty_id}"
            )
        if counterparty.status != CounterpartyStatus.ACTIVE:
            raise InactiveCounterpartyError(
                f"Cannot {verb} trade with inactive counterparty: {counterparty.code}"
            )

        if request.settlement_date < request.trade_date:
            raise InvalidSettlementDateError("Settlement date cannot be before trade date")
        return counterparty

    def _record_failure(self, request: CreateTradeRequest, error: TradeLedgerError) -> None:
        error_type = SYSTEM_ERROR_TYPE if error.kind == ErrorKind.SYSTEM else error.code
        _log_rejection("create trade", request.trade_reference, error)
        self.events.emit(
            EventType.TRADE_FAILED,
            subject=request.trade_reference,
            tags={
                "instrument": request.instrument,
                "type": request.trade_type.value,
                "error_type": error_type,
            },
            data={"message": str(error)},
        )

    def _views(self, trades: Iterable[Trade]) -> list[TradeView]:
        cache: dict[int, Counterparty | None] = {}
        views = []
        for trade in trades:
            if trade.counterparty_id not in cache:
                cache[trade.counterparty_id] = self.counterparties.get(trade.counterparty_id)
            views.append(_view(trade, cache[trade.counterparty_id]))
        return views


def _view(trade: Trade, counterparty: Counterparty | None) -> TradeView:
    if counterparty is None:
        return TradeView(trade=trade, counterparty_name=None, counterparty_code=None)
    return TradeView.of(trade, counterparty)


def _trade_tags(trade: Trade) -> dict[str, str]:
    return {"instrument": trade.instrument, "type": trade.trade_type.value}


def _log_rejection(action: str, target: object, error: TradeLedgerError) -> None:
    # System failures were already logged with their traceback
    if error.kind != ErrorKind.SYSTEM:
        logger.warning("Rejected %s %s: %s", action, target, error)
