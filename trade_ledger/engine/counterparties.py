"""Counterparty lifecycle engine."""

import logging
import time
from dataclasses import replace

from trade_ledger.config import EngineConfig
from trade_ledger.engine.common import coerce_enum, resolve_page_size, system_errors
from trade_ledger.events import EventBus, EventType
from trade_ledger.exceptions import (
    CounterpartyNotFoundError,
    DuplicateCodeError,
    ErrorKind,
    InvalidEntityStateError,
    TradeLedgerError,
)
from trade_ledger.models import (
    Counterparty,
    CounterpartyStatus,
    CounterpartyType,
    CounterpartyView,
    CreateCounterpartyRequest,
)
from trade_ledger.store.base import CounterpartyRepository, TradeRepository
from trade_ledger.validation import validate_counterparty_request

logger = logging.getLogger(__name__)


class CounterpartyEngine:
    """Validates and executes counterparty operations.

    Parameters
    ----------
    counterparties : CounterpartyRepository
        Counterparty store.
    trades : TradeRepository
        Trade store, consulted so a counterparty is never deleted while it
        still owns trades.
    events : EventBus | None
        Bus receiving lifecycle events. A private bus is created if omitted.
    config : EngineConfig | None
        Paging settings.
    """

    def __init__(
        self,
        counterparties: CounterpartyRepository,
        trades: TradeRepository,
        events: EventBus | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.counterparties = counterparties
        self.trades = trades
        self.events = events if events is not None else EventBus()
        self.config = config or EngineConfig()

    def create_counterparty(self, request: CreateCounterpartyRequest) -> CounterpartyView:
        """Create a counterparty; status defaults to ACTIVE.

        Raises
        ------
        ValidationError
            If request fields are missing or out of bounds.
        DuplicateCodeError
            If the code is already taken.
        """
        logger.debug("Creating new counterparty with code: %s", request.code)
        started = time.perf_counter()
        validate_counterparty_request(request)

        try:
            with system_errors(logger, "create_counterparty"):
                with self.counterparties.transaction():
                    self._check_code(request.code)
                    counterparty = self.counterparties.save(
                        Counterparty(
                            code=request.code,
                            name=request.name,
                            type=request.type,
                            status=request.status or CounterpartyStatus.ACTIVE,
                            email=request.email,
                            phone_number=request.phone_number,
                            address=request.address,
                        )
                    )
        except TradeLedgerError as e:
            _log_rejection("create counterparty", request.code, e)
            raise

        view = CounterpartyView(counterparty)
        self.events.emit(
            EventType.COUNTERPARTY_CREATED,
            subject=str(counterparty.id),
            tags={"type": counterparty.type.value, "status": counterparty.status.value},
            data=view.to_dict(),
        )
        self.events.emit(
            EventType.COUNTERPARTY_CREATION_TIME,
            subject=str(counterparty.id),
            tags={"type": counterparty.type.value},
            duration_seconds=time.perf_counter() - started,
        )
        logger.info(
            "Created counterparty with id: %d and code: %s", counterparty.id, counterparty.code
        )
        return view

    def update_counterparty(
        self, counterparty_id: int, request: CreateCounterpartyRequest
    ) -> CounterpartyView:
        """Replace every field of a counterparty, status included.

        A request without a status keeps the current one.

        Raises
        ------
        CounterpartyNotFoundError
            If no counterparty has ``counterparty_id``.
        DuplicateCodeError
            If another counterparty already uses the code.
        """
        logger.debug("Updating counterparty with id: %d", counterparty_id)
        validate_counterparty_request(request)

        try:
            with system_errors(logger, "update_counterparty"):
                with self.counterparties.transaction():
                    existing = self._require(counterparty_id)
                    self._check_code(request.code, exclude_id=counterparty_id)
                    counterparty = self.counterparties.save(
                        replace(
                            existing,
                            code=request.code,
                            name=request.name,
                            type=request.type,
                            status=request.status or existing.status,
                            email=request.email,
                            phone_number=request.phone_number,
                            address=request.address,
                        )
                    )
        except TradeLedgerError as e:
            _log_rejection("update counterparty", counterparty_id, e)
            raise

        view = CounterpartyView(counterparty)
        self.events.emit(
            EventType.COUNTERPARTY_UPDATED,
            subject=str(counterparty.id),
            tags={"type": counterparty.type.value, "status": counterparty.status.value},
            data=view.to_dict(),
        )
        self._emit_activation(existing, counterparty)
        logger.info("Updated counterparty with id: %d", counterparty_id)
        return view

    def update_counterparty_status(
        self, counterparty_id: int, status: CounterpartyStatus | str
    ) -> CounterpartyView:
        """Overwrite a counterparty's status.

        Existing trades are not re-validated.
        """
        new_status = coerce_enum(CounterpartyStatus, status, "status")
        logger.debug(
            "Updating counterparty status for id: %d to: %s", counterparty_id, new_status.value
        )

        with system_errors(logger, "update_counterparty_status"):
            with self.counterparties.transaction():
                existing = self._require(counterparty_id)
                counterparty = self.counterparties.save(replace(existing, status=new_status))

        self._emit_activation(existing, counterparty)
        logger.info(
            "Updated counterparty status for id: %d to: %s", counterparty_id, new_status.value
        )
        return CounterpartyView(counterparty)

    def delete_counterparty(self, counterparty_id: int) -> None:
        """Delete a counterparty that owns no trades.

        Raises
        ------
        CounterpartyNotFoundError
            If no counterparty has ``counterparty_id``.
        InvalidEntityStateError
            If the counterparty still owns trades.
        """
        logger.debug("Deleting counterparty with id: %d", counterparty_id)

        try:
            with system_errors(logger, "delete_counterparty"):
                with self.counterparties.transaction():
                    counterparty = self._require(counterparty_id)
                    if self.trades.count_by_counterparty(counterparty_id) > 0:
                        raise InvalidEntityStateError(
                            "Cannot delete counterparty with existing trades. "
                            "Please delete trades first."
                        )
                    self.counterparties.delete(counterparty_id)
        except TradeLedgerError as e:
            _log_rejection("delete counterparty", counterparty_id, e)
            raise

        self.events.emit(
            EventType.COUNTERPARTY_DELETED,
            subject=str(counterparty_id),
            tags={"type": counterparty.type.value, "status": counterparty.status.value},
            data={"id": counterparty_id, "code": counterparty.code},
        )
        logger.info("Deleted counterparty with id: %d", counterparty_id)

    # Queries

    def get_counterparty(self, counterparty_id: int) -> CounterpartyView | None:
        logger.debug("Fetching counterparty with id: %d", counterparty_id)
        with system_errors(logger, "get_counterparty"):
            counterparty = self.counterparties.get(counterparty_id)
        return CounterpartyView(counterparty) if counterparty else None

    def get_counterparty_by_code(self, code: str) -> CounterpartyView | None:
        logger.debug("Fetching counterparty with code: %s", code)
        with system_errors(logger, "get_counterparty_by_code"):
            counterparty = self.counterparties.get_by_code(code)
        return CounterpartyView(counterparty) if counterparty else None

    def list_counterparties(self) -> list[CounterpartyView]:
        logger.debug("Fetching all counterparties")
        with system_errors(logger, "list_counterparties"):
            return [CounterpartyView(c) for c in self.counterparties.list_all()]

    def list_counterparties_page(
        self, page: int = 0, size: int | None = None
    ) -> list[CounterpartyView]:
        """Return one page of counterparties ordered by name (0-based ``page``)."""
        size = resolve_page_size(self.config, page, size)
        logger.debug("Fetching counterparties page %d with size %d", page, size)
        with system_errors(logger, "list_counterparties_page"):
            return [CounterpartyView(c) for c in self.counterparties.list_page(page, size)]

    def get_counterparties_by_type(
        self, counterparty_type: CounterpartyType | str
    ) -> list[CounterpartyView]:
        counterparty_type = coerce_enum(CounterpartyType, counterparty_type, "type")
        logger.debug("Fetching counterparties with type: %s", counterparty_type.value)
        with system_errors(logger, "get_counterparties_by_type"):
            return [CounterpartyView(c) for c in self.counterparties.list_by_type(counterparty_type)]

    def get_active_counterparties(self) -> list[CounterpartyView]:
        logger.debug("Fetching active counterparties")
        with system_errors(logger, "get_active_counterparties"):
            return [
                CounterpartyView(c)
                for c in self.counterparties.list_by_status(CounterpartyStatus.ACTIVE)
            ]

    def search_counterparties_by_name(self, fragment: str) -> list[CounterpartyView]:
        """Case-insensitive substring match on the counterparty name."""
        logger.debug("Searching counterparties with name containing: %s", fragment)
        with system_errors(logger, "search_counterparties_by_name"):
            return [CounterpartyView(c) for c in self.counterparties.search_by_name(fragment)]

    # Aggregates

    def count_counterparties(self) -> int:
        with system_errors(logger, "count_counterparties"):
            return self.counterparties.count()

    def count_active_counterparties(self) -> int:
        with system_errors(logger, "count_active_counterparties"):
            return self.counterparties.count_by_status(CounterpartyStatus.ACTIVE)

    def _require(self, counterparty_id: int) -> Counterparty:
        counterparty = self.counterparties.get(counterparty_id)
        if counterparty is None:
            raise CounterpartyNotFoundError(f"Counterparty not found with id: {counterparty_id}")
        return counterparty

    def _check_code(self, code: str, exclude_id: int | None = None) -> None:
        if self.counterparties.exists_by_code(code, exclude_id=exclude_id):
            raise DuplicateCodeError(f"Counterparty with code '{code}' already exists")

    def _emit_activation(self, before: Counterparty, after: Counterparty) -> None:
        if before.is_active == after.is_active:
            return
        event_type = (
            EventType.COUNTERPARTY_ACTIVATED if after.is_active else EventType.COUNTERPARTY_DEACTIVATED
        )
        self.events.emit(
            event_type,
            subject=str(after.id),
            tags={"type": after.type.value},
            data={"from_status": before.status.value, "to_status": after.status.value},
        )


def _log_rejection(action: str, target: object, error: TradeLedgerError) -> None:
    if error.kind != ErrorKind.SYSTEM:
        logger.warning("Rejected %s %s: %s", action, target, error)
