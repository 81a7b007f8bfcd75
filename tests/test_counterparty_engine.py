"""Tests for the counterparty lifecycle engine."""

from unittest.mock import MagicMock

import pytest

from conftest import make_counterparty_request, make_trade_request
from trade_ledger.config import EngineConfig
from trade_ledger.engine import CounterpartyEngine, TradeEngine
from trade_ledger.events import EventType, RecordingListener
from trade_ledger.exceptions import (
    CounterpartyNotFoundError,
    DuplicateCodeError,
    ErrorKind,
    InvalidEntityStateError,
    SystemFailure,
    ValidationError,
)
from trade_ledger.models import CounterpartyStatus, CounterpartyType


class TestCreateCounterparty:
    """Tests for CounterpartyEngine.create_counterparty."""

    def test_defaults_to_active(self, counterparty_engine: CounterpartyEngine) -> None:
        """Test a new counterparty defaults to ACTIVE."""
        view = counterparty_engine.create_counterparty(make_counterparty_request())

        assert view.id is not None
        assert view.counterparty.status == CounterpartyStatus.ACTIVE
        assert view.counterparty.created_at is not None

    def test_explicit_status_kept(self, counterparty_engine: CounterpartyEngine) -> None:
        """Test an explicit status is kept."""
        view = counterparty_engine.create_counterparty(
            make_counterparty_request(status=CounterpartyStatus.SUSPENDED)
        )

        assert view.counterparty.status == CounterpartyStatus.SUSPENDED

    def test_duplicate_code(self, counterparty_engine: CounterpartyEngine) -> None:
        """Test a reused code is rejected."""
        counterparty_engine.create_counterparty(make_counterparty_request())

        with pytest.raises(DuplicateCodeError) as exc_info:
            counterparty_engine.create_counterparty(make_counterparty_request(name="Other"))

        assert str(exc_info.value) == "Counterparty with code 'GS001' already exists"
        assert exc_info.value.kind == ErrorKind.DUPLICATE_KEY
        assert counterparty_engine.count_counterparties() == 1

    def test_invalid_request(self, counterparty_engine: CounterpartyEngine) -> None:
        """Test invalid requests are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            counterparty_engine.create_counterparty(
                make_counterparty_request(name="G", email="not-an-email")
            )

        assert set(exc_info.value.violations) == {"name", "email"}
        assert counterparty_engine.count_counterparties() == 0

    def test_emits_created_and_timing(
        self, counterparty_engine: CounterpartyEngine, recorder: RecordingListener
    ) -> None:
        """Test creation publishes the created and timing events."""
        view = counterparty_engine.create_counterparty(make_counterparty_request())

        created = recorder.of_type(EventType.COUNTERPARTY_CREATED)
        assert len(created) == 1
        assert created[0].subject == str(view.id)
        assert created[0].tags == {"type": "INSTITUTIONAL", "status": "ACTIVE"}
        assert created[0].data["code"] == "GS001"
        timing = recorder.of_type(EventType.COUNTERPARTY_CREATION_TIME)
        assert timing[0].tags == {"type": "INSTITUTIONAL"}


class TestUpdateCounterparty:
    """Tests for CounterpartyEngine.update_counterparty."""

    def test_replaces_fields(self, counterparty_engine: CounterpartyEngine, counterparty_id: int) -> None:
        """Test an update replaces every editable field."""
        view = counterparty_engine.update_counterparty(
            counterparty_id,
            make_counterparty_request(
                name="Goldman Sachs International",
                code="GSI001",
                type=CounterpartyType.CORPORATE,
                email=None,
            ),
        )

        assert view.id == counterparty_id
        assert view.counterparty.code == "GSI001"
        assert view.counterparty.type == CounterpartyType.CORPORATE
        assert view.counterparty.email is None
        assert counterparty_engine.get_counterparty_by_code("GS001") is None

    def test_status_none_keeps_current(
        self, counterparty_engine: CounterpartyEngine, counterparty_id: int
    ) -> None:
        """Test a missing status keeps the current one."""
        counterparty_engine.update_counterparty_status(counterparty_id, CounterpartyStatus.SUSPENDED)

        view = counterparty_engine.update_counterparty(counterparty_id, make_counterparty_request(status=None))

        assert view.counterparty.status == CounterpartyStatus.SUSPENDED

    def test_status_replaced(
        self,
        counterparty_engine: CounterpartyEngine,
        counterparty_id: int,
        recorder: RecordingListener,
    ) -> None:
        """Test a given status replaces the current one."""
        view = counterparty_engine.update_counterparty(
            counterparty_id, make_counterparty_request(status=CounterpartyStatus.INACTIVE)
        )

        assert view.counterparty.status == CounterpartyStatus.INACTIVE
        assert len(recorder.of_type(EventType.COUNTERPARTY_UPDATED)) == 1
        assert len(recorder.of_type(EventType.COUNTERPARTY_DEACTIVATED)) == 1

    def test_same_code_allowed(self, counterparty_engine: CounterpartyEngine, counterparty_id: int) -> None:
        """Test a counterparty may keep its own code."""
        view = counterparty_engine.update_counterparty(
            counterparty_id, make_counterparty_request(name="GS Renamed")
        )

        assert view.counterparty.name == "GS Renamed"

    def test_code_taken_by_other(self, counterparty_engine: CounterpartyEngine, counterparty_id: int) -> None:
        """Test taking another counterparty's code is rejected."""
        counterparty_engine.create_counterparty(make_counterparty_request(name="Morgan Stanley", code="MS001"))

        with pytest.raises(DuplicateCodeError):
            counterparty_engine.update_counterparty(counterparty_id, make_counterparty_request(code="MS001"))

    def test_not_found(self, counterparty_engine: CounterpartyEngine) -> None:
        """Test updating a missing counterparty."""
        with pytest.raises(CounterpartyNotFoundError, match="Counterparty not found with id: 77"):
            counterparty_engine.update_counterparty(77, make_counterparty_request())


class TestUpdateCounterpartyStatus:
    """Tests for CounterpartyEngine.update_counterparty_status."""

    def test_deactivate_and_reactivate(
        self,
        counterparty_engine: CounterpartyEngine,
        counterparty_id: int,
        recorder: RecordingListener,
    ) -> None:
        """Test deactivation and reactivation publish their events."""
        counterparty_engine.update_counterparty_status(counterparty_id, CounterpartyStatus.INACTIVE)
        counterparty_engine.update_counterparty_status(counterparty_id, "suspended")
        view = counterparty_engine.update_counterparty_status(counterparty_id, CounterpartyStatus.ACTIVE)

        assert view.counterparty.status == CounterpartyStatus.ACTIVE
        deactivated = recorder.of_type(EventType.COUNTERPARTY_DEACTIVATED)
        assert len(deactivated) == 1
        assert deactivated[0].data == {"from_status": "ACTIVE", "to_status": "INACTIVE"}
        assert len(recorder.of_type(EventType.COUNTERPARTY_ACTIVATED)) == 1

    def test_existing_trades_untouched(
        self,
        counterparty_engine: CounterpartyEngine,
        trade_engine: TradeEngine,
        counterparty_id: int,
    ) -> None:
        """Test deactivation leaves existing trades alone."""
        trade = trade_engine.create_trade(make_trade_request(counterparty_id))

        counterparty_engine.update_counterparty_status(counterparty_id, CounterpartyStatus.INACTIVE)

        assert trade_engine.get_trade(trade.id).trade == trade.trade

    def test_unknown_status(self, counterparty_engine: CounterpartyEngine, counterparty_id: int) -> None:
        """Test an unknown status is rejected."""
        with pytest.raises(ValidationError):
            counterparty_engine.update_counterparty_status(counterparty_id, "DORMANT")

    def test_not_found(self, counterparty_engine: CounterpartyEngine) -> None:
        """Test changing the status of a missing counterparty."""
        with pytest.raises(CounterpartyNotFoundError):
            counterparty_engine.update_counterparty_status(5, CounterpartyStatus.ACTIVE)


class TestDeleteCounterparty:
    """Tests for CounterpartyEngine.delete_counterparty."""

    def test_delete(
        self,
        counterparty_engine: CounterpartyEngine,
        counterparty_id: int,
        recorder: RecordingListener,
    ) -> None:
        """Test deleting a counterparty without trades."""
        counterparty_engine.delete_counterparty(counterparty_id)

        assert counterparty_engine.get_counterparty(counterparty_id) is None
        deleted = recorder.of_type(EventType.COUNTERPARTY_DELETED)
        assert deleted[0].tags == {"type": "INSTITUTIONAL", "status": "ACTIVE"}

    def test_refuses_with_trades(
        self,
        counterparty_engine: CounterpartyEngine,
        trade_engine: TradeEngine,
        counterparty_id: int,
    ) -> None:
        """Test a counterparty with trades cannot be deleted."""
        trade_engine.create_trade(make_trade_request(counterparty_id))

        with pytest.raises(InvalidEntityStateError) as exc_info:
            counterparty_engine.delete_counterparty(counterparty_id)

        assert str(exc_info.value) == (
            "Cannot delete counterparty with existing trades. Please delete trades first."
        )
        assert counterparty_engine.get_counterparty(counterparty_id) is not None

    def test_allowed_after_trades_removed(
        self,
        counterparty_engine: CounterpartyEngine,
        trade_engine: TradeEngine,
        counterparty_id: int,
    ) -> None:
        """Test deletion succeeds once its trades are gone."""
        trade = trade_engine.create_trade(make_trade_request(counterparty_id))
        trade_engine.delete_trade(trade.id)

        counterparty_engine.delete_counterparty(counterparty_id)

        assert counterparty_engine.count_counterparties() == 0

    def test_not_found(self, counterparty_engine: CounterpartyEngine) -> None:
        """Test deleting a missing counterparty."""
        with pytest.raises(CounterpartyNotFoundError):
            counterparty_engine.delete_counterparty(123)


class TestCounterpartyQueries:
    """Tests for read-only counterparty operations."""

    @pytest.fixture
    def populated(self, counterparty_engine: CounterpartyEngine) -> None:
        counterparty_engine.create_counterparty(make_counterparty_request())
        counterparty_engine.create_counterparty(
            make_counterparty_request(name="Tesla Corp", code="TSC001", type=CounterpartyType.CORPORATE)
        )
        counterparty_engine.create_counterparty(
            make_counterparty_request(
                name="Alice Smith",
                code="AS001",
                type=CounterpartyType.INDIVIDUAL,
                status=CounterpartyStatus.INACTIVE,
            )
        )

    def test_get_absent(self, counterparty_engine: CounterpartyEngine) -> None:
        """Test looking up a missing counterparty returns None."""
        assert counterparty_engine.get_counterparty(1) is None
        assert counterparty_engine.get_counterparty_by_code("GS001") is None

    def test_get_by_code(self, counterparty_engine: CounterpartyEngine, populated: None) -> None:
        """Test lookup by code."""
        assert counterparty_engine.get_counterparty_by_code("TSC001").counterparty.name == "Tesla Corp"

    def test_list(self, counterparty_engine: CounterpartyEngine, populated: None) -> None:
        """Test listing all counterparties."""
        assert len(counterparty_engine.list_counterparties()) == 3

    def test_page_ordered_by_name(self, counterparty_engine: CounterpartyEngine, populated: None) -> None:
        """Test paging orders by name."""
        first = counterparty_engine.list_counterparties_page(0, 2)
        second = counterparty_engine.list_counterparties_page(1, 2)

        assert [v.counterparty.name for v in first] == ["Alice Smith", "Goldman Sachs"]
        assert [v.counterparty.name for v in second] == ["Tesla Corp"]

    def test_page_size_clamped(self, counterparty_store, trade_store, populated: None) -> None:
        """Test the page size cap."""
        engine = CounterpartyEngine(
            counterparty_store, trade_store, config=EngineConfig(default_page_size=2, max_page_size=2)
        )

        assert len(engine.list_counterparties_page()) == 2
        assert len(engine.list_counterparties_page(0, 100)) == 2

    def test_page_invalid(self, counterparty_engine: CounterpartyEngine) -> None:
        """Test invalid page arguments are rejected."""
        with pytest.raises(ValidationError):
            counterparty_engine.list_counterparties_page(-1)

    def test_by_type(self, counterparty_engine: CounterpartyEngine, populated: None) -> None:
        """Test listing counterparties by type."""
        corporates = counterparty_engine.get_counterparties_by_type(CounterpartyType.CORPORATE)

        assert [v.counterparty.code for v in corporates] == ["TSC001"]
        assert len(counterparty_engine.get_counterparties_by_type("individual")) == 1

    def test_by_type_invalid(self, counterparty_engine: CounterpartyEngine) -> None:
        """Test an unknown type is rejected."""
        with pytest.raises(ValidationError):
            counterparty_engine.get_counterparties_by_type("BANK")

    def test_active(self, counterparty_engine: CounterpartyEngine, populated: None) -> None:
        """Test listing and counting active counterparties."""
        codes = {v.counterparty.code for v in counterparty_engine.get_active_counterparties()}

        assert codes == {"GS001", "TSC001"}
        assert counterparty_engine.count_active_counterparties() == 2
        assert counterparty_engine.count_counterparties() == 3

    def test_search_case_insensitive(self, counterparty_engine: CounterpartyEngine, populated: None) -> None:
        """Test name search ignores case."""
        results = counterparty_engine.search_counterparties_by_name("SACHS")

        assert [v.counterparty.code for v in results] == ["GS001"]
        assert counterparty_engine.search_counterparties_by_name("zzz") == []

    def test_store_error_hidden(self, trade_store) -> None:
        """Test store errors in queries surface as SystemFailure."""
        counterparties = MagicMock()
        counterparties.count.side_effect = RuntimeError("socket closed")
        engine = CounterpartyEngine(counterparties, trade_store)

        with pytest.raises(SystemFailure) as exc_info:
            engine.count_counterparties()

        assert "socket closed" not in str(exc_info.value)
