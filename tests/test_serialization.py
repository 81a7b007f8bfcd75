"""Tests for shared serialization utilities."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from trade_ledger.serialization import dataclass_to_dict, serialize_value, to_dict


class _SampleEnum(str, Enum):
    VALUE_A = "VALUE_A"
    VALUE_B = "VALUE_B"


@dataclass
class _SampleData:
    name: str
    amount: Decimal
    created_at: datetime


@dataclass
class _Wrapper:
    inner: _SampleData
    tags: list


class TestToDict:
    """Tests for to_dict function."""

    def test_dataclass(self) -> None:
        obj = _SampleData(name="test", amount=Decimal("100.50"), created_at=datetime(2024, 1, 1))
        result = to_dict(obj)
        assert result["name"] == "test"
        assert result["amount"] == "100.50"
        assert result["created_at"] == "2024-01-01T00:00:00"

    def test_dict_values_serialized(self) -> None:
        assert to_dict({"amount": Decimal("1.10")}) == {"amount": "1.10"}

    def test_other_type(self) -> None:
        assert to_dict(42) == {"value": "42"}


class TestDataclassToDict:
    """Tests for dataclass_to_dict function."""

    def test_nested_dataclass(self) -> None:
        inner = _SampleData(name="x", amount=Decimal("2"), created_at=datetime(2024, 1, 1))
        result = dataclass_to_dict(_Wrapper(inner=inner, tags=[_SampleEnum.VALUE_A]))

        assert result["inner"]["amount"] == "2"
        assert result["tags"] == ["VALUE_A"]


class TestSerializeValue:
    """Tests for serialize_value function."""

    def test_decimal_is_exact_string(self) -> None:
        assert serialize_value(Decimal("115000.00")) == "115000.00"

    def test_enum(self) -> None:
        assert serialize_value(_SampleEnum.VALUE_B) == "VALUE_B"

    def test_date_and_datetime(self) -> None:
        assert serialize_value(date(2024, 6, 14)) == "2024-06-14"
        assert serialize_value(datetime(2024, 6, 14, 12, 0)) == "2024-06-14T12:00:00"

    def test_tuple_becomes_list(self) -> None:
        assert serialize_value((Decimal("1"), "a")) == ["1", "a"]

    def test_passthrough(self) -> None:
        assert serialize_value("plain") == "plain"
        assert serialize_value(None) is None
