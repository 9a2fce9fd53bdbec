"""Tests for beneficiary record models."""

import pytest

from bnfdedupe.models import MAX_EXTRA_ATTRIBUTES, Record, load_records


@pytest.mark.unit
def test_from_dict_maps_registry_aliases() -> None:
    """Test registry column names populate the typed fields."""
    record = Record.from_dict(
        {
            "internal_id": "r9",
            "womanName": "فاطمة",
            "husband_name": "خالد",
            "nationalId": 1234567890,
            "village": "الزرقاء",
            "children": "سارة; يوسف",
        }
    )

    assert record.rid == "r9"
    assert record.primary_name == "فاطمة"
    assert record.secondary_name == "خالد"
    assert record.identifier == "1234567890"
    assert record.location == "الزرقاء"
    assert record.dependents == ("سارة; يوسف",)
    assert record.extra == {}


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [(None, ""), (True, ""), (7.0, "7"), (7.5, "7.5"), ({"a": 1}, ""), ("  x ", "  x ")],
)
def test_from_dict_coerces_values(value: object, expected: str) -> None:
    """Test unusable cell values become empty strings."""
    assert Record.from_dict({"rid": "a", "phone": value}).phone == expected


@pytest.mark.unit
def test_from_dict_dependents_shapes() -> None:
    """Test dependents accept strings and lists, nothing else."""
    assert Record.from_dict({"dependents": ["سارة", "", None, 3]}).dependents == ("سارة", "3")
    assert Record.from_dict({"dependents": "   "}).dependents == ()
    assert Record.from_dict({"dependents": 5}).dependents == ()


@pytest.mark.unit
def test_from_dict_bounds_extra_attributes() -> None:
    """Test unknown keys are kept in a bounded side-map."""
    data = {f"k{i:03d}": i for i in range(MAX_EXTRA_ATTRIBUTES + 5)}

    record = Record.from_dict(data)

    assert len(record.extra) == MAX_EXTRA_ATTRIBUTES
    assert "k000" in record.extra
    assert record.extra["k001"] == "1"


@pytest.mark.unit
def test_dict_round_trip(household: dict) -> None:
    """Test to_dict output loads back as an equal record."""
    record = Record(rid="a", extra={"batch": "7"}, **{**household, "dependents": tuple(household["dependents"])})

    assert Record.from_dict(record.to_dict()) == record


@pytest.mark.unit
def test_load_records_generates_rids() -> None:
    """Test rows without a rid get one from their position."""
    records = load_records([{"primary_name": "x"}, Record(rid=""), {"rid": "keep"}, "skipped", Record(rid="r")])

    assert [r.rid for r in records] == ["row_0", "row_1", "keep", "r"]
