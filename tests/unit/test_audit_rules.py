"""Tests for household policy audit rules."""

import json
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from bnfdedupe.audit import AUDIT_RULES, Finding, Severity, audit_records, register_rule, select_rules
from bnfdedupe.models import NormalizedRecord, Record
from bnfdedupe.runlog import RunLogger


def _types(findings: list[Finding]) -> list[str]:
    return [f.type for f in findings]


# ---------------------------------------------------------------------------
# Identity rules
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_duplicate_identifier(make_record: Callable[..., Record]) -> None:
    """Test unrelated records sharing an identifier give one high finding."""
    records = [
        make_record("r1", primary_name="فاطمة محمد", identifier="9001"),
        make_record("r2", primary_name="زينب علي", identifier="9001"),
        make_record("r3", primary_name="مريم حسن", identifier="9002"),
    ]

    findings = audit_records(records, ["duplicate_identifier"])

    assert len(findings) == 1
    assert findings[0].severity == Severity.HIGH
    assert findings[0].type == "DUPLICATE_IDENTIFIER"
    assert findings[0].rids == ("r1", "r2")


@pytest.mark.unit
def test_duplicate_couple(make_record: Callable[..., Record]) -> None:
    """Test the same couple registered twice is flagged after normalization."""
    records = [
        make_record("r1", primary_name="فاطمة محمد", secondary_name="خالد حسن"),
        make_record("r2", primary_name="فاطمه مُحمد", secondary_name="خالد  حسن"),
        make_record("r3", primary_name="فاطمة محمد", secondary_name="زيد علي"),
    ]

    findings = audit_records(records, ["duplicate_couple"])

    assert _types(findings) == ["DUPLICATE_COUPLE"]
    assert findings[0].rids == ("r1", "r2")


@pytest.mark.unit
def test_multiple_identifiers(make_record: Callable[..., Record]) -> None:
    """Test one full name registered under two identifiers."""
    records = [
        make_record("r1", primary_name="فاطمة محمد احمد", identifier="111"),
        make_record("r2", primary_name="فاطمة محمد احمد", identifier="222"),
        make_record("r3", primary_name="فاطمة محمد احمد"),
    ]

    findings = audit_records(records, ["multiple_identifiers"])

    assert _types(findings) == ["MULTIPLE_IDENTIFIERS"]
    assert findings[0].rids == ("r1", "r2")
    assert "111" in findings[0].description and "222" in findings[0].description


@pytest.mark.unit
def test_short_names_are_not_attributed(make_record: Callable[..., Record]) -> None:
    """Test names with fewer than three tokens are too common to group."""
    records = [
        make_record("r1", primary_name="فاطمة محمد", identifier="111", secondary_name="خالد"),
        make_record("r2", primary_name="فاطمة محمد", identifier="222", secondary_name="زيد"),
    ]

    assert audit_records(records, ["multiple_identifiers", "multiple_spouses"]) == []


# ---------------------------------------------------------------------------
# Household structure rules
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_multiple_spouses(make_record: Callable[..., Record]) -> None:
    """Test one principal linked to two spouses."""
    records = [
        make_record("r1", primary_name="فاطمة محمد احمد", secondary_name="خالد حسن"),
        make_record("r2", primary_name="فاطمة محمد احمد", secondary_name="زيد علي"),
    ]

    findings = audit_records(records, ["multiple_spouses"])

    assert _types(findings) == ["WOMAN_MULTIPLE_HUSBANDS"]
    assert findings[0].severity == Severity.HIGH


@pytest.mark.unit
def test_too_many_wives(make_record: Callable[..., Record]) -> None:
    """Test a spouse linked to more principals than the household limit."""
    wives = ["فاطمة", "زينب", "مريم", "سارة", "هدى"]
    records = [
        make_record(f"r{i}", primary_name=name, secondary_name="خالد عبد الله حسن")
        for i, name in enumerate(wives)
    ]

    findings = audit_records(records, ["too_many_wives"])
    assert _types(findings) == ["HUSBAND_TOO_MANY_WIVES"]
    assert findings[0].severity == Severity.MEDIUM
    assert len(findings[0].rids) == 5

    assert audit_records(records[:4], ["too_many_wives"]) == []


@pytest.mark.unit
def test_polygamy_shared_dependents(make_record: Callable[..., Record]) -> None:
    """Test two wives of one husband listing the same children."""
    husband = "خالد عبد الله حسن"
    records = [
        make_record("r1", primary_name="فاطمة", secondary_name=husband, dependents=["سارة خالد", "يوسف خالد"]),
        make_record("r2", primary_name="زينب", secondary_name=husband, dependents=["يوسف خالد; سارة خالد"]),
        make_record("r3", primary_name="مريم", secondary_name=husband, dependents=["علي خالد"]),
    ]

    findings = audit_records(records, ["polygamy_shared_dependents"])

    assert _types(findings) == ["SHARED_DEPENDENTS"]
    assert findings[0].rids == ("r1", "r2")


# ---------------------------------------------------------------------------
# Forbidden relationship rules
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_forbidden_relationship(make_record: Callable[..., Record]) -> None:
    """Test a wife who is also listed as a child in her husband's other household."""
    husband = "خالد حسن علي"
    records = [
        make_record("wife", primary_name="مريم خالد حسن", secondary_name=husband),
        make_record("other", primary_name="فاطمة محمد", secondary_name=husband, dependents=["مريم", "يوسف"]),
    ]

    findings = audit_records(records, ["forbidden_relationship"])

    assert _types(findings) == ["FORBIDDEN_RELATIONSHIP"]
    assert findings[0].rids == ("other", "wife")


@pytest.mark.unit
def test_forbidden_relationship_needs_matching_father(make_record: Callable[..., Record]) -> None:
    """Test a shared given name alone is not a forbidden relationship."""
    husband = "خالد حسن علي"
    records = [
        make_record("wife", primary_name="مريم احمد حسن", secondary_name=husband),
        make_record("other", primary_name="فاطمة محمد", secondary_name=husband, dependents=["مريم"]),
    ]

    assert audit_records(records, ["forbidden_relationship"]) == []


@pytest.mark.unit
def test_lineage_conflict(make_record: Callable[..., Record]) -> None:
    """Test a spouse name repeating the principal's father and grandfather."""
    records = [
        make_record("r1", primary_name="مريم خالد حسن", secondary_name="خالد حسن علي"),
        make_record("r2", primary_name="فاطمة محمد احمد", secondary_name="زيد علي"),
    ]

    findings = audit_records(records, ["lineage_conflict"])

    assert _types(findings) == ["LINEAGE_CONFLICT"]
    assert findings[0].rids == ("r1",)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_registry_contains_canonical_rules() -> None:
    """Test the built-in rules are registered."""
    assert {
        "duplicate_identifier",
        "duplicate_couple",
        "multiple_identifiers",
        "multiple_spouses",
        "too_many_wives",
        "polygamy_shared_dependents",
        "forbidden_relationship",
        "lineage_conflict",
    } <= set(AUDIT_RULES)


@pytest.mark.unit
def test_register_rule_rejects_duplicate_name() -> None:
    """Test a rule name cannot be registered twice."""
    with pytest.raises(ValueError, match="already registered"):
        register_rule("duplicate_identifier")(lambda records: [])


@pytest.mark.unit
def test_register_rule_adds_rule() -> None:
    """Test new rules join the registry without touching existing ones."""
    before = dict(AUDIT_RULES)
    try:

        @register_rule("test_always_low")
        def always_low(records: Sequence[NormalizedRecord]) -> list[Finding]:
            return [Finding.create(Severity.LOW, "TEST", "always", [r.rid for r in records])]

        assert AUDIT_RULES["test_always_low"] is always_low
        assert all(AUDIT_RULES[name] is rule for name, rule in before.items())
    finally:
        AUDIT_RULES.pop("test_always_low", None)


@pytest.mark.unit
def test_select_rules() -> None:
    """Test rule selection ignores unknown names and honours extra rules."""

    def extra(records: Sequence[NormalizedRecord]) -> list[Finding]:
        return []

    assert list(select_rules(["lineage_conflict", "no_such_rule"])) == ["lineage_conflict"]
    assert list(select_rules([])) == []
    assert "extra" in select_rules(extra_rules={"extra": extra})
    assert set(select_rules()) == set(AUDIT_RULES)


@pytest.mark.unit
def test_findings_ordered_by_severity(make_record: Callable[..., Record]) -> None:
    """Test high findings come before medium ones."""
    husband = "خالد عبد الله حسن"
    wives = ["فاطمة", "زينب", "مريم", "سارة", "هدى"]
    records = [make_record(f"w{i}", primary_name=n, secondary_name=husband) for i, n in enumerate(wives)]
    records.append(make_record("x1", primary_name="علي", identifier="7"))
    records.append(make_record("x2", primary_name="حسن", identifier="7"))

    findings = audit_records(records)

    assert [f.severity for f in findings] == sorted((f.severity for f in findings), key=lambda s: s.rank)
    assert findings[0].type == "DUPLICATE_IDENTIFIER"
    assert findings[-1].severity == Severity.MEDIUM


@pytest.mark.unit
def test_audit_accepts_raw_rows_and_extra_rules() -> None:
    """Test dict rows are loaded and caller rules run alongside built-ins."""

    def flag_all(records: Sequence[NormalizedRecord]) -> list[Finding]:
        return [Finding.create(Severity.LOW, "SEEN", "seen", [r.rid for r in records])]

    rows = [{"womanName": "فاطمة"}, {"womanName": "زينب"}]

    findings = audit_records(rows, ["flag_all"], extra_rules={"flag_all": flag_all})

    assert findings == [Finding(Severity.LOW, "SEEN", "seen", ("row_0", "row_1"))]


@pytest.mark.unit
def test_audit_does_not_mutate_records(household: dict, make_record: Callable[..., Record]) -> None:
    """Test rules leave the caller's records untouched."""
    records = [make_record("a", **household), make_record("b", **household)]
    before = [r.to_dict() for r in records]

    audit_records(records)

    assert [r.to_dict() for r in records] == before


@pytest.mark.unit
def test_audit_logs_stage(tmp_path: Path, make_record: Callable[..., Record]) -> None:
    """Test the audit stage reports its counters."""
    log_path = tmp_path / "run.jsonl"
    records = [make_record("a", identifier="1"), make_record("b", identifier="1")]

    with RunLogger("run_test", log_path) as logger:
        audit_records(records, ["duplicate_identifier"], logger=logger)

    events = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert [e["event"] for e in events] == ["stage_started", "stage_finished"]
    counters = events[-1]["data"]["counters"]
    assert counters["findings_duplicate_identifier"] == 1
    assert counters["rules_run"] == 1
    assert events[-1]["stage"] == "audit"


@pytest.mark.unit
def test_finding_to_dict() -> None:
    """Test finding serialization."""
    finding = Finding.create(Severity.HIGH, "T", "desc", ["b", "a", "b"])

    assert finding.to_dict() == {"severity": "high", "type": "T", "description": "desc", "rids": ["a", "b"]}
