"""Run audit rules over a record population."""

import time
from collections.abc import Iterable, Mapping
from typing import Any

from bnfdedupe.audit.models import Finding
from bnfdedupe.audit.rules import AUDIT_RULES, AuditRule
from bnfdedupe.models import Record, load_records
from bnfdedupe.normalize import normalize_record
from bnfdedupe.runlog import RunLogger

__all__ = ["audit_records", "select_rules"]

STAGE = "audit"


def select_rules(
    enabled_rules: Iterable[str] | None = None,
    extra_rules: Mapping[str, AuditRule] | None = None,
) -> dict[str, AuditRule]:
    """Resolve the participating rules.

    Parameters
    ----------
    enabled_rules : Iterable[str] | None, optional
        Rule names to run. None runs every registered and extra rule.
        Unknown names are ignored.
    extra_rules : Mapping[str, AuditRule] | None, optional
        Caller rules for this run only; they shadow registered rules
        with the same name.

    Returns
    -------
    dict[str, AuditRule]
        Name to rule, in name order.
    """
    available: dict[str, AuditRule] = {**AUDIT_RULES, **(extra_rules or {})}
    if enabled_rules is not None:
        wanted = set(enabled_rules)
        available = {name: rule for name, rule in available.items() if name in wanted}
    return dict(sorted(available.items()))


def audit_records(
    records: Iterable[Record | Mapping[str, Any]],
    enabled_rules: Iterable[str] | None = None,
    *,
    extra_rules: Mapping[str, AuditRule] | None = None,
    logger: RunLogger | None = None,
) -> list[Finding]:
    """Evaluate policy rules over the full record population.

    Parameters
    ----------
    records : Iterable[Record | Mapping[str, Any]]
        Records or raw rows; clustered and unclustered alike.
    enabled_rules : Iterable[str] | None, optional
        Rule names to run; all when None.
    extra_rules : Mapping[str, AuditRule] | None, optional
        Additional rules for this call.
    logger : RunLogger | None, optional
        Run logger. If None, no logging.

    Returns
    -------
    list[Finding]
        Findings ordered by severity (high first), type and rids.
    """
    start = time.perf_counter()
    normalized = [normalize_record(r) for r in load_records(records)]
    rules = select_rules(enabled_rules, extra_rules)

    if logger:
        logger.stage_started(STAGE, expected_records=len(normalized))

    findings: list[Finding] = []
    counters: dict[str, int] = {}
    for name, rule in rules.items():
        rule_findings = rule(normalized)
        counters[f"findings_{name}"] = len(rule_findings)
        findings.extend(rule_findings)

    findings.sort(key=Finding.sort_key)

    if logger:
        counters["rules_run"] = len(rules)
        counters["findings_total"] = len(findings)
        logger.stage_finished(STAGE, time.perf_counter() - start, counters=counters)

    return findings
