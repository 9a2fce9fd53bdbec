"""Public API for beneficiary duplicate resolution.

This module provides the main public API for bnfdedupe, enabling:
- Resolving duplicate beneficiaries into scored clusters
- Auditing a record population against household policy rules
- Learning matching rules from confirmed missed clusters
- Reading and writing JSONL files of records, clusters and rules
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from bnfdedupe.audit import audit_records as _audit_records
from bnfdedupe.engine import EngineConfig, resolve_duplicates
from bnfdedupe.learning import LearnedRule
from bnfdedupe.learning import learn_rule as _learn_rule
from bnfdedupe.models import Record, load_records

if TYPE_CHECKING:
    from bnfdedupe.audit import AuditRule, Finding
    from bnfdedupe.runlog import RunLogger

__all__ = [
    "audit_records",
    "learn_rule",
    "load_records",
    "load_rules",
    "read_jsonl",
    "resolve_duplicates",
    "write_jsonl",
]

RecordInput = Iterable[Record | Mapping[str, Any]]


def audit_records(
    records: RecordInput,
    enabled_rules: Iterable[str] | None = None,
    *,
    config: EngineConfig | None = None,
    extra_rules: Mapping[str, AuditRule] | None = None,
    logger: RunLogger | None = None,
) -> list[Finding]:
    """Audit the full record population against household policy rules.

    Parameters
    ----------
    records : RecordInput
        Records or raw rows, clustered and unclustered alike.
    enabled_rules : Iterable[str] | None, optional
        Rule names to run. When None, ``config.enabled_rules`` applies,
        and every rule runs if that is None too.
    config : EngineConfig | None, optional
        Engine configuration supplying ``enabled_rules``.
    extra_rules : Mapping[str, AuditRule] | None, optional
        Caller rules added for this call.
    logger : RunLogger | None, optional
        Run logger. If None, no logging.

    Returns
    -------
    list[Finding]
        Findings ordered by severity, type and rids.

    Examples
    --------
    Flag a shared identifier:

        >>> from bnfdedupe import audit_records
        >>> findings = audit_records([
        ...     {"rid": "1", "primary_name": "فاطمة", "identifier": "123"},
        ...     {"rid": "2", "primary_name": "زينب", "identifier": "123"},
        ... ])
        >>> findings[0].type
        'DUPLICATE_IDENTIFIER'
    """
    if enabled_rules is None and config is not None:
        enabled_rules = config.enabled_rules
    if config is not None and logger:
        for name in config.fallbacks:
            logger.config_fallback(name, config.rejected.get(name), config.default_for(name))
    return _audit_records(records, enabled_rules, extra_rules=extra_rules, logger=logger)


def learn_rule(
    confirmed_cluster: RecordInput,
    config: EngineConfig | None = None,
    *,
    logger: RunLogger | None = None,
) -> LearnedRule | None:
    """Propose a matching rule from a cluster the engine missed.

    Parameters
    ----------
    confirmed_cluster : RecordInput
        Records a reviewer confirmed as one beneficiary.
    config : EngineConfig | None, optional
        Supplies weights and learner thresholds; defaults when None.
    logger : RunLogger | None, optional
        Run logger. If None, no logging.

    Returns
    -------
    LearnedRule | None
        A disabled proposal; call ``activate()`` before handing it back
        through ``EngineConfig.learned_rules``. None when the cluster
        carries no consistent signal.

    Examples
    --------
        >>> rule = learn_rule(confirmed_records)
        >>> if rule is not None:
        ...     config = EngineConfig(learned_rules=(rule.activate(),))
    """
    if config is None:
        config = EngineConfig()
    return _learn_rule(confirmed_cluster, config.learner_config(), logger=logger)


# ---------------------------------------------------------------------------
# JSONL helpers
# ---------------------------------------------------------------------------


def read_jsonl(path: str | Path) -> list[dict[str, Any]]:
    """Read a JSONL file, skipping blank lines.

    Parameters
    ----------
    path : str | Path
        Input file path.

    Returns
    -------
    list[dict[str, Any]]
        One dict per non-blank line.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If a line is not a JSON object.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    rows: list[dict[str, Any]] = []
    with file_path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            row = json.loads(line)
            if not isinstance(row, dict):
                raise ValueError(f"{file_path.name}:{line_no}: expected a JSON object")
            rows.append(row)
    return rows


def write_jsonl(
    items: Iterable[Any],
    path: str | Path,
    *,
    sort_keys: bool = True,
) -> None:
    """Write items to a JSONL file (one JSON object per line).

    Items with a ``to_dict`` method are serialized through it.

    Parameters
    ----------
    items : Iterable[Any]
        Records, clusters, findings, rules or plain dicts.
    path : str | Path
        Output file path.
    sort_keys : bool, optional
        Whether to sort dictionary keys for deterministic output,
        by default True.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with file_path.open("w", encoding="utf-8", newline="\n") as f:
        for item in items:
            data = item.to_dict() if hasattr(item, "to_dict") else item
            f.write(json.dumps(data, ensure_ascii=False, sort_keys=sort_keys) + "\n")


def load_rules(path: str | Path) -> tuple[LearnedRule, ...]:
    """Load persisted learned rules from a JSONL file.

    Raises
    ------
    RuleFormatError
        If a stored rule is malformed.
    """
    return tuple(LearnedRule.from_dict(row) for row in read_jsonl(path))
