"""Propose matching rules from confirmed missed clusters.

The learner scores every pair of a cluster a reviewer confirmed but the
engine failed to produce, keeps the fields whose similarity stayed high
across all pairs and turns them into a conservative, AND-combined rule.
It never enables what it proposes.
"""

import time
from collections.abc import Iterable, Mapping
from itertools import combinations
from typing import Any

from bnfdedupe.learning.models import LearnedRule, LearnerConfig, RuleCondition
from bnfdedupe.models import Record, load_records
from bnfdedupe.normalize import normalize_record
from bnfdedupe.runlog import RunLogger
from bnfdedupe.scoring.models import FIELD_NAMES
from bnfdedupe.scoring.scorer import score_pair
from bnfdedupe.utils import get_iso_timestamp, short_digest

__all__ = ["THRESHOLD_PRECISION", "learn_rule", "observed_minimums"]

STAGE = "learning"
THRESHOLD_PRECISION = 4


def observed_minimums(
    records: Iterable[Record | Mapping[str, Any]],
    config: LearnerConfig | None = None,
) -> dict[str, float]:
    """Weakest per-field similarity across every pair of ``records``.

    Parameters
    ----------
    records : Iterable[Record | Mapping[str, Any]]
        Cluster members.
    config : LearnerConfig | None, optional
        Supplies the scoring weights; defaults when None.

    Returns
    -------
    dict[str, float]
        Field name to minimum similarity, empty when fewer than two records.
    """
    if config is None:
        config = LearnerConfig()

    normalized = [normalize_record(r) for r in load_records(records)]
    minimums: dict[str, float] = {}
    for record_a, record_b in combinations(normalized, 2):
        # Raw breakdown only; the identifier floor affects totals, not fields
        pair = score_pair(record_a, record_b, config.weights, exact_identifier_floor=0.0)
        for name in FIELD_NAMES:
            value = pair.breakdown.get(name, 0.0)
            minimums[name] = min(minimums.get(name, value), value)
    return minimums


def _rule_id(conditions: tuple[RuleCondition, ...], created_at: str) -> str:
    parts = [f"{c.field}{c.operator}{c.threshold}" for c in conditions]
    parts.append(created_at)
    return "lr:" + short_digest(parts)


def learn_rule(
    confirmed_cluster: Iterable[Record | Mapping[str, Any]],
    config: LearnerConfig | None = None,
    *,
    logger: RunLogger | None = None,
    created_at: str | None = None,
) -> LearnedRule | None:
    """Propose a rule that would have matched a confirmed cluster.

    Each field whose weakest observed similarity reaches
    ``config.signal_floor`` becomes a condition with threshold
    ``max(config.threshold_floor, minimum - config.margin)``.

    Parameters
    ----------
    confirmed_cluster : Iterable[Record | Mapping[str, Any]]
        Records a reviewer confirmed as one beneficiary.
    config : LearnerConfig | None, optional
        Learning parameters; defaults when None.
    logger : RunLogger | None, optional
        Run logger. If None, no logging.
    created_at : str | None, optional
        Creation timestamp; the current UTC time when None.

    Returns
    -------
    LearnedRule | None
        A disabled rule proposal, or None when the cluster has fewer than
        two records or no field carries a consistent signal.
    """
    if config is None:
        config = LearnerConfig()

    start = time.perf_counter()
    records = load_records(confirmed_cluster)

    if logger:
        logger.stage_started(STAGE, expected_records=len(records))

    minimums = observed_minimums(records, config) if len(records) >= 2 else {}

    conditions = tuple(
        RuleCondition(
            field=name,
            operator=">=",
            threshold=round(max(config.threshold_floor, minimums[name] - config.margin), THRESHOLD_PRECISION),
        )
        for name in FIELD_NAMES
        if name in minimums and minimums[name] >= config.signal_floor
    )

    if not conditions:
        if logger:
            reason = "too_few_records" if len(records) < 2 else "no_consistent_signal"
            logger.rule_not_learned(reason, len(records), minimums)
            logger.stage_finished(STAGE, time.perf_counter() - start, counters={"rules_learned": 0})
        return None

    if created_at is None:
        created_at = get_iso_timestamp()

    rule = LearnedRule(
        rule_id=_rule_id(conditions, created_at),
        conditions=conditions,
        enabled=False,
        created_at=created_at,
        support=len(records),
        observed_minimums={name: minimums[name] for name in FIELD_NAMES if name in minimums},
    )

    if logger:
        logger.rule_learned(rule.to_dict())
        logger.stage_finished(STAGE, time.perf_counter() - start, counters={"rules_learned": 1})

    return rule
