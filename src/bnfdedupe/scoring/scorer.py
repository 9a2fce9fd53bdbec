"""Pairwise scoring of normalized records.

Combines the field comparators into one weighted, clamped score, attaches
structural match reasons and evaluates learned rules against the breakdown.
"""

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from bnfdedupe.models import NormalizedRecord
from bnfdedupe.scoring.comparators import FIELD_CONFIGS, jaro_winkler, token_jaccard
from bnfdedupe.scoring.models import FieldWeights, MatchReason, PairScore

if TYPE_CHECKING:
    from bnfdedupe.learning.models import LearnedRule

__all__ = ["DEFAULT_EXACT_IDENTIFIER_FLOOR", "SCORE_PRECISION", "score_pair"]

SCORE_PRECISION = 6
DEFAULT_EXACT_IDENTIFIER_FLOOR = 0.99

LINEAGE_DEPTH = 3
LINEAGE_TOKEN_MIN = 0.93
REORDER_JACCARD_MIN = 0.8
HOUSEHOLD_SECONDARY_MIN = 0.95
HOUSEHOLD_PRIMARY_MAX = 0.7
DEPENDENTS_MATCH_MIN = 0.9


# ---------------------------------------------------------------------------
# Structural reasons
# ---------------------------------------------------------------------------


def _lineage_match(tokens_a: Sequence[str], tokens_b: Sequence[str]) -> bool:
    """Given name, father and grandfather agree position by position."""
    if len(tokens_a) < LINEAGE_DEPTH or len(tokens_b) < LINEAGE_DEPTH:
        return False
    return all(
        jaro_winkler(tokens_a[i], tokens_b[i]) >= LINEAGE_TOKEN_MIN for i in range(LINEAGE_DEPTH)
    )


def _token_reorder(tokens_a: Sequence[str], tokens_b: Sequence[str]) -> bool:
    """Nearly the same tokens, written in a different order."""
    if token_jaccard(tokens_a, tokens_b) < REORDER_JACCARD_MIN:
        return False
    shared = set(tokens_a) & set(tokens_b)
    order_a = [t for t in dict.fromkeys(tokens_a) if t in shared]
    order_b = [t for t in dict.fromkeys(tokens_b) if t in shared]
    return order_a != order_b


def _structural_reasons(
    a: NormalizedRecord,
    b: NormalizedRecord,
    breakdown: dict[str, float],
) -> tuple[str, ...]:
    reasons: list[str] = []

    if breakdown["identifier"] == 1.0:
        reasons.append(MatchReason.EXACT_IDENTIFIER)
    if _token_reorder(a.primary.tokens, b.primary.tokens):
        reasons.append(MatchReason.TOKEN_REORDER)
    if _lineage_match(a.primary.tokens, b.primary.tokens):
        reasons.append(MatchReason.PRIMARY_LINEAGE)
    if _lineage_match(a.secondary.tokens, b.secondary.tokens):
        reasons.append(MatchReason.SECONDARY_LINEAGE)
    if (
        breakdown["secondary_name"] >= HOUSEHOLD_SECONDARY_MIN
        and a.primary.tokens
        and b.primary.tokens
        and breakdown["primary_name"] < HOUSEHOLD_PRIMARY_MAX
    ):
        reasons.append(MatchReason.SHARED_HOUSEHOLD)
    if breakdown["dependents"] >= DEPENDENTS_MATCH_MIN:
        reasons.append(MatchReason.DEPENDENTS_MATCH)

    return tuple(sorted(str(r) for r in reasons))


# ---------------------------------------------------------------------------
# Core scoring
# ---------------------------------------------------------------------------


def score_pair(
    record_a: NormalizedRecord,
    record_b: NormalizedRecord,
    weights: FieldWeights | None = None,
    rules: Iterable["LearnedRule"] = (),
    *,
    exact_identifier_floor: float = DEFAULT_EXACT_IDENTIFIER_FLOOR,
) -> PairScore:
    """Score a single candidate pair.

    Parameters
    ----------
    record_a : NormalizedRecord
        First record.
    record_b : NormalizedRecord
        Second record.
    weights : FieldWeights | None, optional
        Field weights; defaults when None.
    rules : Iterable[LearnedRule], optional
        Participating learned rules. Disabled rules never fire.
    exact_identifier_floor : float, optional
        Minimum total when identifiers are equal, by default 0.99.
        0 disables the floor.

    Returns
    -------
    PairScore
        Total, breakdown, reasons and matched rule ids. The pair is ordered
        so ``rid_a <= rid_b``, which makes the result independent of
        argument order.
    """
    if weights is None:
        weights = FieldWeights()

    if record_b.rid < record_a.rid:
        record_a, record_b = record_b, record_a

    breakdown: dict[str, float] = {}
    total = 0.0
    for config in FIELD_CONFIGS:
        similarity = round(config.compare(record_a, record_b), SCORE_PRECISION)
        breakdown[config.name] = similarity
        total += weights.get(config.name) * similarity

    if exact_identifier_floor > 0 and breakdown["identifier"] == 1.0:
        total = max(total, exact_identifier_floor)

    total = round(min(max(total, 0.0), 1.0), SCORE_PRECISION)

    matched_rules = tuple(
        sorted(rule.rule_id for rule in rules if rule.enabled and rule.matches(breakdown))
    )

    return PairScore(
        rid_a=record_a.rid,
        rid_b=record_b.rid,
        total=total,
        breakdown=breakdown,
        reasons=_structural_reasons(record_a, record_b, breakdown),
        matched_rules=matched_rules,
    )
