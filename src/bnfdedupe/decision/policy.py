"""Cluster confidence classification.

Aggregates a cluster's retained pairwise scores into one confidence
percentage and maps it to a decision label.
"""

import math
from collections.abc import Sequence

from bnfdedupe.decision.models import ClusterConfidence, ConfidenceConfig, Decision
from bnfdedupe.scoring.models import PairScore

__all__ = ["classify"]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def classify(
    pair_scores: Sequence[PairScore],
    config: ConfidenceConfig | None = None,
) -> ClusterConfidence:
    """Classify a cluster from its retained internal pair scores.

    Parameters
    ----------
    pair_scores : Sequence[PairScore]
        Kept pairs whose endpoints are both in the cluster.
    config : ConfidenceConfig | None, optional
        Thresholds and bonuses; defaults when None.

    Returns
    -------
    ClusterConfidence
        Confidence percentage and decision.

    Notes
    -----
    confidence = round(mean(total) * 100), plus each configured bonus once
    for every distinct reason found among the pairs, clamped to [0, 100].
    A cluster without pairs is ``Decision.NOT_DUPLICATE`` at 0.
    """
    if config is None:
        config = ConfidenceConfig()

    if not pair_scores:
        return ClusterConfidence(confidence_percent=0, decision=Decision.NOT_DUPLICATE)

    mean_score = sum(p.total for p in pair_scores) / len(pair_scores)

    present = {reason for p in pair_scores for reason in p.reasons}
    applied = tuple(sorted(r for r in present if r in config.reason_bonuses))
    bonus = sum(config.reason_bonuses[r] for r in applied)

    confidence = min(max(_round_half_up(mean_score * 100) + bonus, 0), 100)

    return ClusterConfidence(
        confidence_percent=confidence,
        decision=config.decide(confidence),
        applied_bonuses=applied,
        mean_score=round(mean_score, 6),
    )
