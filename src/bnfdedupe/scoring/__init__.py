"""Pairwise similarity scoring for beneficiary records.

Field comparators produce bounded similarities, the scorer combines them
with configurable weights and reports a per-field breakdown.
"""

from bnfdedupe.scoring.comparators import (
    FIELD_CONFIGS,
    jaro_winkler,
    name_order_free_score,
    token_jaccard,
)
from bnfdedupe.scoring.models import FIELD_NAMES, FieldWeights, MatchReason, PairScore
from bnfdedupe.scoring.scorer import score_pair

__all__ = [
    "FIELD_CONFIGS",
    "FIELD_NAMES",
    "FieldWeights",
    "MatchReason",
    "PairScore",
    "jaro_winkler",
    "name_order_free_score",
    "score_pair",
    "token_jaccard",
]
