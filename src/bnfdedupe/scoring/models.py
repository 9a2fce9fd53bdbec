"""Data models for pairwise scoring.

Defines field weights, structural match reasons and the explainable pair
score produced by the scorer.
"""

from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import Any

from bnfdedupe.utils import is_valid_number

__all__ = ["FIELD_NAMES", "FieldWeights", "MatchReason", "PairScore"]

# Ordered for deterministic iteration and summation
FIELD_NAMES: tuple[str, ...] = (
    "primary_name",
    "secondary_name",
    "dependents",
    "identifier",
    "phone",
    "location",
)


class MatchReason(StrEnum):
    """Structural reasons attached to a scored pair.

    Reasons never change the pair total. They feed confidence bonuses and
    tell a reviewer why two records look alike.
    """

    EXACT_IDENTIFIER = "EXACT_IDENTIFIER"
    TOKEN_REORDER = "TOKEN_REORDER"
    PRIMARY_LINEAGE = "PRIMARY_LINEAGE"
    SECONDARY_LINEAGE = "SECONDARY_LINEAGE"
    SHARED_HOUSEHOLD = "SHARED_HOUSEHOLD"
    DEPENDENTS_MATCH = "DEPENDENTS_MATCH"


@dataclass(frozen=True)
class FieldWeights:
    """Per-field weights for the combined pair score.

    Invalid values (negative, non-numeric, non-finite) are replaced by the
    field default at construction; their names are kept in ``fallbacks``.
    Weights need not sum to 1, the total is clamped instead.

    Attributes
    ----------
    primary_name : float
        Weight of the primary name score, by default 0.45.
    secondary_name : float
        Weight of the secondary name score, by default 0.25.
    dependents : float
        Weight of the dependents score, by default 0.10.
    identifier : float
        Weight of the identifier score, by default 0.10.
    phone : float
        Weight of the phone score, by default 0.05.
    location : float
        Weight of the location score, by default 0.05.
    fallbacks : tuple[str, ...]
        Fields whose supplied value was rejected.
    """

    primary_name: float = 0.45
    secondary_name: float = 0.25
    dependents: float = 0.10
    identifier: float = 0.10
    phone: float = 0.05
    location: float = 0.05
    fallbacks: tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        """Replace invalid weights with their defaults."""
        rejected: list[str] = list(self.fallbacks)
        for f in fields(self):
            if f.name == "fallbacks":
                continue
            value = getattr(self, f.name)
            if not is_valid_number(value):
                object.__setattr__(self, f.name, f.default)
                rejected.append(f.name)
            else:
                object.__setattr__(self, f.name, float(value))
        object.__setattr__(self, "fallbacks", tuple(rejected))

    @staticmethod
    def from_dict(data: dict[str, Any] | None) -> "FieldWeights":
        """Build weights from a partial mapping; unknown keys are ignored.

        Parameters
        ----------
        data : dict[str, Any] | None
            Field name to weight.

        Returns
        -------
        FieldWeights
            Weights with defaults for missing or invalid entries.
        """
        if not isinstance(data, dict):
            return FieldWeights()
        return FieldWeights(**{name: data[name] for name in FIELD_NAMES if name in data})

    def get(self, field_name: str) -> float:
        return float(getattr(self, field_name))

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {name: self.get(name) for name in FIELD_NAMES}


@dataclass(frozen=True, slots=True)
class PairScore:
    """Pairwise similarity with explainability.

    Attributes
    ----------
    rid_a : str
        First record ID (lexicographically smaller).
    rid_b : str
        Second record ID (lexicographically larger).
    total : float
        Weighted, clamped score in [0, 1].
    breakdown : dict[str, float]
        Per-field similarity in [0, 1], keyed by ``FIELD_NAMES``.
    reasons : tuple[str, ...]
        Structural ``MatchReason`` values, sorted.
    matched_rules : tuple[str, ...]
        Ids of enabled learned rules whose conditions hold, sorted.
    """

    rid_a: str
    rid_b: str
    total: float
    breakdown: dict[str, float]
    reasons: tuple[str, ...] = ()
    matched_rules: tuple[str, ...] = ()

    @property
    def pair_id(self) -> str:
        return f"{self.rid_a}|{self.rid_b}"

    def is_match(self, min_pair_score: float) -> bool:
        """Check whether the pair is kept as a cluster edge.

        A learned rule match is OR-ed with the baseline threshold.

        Parameters
        ----------
        min_pair_score : float
            Baseline threshold on ``total``.

        Returns
        -------
        bool
            True if the pair should be linked.
        """
        return self.total >= min_pair_score or bool(self.matched_rules)

    def sort_key(self) -> tuple[float, str, str]:
        """Key ordering pairs by descending total, then by rid pair."""
        return (-self.total, self.rid_a, self.rid_b)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pair_id": self.pair_id,
            "rid_a": self.rid_a,
            "rid_b": self.rid_b,
            "total": self.total,
            "breakdown": dict(self.breakdown),
            "reasons": list(self.reasons),
            "matched_rules": list(self.matched_rules),
        }
