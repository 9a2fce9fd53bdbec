"""Data models for cluster confidence classification."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from bnfdedupe.scoring.models import MatchReason
from bnfdedupe.utils import is_valid_number

__all__ = [
    "DEFAULT_REASON_BONUSES",
    "ClusterConfidence",
    "ConfidenceConfig",
    "Decision",
]

DEFAULT_REASON_BONUSES: dict[str, int] = {
    MatchReason.SECONDARY_LINEAGE.value: 5,
    MatchReason.TOKEN_REORDER.value: 5,
}


class Decision(StrEnum):
    """Decision label attached to a cluster.

    Attributes
    ----------
    CONFIRMED : str
        Confidence at or above the confirmed threshold.
    STRONG_SUSPECTED : str
        Confidence at or above the strong suspected threshold.
    SUSPECTED : str
        Confidence at or above the suspected threshold.
    NOT_DUPLICATE : str
        Anything lower.
    """

    CONFIRMED = "confirmed_duplicate"
    STRONG_SUSPECTED = "strong_suspected_duplicate"
    SUSPECTED = "suspected_duplicate"
    NOT_DUPLICATE = "not_duplicate"


@dataclass(frozen=True)
class ConfidenceConfig:
    """Thresholds and bonuses for confidence classification.

    Invalid entries fall back to defaults; their names are kept in
    ``fallbacks``. Thresholds must be in [0, 100] and descending.

    Attributes
    ----------
    confirmed_threshold : int
        Minimum confidence for ``Decision.CONFIRMED``, by default 90.
    strong_suspected_threshold : int
        Minimum confidence for ``Decision.STRONG_SUSPECTED``, by default 75.
    suspected_threshold : int
        Minimum confidence for ``Decision.SUSPECTED``, by default 60.
    reason_bonuses : dict[str, int]
        Points added once per distinct structural reason present among a
        cluster's pairs.
    fallbacks : tuple[str, ...]
        Fields whose supplied value was rejected.
    """

    confirmed_threshold: int = 90
    strong_suspected_threshold: int = 75
    suspected_threshold: int = 60
    reason_bonuses: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_REASON_BONUSES))
    fallbacks: tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        """Replace invalid thresholds and bonuses with their defaults."""
        rejected = list(self.fallbacks)
        defaults = {
            "confirmed_threshold": 90,
            "strong_suspected_threshold": 75,
            "suspected_threshold": 60,
        }
        for name, default in defaults.items():
            if not is_valid_number(getattr(self, name), low=0, high=100):
                object.__setattr__(self, name, default)
                rejected.append(name)

        if not (
            self.confirmed_threshold >= self.strong_suspected_threshold >= self.suspected_threshold
        ):
            for name, default in defaults.items():
                object.__setattr__(self, name, default)
            rejected.append("thresholds_order")

        if isinstance(self.reason_bonuses, dict) and all(
            is_valid_number(v, low=0, high=100) for v in self.reason_bonuses.values()
        ):
            bonuses = {str(k): int(v) for k, v in self.reason_bonuses.items()}
        else:
            bonuses = dict(DEFAULT_REASON_BONUSES)
            rejected.append("reason_bonuses")
        object.__setattr__(self, "reason_bonuses", bonuses)
        object.__setattr__(self, "fallbacks", tuple(rejected))

    def decide(self, confidence_percent: int) -> Decision:
        """Map a confidence percentage to its decision label."""
        if confidence_percent >= self.confirmed_threshold:
            return Decision.CONFIRMED
        if confidence_percent >= self.strong_suspected_threshold:
            return Decision.STRONG_SUSPECTED
        if confidence_percent >= self.suspected_threshold:
            return Decision.SUSPECTED
        return Decision.NOT_DUPLICATE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "confirmed_threshold": self.confirmed_threshold,
            "strong_suspected_threshold": self.strong_suspected_threshold,
            "suspected_threshold": self.suspected_threshold,
            "reason_bonuses": dict(self.reason_bonuses),
        }

    @staticmethod
    def from_dict(data: dict[str, Any] | None) -> "ConfidenceConfig":
        """Build from a partial mapping; unknown keys are ignored."""
        if not isinstance(data, dict):
            return ConfidenceConfig()
        known = ("confirmed_threshold", "strong_suspected_threshold", "suspected_threshold", "reason_bonuses")
        return ConfidenceConfig(**{k: data[k] for k in known if k in data})


@dataclass(frozen=True)
class ClusterConfidence:
    """Classification of one cluster.

    Attributes
    ----------
    confidence_percent : int
        Confidence in [0, 100].
    decision : Decision
        Decision label.
    applied_bonuses : tuple[str, ...]
        Reasons whose bonus was added, sorted.
    mean_score : float
        Average retained pair total before bonuses.
    """

    confidence_percent: int
    decision: Decision
    applied_bonuses: tuple[str, ...] = ()
    mean_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "confidence_percent": self.confidence_percent,
            "decision": self.decision.value,
            "applied_bonuses": list(self.applied_bonuses),
            "mean_score": self.mean_score,
        }
