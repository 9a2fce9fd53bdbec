"""Data models for clustering."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from bnfdedupe.decision.models import ClusterConfidence, Decision
from bnfdedupe.scoring.models import PairScore
from bnfdedupe.utils import short_digest

__all__ = ["Cluster", "ClusteringConfig", "compute_cluster_id"]


@dataclass(frozen=True)
class ClusteringConfig:
    """Thresholds used while building clusters.

    Attributes
    ----------
    min_pair_score : float
        Minimum pair total for a pair to become an edge, by default 0.62.
    min_internal_score : float
        Spanning edges below this are cut during refinement, by default 0.65.
    refine_min_size : int
        Components at least this large are refined, by default 3.
    """

    min_pair_score: float = 0.62
    min_internal_score: float = 0.65
    refine_min_size: int = 3


@dataclass(frozen=True)
class Cluster:
    """Group of records believed to describe one beneficiary.

    Built by the cluster builder; never constructed by hand.

    Attributes
    ----------
    cluster_id : str
        Deterministic identifier derived from the member rids.
    rids : tuple[str, ...]
        Record IDs in cluster (sorted).
    pair_scores : tuple[PairScore, ...]
        Retained pairs with both endpoints in the cluster, in descending
        score order.
    confidence : ClusterConfidence
        Confidence percentage and decision.
    """

    cluster_id: str
    rids: tuple[str, ...]
    pair_scores: tuple[PairScore, ...]
    confidence: ClusterConfidence

    @property
    def size(self) -> int:
        return len(self.rids)

    @property
    def confidence_percent(self) -> int:
        return self.confidence.confidence_percent

    @property
    def decision(self) -> Decision:
        return self.confidence.decision

    @property
    def reasons(self) -> tuple[str, ...]:
        """Union of structural reasons across the cluster's pairs."""
        return tuple(sorted({r for p in self.pair_scores for r in p.reasons}))

    @property
    def matched_rules(self) -> tuple[str, ...]:
        return tuple(sorted({r for p in self.pair_scores for r in p.matched_rules}))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Returns
        -------
        dict[str, Any]
            Dictionary representation.
        """
        return {
            "cluster_id": self.cluster_id,
            "rids": list(self.rids),
            "size": self.size,
            **self.confidence.to_dict(),
            "reasons": list(self.reasons),
            "matched_rules": list(self.matched_rules),
            "pair_scores": [p.to_dict() for p in self.pair_scores],
        }


def compute_cluster_id(rids: Sequence[str]) -> str:
    """Compute deterministic cluster ID from RIDs.

    Parameters
    ----------
    rids : Sequence[str]
        Record IDs in cluster.

    Returns
    -------
    str
        Cluster ID in format "c:{sha256_prefix}".
    """
    return f"c:{short_digest(sorted(rids))}"
