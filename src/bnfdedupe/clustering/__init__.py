"""Clustering of matched record pairs.

Matched pairs are merged into connected components with a union-find;
large components are refined with a maximum spanning tree so weak links
cannot chain unrelated records together.
"""

from bnfdedupe.clustering.cluster_builder import (
    BlockOutcome,
    ScoringSettings,
    build_clusters,
    score_block,
)
from bnfdedupe.clustering.models import Cluster, ClusteringConfig, compute_cluster_id
from bnfdedupe.clustering.spanning_tree import maximum_spanning_forest, refine_component
from bnfdedupe.clustering.union_find import UnionFind

__all__ = [
    "BlockOutcome",
    "Cluster",
    "ClusteringConfig",
    "ScoringSettings",
    "UnionFind",
    "build_clusters",
    "compute_cluster_id",
    "maximum_spanning_forest",
    "refine_component",
    "score_block",
]
