"""Build clusters from blocked records.

Two phases:

1. ``score_block`` runs once per block, possibly in a worker process. It
   scores every unordered pair, keeps the matching ones and groups them with
   a block-local union-find. It touches no shared state.
2. ``build_clusters`` runs after every block has finished. It replays the
   block-local components into a global union-find keyed by rid, refines
   large components with a maximum spanning tree and classifies each
   resulting cluster.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from itertools import combinations

from bnfdedupe.candidates.blockers import Block
from bnfdedupe.clustering.models import Cluster, ClusteringConfig, compute_cluster_id
from bnfdedupe.clustering.spanning_tree import refine_component
from bnfdedupe.clustering.union_find import UnionFind
from bnfdedupe.decision.models import ConfidenceConfig
from bnfdedupe.decision.policy import classify
from bnfdedupe.learning.models import LearnedRule
from bnfdedupe.scoring.models import FieldWeights, PairScore
from bnfdedupe.scoring.scorer import DEFAULT_EXACT_IDENTIFIER_FLOOR, score_pair

__all__ = ["BlockOutcome", "ScoringSettings", "build_clusters", "score_block"]


@dataclass(frozen=True)
class ScoringSettings:
    """Everything a block worker needs besides the block itself.

    Attributes
    ----------
    weights : FieldWeights
        Field weights.
    rules : tuple[LearnedRule, ...]
        Participating learned rules.
    min_pair_score : float
        Baseline threshold for keeping a pair.
    exact_identifier_floor : float
        Minimum total for pairs with equal identifiers.
    """

    weights: FieldWeights = field(default_factory=FieldWeights)
    rules: tuple[LearnedRule, ...] = ()
    min_pair_score: float = 0.62
    exact_identifier_floor: float = DEFAULT_EXACT_IDENTIFIER_FLOOR


@dataclass(frozen=True)
class BlockOutcome:
    """Result of scoring one block.

    Attributes
    ----------
    block_id : str
        Identifier of the scored block.
    edges : tuple[PairScore, ...]
        Kept pairs.
    components : tuple[tuple[str, ...], ...]
        Block-local connected components of two or more records.
    pairs_scored : int
        Pairs evaluated.
    """

    block_id: str
    edges: tuple[PairScore, ...]
    components: tuple[tuple[str, ...], ...]
    pairs_scored: int


def score_block(block: Block, settings: ScoringSettings) -> BlockOutcome:
    """Score all pairs of a block and link the matching ones.

    Module-level and free of shared state so it can run in a process pool.

    Parameters
    ----------
    block : Block
        Records sharing a blocking key.
    settings : ScoringSettings
        Scoring parameters.

    Returns
    -------
    BlockOutcome
        Kept edges and local components. A block with one record yields
        neither.
    """
    edges: list[PairScore] = []
    uf = UnionFind()
    pairs_scored = 0

    for record_a, record_b in combinations(block.records, 2):
        pairs_scored += 1
        pair = score_pair(
            record_a,
            record_b,
            settings.weights,
            settings.rules,
            exact_identifier_floor=settings.exact_identifier_floor,
        )
        if pair.is_match(settings.min_pair_score):
            edges.append(pair)
            uf.union(pair.rid_a, pair.rid_b)

    components = tuple(tuple(c) for c in uf.get_components(min_size=2))

    return BlockOutcome(
        block_id=block.block_id,
        edges=tuple(edges),
        components=components,
        pairs_scored=pairs_scored,
    )


def _merge_outcomes(outcomes: Iterable[BlockOutcome]) -> tuple[UnionFind, list[PairScore]]:
    """Replay block-local components into one global union-find.

    Rids are globally unique, so replay order does not change the result.
    """
    uf = UnionFind()
    edges: list[PairScore] = []
    for outcome in outcomes:
        edges.extend(outcome.edges)
        for component in outcome.components:
            head = component[0]
            for rid in component[1:]:
                uf.union(head, rid)
    return uf, edges


def _create_cluster(
    rids: list[str],
    edges: list[PairScore],
    confidence_config: ConfidenceConfig,
) -> Cluster:
    members = frozenset(rids)
    internal = sorted(
        (e for e in edges if e.rid_a in members and e.rid_b in members),
        key=PairScore.sort_key,
    )
    return Cluster(
        cluster_id=compute_cluster_id(rids),
        rids=tuple(sorted(rids)),
        pair_scores=tuple(internal),
        confidence=classify(internal, confidence_config),
    )


def build_clusters(
    outcomes: Iterable[BlockOutcome],
    config: ClusteringConfig | None = None,
    confidence_config: ConfidenceConfig | None = None,
) -> list[Cluster]:
    """Merge block outcomes into final clusters.

    Parameters
    ----------
    outcomes : Iterable[BlockOutcome]
        One outcome per block.
    config : ClusteringConfig | None, optional
        Clustering thresholds; defaults when None.
    confidence_config : ConfidenceConfig | None, optional
        Confidence thresholds and bonuses; defaults when None.

    Returns
    -------
    list[Cluster]
        Disjoint clusters of two or more records, sorted by cluster_id.
    """
    if config is None:
        config = ClusteringConfig()
    if confidence_config is None:
        confidence_config = ConfidenceConfig()

    uf, edges = _merge_outcomes(outcomes)

    root_edges: dict[str, list[PairScore]] = defaultdict(list)
    for edge in edges:
        root_edges[uf.find(edge.rid_a)].append(edge)

    clusters: list[Cluster] = []
    for component in uf.get_components(min_size=2):
        component_edges = root_edges.get(uf.find(component[0]), [])

        if len(component) >= config.refine_min_size:
            groups = refine_component(component, component_edges, config.min_internal_score)
        else:
            groups = [component]

        for group in groups:
            clusters.append(_create_cluster(group, component_edges, confidence_config))

    clusters.sort(key=lambda c: c.cluster_id)
    return clusters
