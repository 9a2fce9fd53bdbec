"""Tests for union-find, spanning-tree refinement and cluster building."""

from collections.abc import Callable

import pytest

from bnfdedupe.candidates import Block
from bnfdedupe.clustering import (
    BlockOutcome,
    ClusteringConfig,
    ScoringSettings,
    build_clusters,
    maximum_spanning_forest,
    refine_component,
    score_block,
)
from bnfdedupe.clustering.models import compute_cluster_id
from bnfdedupe.clustering.union_find import UnionFind
from bnfdedupe.decision import Decision
from bnfdedupe.models import NormalizedRecord
from bnfdedupe.scoring import PairScore

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _edge(rid_a: str, rid_b: str, total: float, *, rules: tuple[str, ...] = ()) -> PairScore:
    """Build a synthetic kept pair."""
    return PairScore(rid_a=rid_a, rid_b=rid_b, total=total, breakdown={}, matched_rules=rules)


def _chain() -> list[PairScore]:
    """Five records linked 0.95 / 0.95 / 0.40 / 0.95."""
    return [
        _edge("1", "2", 0.95),
        _edge("2", "3", 0.95),
        _edge("3", "4", 0.40),
        _edge("4", "5", 0.95),
    ]


def _outcome(edges: list[PairScore]) -> BlockOutcome:
    """Wrap synthetic edges as one block outcome."""
    uf = UnionFind()
    for e in edges:
        uf.union(e.rid_a, e.rid_b)
    components = tuple(tuple(c) for c in uf.get_components(min_size=2))
    return BlockOutcome(block_id="k#0", edges=tuple(edges), components=components, pairs_scored=len(edges))


# ---------------------------------------------------------------------------
# Union-Find
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_union_find_basic() -> None:
    """Test basic Union-Find operations."""
    uf = UnionFind()

    uf.union("a", "b")
    uf.union("b", "c")

    assert uf.find("a") == uf.find("b") == uf.find("c")

    uf.union("d", "e")
    assert uf.connected("d", "e")
    assert not uf.connected("d", "a")


@pytest.mark.unit
def test_union_find_components() -> None:
    """Test getting connected components."""
    uf = UnionFind(["z"])

    uf.union("a", "b")
    uf.union("b", "c")
    uf.union("d", "e")

    assert uf.get_components() == [["a", "b", "c"], ["d", "e"], ["z"]]
    assert uf.get_components(min_size=2) == [["a", "b", "c"], ["d", "e"]]
    assert sorted(uf.component("c")) == ["a", "b", "c"]


@pytest.mark.unit
def test_union_find_deep_chain_without_recursion() -> None:
    """Test a long chain does not hit the recursion limit."""
    n = 50_000
    uf = UnionFind(str(i) for i in range(n))
    # Worst-case parent chain, built by hand
    for i in range(n - 1):
        uf.parent[str(i)] = str(i + 1)

    assert uf.find("0") == str(n - 1)
    assert uf.parent["0"] == str(n - 1)


@pytest.mark.unit
def test_union_find_tie_goes_to_smaller_root() -> None:
    """Test equal-size merges keep the lexicographically smaller root."""
    uf = UnionFind()

    assert uf.union("b", "a") == "a"
    assert uf.union("d", "c") == "c"
    assert uf.union("c", "a") == "a"
    assert len(uf) == 4
    assert "d" in uf


# ---------------------------------------------------------------------------
# Spanning-tree refinement
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_maximum_spanning_forest_prefers_strong_edges() -> None:
    """Test Kruskal keeps the strongest acyclic edges."""
    edges = [_edge("a", "b", 0.9), _edge("b", "c", 0.8), _edge("a", "c", 0.7)]

    tree = maximum_spanning_forest(["a", "b", "c"], edges)

    assert [e.pair_id for e in tree] == ["a|b", "b|c"]


@pytest.mark.unit
def test_maximum_spanning_forest_tie_break() -> None:
    """Test equal scores are ordered by rid pair."""
    edges = [_edge("b", "c", 0.8), _edge("a", "c", 0.8), _edge("a", "b", 0.8)]

    tree = maximum_spanning_forest(["a", "b", "c"], edges)

    assert [e.pair_id for e in tree] == ["a|b", "a|c"]


@pytest.mark.unit
def test_refine_splits_chain() -> None:
    """Test a weak link splits a transitively closed chain."""
    groups = refine_component(["1", "2", "3", "4", "5"], _chain(), min_internal_score=0.65)

    assert groups == [["1", "2", "3"], ["4", "5"]]


@pytest.mark.unit
def test_refine_keeps_rule_matched_weak_edge() -> None:
    """Test an edge matched by a learned rule is never cut."""
    edges = _chain()
    edges[2] = _edge("3", "4", 0.40, rules=("lr:abc",))

    groups = refine_component(["1", "2", "3", "4", "5"], edges, min_internal_score=0.65)

    assert groups == [["1", "2", "3", "4", "5"]]


@pytest.mark.unit
def test_refine_drops_isolated_members() -> None:
    """Test members left alone after cutting are not returned."""
    edges = [_edge("a", "b", 0.9), _edge("b", "c", 0.5)]

    assert refine_component(["a", "b", "c"], edges, 0.65) == [["a", "b"]]


# ---------------------------------------------------------------------------
# Cluster ID
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_cluster_id_is_order_independent() -> None:
    """Test cluster ids depend only on membership."""
    assert compute_cluster_id(["b", "a"]) == compute_cluster_id(["a", "b"])
    assert compute_cluster_id(["a", "b"]).startswith("c:")
    assert compute_cluster_id(["a", "b"]) != compute_cluster_id(["a", "c"])


# ---------------------------------------------------------------------------
# score_block / build_clusters
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_score_block_links_matching_pairs(
    household: dict, make_normalized: Callable[..., NormalizedRecord]
) -> None:
    """Test a block keeps matching pairs and forms local components."""
    block = Block(
        key="فاط",
        chunk=0,
        records=(
            make_normalized("a", **household),
            make_normalized("b", **household),
            make_normalized("c", primary_name="فاطمة حسن"),
        ),
    )

    outcome = score_block(block, ScoringSettings())

    assert outcome.block_id == "فاط#0"
    assert outcome.pairs_scored == 3
    assert [e.pair_id for e in outcome.edges] == ["a|b"]
    assert outcome.components == (("a", "b"),)


@pytest.mark.unit
def test_build_clusters_chain_scenario() -> None:
    """Test the refined builder splits a weakly linked chain in two."""
    config = ClusteringConfig(min_pair_score=0.3, min_internal_score=0.65)

    clusters = build_clusters([_outcome(_chain())], config)

    memberships = sorted(c.rids for c in clusters)
    assert memberships == [("1", "2", "3"), ("4", "5")]
    for cluster in clusters:
        assert all(p.rid_a in cluster.rids and p.rid_b in cluster.rids for p in cluster.pair_scores)
        assert cluster.decision == Decision.CONFIRMED


@pytest.mark.unit
def test_build_clusters_small_components_skip_refinement() -> None:
    """Test two-member components are kept as they are."""
    clusters = build_clusters([_outcome([_edge("a", "b", 0.63)])])

    assert len(clusters) == 1
    assert clusters[0].rids == ("a", "b")
    assert clusters[0].confidence_percent == 63
    assert clusters[0].decision == Decision.SUSPECTED


@pytest.mark.unit
def test_build_clusters_merges_across_blocks() -> None:
    """Test components sharing a record in different outcomes are merged."""
    first = _outcome([_edge("a", "b", 0.9)])
    second = _outcome([_edge("b", "c", 0.9)])

    clusters = build_clusters([first, second])

    assert [c.rids for c in clusters] == [("a", "b", "c")]
    assert [p.pair_id for p in clusters[0].pair_scores] == ["a|b", "b|c"]


@pytest.mark.unit
def test_build_clusters_sorted_and_serializable() -> None:
    """Test output order and dict form."""
    clusters = build_clusters([_outcome(_chain())], ClusteringConfig(min_internal_score=0.65))

    assert [c.cluster_id for c in clusters] == sorted(c.cluster_id for c in clusters)
    data = clusters[0].to_dict()
    assert data["size"] == len(data["rids"])
    assert data["decision"] in {d.value for d in Decision}
    assert "confidence_percent" in data
