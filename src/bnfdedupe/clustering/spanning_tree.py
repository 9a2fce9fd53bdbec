"""Maximum spanning tree refinement of preliminary clusters.

Transitive closure over kept pairs lets a few strong links drag a chain of
weakly related records into one component. Refinement keeps only the
strongest skeleton of a component and cuts its weak links.
"""

from collections.abc import Iterable, Sequence

from bnfdedupe.clustering.union_find import UnionFind
from bnfdedupe.scoring.models import PairScore

__all__ = ["maximum_spanning_forest", "refine_component"]


def maximum_spanning_forest(
    rids: Iterable[str],
    edges: Iterable[PairScore],
) -> list[PairScore]:
    """Kruskal's algorithm in descending score order.

    Parameters
    ----------
    rids : Iterable[str]
        Vertices.
    edges : Iterable[PairScore]
        Candidate edges; edges touching unknown vertices are ignored.

    Returns
    -------
    list[PairScore]
        Spanning edges in the order they were accepted. Ties on score are
        broken by rid pair, so the forest is deterministic.
    """
    uf = UnionFind(rids)
    tree: list[PairScore] = []
    for edge in sorted(edges, key=PairScore.sort_key):
        if edge.rid_a not in uf or edge.rid_b not in uf:
            continue
        if uf.connected(edge.rid_a, edge.rid_b):
            continue
        uf.union(edge.rid_a, edge.rid_b)
        tree.append(edge)
    return tree


def refine_component(
    rids: Sequence[str],
    edges: Iterable[PairScore],
    min_internal_score: float,
) -> list[list[str]]:
    """Split a component at spanning edges scoring below ``min_internal_score``.

    Parameters
    ----------
    rids : Sequence[str]
        Members of the preliminary cluster.
    edges : Iterable[PairScore]
        Kept edges internal to the component.
    min_internal_score : float
        Spanning edges below this total are cut, unless a learned rule
        matched the pair.

    Returns
    -------
    list[list[str]]
        Sub-components with at least two members, members sorted, ordered
        by first member. Each is a subset of ``rids``.
    """
    tree = maximum_spanning_forest(rids, edges)

    uf = UnionFind(rids)
    for edge in tree:
        if edge.total >= min_internal_score or edge.matched_rules:
            uf.union(edge.rid_a, edge.rid_b)

    return uf.get_components(min_size=2)
