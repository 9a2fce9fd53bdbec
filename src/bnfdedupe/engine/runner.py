"""End-to-end duplicate resolution runner.

Chains the engine stages into one deterministic run:

    normalize   raw rows to records with normalized derivatives
    blocking    records to bounded, disjoint blocks
    scoring     every pair inside a block, block-local union-find
    clustering  merge of block results, spanning-tree refinement
    confidence  cluster classification

Blocks are scored inline or in a process pool; results are always merged
in block order, so the output does not depend on the pool size. A run can
be cancelled between blocks and then returns no partial clusters.
"""

import time
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import Future, ProcessPoolExecutor
from typing import Any, Protocol

from bnfdedupe.candidates.blockers import Block, BlockerStats, PrefixBlocker, build_blocks
from bnfdedupe.clustering.cluster_builder import BlockOutcome, ScoringSettings, build_clusters, score_block
from bnfdedupe.clustering.models import Cluster
from bnfdedupe.decision.models import Decision
from bnfdedupe.engine.config import EngineConfig, ResolutionResult
from bnfdedupe.models import NormalizedRecord, Record, load_records
from bnfdedupe.normalize import normalize_record
from bnfdedupe.runlog import RunLogger

__all__ = ["CancelToken", "ProgressCallback", "resolve_duplicates"]

ProgressCallback = Callable[[int], None]


class CancelToken(Protocol):
    """Anything with ``is_set()``, e.g. ``threading.Event``."""

    def is_set(self) -> bool: ...


class _RunCancelled(Exception):
    """Internal control signal; never escapes ``resolve_duplicates``."""


class _Progress:
    """Report integer percentages, only when they increase."""

    def __init__(self, total: int, callback: ProgressCallback | None) -> None:
        self.total = max(total, 1)
        self.callback = callback
        self.done = 0
        self.last = -1

    def advance(self, amount: int = 1) -> None:
        self.done += amount
        if self.callback is None:
            return
        percent = min(100, self.done * 100 // self.total)
        if percent > self.last:
            self.last = percent
            self.callback(percent)


def _check_cancel(cancel: CancelToken | None) -> None:
    if cancel is not None and cancel.is_set():
        raise _RunCancelled


# ---------------------------------------------------------------------------
# Individual stage functions
# ---------------------------------------------------------------------------


def _stage_normalize(
    rows: Iterable[Record | Mapping[str, Any]],
    logger: RunLogger | None,
) -> list[NormalizedRecord]:
    """Normalize rows, keeping the first record of every rid."""
    start = time.perf_counter()
    records = load_records(rows)

    if logger:
        logger.stage_started("normalize", expected_records=len(records))

    seen: set[str] = set()
    normalized: list[NormalizedRecord] = []
    duplicates = 0
    for record in records:
        if record.rid in seen:
            duplicates += 1
            if logger:
                logger.duplicate_rid_skipped(record.rid)
            continue
        seen.add(record.rid)
        normalized.append(normalize_record(record))

    if logger:
        logger.stage_finished(
            "normalize",
            time.perf_counter() - start,
            counters={"records_in": len(records), "records_out": len(normalized), "duplicate_rids": duplicates},
        )

    return normalized


def _stage_blocking(
    records: list[NormalizedRecord],
    config: EngineConfig,
    logger: RunLogger | None,
) -> tuple[list[Block], BlockerStats]:
    """Partition records into scoring blocks."""
    start = time.perf_counter()
    blocker = PrefixBlocker(config.block_prefix_len)

    if logger:
        logger.stage_started("blocking", expected_records=len(records))

    stats = BlockerStats()
    blocks = build_blocks(records, blocker, chunk_size=config.block_chunk_size, stats=stats)

    if logger:
        if stats.oversized_keys:
            logger.blocks_split(stats.oversized_keys, config.block_chunk_size)
        logger.stage_finished("blocking", time.perf_counter() - start, counters=stats.to_dict())

    return blocks, stats


def _score_inline(
    blocks: list[Block],
    settings: ScoringSettings,
    cancel: CancelToken | None,
    progress: _Progress,
) -> list[BlockOutcome]:
    outcomes: list[BlockOutcome] = []
    for block in blocks:
        _check_cancel(cancel)
        outcomes.append(score_block(block, settings))
        progress.advance()
    return outcomes


def _score_pooled(
    blocks: list[Block],
    settings: ScoringSettings,
    max_workers: int,
    cancel: CancelToken | None,
    progress: _Progress,
) -> list[BlockOutcome]:
    executor = ProcessPoolExecutor(max_workers=max_workers)
    outcomes: list[BlockOutcome] = []
    try:
        futures: list[Future[BlockOutcome]] = []
        for block in blocks:
            _check_cancel(cancel)
            futures.append(executor.submit(score_block, block, settings))

        # Collect in submission order; the merge depends on it
        for future in futures:
            _check_cancel(cancel)
            outcomes.append(future.result())
            progress.advance()
    finally:
        executor.shutdown(wait=True, cancel_futures=len(outcomes) < len(blocks))
    return outcomes


def _stage_scoring(
    blocks: list[Block],
    config: EngineConfig,
    logger: RunLogger | None,
    cancel: CancelToken | None,
    progress: _Progress,
) -> list[BlockOutcome]:
    """Score every block, inline or in a process pool."""
    start = time.perf_counter()
    settings = config.scoring_settings()

    if logger:
        logger.stage_started("scoring")
        logger.event(
            "scoring_plan",
            data={
                "blocks": len(blocks),
                "max_workers": config.max_workers,
                "learned_rules": [rule.rule_id for rule in settings.rules],
            },
        )

    if config.max_workers > 1 and len(blocks) > 1:
        outcomes = _score_pooled(blocks, settings, config.max_workers, cancel, progress)
    else:
        outcomes = _score_inline(blocks, settings, cancel, progress)

    if logger:
        logger.stage_finished(
            "scoring",
            time.perf_counter() - start,
            counters={
                "blocks": len(outcomes),
                "pairs_scored": sum(o.pairs_scored for o in outcomes),
                "pairs_kept": sum(len(o.edges) for o in outcomes),
                "rule_matches": sum(1 for o in outcomes for e in o.edges if e.matched_rules),
            },
        )

    return outcomes


def _stage_clustering(
    outcomes: list[BlockOutcome],
    config: EngineConfig,
    logger: RunLogger | None,
) -> list[Cluster]:
    """Merge block results into refined, classified clusters."""
    start = time.perf_counter()

    if logger:
        logger.stage_started("clustering")

    clusters = build_clusters(outcomes, config.clustering_config(), config.confidence)

    if logger:
        logger.stage_finished(
            "clustering",
            time.perf_counter() - start,
            counters={
                "clusters": len(clusters),
                "records_clustered": sum(c.size for c in clusters),
                "max_cluster_size": max((c.size for c in clusters), default=0),
            },
        )

    return clusters


def _stage_confidence(clusters: list[Cluster], logger: RunLogger | None) -> dict[str, int]:
    """Summarize cluster decisions."""
    counts = {str(decision): 0 for decision in Decision}
    for cluster in clusters:
        counts[str(cluster.decision)] += 1

    if logger:
        logger.stage_started("confidence", expected_records=len(clusters))
        logger.stage_finished("confidence", 0.0, counters=counts)

    return counts


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def _log_fallbacks(config: EngineConfig, logger: RunLogger) -> None:
    for name in config.fallbacks:
        logger.config_fallback(name, config.rejected.get(name), config.default_for(name))


def resolve_duplicates(
    records: Iterable[Record | Mapping[str, Any]],
    config: EngineConfig | None = None,
    *,
    logger: RunLogger | None = None,
    cancel: CancelToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> ResolutionResult:
    """Group records that describe the same beneficiary.

    Parameters
    ----------
    records : Iterable[Record | Mapping[str, Any]]
        Records or raw rows. Rows without a rid get ``row_<index>``; later
        rows repeating a rid are skipped.
    config : EngineConfig | None, optional
        Engine configuration; defaults when None.
    logger : RunLogger | None, optional
        Run logger. If None, no logging.
    cancel : CancelToken | None, optional
        Checked between blocks; once set, the run stops.
    on_progress : ProgressCallback | None, optional
        Called with the integer percentage of blocks scored, only when it
        increases. Advisory only.

    Returns
    -------
    ResolutionResult
        Clusters and unclustered rids, or ``cancelled=True`` with neither.

    Raises
    ------
    Exception
        Unexpected failures are logged and re-raised; data defects never
        raise.

    Examples
    --------
    >>> result = resolve_duplicates([{"rid": "a", "primary_name": "x"}])
    >>> result.unclustered
    ['a']
    """
    if config is None:
        config = EngineConfig()

    start = time.perf_counter()

    if logger:
        logger.run_started("resolve_duplicates", config.to_dict())
        _log_fallbacks(config, logger)

    normalized: list[NormalizedRecord] = []
    try:
        normalized = _stage_normalize(records, logger)
        blocks, blocker_stats = _stage_blocking(normalized, config, logger)

        progress = _Progress(len(blocks), on_progress)
        outcomes = _stage_scoring(blocks, config, logger, cancel, progress)

        _check_cancel(cancel)
        clusters = _stage_clustering(outcomes, config, logger)
        decisions = _stage_confidence(clusters, logger)

    except _RunCancelled:
        if logger:
            logger.run_cancelled()
            logger.run_finished("cancelled", time.perf_counter() - start, len(normalized))
        return ResolutionResult(cancelled=True)

    except Exception as e:
        if logger:
            logger.error(e)
            logger.run_finished("failed", time.perf_counter() - start, len(normalized))
        raise

    clustered = {rid for cluster in clusters for rid in cluster.rids}
    unclustered = sorted(r.rid for r in normalized if r.rid not in clustered)

    stats: dict[str, Any] = {
        "records": len(normalized),
        "blocking": blocker_stats.to_dict(),
        "pairs_scored": sum(o.pairs_scored for o in outcomes),
        "pairs_kept": sum(len(o.edges) for o in outcomes),
        "clusters": len(clusters),
        "unclustered": len(unclustered),
        "decisions": decisions,
    }

    if logger:
        logger.run_finished("success", time.perf_counter() - start, len(normalized))

    return ResolutionResult(clusters=clusters, unclustered=unclustered, stats=stats)
