"""Candidate blocking for pairwise scoring.

Partitions records by a cheap key so only pairs inside a block are scored.
"""

from bnfdedupe.candidates.blockers import (
    DEFAULT_BLOCK_CHUNK_SIZE,
    Block,
    Blocker,
    BlockerStats,
    PrefixBlocker,
    build_blocks,
)

__all__ = [
    "DEFAULT_BLOCK_CHUNK_SIZE",
    "Block",
    "Blocker",
    "BlockerStats",
    "PrefixBlocker",
    "build_blocks",
]
