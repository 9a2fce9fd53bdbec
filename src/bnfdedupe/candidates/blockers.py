"""Blocking for candidate generation.

Records sharing a cheap key land in the same block and only pairs within a
block are ever scored. Blocking trades recall for speed: two records whose
keys differ are never compared, so the key derivation bounds the recall the
engine can reach.

Architecture
------------
* ``Blocker``: structural protocol (two attributes + one method).
* ``PrefixBlocker``: default key: leading characters of the first name token.
* ``build_blocks``: groups, orders and chunks records deterministically.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from typing import Protocol, runtime_checkable

from bnfdedupe.models import NormalizedRecord

__all__ = [
    "DEFAULT_BLOCK_CHUNK_SIZE",
    "DEFAULT_PREFIX_LEN",
    "Block",
    "Blocker",
    "BlockerStats",
    "PrefixBlocker",
    "build_blocks",
]


# ============================================================================
# Constants
# ============================================================================

DEFAULT_BLOCK_CHUNK_SIZE = 3000
DEFAULT_PREFIX_LEN = 3


# ============================================================================
# Statistics
# ============================================================================


@dataclass
class BlockerStats:
    """Counters collected while blocking.

    Attributes
    ----------
    records_seen : int
        Total records processed.
    records_unkeyed : int
        Records with no usable name token (grouped under the empty key).
    unique_keys : int
        Distinct blocking keys.
    chunks : int
        Work units emitted after chunking.
    oversized_keys : int
        Keys whose block exceeded the chunk size and was split.
    max_block : int
        Largest block size before chunking.
    pairs_planned : int
        Unordered pairs the scorer will evaluate.
    """

    records_seen: int = 0
    records_unkeyed: int = 0
    unique_keys: int = 0
    chunks: int = 0
    oversized_keys: int = 0
    max_block: int = 0
    pairs_planned: int = 0

    def to_dict(self) -> dict[str, int]:
        """Serialise to a plain dict."""
        return asdict(self)


# ============================================================================
# Block model
# ============================================================================


@dataclass(frozen=True)
class Block:
    """One unit of scoring work.

    Attributes
    ----------
    key : str
        Blocking key shared by every record in the block.
    chunk : int
        0-based slice index within an oversized key, 0 otherwise.
    records : tuple[NormalizedRecord, ...]
        Members in input order.
    """

    key: str
    chunk: int
    records: tuple[NormalizedRecord, ...]

    @property
    def block_id(self) -> str:
        return f"{self.key}#{self.chunk}"

    @property
    def pair_count(self) -> int:
        n = len(self.records)
        return n * (n - 1) // 2


# ============================================================================
# Protocol
# ============================================================================


@runtime_checkable
class Blocker(Protocol):
    """Structural protocol every blocker must satisfy.

    Attributes
    ----------
    name : str
        Stable identifier used in run logs.
    match_key : str
        Semantic label for the field(s) this blocker relies on.
    """

    name: str
    match_key: str

    def block_key(self, record: NormalizedRecord) -> str:
        """Return the blocking key of *record*; "" when it has none."""
        ...


# ============================================================================
# Concrete blockers
# ============================================================================


class PrefixBlocker:
    """Key records by the leading characters of their first name token.

    Falls back to the secondary name when the primary name is empty.

    Parameters
    ----------
    prefix_len : int, optional
        Characters taken from the first token, by default 3.
    """

    name = "name_prefix"
    match_key = "primary_name"

    def __init__(self, prefix_len: int = DEFAULT_PREFIX_LEN) -> None:
        self.prefix_len = max(1, prefix_len)

    def block_key(self, record: NormalizedRecord) -> str:
        for normalized in (record.primary, record.secondary):
            if normalized.tokens:
                return normalized.tokens[0][: self.prefix_len]
        return ""


# ============================================================================
# Block construction
# ============================================================================


KeyFunction = Callable[[NormalizedRecord], str]


def _resolve_key_fn(key_fn: Blocker | KeyFunction | None) -> KeyFunction:
    if key_fn is None:
        return PrefixBlocker().block_key
    if isinstance(key_fn, Blocker):
        return key_fn.block_key
    return key_fn


def build_blocks(
    records: Sequence[NormalizedRecord],
    key_fn: Blocker | KeyFunction | None = None,
    chunk_size: int = DEFAULT_BLOCK_CHUNK_SIZE,
    stats: BlockerStats | None = None,
) -> list[Block]:
    """Partition records into bounded blocks.

    Parameters
    ----------
    records : Sequence[NormalizedRecord]
        Normalized records in input order.
    key_fn : Blocker | KeyFunction | None, optional
        Blocker or plain key function; ``PrefixBlocker()`` when None.
    chunk_size : int, optional
        Maximum records per block, by default 3000. Larger blocks are cut
        into contiguous slices.
    stats : BlockerStats | None, optional
        Counters updated in place.

    Returns
    -------
    list[Block]
        Blocks ordered by key, then chunk. Blocks with fewer than two
        records are included so every record appears exactly once.
    """
    resolve = _resolve_key_fn(key_fn)
    chunk_size = max(2, chunk_size)

    grouped: dict[str, list[NormalizedRecord]] = {}
    for record in records:
        key = resolve(record) or ""
        grouped.setdefault(key, []).append(record)

    blocks: list[Block] = []
    for key in sorted(grouped):
        members = grouped[key]
        if stats is not None:
            stats.unique_keys += 1
            stats.max_block = max(stats.max_block, len(members))
            if len(members) > chunk_size:
                stats.oversized_keys += 1
            if not key:
                stats.records_unkeyed += len(members)

        for chunk, start in enumerate(range(0, len(members), chunk_size)):
            blocks.append(Block(key=key, chunk=chunk, records=tuple(members[start : start + chunk_size])))

    if stats is not None:
        stats.records_seen += len(records)
        stats.chunks += len(blocks)
        stats.pairs_planned += sum(block.pair_count for block in blocks)

    return blocks
