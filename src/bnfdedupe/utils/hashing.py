"""Deterministic short digests used for cluster and rule identifiers."""

import hashlib
from collections.abc import Iterable

__all__ = ["short_digest"]


def short_digest(parts: Iterable[str], length: int = 12) -> str:
    """Hash newline-joined parts and return a hex prefix.

    Parameters
    ----------
    parts : Iterable[str]
        String parts, hashed in the given order.
    length : int, optional
        Number of hex characters to keep, by default 12.

    Returns
    -------
    str
        Hex digest prefix.
    """
    content = "\n".join(parts)
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:length]
