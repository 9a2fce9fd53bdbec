"""Common utility functions for bnfdedupe.

Shared helpers for timestamps, deterministic hashing and config validation.
"""

from bnfdedupe.utils.hashing import short_digest
from bnfdedupe.utils.timestamps import get_iso_timestamp
from bnfdedupe.utils.validation import is_valid_number

__all__ = ["get_iso_timestamp", "is_valid_number", "short_digest"]
