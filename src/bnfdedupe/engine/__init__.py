"""Duplicate resolution engine.

This package provides the main entry point for resolving duplicates over a
record population, including configuration and result types.
"""

from bnfdedupe.engine.config import EngineConfig, ResolutionResult
from bnfdedupe.engine.runner import CancelToken, ProgressCallback, resolve_duplicates

__all__ = [
    "CancelToken",
    "EngineConfig",
    "ProgressCallback",
    "ResolutionResult",
    "resolve_duplicates",
]
