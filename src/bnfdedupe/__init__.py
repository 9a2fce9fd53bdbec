"""Entity resolution for humanitarian beneficiary registries.

This package provides:
- Data models (bnfdedupe.models): records and normalized derivatives
- Normalization (bnfdedupe.normalize): Arabic-aware name canonicalization
- Candidates (bnfdedupe.candidates): blocking into bounded work units
- Scoring (bnfdedupe.scoring): explainable pairwise similarity
- Clustering (bnfdedupe.clustering): union-find and spanning-tree refinement
- Decision (bnfdedupe.decision): cluster confidence classification
- Audit (bnfdedupe.audit): household policy findings
- Learning (bnfdedupe.learning): rules learned from confirmed misses
- Engine (bnfdedupe.engine): staged resolution runner
- Run logging (bnfdedupe.runlog): structured JSONL events
- CLI (bnfdedupe.cli): command-line interface
- Public API (bnfdedupe.api): high-level convenience functions
"""

__version__ = "0.4.0"
__license__ = "MIT"

from bnfdedupe.api import (
    audit_records,
    learn_rule,
    load_records,
    load_rules,
    read_jsonl,
    resolve_duplicates,
    write_jsonl,
)
from bnfdedupe.audit import Finding, Severity
from bnfdedupe.clustering import Cluster
from bnfdedupe.decision import Decision
from bnfdedupe.engine import EngineConfig, ResolutionResult
from bnfdedupe.learning import LearnedRule, RuleFormatError
from bnfdedupe.models import Record
from bnfdedupe.normalize import normalize

__all__ = [
    "__version__",
    "__license__",
    "Cluster",
    "Decision",
    "EngineConfig",
    "Finding",
    "LearnedRule",
    "Record",
    "ResolutionResult",
    "RuleFormatError",
    "Severity",
    "audit_records",
    "learn_rule",
    "load_records",
    "load_rules",
    "normalize",
    "read_jsonl",
    "resolve_duplicates",
    "write_jsonl",
]
