"""Shared data types for bnfdedupe.

Domain-specific types live closer to their consumers:
- Scoring types → bnfdedupe.scoring.models
- Cluster types → bnfdedupe.clustering.models
- Audit findings → bnfdedupe.audit.models
- Learned rules → bnfdedupe.learning.models
"""

from bnfdedupe.models.records import (
    FIELD_ALIASES,
    MAX_EXTRA_ATTRIBUTES,
    NormalizedField,
    NormalizedRecord,
    Record,
    load_records,
)

__all__ = [
    "FIELD_ALIASES",
    "MAX_EXTRA_ATTRIBUTES",
    "NormalizedField",
    "NormalizedRecord",
    "Record",
    "load_records",
]
