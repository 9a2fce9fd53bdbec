"""Cluster confidence classification.

Turns a cluster's internal pair scores into a confidence percentage and a
decision label (confirmed / strong suspected / suspected / not duplicate).
"""

from bnfdedupe.decision.models import (
    DEFAULT_REASON_BONUSES,
    ClusterConfidence,
    ConfidenceConfig,
    Decision,
)
from bnfdedupe.decision.policy import classify

__all__ = [
    "DEFAULT_REASON_BONUSES",
    "ClusterConfidence",
    "ConfidenceConfig",
    "Decision",
    "classify",
]
