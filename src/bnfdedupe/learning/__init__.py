"""Rule learning from confirmed missed clusters.

Learned rules are declarative field-threshold predicates. The learner only
proposes them; callers activate and persist the ones they accept and hand
them back through ``EngineConfig.learned_rules``.
"""

from bnfdedupe.learning.learner import learn_rule, observed_minimums
from bnfdedupe.learning.models import (
    LEARNED_RULE_SCHEMA,
    LearnedRule,
    LearnerConfig,
    RuleCondition,
    RuleFormatError,
)

__all__ = [
    "LEARNED_RULE_SCHEMA",
    "LearnedRule",
    "LearnerConfig",
    "RuleCondition",
    "RuleFormatError",
    "learn_rule",
    "observed_minimums",
]
