"""Learned rule data models.

A learned rule is a declarative predicate over a pair's field breakdown:
a list of field thresholds, all of which must hold. Rules are the only
engine artifact meant to outlive a run, so they serialize to plain dicts
and are schema-checked when loaded back.
"""

import operator
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any

import jsonschema

from bnfdedupe.scoring.models import FIELD_NAMES, FieldWeights
from bnfdedupe.utils import is_valid_number

__all__ = [
    "LEARNED_RULE_SCHEMA",
    "OPERATORS",
    "LearnedRule",
    "LearnerConfig",
    "RuleCondition",
    "RuleFormatError",
]

OPERATORS: dict[str, Callable[[float, float], bool]] = {
    ">=": operator.ge,
    ">": operator.gt,
}

LEARNED_RULE_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "bnfdedupe learned rule",
    "type": "object",
    "required": ["rule_id", "conditions", "enabled", "created_at"],
    "properties": {
        "rule_id": {"type": "string", "minLength": 1},
        "conditions": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["field", "operator", "threshold"],
                "additionalProperties": False,
                "properties": {
                    "field": {"enum": list(FIELD_NAMES)},
                    "operator": {"enum": list(OPERATORS)},
                    "threshold": {"type": "number", "minimum": 0, "maximum": 1},
                },
            },
        },
        "enabled": {"type": "boolean"},
        "created_at": {"type": "string"},
        "support": {"type": "integer", "minimum": 0},
        "observed_minimums": {
            "type": "object",
            "additionalProperties": {"type": "number"},
        },
    },
}


@dataclass(frozen=True)
class LearnerConfig:
    """Parameters of rule learning.

    Invalid entries fall back to defaults; their names are kept in
    ``fallbacks``.

    Attributes
    ----------
    signal_floor : float
        A field joins the rule only if its weakest observed similarity
        reaches this value, by default 0.75.
    threshold_floor : float
        Lowest threshold a condition may carry, by default 0.85.
    margin : float
        Slack subtracted from the weakest observed similarity, by default 0.05.
    weights : FieldWeights
        Weights used when scoring the cluster's pairs.
    fallbacks : tuple[str, ...]
        Fields whose supplied value was rejected.
    """

    signal_floor: float = 0.75
    threshold_floor: float = 0.85
    margin: float = 0.05
    weights: FieldWeights = field(default_factory=FieldWeights)
    fallbacks: tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        """Replace invalid values with their defaults."""
        rejected = list(self.fallbacks)
        for f in fields(self):
            if f.name in ("weights", "fallbacks"):
                continue
            if not is_valid_number(getattr(self, f.name), low=0.0, high=1.0):
                object.__setattr__(self, f.name, f.default)
                rejected.append(f.name)
        if not isinstance(self.weights, FieldWeights):
            object.__setattr__(self, "weights", FieldWeights())
            rejected.append("weights")
        object.__setattr__(self, "fallbacks", tuple(rejected))


class RuleFormatError(ValueError):
    """Raised when a stored rule does not match ``LEARNED_RULE_SCHEMA``."""

    def __init__(self, message: str, rule_id: str | None = None) -> None:
        """Initialize rule format error.

        Parameters
        ----------
        message : str
            Error message.
        rule_id : str | None, optional
            Identifier of the offending rule, if readable.
        """
        super().__init__(message)
        self.rule_id = rule_id


@dataclass(frozen=True, slots=True)
class RuleCondition:
    """One field threshold of a learned rule.

    Attributes
    ----------
    field : str
        Breakdown field name.
    operator : str
        Comparison operator, one of ``OPERATORS``.
    threshold : float
        Value the field similarity is compared against.
    """

    field: str
    operator: str
    threshold: float

    def holds(self, breakdown: Mapping[str, float]) -> bool:
        compare = OPERATORS.get(self.operator)
        if compare is None:
            return False
        return compare(breakdown.get(self.field, 0.0), self.threshold)

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "operator": self.operator, "threshold": self.threshold}


@dataclass(frozen=True)
class LearnedRule:
    """Inspectable matching rule proposed from a confirmed missed cluster.

    Attributes
    ----------
    rule_id : str
        Stable identifier.
    conditions : tuple[RuleCondition, ...]
        AND-combined field thresholds.
    enabled : bool
        Only enabled rules fire. Proposals start disabled.
    created_at : str
        ISO8601 UTC creation time.
    support : int
        Number of records in the cluster the rule was learned from.
    observed_minimums : dict[str, float]
        Weakest observed similarity per field across the cluster's pairs.
    """

    rule_id: str
    conditions: tuple[RuleCondition, ...]
    enabled: bool = False
    created_at: str = ""
    support: int = 0
    observed_minimums: dict[str, float] | None = None

    def matches(self, breakdown: Mapping[str, float]) -> bool:
        """Check whether every condition holds for a pair breakdown.

        Parameters
        ----------
        breakdown : Mapping[str, float]
            Per-field similarity of a scored pair.

        Returns
        -------
        bool
            True if the rule is enabled, has conditions and all hold.
        """
        if not self.enabled or not self.conditions:
            return False
        return all(condition.holds(breakdown) for condition in self.conditions)

    def activate(self) -> "LearnedRule":
        """Return an enabled copy of this rule."""
        return replace(self, enabled=True)

    def deactivate(self) -> "LearnedRule":
        """Return a disabled copy of this rule."""
        return replace(self, enabled=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "rule_id": self.rule_id,
            "conditions": [c.to_dict() for c in self.conditions],
            "enabled": self.enabled,
            "created_at": self.created_at,
            "support": self.support,
            "observed_minimums": dict(self.observed_minimums or {}),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "LearnedRule":
        """Deserialize a stored rule.

        Parameters
        ----------
        data : dict[str, Any]
            Dictionary representation (e.g., from caller storage).

        Returns
        -------
        LearnedRule
            Deserialized rule.

        Raises
        ------
        RuleFormatError
            If the dictionary does not validate against
            ``LEARNED_RULE_SCHEMA``.
        """
        try:
            jsonschema.validate(instance=data, schema=LEARNED_RULE_SCHEMA)
        except jsonschema.ValidationError as e:
            rule_id = data.get("rule_id") if isinstance(data, dict) else None
            raise RuleFormatError(f"Invalid learned rule: {e.message}", rule_id=rule_id) from e

        return LearnedRule(
            rule_id=data["rule_id"],
            conditions=tuple(
                RuleCondition(
                    field=c["field"],
                    operator=c["operator"],
                    threshold=float(c["threshold"]),
                )
                for c in data["conditions"]
            ),
            enabled=data["enabled"],
            created_at=data["created_at"],
            support=data.get("support", 0),
            observed_minimums=dict(data.get("observed_minimums", {})),
        )
