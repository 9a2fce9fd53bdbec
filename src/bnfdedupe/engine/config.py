"""Engine configuration and result dataclasses."""

from collections.abc import Iterable
from dataclasses import MISSING, dataclass, field, fields
from typing import Any

from bnfdedupe.candidates.blockers import DEFAULT_BLOCK_CHUNK_SIZE, DEFAULT_PREFIX_LEN
from bnfdedupe.clustering.cluster_builder import ScoringSettings
from bnfdedupe.clustering.models import Cluster, ClusteringConfig
from bnfdedupe.decision.models import ConfidenceConfig
from bnfdedupe.learning.models import LearnedRule, LearnerConfig, RuleFormatError
from bnfdedupe.scoring.models import FieldWeights
from bnfdedupe.scoring.scorer import DEFAULT_EXACT_IDENTIFIER_FLOOR
from bnfdedupe.utils import is_valid_number

__all__ = ["EngineConfig", "ResolutionResult"]

# (low, high, integer) bounds of the scalar settings
_SCALAR_BOUNDS: dict[str, tuple[float, float | None, bool]] = {
    "min_pair_score": (0.0, 1.0, False),
    "min_internal_score": (0.0, 1.0, False),
    "block_chunk_size": (2, None, True),
    "block_prefix_len": (1, None, True),
    "refine_min_size": (2, None, True),
    "exact_identifier_floor": (0.0, 1.0, False),
    "max_workers": (0, None, True),
    "learner_signal_floor": (0.0, 1.0, False),
    "learner_threshold_floor": (0.0, 1.0, False),
    "learner_margin": (0.0, 1.0, False),
}


@dataclass
class EngineConfig:
    """Configuration for duplicate resolution, auditing and rule learning.

    Invalid values never abort a run: each one is replaced by its default
    and its name is appended to ``fallbacks``. Nested weight and confidence
    fallbacks are reported as ``weights.<field>`` and ``confidence.<field>``.

    Attributes
    ----------
    min_pair_score : float
        Baseline pair threshold (default: 0.62).
    min_internal_score : float
        Spanning-tree edges below this are cut during refinement (default: 0.65).
    block_chunk_size : int
        Maximum records per scoring block (default: 3000).
    block_prefix_len : int
        Characters of the first name token used as blocking key (default: 3).
    weights : FieldWeights
        Per-field weights. A plain dict is accepted.
    enabled_rules : frozenset[str] | None
        Audit rule names and learned rule ids that participate.
        None means all of them.
    learned_rules : tuple[LearnedRule, ...]
        Stored rules handed back by the caller. Dicts are loaded with
        ``LearnedRule.from_dict``.
    confidence : ConfidenceConfig
        Confidence thresholds and reason bonuses. A plain dict is accepted.
    refine_min_size : int
        Components at least this large are refined (default: 3).
    exact_identifier_floor : float
        Minimum total for pairs with equal identifiers (default: 0.99).
    max_workers : int
        Worker processes for block scoring; 1 or less runs inline (default: 1).
    learner_signal_floor : float
        Weakest similarity a field needs to enter a learned rule (default: 0.75).
    learner_threshold_floor : float
        Lowest threshold a learned condition may carry (default: 0.85).
    learner_margin : float
        Slack below the weakest observed similarity (default: 0.05).
    fallbacks : list[str]
        Settings whose supplied value was rejected.
    """

    min_pair_score: float = 0.62
    min_internal_score: float = 0.65
    block_chunk_size: int = DEFAULT_BLOCK_CHUNK_SIZE
    block_prefix_len: int = DEFAULT_PREFIX_LEN
    weights: FieldWeights = field(default_factory=FieldWeights)
    enabled_rules: frozenset[str] | None = None
    learned_rules: tuple[LearnedRule, ...] = ()
    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)
    refine_min_size: int = 3
    exact_identifier_floor: float = DEFAULT_EXACT_IDENTIFIER_FLOOR
    max_workers: int = 1
    learner_signal_floor: float = 0.75
    learner_threshold_floor: float = 0.85
    learner_margin: float = 0.05
    fallbacks: list[str] = field(default_factory=list)
    rejected: dict[str, Any] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Replace invalid settings with their defaults."""
        for name, (low, high, integer) in _SCALAR_BOUNDS.items():
            value = getattr(self, name)
            if not is_valid_number(value, low=low, high=high, integer=integer):
                self._reject(name, value)

        if isinstance(self.weights, dict):
            self.weights = FieldWeights.from_dict(self.weights)
        elif not isinstance(self.weights, FieldWeights):
            self._reject("weights", self.weights)
        self.fallbacks.extend(f"weights.{name}" for name in self.weights.fallbacks)

        if isinstance(self.confidence, dict):
            self.confidence = ConfidenceConfig.from_dict(self.confidence)
        elif not isinstance(self.confidence, ConfidenceConfig):
            self._reject("confidence", self.confidence)
        self.fallbacks.extend(f"confidence.{name}" for name in self.confidence.fallbacks)

        if self.enabled_rules is not None:
            if isinstance(self.enabled_rules, str) or not isinstance(self.enabled_rules, Iterable):
                self._reject("enabled_rules", self.enabled_rules)
            else:
                self.enabled_rules = frozenset(str(name) for name in self.enabled_rules)

        self.learned_rules = self._load_rules(self.learned_rules)

    def _reject(self, name: str, value: Any) -> None:
        self.rejected[name] = value
        setattr(self, name, _default_of(name))
        self.fallbacks.append(name)

    def _load_rules(self, rules: Any) -> tuple[LearnedRule, ...]:
        if isinstance(rules, LearnedRule | dict):
            rules = [rules]
        if not isinstance(rules, Iterable) or isinstance(rules, str):
            self.rejected["learned_rules"] = rules
            self.fallbacks.append("learned_rules")
            return ()

        loaded: list[LearnedRule] = []
        for rule in rules:
            if isinstance(rule, LearnedRule):
                loaded.append(rule)
            elif isinstance(rule, dict):
                try:
                    loaded.append(LearnedRule.from_dict(rule))
                except RuleFormatError:
                    self._reject_rule(rule)
            else:
                self._reject_rule(rule)
        return tuple(loaded)

    def _reject_rule(self, rule: Any) -> None:
        # Only the first unusable entry is reported
        if "learned_rules" not in self.fallbacks:
            self.rejected["learned_rules"] = rule
            self.fallbacks.append("learned_rules")

    def default_for(self, name: str) -> Any:
        """Default value of a setting, including nested ``weights.``/``confidence.`` names."""
        section, _, sub = name.partition(".")
        if section == "weights" and sub:
            return getattr(FieldWeights(), sub, None)
        if section == "confidence" and sub:
            return getattr(ConfidenceConfig(), sub, None)
        default = _default_of(name)
        return default.to_dict() if hasattr(default, "to_dict") else default

    # ------------------------------------------------------------------
    # Derived settings
    # ------------------------------------------------------------------

    def participating_rules(self) -> tuple[LearnedRule, ...]:
        """Enabled learned rules allowed by ``enabled_rules``."""
        return tuple(
            rule
            for rule in self.learned_rules
            if rule.enabled and (self.enabled_rules is None or rule.rule_id in self.enabled_rules)
        )

    def scoring_settings(self) -> ScoringSettings:
        return ScoringSettings(
            weights=self.weights,
            rules=self.participating_rules(),
            min_pair_score=self.min_pair_score,
            exact_identifier_floor=self.exact_identifier_floor,
        )

    def clustering_config(self) -> ClusteringConfig:
        return ClusteringConfig(
            min_pair_score=self.min_pair_score,
            min_internal_score=self.min_internal_score,
            refine_min_size=self.refine_min_size,
        )

    def learner_config(self) -> LearnerConfig:
        return LearnerConfig(
            signal_floor=self.learner_signal_floor,
            threshold_floor=self.learner_threshold_floor,
            margin=self.learner_margin,
            weights=self.weights,
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {name: getattr(self, name) for name in _SCALAR_BOUNDS}
        data["weights"] = self.weights.to_dict()
        data["confidence"] = self.confidence.to_dict()
        data["enabled_rules"] = sorted(self.enabled_rules) if self.enabled_rules is not None else None
        data["learned_rules"] = [rule.to_dict() for rule in self.learned_rules]
        data["fallbacks"] = list(self.fallbacks)
        return data

    @staticmethod
    def from_dict(data: dict[str, Any] | None) -> "EngineConfig":
        """Build from a partial mapping; unknown keys are ignored.

        Raises
        ------
        RuleFormatError
            If a stored learned rule is malformed.
        """
        if not isinstance(data, dict):
            return EngineConfig()
        known = {f.name for f in fields(EngineConfig) if f.init and f.name != "fallbacks"}
        return EngineConfig(**{k: v for k, v in data.items() if k in known})


def _default_of(name: str) -> Any:
    for f in fields(EngineConfig):
        if f.name == name:
            return f.default_factory() if f.default_factory is not MISSING else f.default
    raise KeyError(name)


@dataclass
class ResolutionResult:
    """Outcome of one ``resolve_duplicates`` run.

    Attributes
    ----------
    clusters : list[Cluster]
        Disjoint clusters of two or more records, sorted by cluster_id.
    unclustered : list[str]
        Sorted rids of records outside every cluster.
    cancelled : bool
        True when the run was cancelled; clusters and unclustered are then
        empty.
    stats : dict[str, Any]
        Per-stage counters.
    """

    clusters: list[Cluster] = field(default_factory=list)
    unclustered: list[str] = field(default_factory=list)
    cancelled: bool = False
    stats: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "clusters": [cluster.to_dict() for cluster in self.clusters],
            "unclustered": list(self.unclustered),
            "cancelled": self.cancelled,
            "stats": dict(self.stats),
        }
