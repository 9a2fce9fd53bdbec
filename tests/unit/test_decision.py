"""Tests for cluster confidence classification."""

import pytest

from bnfdedupe.decision import DEFAULT_REASON_BONUSES, ConfidenceConfig, Decision, classify
from bnfdedupe.scoring import MatchReason, PairScore


def _pair(total: float, *reasons: str) -> PairScore:
    return PairScore(rid_a="a", rid_b="b", total=total, breakdown={}, reasons=tuple(sorted(reasons)))


# ---------------------------------------------------------------------------
# ConfidenceConfig
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_confidence_config_defaults() -> None:
    """Test default thresholds and bonuses."""
    config = ConfidenceConfig()

    assert (config.confirmed_threshold, config.strong_suspected_threshold, config.suspected_threshold) == (
        90,
        75,
        60,
    )
    assert config.reason_bonuses == DEFAULT_REASON_BONUSES
    assert config.fallbacks == ()


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,decision",
    [
        (100, Decision.CONFIRMED),
        (90, Decision.CONFIRMED),
        (89, Decision.STRONG_SUSPECTED),
        (75, Decision.STRONG_SUSPECTED),
        (74, Decision.SUSPECTED),
        (60, Decision.SUSPECTED),
        (59, Decision.NOT_DUPLICATE),
        (0, Decision.NOT_DUPLICATE),
    ],
)
def test_decide_boundaries(value: int, decision: Decision) -> None:
    """Test thresholds are inclusive lower bounds."""
    assert ConfidenceConfig().decide(value) == decision


@pytest.mark.unit
def test_invalid_threshold_falls_back() -> None:
    """Test out-of-range thresholds are replaced by defaults."""
    config = ConfidenceConfig(confirmed_threshold=150)

    assert config.confirmed_threshold == 90
    assert config.fallbacks == ("confirmed_threshold",)


@pytest.mark.unit
def test_unordered_thresholds_fall_back_together() -> None:
    """Test thresholds that are not descending are all reset."""
    config = ConfidenceConfig(confirmed_threshold=70, strong_suspected_threshold=80)

    assert config.confirmed_threshold == 90
    assert config.strong_suspected_threshold == 75
    assert "thresholds_order" in config.fallbacks


@pytest.mark.unit
def test_invalid_bonuses_fall_back() -> None:
    """Test negative bonuses reset the bonus table."""
    config = ConfidenceConfig(reason_bonuses={"TOKEN_REORDER": -5})

    assert config.reason_bonuses == DEFAULT_REASON_BONUSES
    assert config.fallbacks == ("reason_bonuses",)


@pytest.mark.unit
def test_confidence_config_round_trip() -> None:
    """Test to_dict / from_dict preserve settings."""
    config = ConfidenceConfig(suspected_threshold=50, reason_bonuses={"DEPENDENTS_MATCH": 3})

    assert ConfidenceConfig.from_dict(config.to_dict()) == config
    assert ConfidenceConfig.from_dict(None) == ConfidenceConfig()


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_classify_mean_of_pairs() -> None:
    """Test confidence is the rounded mean total."""
    result = classify([_pair(0.80), _pair(0.70)])

    assert result.confidence_percent == 75
    assert result.decision == Decision.STRONG_SUSPECTED
    assert result.mean_score == pytest.approx(0.75)
    assert result.applied_bonuses == ()


@pytest.mark.unit
def test_classify_rounds_half_up() -> None:
    """Test x.5 percentages round up."""
    assert classify([_pair(0.625)]).confidence_percent == 63
    assert classify([_pair(0.125)]).confidence_percent == 13
    assert classify([_pair(0.124)]).confidence_percent == 12


@pytest.mark.unit
def test_bonus_applied_once_per_distinct_reason() -> None:
    """Test a reason present on several pairs adds its bonus once."""
    pairs = [
        _pair(0.70, MatchReason.TOKEN_REORDER),
        _pair(0.70, MatchReason.TOKEN_REORDER, MatchReason.SECONDARY_LINEAGE),
    ]

    result = classify(pairs)

    assert result.confidence_percent == 70 + 5 + 5
    assert result.applied_bonuses == ("SECONDARY_LINEAGE", "TOKEN_REORDER")
    assert result.decision == Decision.STRONG_SUSPECTED


@pytest.mark.unit
def test_confidence_capped_at_100() -> None:
    """Test bonuses cannot push confidence above 100."""
    result = classify([_pair(0.99, MatchReason.TOKEN_REORDER, MatchReason.SECONDARY_LINEAGE)])

    assert result.confidence_percent == 100


@pytest.mark.unit
def test_reasons_without_bonus_are_ignored() -> None:
    """Test reasons absent from the bonus table add nothing."""
    result = classify([_pair(0.62, MatchReason.SHARED_HOUSEHOLD)])

    assert result.confidence_percent == 62
    assert result.applied_bonuses == ()


@pytest.mark.unit
def test_classify_without_pairs() -> None:
    """Test an empty pair list is not a duplicate."""
    result = classify([])

    assert result.confidence_percent == 0
    assert result.decision == Decision.NOT_DUPLICATE


@pytest.mark.unit
def test_classify_custom_config() -> None:
    """Test custom thresholds and bonuses are honoured."""
    config = ConfidenceConfig(
        confirmed_threshold=95,
        strong_suspected_threshold=80,
        suspected_threshold=50,
        reason_bonuses={"DEPENDENTS_MATCH": 10},
    )

    result = classify([_pair(0.85, MatchReason.DEPENDENTS_MATCH)], config)

    assert result.confidence_percent == 95
    assert result.decision == Decision.STRONG_SUSPECTED
