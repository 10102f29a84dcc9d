import itertools

import pytest

from appraiser.analysis.consensus import (
    BlendPolicy,
    calculate_consensus,
    calculate_vote_stats,
    consensus_item_name,
    determine_quality,
    failed_consensus,
    tally_votes,
    value_agreement,
)
from appraiser.analysis.models import AnalysisQuality
from tests.conftest import make_vote


def _scenario_votes():
    return [
        make_vote("openai", 50, "BUY", 0.9, 1.0),
        make_vote("anthropic", 55, "BUY", 0.8, 0.9),
        make_vote("google", 20, "SELL", 0.5, 0.3),
    ]


def test_three_vote_scenario():
    result = calculate_consensus(_scenario_votes())

    assert result.decision == "BUY"
    assert result.tally.is_close_vote is False
    assert result.stats.weighted_value == pytest.approx(105.5 / 2.2)
    assert result.estimated_value == 47.95
    assert result.confidence == 73
    assert result.quality == AnalysisQuality.GOOD
    assert result.blend == "none"


def test_tally_is_order_independent():
    votes = _scenario_votes() + [make_vote("xai", 31.7, "SELL", 0.33, 0.1)]
    baseline = tally_votes(votes)

    for ordering in itertools.permutations(votes):
        assert tally_votes(list(ordering)) == baseline


def test_tie_resolves_to_sell():
    tally = tally_votes([make_vote("a", decision="BUY", weight=0.5), make_vote("b", decision="SELL", weight=0.5)])

    assert tally.decision == "SELL"
    assert tally.is_close_vote is True
    assert tally.weight_difference == 0


def test_close_vote_threshold_override():
    votes = [make_vote("a", decision="BUY", weight=0.6), make_vote("b", decision="SELL", weight=0.4)]

    assert tally_votes(votes, close_threshold=0.15).is_close_vote is False
    assert tally_votes(votes, close_threshold=0.25).is_close_vote is True


def test_zero_weight_votes_are_not_a_division_error():
    tally = tally_votes([make_vote("a", weight=0.0), make_vote("b", decision="SELL", weight=0.0)])

    assert tally.total_weight == 0
    assert tally.weight_difference == 0
    stats = calculate_vote_stats([make_vote("a", value=10, weight=0.0), make_vote("b", value=30, weight=0.0)])
    assert stats.weighted_value == 0
    assert stats.decision_agreement == 0


def test_close_vote_boundary_with_fractional_weights():
    tally = tally_votes([make_vote("a", decision="BUY", weight=0.575), make_vote("b", decision="SELL", weight=0.425)])

    assert tally.weight_difference == 0.15
    assert tally.is_close_vote is False


def test_decision_agreement_is_weighted():
    votes = [
        make_vote("a", decision="BUY", weight=0.9),
        make_vote("b", decision="SELL", weight=0.05),
        make_vote("c", decision="SELL", weight=0.05),
    ]

    assert calculate_vote_stats(votes).decision_agreement == pytest.approx(0.9)


def test_no_votes_is_failed_and_stable():
    first = calculate_consensus([], fallback_item_name="Lamp")
    second = calculate_consensus([], fallback_item_name="Lamp")

    assert first == second
    assert first.quality == AnalysisQuality.FAILED
    assert first.decision == "SELL"
    assert first.estimated_value == 0
    assert first.confidence == 0
    assert first.item_name == "Lamp"
    assert failed_consensus().item_name == "Unknown Item"


def test_authority_blend_default_ratio():
    votes = [make_vote("a", value=100, weight=1.0), make_vote("b", value=100, weight=1.0)]

    result = calculate_consensus(votes, authority_price=80)

    assert result.estimated_value == pytest.approx(80 * 0.4 + 100 * 0.6)
    assert result.blend == "default"
    assert result.authority_price == 80


def test_authority_blend_on_disagreement():
    votes = [make_vote("a", value=400, weight=1.0), make_vote("b", value=400, weight=1.0)]

    result = calculate_consensus(votes, authority_price=100)

    assert result.estimated_value == pytest.approx(100 * 0.6 + 400 * 0.4)
    assert result.blend == "disagreement"


def test_blend_policy_is_overridable():
    policy = BlendPolicy(authority_weight=0.5)

    value, label = policy.blend(100, 80)

    assert value == pytest.approx(90)
    assert label == "default"
    assert policy.blend(100, None) == (100, "none")
    assert policy.blend(100, 0) == (100, "none")


def test_single_vote_penalty_and_agreement_bonus():
    result = calculate_consensus([make_vote("openai", value=60, confidence=0.5, weight=0.5)])

    # 50 + 5 agreement - 15 single vote
    assert result.confidence == 40
    assert result.quality == AnalysisQuality.MODERATE


def test_confidence_is_clamped():
    votes = [make_vote(p, confidence=1.0, weight=1.0) for p in ("a", "b", "c")]

    result = calculate_consensus(votes)

    assert result.confidence == 100
    assert result.quality == AnalysisQuality.HIGH


def test_quality_tiers():
    assert determine_quality(85, 0.9, 3) == AnalysisQuality.HIGH
    assert determine_quality(85, 0.5, 3) == AnalysisQuality.GOOD
    assert determine_quality(65, 0.9, 1) == AnalysisQuality.MODERATE
    assert determine_quality(30, 0.9, 2) == AnalysisQuality.LOW
    assert determine_quality(0, 0.0, 0) == AnalysisQuality.FAILED


def test_value_agreement():
    assert value_agreement([]) == 1.0
    assert value_agreement([10]) == 1.0
    assert value_agreement([0, 10]) == 1.0
    assert value_agreement([10, 10, 10]) == pytest.approx(1.0)
    assert value_agreement([1, 1, 1000]) == 0.0


def test_consensus_item_name_prefers_heavier_votes():
    votes = [
        make_vote("a", item_name="Switch OLED", confidence=0.9, weight=1.0),
        make_vote("b", item_name="Switch", confidence=0.5, weight=0.5),
        make_vote("c", item_name="Switch", confidence=0.5, weight=0.5),
    ]

    assert consensus_item_name(votes) == "Switch OLED"


def test_consensus_item_name_tie_is_deterministic():
    votes = [
        make_vote("a", item_name="Beta", confidence=0.5, weight=1.0),
        make_vote("b", item_name="Alpha", confidence=0.5, weight=1.0),
    ]

    assert consensus_item_name(votes) == "Alpha"
    assert consensus_item_name(list(reversed(votes))) == "Alpha"


def test_reasoning_from_strongest_vote():
    votes = [
        make_vote("a", weight=1.0, raw_response={"reasoning": "Sold listings cluster at $50."}),
        make_vote("b", weight=0.4, raw_response={"reasoning": "Looks cheap."}),
    ]

    assert calculate_consensus(votes).reasoning == "Sold listings cluster at $50."


def test_reasoning_falls_back_to_summary():
    result = calculate_consensus([make_vote("a", value=50), make_vote("b", value=50)])

    assert result.reasoning == "2 AI models analyzed this item. Weighted consensus: BUY at $50.00."
