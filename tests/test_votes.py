import pytest

from appraiser.analysis.models import VoteRole
from appraiser.analysis.votes import (
    calculate_vote_weight,
    create_vote,
    votes_from_calls,
    votes_from_web_results,
)
from appraiser.evidence.models import PricePoint, WebSearchResult
from appraiser.llm.manager import STATUS_OK, STATUS_TIMEOUT, ProviderCallResult
from appraiser.llm.models import ItemAnalysisResponse
from appraiser.llm.registry import WeightSnapshot


def _response(**overrides):
    data = {"item_name": "Nintendo Switch", "estimated_value": 200, "decision": "BUY", "confidence": 0.8}
    data.update(overrides)
    return ItemAnalysisResponse.model_validate(data)


def test_primary_weight_is_base_times_confidence():
    assert calculate_vote_weight("openai", 0.8) == pytest.approx(0.8)
    assert calculate_vote_weight("xai", 0.5) == pytest.approx(0.4)


def test_pricing_specialty_bonus():
    # perplexity: base 0.85, pricing specialty
    assert calculate_vote_weight("perplexity", 1.0) == pytest.approx(0.85 * 1.3)


def test_market_search_bonus_stacks_with_specialty():
    weight = calculate_vote_weight("perplexity", 0.5, VoteRole.MARKET_SEARCH)

    assert weight == pytest.approx(0.85 * 0.5 * 1.3 * 1.2)


def test_unregistered_provider_uses_default_base():
    assert calculate_vote_weight("mystery-model", 1.0) == pytest.approx(0.75)


def test_snapshot_overrides_base_weight():
    snapshot = WeightSnapshot(version=3, weights={"openai": 0.5})

    assert calculate_vote_weight("openai", 1.0, snapshot=snapshot) == pytest.approx(0.5)
    assert calculate_vote_weight("anthropic", 1.0, snapshot=snapshot) == pytest.approx(1.0)


def test_tiebreaker_vote_discounts_confidence_then_weight():
    vote = create_vote("deepseek", _response(confidence=0.9), role=VoteRole.TIEBREAKER)

    assert vote.confidence == pytest.approx(0.72)
    assert vote.weight == pytest.approx(0.6 * 0.72 * 0.6)
    assert vote.role == VoteRole.TIEBREAKER


def test_emergency_vote_halves_confidence():
    vote = create_vote("deepseek", _response(confidence=0.8), role=VoteRole.EMERGENCY)

    assert vote.confidence == pytest.approx(0.4)
    assert vote.weight == pytest.approx(0.6 * 0.4)


def test_create_vote_falls_back_to_item_name():
    response = ItemAnalysisResponse(estimated_value=10, decision="SELL")

    assert create_vote("openai", response).item_name == "Unknown Item"
    assert create_vote("openai", response, fallback_item_name="Lamp").item_name == "Lamp"


def test_votes_are_immutable():
    vote = create_vote("openai", _response())

    with pytest.raises(Exception):
        vote.estimated_value = 1.0


def test_failed_calls_contribute_no_votes():
    results = [
        ProviderCallResult(provider_id="openai", status=STATUS_OK, response=_response(), latency_ms=120),
        ProviderCallResult(provider_id="anthropic", status=STATUS_TIMEOUT, error="timeout"),
    ]

    votes = votes_from_calls(results)

    assert [v.provider_id for v in votes] == ["openai"]
    assert votes[0].latency_ms == 120


def test_all_suspect_web_result_is_penalized():
    suspect = WebSearchResult(
        provider_id="xai",
        response=_response(estimated_value=120, confidence=0.8),
        prices=[PricePoint(price=120, source="xai", suspect=True, reasons=["round_default"])],
    )
    clean = WebSearchResult(
        provider_id="perplexity",
        response=_response(estimated_value=42.5, confidence=0.8),
        prices=[PricePoint(price=42.5, source="perplexity")],
    )

    votes = votes_from_web_results([suspect, clean])

    assert votes[0].confidence == pytest.approx(0.4)
    assert votes[1].confidence == pytest.approx(0.8)
    assert all(v.role == VoteRole.MARKET_SEARCH for v in votes)
