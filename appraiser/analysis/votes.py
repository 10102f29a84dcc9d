"""Vote construction and weighting."""

from typing import List, Optional

from appraiser.analysis.models import Vote, VoteRole
from appraiser.evidence.models import WebSearchResult
from appraiser.evidence.sanitizer import penalize_confidence
from appraiser.llm.manager import ProviderCallResult
from appraiser.llm.models import ItemAnalysisResponse
from appraiser.llm.registry import WeightSnapshot, get_base_weight, get_specialty
from appraiser.utils.helpers import clamp

PRICING_SPECIALTY_BONUS = 1.3
MARKET_SEARCH_BONUS = 1.2
TIEBREAKER_WEIGHT_FACTOR = 0.6

TIEBREAKER_CONFIDENCE_FACTOR = 0.8
EMERGENCY_CONFIDENCE_FACTOR = 0.5

UNKNOWN_ITEM = "Unknown Item"


def calculate_vote_weight(
    provider_id: str,
    confidence: float,
    role: VoteRole = VoteRole.PRIMARY,
    snapshot: Optional[WeightSnapshot] = None,
) -> float:
    """Weight a vote from its provider's base weight, confidence and role.

    Args:
        provider_id: Provider id
        confidence: Vote confidence after any role discount (0-1)
        role: Why the vote was cast
        snapshot: Base weights for this analysis. If None, the static registry.

    Returns:
        Vote weight
    """
    base = snapshot.weight_for(provider_id) if snapshot else get_base_weight(provider_id)
    weight = base * confidence

    if get_specialty(provider_id) == "pricing":
        weight *= PRICING_SPECIALTY_BONUS
    if role == VoteRole.MARKET_SEARCH:
        weight *= MARKET_SEARCH_BONUS
    if role == VoteRole.TIEBREAKER:
        weight *= TIEBREAKER_WEIGHT_FACTOR

    return weight


def discount_confidence(confidence: float, role: VoteRole) -> float:
    """Apply the role's confidence discount."""
    if role == VoteRole.TIEBREAKER:
        return confidence * TIEBREAKER_CONFIDENCE_FACTOR
    if role == VoteRole.EMERGENCY:
        return confidence * EMERGENCY_CONFIDENCE_FACTOR
    return confidence


def create_vote(
    provider_id: str,
    response: ItemAnalysisResponse,
    confidence: Optional[float] = None,
    latency_ms: int = 0,
    role: VoteRole = VoteRole.PRIMARY,
    snapshot: Optional[WeightSnapshot] = None,
    fallback_item_name: Optional[str] = None,
) -> Vote:
    """Wrap a provider answer into a weighted vote.

    Args:
        provider_id: Provider id
        response: Parsed provider answer
        confidence: Confidence to use instead of the answer's own
        latency_ms: Call latency
        role: Why the vote was cast
        snapshot: Base weights for this analysis
        fallback_item_name: Name to use when the provider gave none

    Returns:
        Immutable vote
    """
    raw_confidence = response.confidence if confidence is None else confidence
    final_confidence = clamp(discount_confidence(raw_confidence, role), 0.0, 1.0)

    return Vote(
        provider_id=provider_id,
        item_name=response.item_name or fallback_item_name or UNKNOWN_ITEM,
        category=response.category,
        estimated_value=response.estimated_value,
        decision=response.decision,
        confidence=final_confidence,
        latency_ms=latency_ms,
        weight=calculate_vote_weight(provider_id, final_confidence, role, snapshot),
        role=role,
        raw_response=response.model_dump(mode="json", exclude_none=True),
    )


def votes_from_calls(
    results: List[ProviderCallResult],
    role: VoteRole = VoteRole.PRIMARY,
    snapshot: Optional[WeightSnapshot] = None,
    fallback_item_name: Optional[str] = None,
) -> List[Vote]:
    """Votes for every successful provider call; failures contribute nothing."""
    return [
        create_vote(
            result.provider_id,
            result.response,
            latency_ms=result.latency_ms,
            role=role,
            snapshot=snapshot,
            fallback_item_name=fallback_item_name,
        )
        for result in results
        if result.ok
    ]


def votes_from_web_results(
    results: List[WebSearchResult],
    snapshot: Optional[WeightSnapshot] = None,
    fallback_item_name: Optional[str] = None,
) -> List[Vote]:
    """Market-search votes; a source whose prices were all suspect is penalized."""
    votes = []
    for result in results:
        confidence = result.response.confidence
        if result.all_suspect:
            confidence = penalize_confidence(confidence)
        votes.append(
            create_vote(
                result.provider_id,
                result.response,
                confidence=confidence,
                latency_ms=result.latency_ms,
                role=VoteRole.MARKET_SEARCH,
                snapshot=snapshot,
                fallback_item_name=fallback_item_name,
            )
        )
    return votes
