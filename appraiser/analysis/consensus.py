"""Weighted vote tallying and consensus calculation."""

import math
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from appraiser.analysis.models import (
    AnalysisQuality,
    ConsensusResult,
    Vote,
    VoteStats,
    VoteTally,
)
from appraiser.config import get_settings
from appraiser.utils.helpers import clamp, format_price, round_cents

UNKNOWN_ITEM = "Unknown Item"

AGREEMENT_BONUS_THRESHOLD = 0.8
AGREEMENT_BONUS = 5
CLOSE_VOTE_PENALTY = 10
SINGLE_VOTE_PENALTY = 15

BLEND_DEFAULT = "default"
BLEND_DISAGREEMENT = "disagreement"
BLEND_NONE = "none"


class BlendPolicy(BaseModel):
    """How far to trust an authority price over the vote-weighted mean.

    The constants are uncalibrated; override them rather than editing code.
    """

    model_config = ConfigDict(frozen=True)

    authority_weight: float = 0.4
    disagreement_authority_weight: float = 0.6
    max_ratio: float = 3.0
    min_ratio: float = 0.33

    def blend(self, weighted_mean: float, authority_price: Optional[float]) -> Tuple[float, str]:
        """Blend the weighted mean with an authority price.

        Args:
            weighted_mean: Vote-weighted mean value
            authority_price: Catalogue/authority price, if any

        Returns:
            (blended value, blend label)
        """
        if authority_price is None or authority_price <= 0:
            return weighted_mean, BLEND_NONE

        ratio = weighted_mean / authority_price
        if ratio > self.max_ratio or ratio < self.min_ratio:
            share = self.disagreement_authority_weight
            label = BLEND_DISAGREEMENT
        else:
            share = self.authority_weight
            label = BLEND_DEFAULT
        return authority_price * share + weighted_mean * (1 - share), label


DEFAULT_BLEND_POLICY = BlendPolicy()


def tally_votes(votes: List[Vote], close_threshold: Optional[float] = None) -> VoteTally:
    """Sum vote weights by decision.

    Ties resolve to SELL. Sums use ``math.fsum`` so vote order never
    changes the result.

    Args:
        votes: Votes to tally
        close_threshold: Weight difference below which the vote is close.
            If None, uses config value.

    Returns:
        Vote tally
    """
    if not votes:
        return VoteTally()

    threshold = get_settings().close_vote_threshold if close_threshold is None else close_threshold

    buy_weight = math.fsum(v.weight for v in votes if v.decision == "BUY")
    sell_weight = math.fsum(v.weight for v in votes if v.decision == "SELL")
    total_weight = math.fsum(v.weight for v in votes)
    weight_difference = (
        round(abs(buy_weight - sell_weight) / total_weight, 9) if total_weight > 0 else 0.0
    )
    buy_count = sum(1 for v in votes if v.decision == "BUY")

    return VoteTally(
        buy_weight=buy_weight,
        sell_weight=sell_weight,
        total_weight=total_weight,
        weight_difference=weight_difference,
        decision="BUY" if buy_weight > sell_weight else "SELL",
        is_close_vote=weight_difference < threshold,
        buy_count=buy_count,
        sell_count=len(votes) - buy_count,
        total_votes=len(votes),
    )


def value_agreement(values: List[float]) -> float:
    """1 minus the coefficient of variation of the positive values, floored at 0.

    Fewer than two positive values count as full agreement.
    """
    positive = [v for v in values if v > 0]
    if len(positive) < 2:
        return 1.0
    mean = math.fsum(positive) / len(positive)
    variance = math.fsum((v - mean) ** 2 for v in positive) / len(positive)
    return max(0.0, 1 - math.sqrt(variance) / mean)


def consensus_item_name(votes: List[Vote]) -> Optional[str]:
    """Name with the highest summed weight x confidence; ties go to the lower name."""
    if not votes:
        return None
    scores: Dict[str, List[float]] = defaultdict(list)
    for vote in votes:
        scores[vote.item_name].append(vote.weight * vote.confidence)
    totals = {name: math.fsum(parts) for name, parts in scores.items()}
    return min(totals, key=lambda name: (-totals[name], name))


def calculate_vote_stats(votes: List[Vote]) -> VoteStats:
    """Summarize a vote list.

    Args:
        votes: Votes to summarize

    Returns:
        Vote statistics
    """
    if not votes:
        return VoteStats()

    count = len(votes)
    tally = tally_votes(votes)
    if tally.total_weight > 0:
        weighted_value = math.fsum(v.estimated_value * v.weight for v in votes) / tally.total_weight
        decision_agreement = max(tally.buy_weight, tally.sell_weight) / tally.total_weight
    else:
        weighted_value = 0.0
        decision_agreement = 0.0

    return VoteStats(
        average_confidence=math.fsum(v.confidence for v in votes) / count,
        average_latency_ms=math.fsum(v.latency_ms for v in votes) / count,
        weighted_value=weighted_value,
        value_agreement=value_agreement([v.estimated_value for v in votes]),
        decision_agreement=decision_agreement,
        consensus_item_name=consensus_item_name(votes),
    )


def determine_quality(confidence: int, agreement: float, vote_count: int) -> AnalysisQuality:
    """Quality tier, evaluated top-down."""
    if vote_count == 0:
        return AnalysisQuality.FAILED
    if confidence >= 80 and agreement > 0.7 and vote_count >= 3:
        return AnalysisQuality.HIGH
    if confidence >= 60 and vote_count >= 2:
        return AnalysisQuality.GOOD
    if confidence >= 40:
        return AnalysisQuality.MODERATE
    if vote_count >= 1:
        return AnalysisQuality.LOW
    return AnalysisQuality.DEGRADED


def strongest_vote(votes: List[Vote]) -> Optional[Vote]:
    """Highest-weight vote; ties by confidence, then provider id."""
    if not votes:
        return None
    return min(votes, key=lambda v: (-v.weight, -v.confidence, v.provider_id, v.item_name))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def failed_consensus(item_name: Optional[str] = None) -> ConsensusResult:
    """Result for an analysis that produced no votes."""
    return ConsensusResult(
        item_name=item_name or UNKNOWN_ITEM,
        estimated_value=0.0,
        decision="SELL",
        confidence=0,
        reasoning="No AI models returned a usable appraisal for this item.",
        quality=AnalysisQuality.FAILED,
        tally=VoteTally(),
        stats=VoteStats(),
    )


def calculate_consensus(
    votes: List[Vote],
    authority_price: Optional[float] = None,
    close_threshold: Optional[float] = None,
    policy: Optional[BlendPolicy] = None,
    fallback_item_name: Optional[str] = None,
) -> ConsensusResult:
    """Combine votes into one appraisal.

    Args:
        votes: Votes to combine
        authority_price: Catalogue/authority price used as an anchor
        close_threshold: Close-vote threshold override
        policy: Authority blending constants
        fallback_item_name: Item name for an empty result

    Returns:
        Consensus result; FAILED quality when there are no votes
    """
    if not votes:
        return failed_consensus(fallback_item_name)

    policy = policy or DEFAULT_BLEND_POLICY
    tally = tally_votes(votes, close_threshold)
    stats = calculate_vote_stats(votes)

    value, blend = policy.blend(stats.weighted_value, authority_price)
    value = round_cents(value)

    confidence = _round_half_up(stats.average_confidence * 100)
    if stats.value_agreement > AGREEMENT_BONUS_THRESHOLD:
        confidence += AGREEMENT_BONUS
    if tally.is_close_vote:
        confidence -= CLOSE_VOTE_PENALTY
    if len(votes) < 2:
        confidence -= SINGLE_VOTE_PENALTY
    confidence = int(clamp(confidence, 0, 100))

    best = strongest_vote(votes)
    reasoning = best.explanation if best else None
    if not reasoning:
        reasoning = (
            f"{len(votes)} AI models analyzed this item. "
            f"Weighted consensus: {tally.decision} at {format_price(value)}."
        )

    return ConsensusResult(
        item_name=stats.consensus_item_name or fallback_item_name or UNKNOWN_ITEM,
        estimated_value=value,
        decision=tally.decision,
        confidence=confidence,
        reasoning=reasoning,
        quality=determine_quality(confidence, stats.value_agreement, len(votes)),
        tally=tally,
        stats=stats,
        authority_price=authority_price if authority_price and authority_price > 0 else None,
        blend=blend,
    )
