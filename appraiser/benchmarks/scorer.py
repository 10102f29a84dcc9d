"""Grade individual votes against market ground truth."""

import math
from typing import List, Optional

from appraiser.analysis.models import Vote, VoteRole
from appraiser.benchmarks.models import BenchmarkContext, BenchmarkRecord, Stage
from appraiser.config import get_settings

ACCURATE_PERCENT = 10.0


def stage_for_vote(vote: Vote, had_image: bool = False) -> Stage:
    """Pipeline stage a vote came from."""
    if vote.role == VoteRole.MARKET_SEARCH:
        return "market_search"
    if vote.role == VoteRole.TIEBREAKER:
        return "tiebreaker"
    if vote.role == VoteRole.PRIMARY and had_image:
        return "vision"
    return "text"


def score_vote(
    vote: Vote,
    context: BenchmarkContext,
    stage: Optional[Stage] = None,
    buy_threshold: Optional[float] = None,
) -> BenchmarkRecord:
    """Score one vote against the analysis ground truth.

    Error fields stay empty unless the ground truth price is positive.

    Args:
        vote: Vote to grade
        context: Market and consensus facts for the analysis
        stage: Pipeline stage. If None, derived from the vote role.
        buy_threshold: Ground-truth price at or above which BUY is correct.
            If None, uses config value.

    Returns:
        Benchmark record
    """
    if buy_threshold is None:
        buy_threshold = get_settings().benchmark_buy_threshold

    truth = context.ground_truth_price
    error_dollars = None
    error_percent = None
    direction = None
    decision_correct = None

    if truth is not None and truth > 0:
        error_dollars = abs(vote.estimated_value - truth)
        error_percent = error_dollars / truth * 100
        if error_percent <= ACCURATE_PERCENT:
            direction = "accurate"
        elif vote.estimated_value > truth:
            direction = "over"
        else:
            direction = "under"
        decision_correct = (vote.decision == "BUY") == (truth >= buy_threshold)

    return BenchmarkRecord(
        analysis_id=context.analysis_id,
        provider_id=vote.provider_id,
        stage=stage or stage_for_vote(vote, context.had_image),
        provider_price=vote.estimated_value,
        provider_decision=vote.decision,
        provider_confidence=vote.confidence,
        provider_item_name=vote.item_name,
        provider_category=vote.category,
        response_time_ms=vote.latency_ms,
        ground_truth_price=truth if truth and truth > 0 else None,
        ground_truth_source=context.ground_truth_source,
        authority_source=context.authority_source,
        authority_price=context.authority_price,
        marketplace_median=context.marketplace_median,
        marketplace_listing_count=context.marketplace_listing_count,
        market_confidence=context.market_confidence,
        price_error_dollars=error_dollars,
        price_error_percent=error_percent,
        price_direction=direction,
        decision_correct=decision_correct,
        item_name=context.item_name,
        category=context.category,
        category_confidence=context.category_confidence,
        had_image=context.had_image,
        consensus_price=context.consensus_price,
        consensus_decision=context.consensus_decision,
        final_blended_price=context.final_blended_price,
        total_votes=context.total_votes,
        quality=context.quality,
    )


def score_votes(votes: List[Vote], context: BenchmarkContext) -> List[BenchmarkRecord]:
    """Score every vote of an analysis. No votes gives an empty batch."""
    return [score_vote(vote, context) for vote in votes]


def get_accuracy_summary(records: List[BenchmarkRecord]) -> str:
    """Human-readable accuracy summary for logs."""
    if not records:
        return "No votes to score"

    graded = [r for r in records if r.has_ground_truth]
    if not graded:
        return "No ground truth available"

    lines = []
    for r in graded:
        lines.append(
            f"  {r.provider_id}: ${r.provider_price:.2f} "
            f"({r.price_direction} by {r.price_error_percent:.1f}%) "
            f"vs truth ${r.ground_truth_price:.2f}"
        )

    avg_error = math.fsum(r.price_error_percent or 0 for r in graded) / len(graded)
    accurate = sum(1 for r in graded if r.price_direction == "accurate")
    lines.append(f"  Avg error: {avg_error:.1f}% | {accurate}/{len(graded)} within 10%")
    return "\n".join(lines)
