"""Tiebreaker arbitration for close or divergent votes."""

import logging
import math
import time
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from appraiser.analysis.consensus import tally_votes
from appraiser.analysis.models import Vote, VoteRole
from appraiser.analysis.votes import create_vote
from appraiser.config import get_settings
from appraiser.llm.base import extract_json
from appraiser.llm.exceptions import MalformedResponseError
from appraiser.llm.manager import LLMManager
from appraiser.llm.models import ItemAnalysisResponse
from appraiser.llm.registry import WeightSnapshot
from appraiser.utils.background import run_with_deadline
from appraiser.utils.helpers import format_price

logger = logging.getLogger(__name__)


def vote_split(votes: List[Vote]) -> Optional[float]:
    """BUY/SELL weight split in percentage points, or None without weight."""
    buy = math.fsum(v.weight for v in votes if v.decision == "BUY")
    sell = math.fsum(v.weight for v in votes if v.decision == "SELL")
    total = buy + sell
    if total <= 0:
        return None
    # Rounded so an exact split is not pushed under the threshold by float error
    return round(abs(buy - sell) * 100 / total, 9)


def needs_tiebreaker(votes: List[Vote], threshold: Optional[float] = None) -> bool:
    """Whether the weighted split is strictly inside ``threshold`` points.

    Args:
        votes: Primary votes
        threshold: Split in percentage points. If None, uses config value.

    Returns:
        True when the vote is too close to call
    """
    if threshold is None:
        threshold = get_settings().tiebreaker_split_threshold
    split = vote_split(votes)
    return split is not None and split < threshold


def values_are_divergent(values: List[float], threshold: Optional[float] = None) -> bool:
    """Whether (max - min) / min exceeds ``threshold`` percent.

    A zero minimum counts as divergent whenever any value is positive.
    """
    if threshold is None:
        threshold = get_settings().value_divergence_threshold
    if len(values) < 2:
        return False
    low, high = min(values), max(values)
    if low <= 0:
        return high > 0
    return (high - low) / low * 100 > threshold


def should_arbitrate(votes: List[Vote]) -> bool:
    return needs_tiebreaker(votes) or values_are_divergent([v.estimated_value for v in votes])


class VoteSummary(BaseModel):
    """Image-free text view of one vote, numbered from 1."""

    model_config = ConfigDict(frozen=True)

    index: int
    provider_id: str
    item_name: str
    category: Optional[str] = None
    estimated_value: float
    decision: str
    confidence: float
    explanation: Optional[str] = None

    def to_line(self) -> str:
        line = (
            f"Vote {self.index} ({self.provider_id}): {self.item_name} - "
            f"{self.decision} at {format_price(self.estimated_value)}, "
            f"confidence {self.confidence:.2f}"
        )
        if self.explanation:
            line += f"\n   Reasoning: {self.explanation}"
        return line


class TiebreakerResponse(BaseModel):
    """Validated arbitration answer."""

    model_config = ConfigDict(frozen=True)

    selected_vote: int
    confidence: float
    reasoning: str
    adjusted_value: Optional[float] = None
    adjusted_decision: Optional[str] = None
    provider_id: Optional[str] = None
    latency_ms: int = 0


def build_vote_summaries(votes: List[Vote]) -> List[VoteSummary]:
    return [
        VoteSummary(
            index=i,
            provider_id=vote.provider_id,
            item_name=vote.item_name,
            category=vote.category,
            estimated_value=vote.estimated_value,
            decision=vote.decision,
            confidence=vote.confidence,
            explanation=vote.explanation,
        )
        for i, vote in enumerate(votes, start=1)
    ]


def build_tiebreaker_prompt(
    summaries: List[VoteSummary], item_description: Optional[str] = None
) -> str:
    """Build the arbitration prompt from vote summaries.

    Args:
        summaries: Conflicting votes
        item_description: Text description of the item, if any

    Returns:
        Formatted prompt string
    """
    votes_text = "\n".join(summary.to_line() for summary in summaries)
    description = f"\nItem description:\n{item_description}\n" if item_description else ""

    prompt = f"""Several appraisers disagree about the resale value of an item. Review their votes and select the most credible one.
{description}
Votes:
{votes_text}

Select exactly one vote by its number. You may adjust its value or decision if the evidence in the other votes warrants it.

Respond in JSON format:
{{
    "selectedVote": <vote number from 1 to {len(summaries)}>,
    "confidence": <float between 0 and 1>,
    "reasoning": "<why this vote is the most credible>",
    "adjustedValue": <number or null>,
    "adjustedDecision": "BUY", "SELL" or null
}}
"""
    return prompt


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_tiebreaker_response(
    text: str, vote_count: int, provider_id: Optional[str] = None
) -> TiebreakerResponse:
    """Parse and validate an arbitration answer.

    Args:
        text: Raw reply text
        vote_count: Number of votes offered for selection
        provider_id: Answering provider, for error reporting

    Returns:
        Validated response

    Raises:
        MalformedResponseError: Listing every validation problem found
    """
    data = extract_json(text, provider_id=provider_id)
    errors = []

    selected = _first(data, "selectedVote", "selected_vote")
    if isinstance(selected, float) and selected.is_integer():
        selected = int(selected)
    if not isinstance(selected, int) or isinstance(selected, bool):
        errors.append("selectedVote must be an integer")
    elif not 1 <= selected <= vote_count:
        errors.append(f"selectedVote {selected} out of range 1-{vote_count}")

    confidence = data.get("confidence")
    if not _is_number(confidence):
        errors.append("confidence must be a number")
    elif not 0.0 <= confidence <= 1.0:
        errors.append(f"confidence {confidence} outside [0, 1]")

    reasoning = data.get("reasoning")
    if not isinstance(reasoning, str) or not reasoning.strip():
        errors.append("reasoning is required")

    adjusted_value = _first(data, "adjustedValue", "adjusted_value")
    if adjusted_value is not None:
        if not _is_number(adjusted_value):
            errors.append("adjustedValue must be a number")
        elif adjusted_value < 0:
            errors.append(f"adjustedValue {adjusted_value} is negative")

    adjusted_decision = _first(data, "adjustedDecision", "adjusted_decision")
    if adjusted_decision is not None:
        if isinstance(adjusted_decision, str) and adjusted_decision.strip().upper() in ("BUY", "SELL"):
            adjusted_decision = adjusted_decision.strip().upper()
        else:
            errors.append(f"adjustedDecision {adjusted_decision!r} must be BUY or SELL")

    if errors:
        raise MalformedResponseError(
            "Invalid tiebreaker response: " + "; ".join(errors),
            provider_id=provider_id,
            raw_text=text,
        )

    return TiebreakerResponse(
        selected_vote=selected,
        confidence=float(confidence),
        reasoning=reasoning.strip(),
        adjusted_value=float(adjusted_value) if adjusted_value is not None else None,
        adjusted_decision=adjusted_decision,
        provider_id=provider_id,
    )


def create_tiebreaker_vote(
    response: TiebreakerResponse,
    summaries: List[VoteSummary],
    snapshot: Optional[WeightSnapshot] = None,
) -> Vote:
    """Turn an arbitration answer into a discounted tiebreaker vote.

    Args:
        response: Validated arbitration answer
        summaries: Summaries the answer indexes into
        snapshot: Base weights for this analysis

    Returns:
        Tiebreaker vote
    """
    selected = summaries[response.selected_vote - 1]
    value = selected.estimated_value if response.adjusted_value is None else response.adjusted_value
    decision = response.adjusted_decision or selected.decision

    analysis = ItemAnalysisResponse(
        item_name=selected.item_name,
        category=selected.category,
        estimated_value=value,
        decision=decision,
        confidence=response.confidence,
        reasoning=response.reasoning,
        provider=response.provider_id,
    )
    return create_vote(
        response.provider_id or "tiebreaker",
        analysis,
        confidence=response.confidence,
        latency_ms=response.latency_ms,
        role=VoteRole.TIEBREAKER,
        snapshot=snapshot,
    )


def analyze_tiebreaker_impact(
    primary_votes: List[Vote], tiebreaker_vote: Vote
) -> Tuple[bool, float]:
    """Whether the tiebreaker flipped the decision, and how far it moved BUY-minus-SELL weight."""
    before = tally_votes(primary_votes)
    after = tally_votes(primary_votes + [tiebreaker_vote])
    shift = (after.buy_weight - after.sell_weight) - (before.buy_weight - before.sell_weight)
    return before.decision != after.decision, shift


class Tiebreaker:
    """Asks one adjudicating model to settle a close or divergent vote."""

    def __init__(self, llm_manager: LLMManager, timeout: Optional[float] = None):
        """Initialize tiebreaker.

        Args:
            llm_manager: Manager holding the tiebreaker provider
            timeout: Call timeout in seconds. If None, uses config value.
        """
        self.llm_manager = llm_manager
        self.timeout = timeout or get_settings().provider_timeout_seconds

    async def arbitrate(
        self,
        summaries: List[VoteSummary],
        item_description: Optional[str] = None,
    ) -> Optional[TiebreakerResponse]:
        """Request an arbitration.

        Args:
            summaries: Conflicting votes
            item_description: Text description of the item

        Returns:
            Validated answer, or None if no provider answered usefully
        """
        if len(summaries) < 2:
            return None

        provider = self.llm_manager.tiebreaker_provider()
        if provider is None:
            logger.info("No tiebreaker provider configured")
            return None

        prompt = build_tiebreaker_prompt(summaries, item_description)
        started = time.monotonic()
        text = await run_with_deadline(
            provider.analyze_custom_prompt(prompt),
            self.timeout,
            f"tiebreaker {provider.provider_id}",
        )
        if text is None:
            return None

        try:
            response = parse_tiebreaker_response(text, len(summaries), provider.provider_id)
        except MalformedResponseError as e:
            logger.warning(f"Rejected tiebreaker answer from {provider.provider_id}: {e}")
            return None

        latency_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Tiebreaker {provider.provider_id} selected vote {response.selected_vote} "
            f"(confidence {response.confidence:.2f})"
        )
        return response.model_copy(update={"latency_ms": latency_ms})

    async def cast_vote(
        self,
        votes: List[Vote],
        item_description: Optional[str] = None,
        snapshot: Optional[WeightSnapshot] = None,
    ) -> Optional[Vote]:
        """Arbitrate ``votes`` and return the resulting tiebreaker vote, if any."""
        summaries = build_vote_summaries(votes)
        response = await self.arbitrate(summaries, item_description)
        if response is None:
            return None

        vote = create_tiebreaker_vote(response, summaries, snapshot)
        changed, shift = analyze_tiebreaker_impact(votes, vote)
        logger.info(f"Tiebreaker impact: decision changed={changed}, weight shift={shift:+.3f}")
        return vote
