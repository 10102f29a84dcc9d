"""Weekly provider scorecards and competitive rankings."""

import logging
import math
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from appraiser.benchmarks.models import (
    BenchmarkRecord,
    CategoryScore,
    CompetitiveRanking,
    RankEntry,
    WeeklyScorecard,
)
from appraiser.llm.registry import get_display_name
from appraiser.utils.helpers import percentile

logger = logging.getLogger(__name__)

MIN_CATEGORY_VOTES = 3
MIN_LEADER_VOTES = 2
FULL_COVERAGE_VOTES = 10


def week_start_for(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def week_bounds(week_start: date) -> Tuple[datetime, datetime]:
    """UTC [start, end) datetimes of the week beginning ``week_start``."""
    start = datetime.combine(week_start, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=7)


def _mean(values: List[float]) -> float:
    return math.fsum(values) / len(values) if values else 0.0


def _category_scores(graded: List[BenchmarkRecord]) -> Dict[str, CategoryScore]:
    groups: Dict[str, List[BenchmarkRecord]] = defaultdict(list)
    for record in graded:
        groups[record.category or "general"].append(record)

    scores = {}
    for category, records in sorted(groups.items()):
        errors = [r.price_error_percent or 0 for r in records]
        n = len(records)
        scores[category] = CategoryScore(
            votes=n,
            mape=round(_mean(errors), 2),
            accuracy_10=round(sum(1 for e in errors if e <= 10) / n, 4),
            accuracy_25=round(sum(1 for e in errors if e <= 25) / n, 4),
            avg_response_ms=int(round(_mean([r.response_time_ms for r in records]))),
        )

    eligible = [(name, s) for name, s in scores.items() if s.votes >= MIN_CATEGORY_VOTES]
    if len(eligible) >= 2:
        eligible.sort(key=lambda item: (item[1].mape, item[0]))
        eligible[0][1].best_category = True
        eligible[-1][1].worst_category = True
    return scores


def composite_score(
    mape: float, decision_accuracy: float, avg_response_ms: float, total_votes: int
) -> float:
    """0-100 score: accuracy 40%, decisions 20%, speed 20%, volume 20%."""
    accuracy = max(0.0, 100 - mape)
    decisions = decision_accuracy * 100
    # Under 1.5s scores 100, 15s or more scores 0
    speed = max(0.0, 100 - avg_response_ms / 150)
    coverage = min(100.0, total_votes / FULL_COVERAGE_VOTES * 100)
    return round(accuracy * 0.4 + decisions * 0.2 + speed * 0.2 + coverage * 0.2, 2)


def _vision_hit(record: BenchmarkRecord) -> bool:
    if not record.provider_item_name or not record.item_name:
        return False
    first_word = record.item_name.lower().split(" ")[0]
    return first_word in record.provider_item_name.lower()


def build_scorecard(
    provider_id: str,
    records: List[BenchmarkRecord],
    week_start: date,
    week_end: date,
    display_name: Optional[str] = None,
) -> Optional[WeeklyScorecard]:
    """Aggregate one provider's benchmark records.

    Args:
        provider_id: Provider id
        records: The provider's records for the period
        week_start: First day of the period
        week_end: Day after the period
        display_name: Name for reports. If None, the registry display name.

    Returns:
        Scorecard, or None when there are no records
    """
    if not records:
        return None

    graded = [r for r in records if r.has_ground_truth]
    n = len(graded) or 1

    errors = [r.price_error_percent or 0 for r in graded]
    sorted_errors = sorted(errors)
    median_error = sorted_errors[len(sorted_errors) // 2] if sorted_errors else 0.0
    mae = math.fsum(r.price_error_dollars or 0 for r in graded) / n
    mape = math.fsum(errors) / n

    correct = sum(1 for r in graded if r.decision_correct)
    decision_accuracy = correct / n

    times = sorted(r.response_time_ms for r in records if r.response_time_ms > 0)
    avg_ms = int(round(_mean(times)))

    vision = [r for r in records if r.stage == "vision" and r.had_image]
    vision_hits = sum(1 for r in vision if _vision_hit(r))

    return WeeklyScorecard(
        provider_id=provider_id,
        provider_display_name=display_name or get_display_name(provider_id),
        week_start=week_start,
        week_end=week_end,
        total_votes=len(records),
        successful_votes=len(graded),
        mean_absolute_error=round(mae, 2),
        mean_absolute_percent_error=round(mape, 2),
        median_error_percent=round(median_error, 2),
        accuracy_rate_10=round(sum(1 for e in errors if e <= 10) / n, 4),
        accuracy_rate_25=round(sum(1 for e in errors if e <= 25) / n, 4),
        over_predictions=sum(1 for r in graded if r.price_direction == "over"),
        under_predictions=sum(1 for r in graded if r.price_direction == "under"),
        accurate_predictions=sum(
            1 for r in graded if r.price_direction not in ("over", "under")
        ),
        correct_decisions=correct,
        decision_accuracy=round(decision_accuracy, 4),
        avg_response_ms=avg_ms,
        p50_response_ms=int(percentile(times, 0.5)),
        p95_response_ms=int(percentile(times, 0.95)),
        category_scores=_category_scores(graded),
        vision_votes=len(vision),
        vision_accuracy=round(vision_hits / len(vision), 4) if vision else 0.0,
        composite_score=composite_score(mape, decision_accuracy, avg_ms, len(records)),
    )


def _rank_by(
    scorecards: List[WeeklyScorecard],
    field: str,
    descending: bool,
    previous: Optional[List[WeeklyScorecard]] = None,
) -> List[RankEntry]:
    def order(cards: List[WeeklyScorecard]) -> List[WeeklyScorecard]:
        sign = -1 if descending else 1
        return sorted(cards, key=lambda s: (sign * getattr(s, field), s.provider_id))

    previous_ranks = {}
    if previous:
        previous_ranks = {s.provider_id: i for i, s in enumerate(order(previous), start=1)}

    entries = []
    for rank, card in enumerate(order(scorecards), start=1):
        prev_rank = previous_ranks.get(card.provider_id)
        entries.append(
            RankEntry(
                rank=rank,
                provider_id=card.provider_id,
                provider_display_name=card.provider_display_name,
                score=getattr(card, field),
                delta_from_last_week=prev_rank - rank if prev_rank is not None else None,
            )
        )
    return entries


def _category_leaders(scorecards: List[WeeklyScorecard]) -> Dict[str, List[RankEntry]]:
    categories = sorted({c for card in scorecards for c in card.category_scores})
    leaders = {}
    for category in categories:
        contenders = [
            card
            for card in scorecards
            if category in card.category_scores
            and card.category_scores[category].votes >= MIN_LEADER_VOTES
        ]
        if len(contenders) < 2:
            continue
        contenders.sort(
            key=lambda card: (-card.category_scores[category].accuracy_10, card.provider_id)
        )
        leaders[category] = [
            RankEntry(
                rank=rank,
                provider_id=card.provider_id,
                provider_display_name=card.provider_display_name,
                score=card.category_scores[category].accuracy_10,
            )
            for rank, card in enumerate(contenders, start=1)
        ]
    return leaders


def build_competitive_rankings(
    scorecards: List[WeeklyScorecard],
    previous_week: Optional[List[WeeklyScorecard]] = None,
) -> CompetitiveRanking:
    """Rank providers on every dimension and write the ranks back to the scorecards.

    Args:
        scorecards: This week's scorecards
        previous_week: Last week's scorecards, for rank deltas

    Returns:
        Competitive ranking
    """
    overall = _rank_by(scorecards, "composite_score", True, previous_week)
    price_accuracy = _rank_by(scorecards, "mean_absolute_percent_error", False, previous_week)
    speed = _rank_by(scorecards, "avg_response_ms", False, previous_week)
    decision_accuracy = _rank_by(scorecards, "decision_accuracy", True, previous_week)
    vision_accuracy = _rank_by(
        [s for s in scorecards if s.vision_votes > 0],
        "vision_accuracy",
        True,
        [s for s in previous_week or [] if s.vision_votes > 0],
    )

    by_id = {card.provider_id: card for card in scorecards}
    for entries, attr in (
        (overall, "overall_rank"),
        (price_accuracy, "price_accuracy_rank"),
        (speed, "speed_rank"),
        (decision_accuracy, "decision_accuracy_rank"),
    ):
        for entry in entries:
            setattr(by_id[entry.provider_id], attr, entry.rank)

    return CompetitiveRanking(
        week_start=scorecards[0].week_start if scorecards else None,
        overall=overall,
        price_accuracy=price_accuracy,
        speed=speed,
        decision_accuracy=decision_accuracy,
        vision_accuracy=vision_accuracy,
        category_leaders=_category_leaders(scorecards),
    )


class BenchmarkAggregator:
    """Builds weekly scorecards from stored benchmark records."""

    def __init__(
        self,
        fetch_records: Callable[[datetime, datetime, Optional[str]], List[BenchmarkRecord]],
    ):
        """Initialize aggregator.

        Args:
            fetch_records: Returns records created in [start, end), optionally
                for one provider. Usually ``BenchmarkRepository.get_between``.
        """
        self.fetch_records = fetch_records

    def aggregate_week(self, provider_id: str, week_start: date) -> Optional[WeeklyScorecard]:
        """Scorecard for one provider, or None if it cast no votes that week."""
        start, end = week_bounds(week_start)
        records = self.fetch_records(start, end, provider_id)
        return build_scorecard(provider_id, records, week_start, end.date())

    def aggregate_all(self, week_start: date) -> List[WeeklyScorecard]:
        """Scorecards for every provider with votes in the week."""
        start, end = week_bounds(week_start)
        grouped: Dict[str, List[BenchmarkRecord]] = defaultdict(list)
        for record in self.fetch_records(start, end, None):
            grouped[record.provider_id].append(record)

        scorecards = []
        for provider_id in sorted(grouped):
            card = build_scorecard(provider_id, grouped[provider_id], week_start, end.date())
            if card is not None:
                scorecards.append(card)
        logger.info(f"Aggregated {len(scorecards)} provider scorecards for week of {week_start}")
        return scorecards

    def rankings(self, week_start: date) -> Tuple[List[WeeklyScorecard], CompetitiveRanking]:
        """This week's scorecards with ranks applied, plus the leaderboards."""
        scorecards = self.aggregate_all(week_start)
        previous = self.aggregate_all(week_start - timedelta(days=7))
        return scorecards, build_competitive_rankings(scorecards, previous)
