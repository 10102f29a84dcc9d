"""Pydantic models for provider benchmarking."""

from datetime import date, datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Stage = Literal["vision", "text", "market_search", "tiebreaker"]
Direction = Literal["over", "under", "accurate"]


class BenchmarkContext(BaseModel):
    """Market and consensus facts known once an analysis has finished."""

    analysis_id: str
    item_name: str
    category: Optional[str] = None
    category_confidence: Optional[float] = None
    had_image: bool = False

    # Ground truth from market data
    ground_truth_price: Optional[float] = None
    ground_truth_source: Optional[str] = None
    authority_source: Optional[str] = None
    authority_price: Optional[float] = None
    marketplace_median: Optional[float] = None
    marketplace_listing_count: Optional[int] = None
    market_confidence: float = 0.0

    # Consensus results
    consensus_price: Optional[float] = None
    consensus_decision: Optional[str] = None
    final_blended_price: Optional[float] = None
    total_votes: int = 0
    quality: Optional[str] = None


class BenchmarkRecord(BaseModel):
    """One vote graded against ground truth. Append-only."""

    model_config = ConfigDict(frozen=True)

    analysis_id: str
    provider_id: str
    stage: Stage = "text"
    provider_price: float
    provider_decision: str
    provider_confidence: Optional[float] = None
    provider_item_name: Optional[str] = None
    provider_category: Optional[str] = None
    response_time_ms: int = 0

    ground_truth_price: Optional[float] = None
    ground_truth_source: Optional[str] = None
    authority_source: Optional[str] = None
    authority_price: Optional[float] = None
    marketplace_median: Optional[float] = None
    marketplace_listing_count: Optional[int] = None
    market_confidence: Optional[float] = None

    price_error_dollars: Optional[float] = None
    price_error_percent: Optional[float] = None
    price_direction: Optional[Direction] = None
    decision_correct: Optional[bool] = None

    item_name: str
    category: Optional[str] = None
    category_confidence: Optional[float] = None
    had_image: bool = False

    consensus_price: Optional[float] = None
    consensus_decision: Optional[str] = None
    final_blended_price: Optional[float] = None
    total_votes: int = 0
    quality: Optional[str] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_ground_truth(self) -> bool:
        return self.ground_truth_price is not None and self.ground_truth_price > 0


class CategoryScore(BaseModel):
    """One provider's accuracy within one category."""

    votes: int
    mape: float
    accuracy_10: float
    accuracy_25: float
    avg_response_ms: int
    best_category: bool = False
    worst_category: bool = False


class WeeklyScorecard(BaseModel):
    """Aggregated weekly performance for one provider."""

    provider_id: str
    provider_display_name: str
    week_start: date
    week_end: date

    # Volume
    total_votes: int = 0
    successful_votes: int = 0

    # Price accuracy
    mean_absolute_error: float = 0.0
    mean_absolute_percent_error: float = 0.0
    median_error_percent: float = 0.0
    accuracy_rate_10: float = 0.0
    accuracy_rate_25: float = 0.0

    # Direction
    over_predictions: int = 0
    under_predictions: int = 0
    accurate_predictions: int = 0

    # Decisions
    correct_decisions: int = 0
    decision_accuracy: float = 0.0

    # Speed
    avg_response_ms: int = 0
    p50_response_ms: int = 0
    p95_response_ms: int = 0

    category_scores: Dict[str, CategoryScore] = Field(default_factory=dict)

    # Vision
    vision_votes: int = 0
    vision_accuracy: float = 0.0

    # Set by build_competitive_rankings
    overall_rank: Optional[int] = None
    price_accuracy_rank: Optional[int] = None
    speed_rank: Optional[int] = None
    decision_accuracy_rank: Optional[int] = None

    composite_score: float = 0.0


class RankEntry(BaseModel):
    """One provider's place on one leaderboard."""

    rank: int
    provider_id: str
    provider_display_name: str
    score: float
    delta_from_last_week: Optional[int] = Field(
        None, description="Positive means the provider moved up"
    )


class CompetitiveRanking(BaseModel):
    """Cross-provider leaderboards for one week."""

    week_start: Optional[date] = None
    overall: List[RankEntry] = Field(default_factory=list)
    price_accuracy: List[RankEntry] = Field(default_factory=list)
    speed: List[RankEntry] = Field(default_factory=list)
    decision_accuracy: List[RankEntry] = Field(default_factory=list)
    vision_accuracy: List[RankEntry] = Field(default_factory=list)
    category_leaders: Dict[str, List[RankEntry]] = Field(default_factory=dict)
