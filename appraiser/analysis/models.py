"""Models for votes and consensus results."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from appraiser.category.models import CategoryDetection
from appraiser.evidence.models import EvidenceSummary
from appraiser.llm.models import Decision


class VoteRole(str, Enum):
    """Why a vote was cast; drives weight and confidence adjustments."""

    PRIMARY = "primary"
    MARKET_SEARCH = "market_search"
    TIEBREAKER = "tiebreaker"
    EMERGENCY = "emergency"


class AnalysisQuality(str, Enum):
    HIGH = "HIGH"
    GOOD = "GOOD"
    MODERATE = "MODERATE"
    LOW = "LOW"
    DEGRADED = "DEGRADED"
    FAILED = "FAILED"


class Vote(BaseModel):
    """One provider's opinion about one item. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    item_name: str
    category: Optional[str] = None
    estimated_value: float = Field(..., ge=0)
    decision: Decision
    confidence: float = Field(..., ge=0.0, le=1.0)
    latency_ms: int = 0
    weight: float = Field(..., ge=0)
    role: VoteRole = VoteRole.PRIMARY
    raw_response: Dict[str, Any] = Field(default_factory=dict)

    @property
    def explanation(self) -> Optional[str]:
        """The provider's own justification, short form preferred."""
        text = self.raw_response.get("summary_reasoning") or self.raw_response.get("reasoning")
        return text or None


class VoteTally(BaseModel):
    """Weighted BUY/SELL aggregate of a vote list."""

    model_config = ConfigDict(frozen=True)

    buy_weight: float = 0.0
    sell_weight: float = 0.0
    total_weight: float = 0.0
    weight_difference: float = 0.0
    decision: Decision = "SELL"
    is_close_vote: bool = False
    buy_count: int = 0
    sell_count: int = 0
    total_votes: int = 0


class VoteStats(BaseModel):
    """Statistical summary of a vote list."""

    model_config = ConfigDict(frozen=True)

    average_confidence: float = 0.0
    average_latency_ms: float = 0.0
    weighted_value: float = 0.0
    value_agreement: float = 0.0
    decision_agreement: float = 0.0
    consensus_item_name: Optional[str] = None


class ConsensusResult(BaseModel):
    """Final blended appraisal for one item."""

    model_config = ConfigDict(frozen=True)

    item_name: str
    estimated_value: float
    decision: Decision
    confidence: int = Field(..., ge=0, le=100)
    reasoning: str
    quality: AnalysisQuality
    tally: VoteTally
    stats: VoteStats
    authority_price: Optional[float] = None
    blend: Optional[str] = None


class AnalysisOutcome(BaseModel):
    """Everything one analysis produced, for collaborators and audit."""

    analysis_id: str
    consensus: ConsensusResult
    evidence: EvidenceSummary
    votes: List[Vote] = Field(default_factory=list)
    category: CategoryDetection
    tiebreaker_used: bool = False
    persisted: bool = False
