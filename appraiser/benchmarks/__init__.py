"""Provider benchmarking against market ground truth."""

from appraiser.benchmarks.adaptive import AdaptiveWeightProvider
from appraiser.benchmarks.aggregator import (
    BenchmarkAggregator,
    build_competitive_rankings,
    build_scorecard,
)
from appraiser.benchmarks.models import (
    BenchmarkContext,
    BenchmarkRecord,
    CategoryScore,
    CompetitiveRanking,
    RankEntry,
    WeeklyScorecard,
)
from appraiser.benchmarks.recorder import BenchmarkRecorder
from appraiser.benchmarks.scorer import get_accuracy_summary, score_vote, score_votes

__all__ = [
    "AdaptiveWeightProvider",
    "BenchmarkAggregator",
    "BenchmarkContext",
    "BenchmarkRecord",
    "BenchmarkRecorder",
    "CategoryScore",
    "CompetitiveRanking",
    "RankEntry",
    "WeeklyScorecard",
    "build_competitive_rankings",
    "build_scorecard",
    "get_accuracy_summary",
    "score_vote",
    "score_votes",
]
