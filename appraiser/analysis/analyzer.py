"""Main analysis orchestrator."""

import asyncio
import logging
import uuid
from typing import Callable, List, Optional, Tuple

from appraiser.analysis.consensus import calculate_consensus
from appraiser.analysis.context_builder import ContextBuilder
from appraiser.analysis.models import AnalysisOutcome, Vote, VoteRole
from appraiser.analysis.tiebreaker import Tiebreaker, should_arbitrate
from appraiser.analysis.votes import votes_from_calls, votes_from_web_results
from appraiser.benchmarks.adaptive import AdaptiveWeightProvider
from appraiser.benchmarks.models import BenchmarkContext
from appraiser.benchmarks.recorder import BenchmarkRecorder
from appraiser.category.detector import CategoryDetector
from appraiser.category.models import CategoryDetection
from appraiser.config import get_settings
from appraiser.database.repositories import AnalysisRepository, BenchmarkRepository
from appraiser.evidence.fetcher import EvidenceFetcher
from appraiser.evidence.market import MarketDataProvider, PriceServiceClient
from appraiser.evidence.models import MarketData
from appraiser.llm.manager import LLMManager, ProviderCallResult
from appraiser.llm.models import ItemContext
from appraiser.llm.registry import WeightSnapshot, default_snapshot
from appraiser.utils.background import BackgroundWriter, run_with_deadline

logger = logging.getLogger(__name__)


def strongest_model_category(votes: List[Vote]) -> Optional[str]:
    """Category suggested by the most heavily weighted vote that named one."""
    named = [v for v in votes if v.category]
    if not named:
        return None
    best = min(named, key=lambda v: (-v.weight, -v.confidence, v.provider_id))
    return best.category


def ground_truth_from(market_data: MarketData) -> Tuple[Optional[float], Optional[str]]:
    """Market-anchored reference price and the sources it was blended from."""
    price = market_data.blended_price
    if price is None:
        return None, None
    sources = [
        s.source
        for s in market_data.sources
        if s.available and ((s.price or 0) > 0 or (s.median_price or 0) > 0)
    ]
    return price, "+".join(sources)


class Analyzer:
    """Main orchestrator for item appraisal."""

    def __init__(
        self,
        llm_manager: Optional[LLMManager] = None,
        market_provider: Optional[MarketDataProvider] = None,
        detector: Optional[CategoryDetector] = None,
        analysis_repo: Optional[AnalysisRepository] = None,
        benchmark_repo: Optional[BenchmarkRepository] = None,
        weights: Optional[Callable[[], WeightSnapshot]] = None,
        writer: Optional[BackgroundWriter] = None,
        persist: bool = True,
    ):
        """Initialize analyzer.

        Args:
            llm_manager: Providers to consult. If None, every configured provider.
            market_provider: Structured market data. If None, the price service
                when one is configured.
            detector: Category detector. If None, the built-in rules.
            analysis_repo: Where analyses are stored
            benchmark_repo: Where benchmark records are stored
            weights: Returns the weight snapshot for a new analysis. If None,
                adaptive weights when enabled, otherwise static weights.
            writer: Background queue for benchmark writes
            persist: Store analyses and benchmarks
        """
        settings = get_settings()
        self.settings = settings
        self.llm_manager = llm_manager or LLMManager()

        if market_provider is None and settings.market_service_url:
            market_provider = PriceServiceClient()

        self.detector = detector or CategoryDetector()
        self.context_builder = ContextBuilder()
        self.evidence_fetcher = EvidenceFetcher(self.llm_manager, market_provider)
        self.tiebreaker = Tiebreaker(self.llm_manager)
        self.writer = writer or BackgroundWriter("benchmarks")

        self.analysis_repo = analysis_repo
        self.benchmark_repo = benchmark_repo
        if persist:
            self.analysis_repo = analysis_repo or AnalysisRepository()
            self.benchmark_repo = benchmark_repo or BenchmarkRepository(db=self.analysis_repo.db)

        self.recorder = BenchmarkRecorder(
            self.writer, self.benchmark_repo.insert_many if self.benchmark_repo else None
        )

        if weights is None:
            if settings.adaptive_weights_enabled and self.benchmark_repo is not None:
                weights = AdaptiveWeightProvider(self.benchmark_repo.get_since).snapshot
            else:
                weights = default_snapshot
        self.weights = weights

    async def analyze(
        self,
        item_name: str,
        image_description: Optional[str] = None,
        category_hint: Optional[str] = None,
        additional_context: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> AnalysisOutcome:
        """Appraise one item.

        Provider failures only lower the quality of the result; with no
        usable votes at all the consensus is FAILED rather than an error.

        Args:
            item_name: Item name or description
            image_description: Text description of the item photo
            category_hint: Category supplied by the caller
            additional_context: Free-form notes from the caller
            timeout: Budget in seconds for each network stage. If None,
                uses config values.

        Returns:
            Analysis outcome

        Raises:
            ValueError: If item_name is empty
        """
        if not item_name or not item_name.strip():
            raise ValueError("item_name is required")
        item_name = item_name.strip()

        analysis_id = uuid.uuid4().hex
        snapshot = self.weights()
        detection = self.detector.detect(item_name, category_hint)
        logger.info(
            f"[{analysis_id}] {item_name}: category {detection.category} "
            f"({detection.source}, {detection.confidence:.2f}), weights v{snapshot.version}"
        )

        context = self.context_builder.build_context(
            item_name, detection, image_description, category_hint, additional_context
        )
        fetched = await self.evidence_fetcher.fetch_evidence(
            item_name, detection.category, context, timeout
        )
        evidence = fetched.evidence_summary
        search_votes = votes_from_web_results(fetched.web_search_results, snapshot, item_name)

        context = self.context_builder.build_context(
            item_name, detection, image_description, category_hint, additional_context, evidence
        )
        calls = await self.llm_manager.analyze_with_providers(context, timeout=timeout)
        primary_votes = votes_from_calls(calls, VoteRole.PRIMARY, snapshot, item_name)
        if not primary_votes and not search_votes:
            primary_votes = await self._emergency_votes(context, calls, snapshot, item_name, timeout)

        detection = self._refine_category(item_name, category_hint, detection, primary_votes)

        votes = primary_votes + search_votes
        tiebreaker_used = False
        if len(votes) >= 2 and should_arbitrate(votes):
            tiebreaker_vote = await self.tiebreaker.cast_vote(
                votes, self._describe(context), snapshot
            )
            if tiebreaker_vote is not None:
                votes.append(tiebreaker_vote)
                tiebreaker_used = True

        authority_price = evidence.authority.price if evidence.authority else None
        consensus = calculate_consensus(votes, authority_price, fallback_item_name=item_name)
        logger.info(
            f"[{analysis_id}] {consensus.decision} at ${consensus.estimated_value:.2f} "
            f"(confidence {consensus.confidence}, {consensus.quality.value}, {len(votes)} votes)"
        )

        outcome = AnalysisOutcome(
            analysis_id=analysis_id,
            consensus=consensus,
            evidence=evidence,
            votes=votes,
            category=detection,
            tiebreaker_used=tiebreaker_used,
        )
        persisted = await self._persist(outcome, snapshot)
        outcome = outcome.model_copy(update={"persisted": persisted})

        self._record_benchmarks(outcome, fetched.market_data, image_description is not None)
        return outcome

    def analyze_sync(self, item_name: str, **kwargs) -> AnalysisOutcome:
        """Blocking wrapper around ``analyze`` that also finishes background writes."""
        return asyncio.run(self._analyze_and_drain(item_name, **kwargs))

    async def _analyze_and_drain(self, item_name: str, **kwargs) -> AnalysisOutcome:
        outcome = await self.analyze(item_name, **kwargs)
        await self.writer.drain()
        return outcome

    async def _emergency_votes(
        self,
        context: ItemContext,
        calls: List[ProviderCallResult],
        snapshot: WeightSnapshot,
        item_name: str,
        timeout: Optional[float],
    ) -> List[Vote]:
        """Ask the tiebreaker model to appraise alone when nobody else answered."""
        provider = self.llm_manager.tiebreaker_provider()
        if provider is None:
            return []
        if provider.provider_id in {call.provider_id for call in calls}:
            return []

        logger.warning(f"No primary votes; asking {provider.provider_id} for an emergency vote")
        results = await self.llm_manager.analyze_with_providers(
            context, provider_ids=[provider.provider_id], timeout=timeout
        )
        return votes_from_calls(results, VoteRole.EMERGENCY, snapshot, item_name)

    def _refine_category(
        self,
        item_name: str,
        category_hint: Optional[str],
        detection: CategoryDetection,
        votes: List[Vote],
    ) -> CategoryDetection:
        model_category = strongest_model_category(votes)
        if not model_category:
            return detection
        refined = self.detector.detect(item_name, category_hint, model_category)
        if refined.category != detection.category:
            logger.info(
                f"Category refined {detection.category} -> {refined.category} ({refined.source})"
            )
        return refined

    @staticmethod
    def _describe(context: ItemContext) -> str:
        parts = [context.item_name]
        if context.image_description:
            parts.append(context.image_description)
        if context.additional_context:
            parts.append(context.additional_context)
        return "\n".join(parts)

    async def _persist(self, outcome: AnalysisOutcome, snapshot: WeightSnapshot) -> bool:
        if self.analysis_repo is None:
            return False
        saved = await run_with_deadline(
            asyncio.to_thread(self.analysis_repo.save, outcome, snapshot.version),
            self.settings.persistence_timeout_seconds,
            f"persist analysis {outcome.analysis_id}",
        )
        return saved is not None

    def _record_benchmarks(
        self, outcome: AnalysisOutcome, market_data: MarketData, had_image: bool
    ) -> None:
        consensus = outcome.consensus
        evidence = outcome.evidence
        truth, truth_source = ground_truth_from(market_data)
        context = BenchmarkContext(
            analysis_id=outcome.analysis_id,
            item_name=consensus.item_name,
            category=outcome.category.category,
            category_confidence=outcome.category.confidence,
            had_image=had_image,
            ground_truth_price=truth,
            ground_truth_source=truth_source,
            authority_source=evidence.authority.source if evidence.authority else None,
            authority_price=evidence.authority.price if evidence.authority else None,
            marketplace_median=evidence.marketplace.median if evidence.marketplace else None,
            marketplace_listing_count=evidence.marketplace.listings if evidence.marketplace else None,
            market_confidence=evidence.market_confidence,
            consensus_price=consensus.estimated_value,
            consensus_decision=consensus.decision,
            final_blended_price=consensus.estimated_value,
            total_votes=len(outcome.votes),
            quality=consensus.quality.value,
        )
        self.recorder.record(outcome.votes, context)
        self.writer.schedule(self.settings.persistence_timeout_seconds)
