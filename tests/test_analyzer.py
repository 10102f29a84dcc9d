from datetime import datetime, timezone

import pytest

from appraiser.analysis.analyzer import Analyzer, ground_truth_from, strongest_model_category
from appraiser.analysis.models import AnalysisQuality, VoteRole
from appraiser.database.capabilities import FieldCapabilityCache
from appraiser.database.repositories import AnalysisRepository, BenchmarkRepository
from appraiser.evidence.market import StaticMarketDataProvider
from appraiser.evidence.models import MarketData, MarketSource
from appraiser.llm.manager import LLMManager
from appraiser.llm.registry import default_snapshot
from appraiser.utils.background import BackgroundWriter
from tests.conftest import FakeProvider, make_vote

ALL_TIME = (datetime(2000, 1, 1, tzinfo=timezone.utc), datetime(2100, 1, 1, tzinfo=timezone.utc))


def _answer(value, decision="BUY", confidence=0.8, **extra):
    data = {
        "item_name": "Nintendo Switch OLED",
        "category": "video games",
        "estimated_value": value,
        "decision": decision,
        "confidence": confidence,
        "reasoning": f"Comparable consoles sell near ${value}.",
    }
    data.update(extra)
    return data


def _market(median=230.0, listings=12):
    return StaticMarketDataProvider(
        MarketData(sources=[MarketSource(source="ebay", median_price=median, listing_count=listings)])
    )


def _analyzer(providers, db=None, market=None, writer=None):
    manager = LLMManager(providers=providers)
    if db is None:
        return Analyzer(
            llm_manager=manager,
            market_provider=market or _market(),
            weights=default_snapshot,
            writer=writer,
            persist=False,
        )
    cache = FieldCapabilityCache()
    return Analyzer(
        llm_manager=manager,
        market_provider=market or _market(),
        analysis_repo=AnalysisRepository(db=db, capabilities=cache),
        benchmark_repo=BenchmarkRepository(db=db, capabilities=cache),
        weights=default_snapshot,
        writer=writer,
    )


@pytest.mark.asyncio
async def test_no_providers_gives_failed_result_and_no_benchmarks():
    writer = BackgroundWriter("test")
    analyzer = _analyzer({}, writer=writer)

    outcome = await analyzer.analyze("Vintage Brass Lamp")

    assert outcome.consensus.quality == AnalysisQuality.FAILED
    assert outcome.consensus.decision == "SELL"
    assert outcome.consensus.item_name == "Vintage Brass Lamp"
    assert outcome.votes == []
    assert outcome.persisted is False
    assert writer.pending_count == 0


@pytest.mark.asyncio
async def test_empty_item_name_is_rejected():
    with pytest.raises(ValueError):
        await _analyzer({}).analyze("   ")


def test_full_analysis_is_persisted_with_benchmarks(db):
    providers = {
        "openai": FakeProvider("openai", reply=_answer(250, confidence=0.9)),
        "anthropic": FakeProvider("anthropic", reply=_answer(240)),
        "perplexity": FakeProvider(
            "perplexity",
            reply=_answer(245.5, market_details={"median_price": 244.0, "recent_sold": [239.99, 251.0]}),
        ),
    }
    analyzer = _analyzer(providers, db=db)

    outcome = analyzer.analyze_sync("Nintendo Switch OLED")

    assert outcome.consensus.decision == "BUY"
    assert outcome.tiebreaker_used is False
    assert [v.role for v in outcome.votes] == [
        VoteRole.PRIMARY,
        VoteRole.PRIMARY,
        VoteRole.MARKET_SEARCH,
    ]
    assert outcome.category.category == "video_games"
    assert outcome.category.source == "ai_vote"
    assert outcome.evidence.marketplace.median == 230.0
    assert outcome.evidence.web_prices is not None
    assert "MARKET EVIDENCE:" in providers["openai"].prompts[0]
    assert outcome.persisted is True

    stored = analyzer.analysis_repo.get(outcome.analysis_id)
    assert stored["decision"] == "BUY"
    assert stored["weight_snapshot_version"] == 0
    assert len(analyzer.analysis_repo.get_votes(outcome.analysis_id)) == 3

    records = analyzer.benchmark_repo.get_between(*ALL_TIME)
    assert {r.provider_id for r in records} == {"openai", "anthropic", "perplexity"}
    assert all(r.ground_truth_price == 230.0 for r in records)
    assert all(r.ground_truth_source == "ebay" for r in records)
    stages = {r.provider_id: r.stage for r in records}
    assert stages == {"openai": "text", "anthropic": "text", "perplexity": "market_search"}


@pytest.mark.asyncio
async def test_close_vote_brings_in_tiebreaker():
    providers = {
        "openai": FakeProvider("openai", reply=_answer(100, "BUY", 0.8)),
        "anthropic": FakeProvider("anthropic", reply=_answer(95, "SELL", 0.8)),
        "deepseek": FakeProvider(
            "deepseek",
            reply={"selectedVote": 1, "confidence": 0.9, "reasoning": "Vote 1 cites sold comps."},
        ),
    }

    outcome = await _analyzer(providers).analyze("Nintendo Switch OLED")

    assert outcome.tiebreaker_used is True
    assert outcome.votes[-1].role == VoteRole.TIEBREAKER
    assert outcome.votes[-1].provider_id == "deepseek"
    assert outcome.consensus.decision == "BUY"
    assert len(outcome.votes) == 3


@pytest.mark.asyncio
async def test_rejected_tiebreaker_leaves_votes_alone():
    providers = {
        "openai": FakeProvider("openai", reply=_answer(100, "BUY", 0.8)),
        "anthropic": FakeProvider("anthropic", reply=_answer(95, "SELL", 0.8)),
        "deepseek": FakeProvider("deepseek", reply="I cannot decide."),
    }

    outcome = await _analyzer(providers).analyze("Nintendo Switch OLED")

    assert outcome.tiebreaker_used is False
    assert len(outcome.votes) == 2
    assert outcome.consensus.decision == "SELL"
    assert outcome.consensus.tally.is_close_vote is True


@pytest.mark.asyncio
async def test_emergency_vote_when_primary_models_fail():
    providers = {
        "openai": FakeProvider("openai", reply="upstream error page"),
        "deepseek": FakeProvider("deepseek", reply=_answer(100, "BUY", 0.8)),
    }

    outcome = await _analyzer(providers).analyze("Nintendo Switch OLED")

    assert len(outcome.votes) == 1
    vote = outcome.votes[0]
    assert vote.role == VoteRole.EMERGENCY
    assert vote.confidence == pytest.approx(0.4)
    assert vote.weight == pytest.approx(0.6 * 0.4)
    # 40 + 5 agreement - 15 single vote
    assert outcome.consensus.confidence == 30
    assert outcome.consensus.quality == AnalysisQuality.LOW


@pytest.mark.asyncio
async def test_authority_price_is_blended():
    market = StaticMarketDataProvider(
        MarketData(
            sources=[
                MarketSource(source="numista", price=80.0),
                MarketSource(source="ebay", median_price=90.0, listing_count=4),
            ]
        )
    )
    providers = {
        "openai": FakeProvider("openai", reply=_answer(100, category="coins")),
        "anthropic": FakeProvider("anthropic", reply=_answer(100, category="coins")),
    }

    outcome = await _analyzer(providers, market=market).analyze("1921 Morgan Dollar")

    assert outcome.consensus.authority_price == 80.0
    assert outcome.consensus.blend == "default"
    assert outcome.consensus.estimated_value == pytest.approx(92.0)
    assert outcome.category.category == "coins"


def test_strongest_model_category():
    votes = [
        make_vote("openai", weight=0.5, category="books"),
        make_vote("anthropic", weight=0.9, category="comics"),
        make_vote("google", weight=1.0),
    ]

    assert strongest_model_category(votes) == "comics"
    assert strongest_model_category([make_vote()]) is None


def test_ground_truth_from_market_data():
    data = MarketData(
        sources=[
            MarketSource(source="numista", price=80.0),
            MarketSource(source="ebay", median_price=90.0, listing_count=4),
            MarketSource(source="colnect", available=False, error="timeout"),
        ]
    )

    price, source = ground_truth_from(data)

    assert price == pytest.approx((80 * 1.5 + 90 * 1.2) / 2.7)
    assert source == "numista+ebay"
    assert ground_truth_from(MarketData()) == (None, None)
