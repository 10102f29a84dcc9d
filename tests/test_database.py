import sqlite3
from datetime import date, datetime, timedelta, timezone

import pytest

from appraiser.analysis.consensus import calculate_consensus
from appraiser.analysis.models import AnalysisOutcome
from appraiser.benchmarks.aggregator import build_scorecard
from appraiser.benchmarks.models import BenchmarkRecord
from appraiser.category.models import CategoryDetection
from appraiser.database.capabilities import (
    FieldCapabilityCache,
    UnknownFieldError,
    insert_with_capabilities,
    unknown_field_from,
)
from appraiser.database.db import Database
from appraiser.database.repositories import (
    AnalysisRepository,
    BenchmarkRepository,
    WeeklyScorecardRepository,
    format_timestamp,
    parse_timestamp,
)
from appraiser.evidence.models import EvidenceSummary
from tests.conftest import make_vote

LAGGING_ANALYSES = """
CREATE TABLE analyses (
    id TEXT PRIMARY KEY,
    item_name TEXT NOT NULL,
    category TEXT,
    estimated_value REAL NOT NULL,
    decision TEXT NOT NULL,
    confidence INTEGER NOT NULL,
    quality TEXT NOT NULL,
    reasoning TEXT,
    category_source TEXT,
    category_confidence REAL,
    authority_price REAL,
    blended_price REAL,
    market_confidence REAL,
    tiebreaker_used BOOLEAN,
    weight_snapshot_version INTEGER,
    {extra}
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""


def _lagging_db(tmp_path, extra="", votes_sql=None):
    database = Database(str(tmp_path / "lagging.db"))
    database.conn.execute(LAGGING_ANALYSES.format(extra=extra))
    if votes_sql:
        database.conn.execute(votes_sql)
    database.conn.commit()
    database.initialize_schema()
    return database


def _outcome(analysis_id="an-1"):
    votes = [make_vote("openai", value=50), make_vote("anthropic", value=55, decision="SELL", weight=0.5)]
    return AnalysisOutcome(
        analysis_id=analysis_id,
        consensus=calculate_consensus(votes),
        evidence=EvidenceSummary(formatted="MARKET EVIDENCE:\n- Blended market price: $52.00"),
        votes=votes,
        category=CategoryDetection(category="general", confidence=0.5, source="default"),
    )


def test_save_and_read_analysis(db):
    repo = AnalysisRepository(db=db, capabilities=FieldCapabilityCache())

    analysis_id = repo.save(_outcome(), weight_snapshot_version=4, metadata={"hint": None})

    row = repo.get(analysis_id)
    assert row["decision"] == "BUY"
    assert row["weight_snapshot_version"] == 4
    assert row["evidence_text"].startswith("MARKET EVIDENCE:")
    votes = repo.get_votes(analysis_id)
    assert [v["provider_id"] for v in votes] == ["openai", "anthropic"]
    assert votes[0]["role"] == "primary"
    assert repo.get("missing") is None


def test_lagging_schema_drops_optional_field_and_remembers(tmp_path):
    database = _lagging_db(tmp_path, extra="metadata TEXT,")
    cache = FieldCapabilityCache(ttl_seconds=600)
    repo = AnalysisRepository(db=database, capabilities=cache)

    repo.save(_outcome("an-1"))
    repo.save(_outcome("an-2"))

    assert cache.is_supported("analyses", "evidence_text") is False
    assert cache.unsupported_fields("analyses") == {"evidence_text"}
    assert repo.get("an-1")["decision"] == "BUY"
    assert len(repo.get_votes("an-2")) == 2
    database.close()


def test_retry_happens_once_per_write(tmp_path):
    database = _lagging_db(tmp_path)
    cache = FieldCapabilityCache(ttl_seconds=600)
    repo = AnalysisRepository(db=database, capabilities=cache)

    # Two optional columns missing: the first write gives up after one retry
    with pytest.raises(UnknownFieldError):
        repo.save(_outcome("an-1"))
    assert len(cache.unsupported_fields("analyses")) == 1
    assert repo.get("an-1") is None

    # The next write already skips the first column and learns the second
    repo.save(_outcome("an-2"))
    assert cache.unsupported_fields("analyses") == {"evidence_text", "metadata"}
    assert repo.get("an-2") is not None
    database.close()


def test_missing_required_column_raises_and_rolls_back(tmp_path):
    votes_sql = """
    CREATE TABLE votes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        analysis_id TEXT NOT NULL,
        provider_id TEXT NOT NULL,
        role TEXT,
        item_name TEXT,
        category TEXT,
        estimated_value REAL NOT NULL,
        decision TEXT NOT NULL,
        confidence REAL NOT NULL,
        latency_ms INTEGER,
        raw_response TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """
    database = _lagging_db(tmp_path, extra="evidence_text TEXT, metadata TEXT,", votes_sql=votes_sql)
    repo = AnalysisRepository(db=database, capabilities=FieldCapabilityCache())

    with pytest.raises(UnknownFieldError) as exc_info:
        repo.save(_outcome("an-1"))

    assert exc_info.value.table == "votes"
    assert exc_info.value.field == "weight"
    assert repo.get("an-1") is None
    database.close()


def test_insert_with_capabilities_passes_through_other_errors():
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE t (a TEXT NOT NULL, b TEXT)")

    with pytest.raises(sqlite3.IntegrityError):
        insert_with_capabilities(conn, "t", {"a": None, "b": "x"}, ["b"], FieldCapabilityCache())
    conn.close()


def test_unknown_field_from_other_error():
    error = sqlite3.OperationalError("database is locked")

    assert unknown_field_from(error, "analyses") is None
    parsed = unknown_field_from(
        sqlite3.OperationalError("table analyses has no column named blended_price"), "analyses"
    )
    assert parsed.field == "blended_price"


def test_capability_cache_entries_expire():
    now = [100.0]
    cache = FieldCapabilityCache(ttl_seconds=10, clock=lambda: now[0])

    cache.mark_unsupported("analyses", "metadata")
    assert cache.is_supported("analyses", "metadata") is False
    assert cache.is_supported("votes", "metadata") is True

    now[0] = 110.0
    assert cache.is_supported("analyses", "metadata") is True
    assert cache.unsupported_fields("analyses") == set()


def test_capability_cache_reset():
    cache = FieldCapabilityCache(ttl_seconds=10)
    cache.mark_unsupported("votes", "role")

    cache.reset()

    assert cache.is_supported("votes", "role") is True


def test_timestamps_sort_as_text():
    early = datetime(2026, 3, 2, 9, 5, tzinfo=timezone.utc)
    late = datetime(2026, 3, 2, 10, 0, tzinfo=timezone(timedelta(hours=2)))

    assert format_timestamp(early) == "2026-03-02T09:05:00.000000"
    assert format_timestamp(late) == "2026-03-02T08:00:00.000000"
    assert parse_timestamp(format_timestamp(early)) == early


def _benchmark(provider_id, created_at, error=5.0):
    return BenchmarkRecord(
        analysis_id="an-1",
        provider_id=provider_id,
        stage="vision",
        provider_price=100 + error,
        provider_decision="BUY",
        response_time_ms=850,
        ground_truth_price=100.0,
        ground_truth_source="ebay",
        price_error_dollars=error,
        price_error_percent=error,
        price_direction="accurate",
        decision_correct=True,
        item_name="Nintendo Switch OLED",
        category="video_games",
        had_image=True,
        created_at=created_at,
    )


def test_benchmark_repository_round_trip(db):
    repo = BenchmarkRepository(db=db, capabilities=FieldCapabilityCache())
    monday = datetime(2026, 3, 2, tzinfo=timezone.utc)
    records = [
        _benchmark("openai", monday + timedelta(hours=1)),
        _benchmark("anthropic", monday + timedelta(days=2)),
        _benchmark("openai", monday + timedelta(days=8)),
    ]

    assert repo.insert_many(records) == 3
    assert repo.insert_many([]) == 0

    week = repo.get_between(monday, monday + timedelta(days=7))
    assert [r.provider_id for r in week] == ["openai", "anthropic"]
    assert week[0].model_dump() == records[0].model_dump()
    assert len(repo.get_between(monday, monday + timedelta(days=7), "openai")) == 1
    assert len(repo.get_since(monday + timedelta(days=1))) == 2


def test_weekly_scorecard_upsert(db):
    repo = WeeklyScorecardRepository(db=db)
    week = date(2026, 3, 2)
    records = [_benchmark("openai", datetime(2026, 3, 3, tzinfo=timezone.utc))]

    first = build_scorecard("openai", records, week, week + timedelta(days=7))
    first.overall_rank = 2
    repo.upsert(first)
    second = build_scorecard("openai", records * 2, week, week + timedelta(days=7))
    second.overall_rank = 1
    repo.upsert(second)

    stored = repo.get_week(week)
    assert len(stored) == 1
    assert stored[0].total_votes == 2
    assert stored[0].overall_rank == 1
    assert stored[0].category_scores["video_games"].votes == 2
    assert repo.get_week(date(2026, 3, 9)) == []
