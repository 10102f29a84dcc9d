"""Data access layer for Appraiser database operations."""

import json
import sqlite3
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from appraiser.analysis.models import AnalysisOutcome, Vote
from appraiser.benchmarks.models import BenchmarkRecord, CategoryScore, WeeklyScorecard
from appraiser.database.capabilities import (
    FieldCapabilityCache,
    get_capability_cache,
    insert_with_capabilities,
)
from appraiser.database.db import get_db

ANALYSIS_OPTIONAL_FIELDS = (
    "category_source",
    "category_confidence",
    "authority_price",
    "blended_price",
    "market_confidence",
    "evidence_text",
    "tiebreaker_used",
    "weight_snapshot_version",
    "metadata",
)

VOTE_OPTIONAL_FIELDS = ("role", "latency_ms", "raw_response")

BENCHMARK_OPTIONAL_FIELDS = (
    "stage",
    "provider_item_name",
    "provider_category",
    "authority_source",
    "authority_price",
    "marketplace_median",
    "marketplace_listing_count",
    "market_confidence",
    "category_confidence",
    "had_image",
    "consensus_price",
    "consensus_decision",
    "final_blended_price",
    "total_votes",
    "quality",
)


def format_timestamp(value: datetime) -> str:
    """Fixed-width UTC timestamp so stored values sort as text."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%S.%f")


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%f").replace(tzinfo=timezone.utc)


class AnalysisRepository:
    """Repository for analyses and their votes."""

    def __init__(self, db=None, capabilities: Optional[FieldCapabilityCache] = None):
        """Initialize repository with database connection."""
        self.db = db or get_db()
        self.capabilities = capabilities or get_capability_cache()

    def save(
        self,
        outcome: AnalysisOutcome,
        weight_snapshot_version: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Store an analysis and its votes; returns the analysis id."""
        consensus = outcome.consensus
        evidence = outcome.evidence
        row = {
            "id": outcome.analysis_id,
            "item_name": consensus.item_name,
            "category": outcome.category.category,
            "estimated_value": consensus.estimated_value,
            "decision": consensus.decision,
            "confidence": consensus.confidence,
            "quality": consensus.quality.value,
            "reasoning": consensus.reasoning,
            "category_source": outcome.category.source,
            "category_confidence": outcome.category.confidence,
            "authority_price": consensus.authority_price,
            "blended_price": evidence.blended_price,
            "market_confidence": evidence.market_confidence,
            "evidence_text": evidence.formatted,
            "tiebreaker_used": outcome.tiebreaker_used,
            "weight_snapshot_version": weight_snapshot_version,
            "metadata": json.dumps(metadata) if metadata else None,
        }

        with self.db.transaction() as conn:
            insert_with_capabilities(
                conn, "analyses", row, ANALYSIS_OPTIONAL_FIELDS, self.capabilities
            )
            for vote in outcome.votes:
                self._insert_vote(conn, outcome.analysis_id, vote)
        return outcome.analysis_id

    def _insert_vote(self, conn: sqlite3.Connection, analysis_id: str, vote: Vote) -> None:
        row = {
            "analysis_id": analysis_id,
            "provider_id": vote.provider_id,
            "role": vote.role.value,
            "item_name": vote.item_name,
            "category": vote.category,
            "estimated_value": vote.estimated_value,
            "decision": vote.decision,
            "confidence": vote.confidence,
            "weight": vote.weight,
            "latency_ms": vote.latency_ms,
            "raw_response": json.dumps(vote.raw_response) if vote.raw_response else None,
        }
        insert_with_capabilities(conn, "votes", row, VOTE_OPTIONAL_FIELDS, self.capabilities)

    def get(self, analysis_id: str) -> Optional[Dict[str, Any]]:
        """Get analysis by ID."""
        rows = self.db.query("SELECT * FROM analyses WHERE id = ?", (analysis_id,))
        return dict(rows[0]) if rows else None

    def get_votes(self, analysis_id: str) -> List[Dict[str, Any]]:
        """Get the votes stored for an analysis."""
        rows = self.db.query(
            "SELECT * FROM votes WHERE analysis_id = ? ORDER BY id", (analysis_id,)
        )
        return [dict(row) for row in rows]


class BenchmarkRepository:
    """Append-only store of scored votes."""

    def __init__(self, db=None, capabilities: Optional[FieldCapabilityCache] = None):
        """Initialize repository with database connection."""
        self.db = db or get_db()
        self.capabilities = capabilities or get_capability_cache()

    def insert_many(self, records: List[BenchmarkRecord]) -> int:
        """Insert records; returns how many were written."""
        if not records:
            return 0
        with self.db.transaction() as conn:
            for record in records:
                row = record.model_dump()
                row["created_at"] = format_timestamp(record.created_at)
                insert_with_capabilities(
                    conn, "provider_benchmarks", row, BENCHMARK_OPTIONAL_FIELDS, self.capabilities
                )
        return len(records)

    def get_between(
        self, start: datetime, end: datetime, provider_id: Optional[str] = None
    ) -> List[BenchmarkRecord]:
        """Records created in [start, end), optionally for one provider."""
        query = "SELECT * FROM provider_benchmarks WHERE created_at >= ? AND created_at < ?"
        params: List[Any] = [format_timestamp(start), format_timestamp(end)]
        if provider_id:
            query += " AND provider_id = ?"
            params.append(provider_id)
        query += " ORDER BY created_at, id"

        rows = self.db.query(query, params)
        return [self._to_record(dict(row)) for row in rows]

    def get_since(self, since: datetime) -> List[BenchmarkRecord]:
        """Records created at or after ``since``."""
        return self.get_between(since, datetime.max.replace(tzinfo=timezone.utc))

    @staticmethod
    def _to_record(row: Dict[str, Any]) -> BenchmarkRecord:
        row.pop("id", None)
        row["created_at"] = parse_timestamp(row["created_at"])
        for flag in ("had_image", "decision_correct"):
            if row.get(flag) is not None:
                row[flag] = bool(row[flag])
        if row.get("had_image") is None:
            row["had_image"] = False
        if row.get("total_votes") is None:
            row["total_votes"] = 0
        if row.get("response_time_ms") is None:
            row["response_time_ms"] = 0
        return BenchmarkRecord.model_validate(row)


class WeeklyScorecardRepository:
    """Repository for persisted weekly scorecards."""

    def __init__(self, db=None):
        """Initialize repository with database connection."""
        self.db = db or get_db()

    def upsert(self, scorecard: WeeklyScorecard) -> None:
        """Create or replace a provider's scorecard for a week."""
        sc = scorecard
        with self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO provider_benchmark_weekly (
                    week_start, week_end, provider_id, provider_display_name,
                    total_votes, successful_votes, failed_votes,
                    mean_absolute_error, mean_absolute_percent_error, median_error_percent,
                    within_10_percent, within_25_percent, accuracy_rate_10, accuracy_rate_25,
                    over_predictions, under_predictions, accurate_predictions,
                    correct_decisions, decision_accuracy,
                    avg_response_ms, p50_response_ms, p95_response_ms,
                    category_scores, vision_votes, vision_accuracy,
                    overall_rank, price_accuracy_rank, speed_rank, decision_accuracy_rank,
                    composite_score
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(week_start, provider_id) DO UPDATE SET
                    week_end = excluded.week_end,
                    provider_display_name = excluded.provider_display_name,
                    total_votes = excluded.total_votes,
                    successful_votes = excluded.successful_votes,
                    failed_votes = excluded.failed_votes,
                    mean_absolute_error = excluded.mean_absolute_error,
                    mean_absolute_percent_error = excluded.mean_absolute_percent_error,
                    median_error_percent = excluded.median_error_percent,
                    within_10_percent = excluded.within_10_percent,
                    within_25_percent = excluded.within_25_percent,
                    accuracy_rate_10 = excluded.accuracy_rate_10,
                    accuracy_rate_25 = excluded.accuracy_rate_25,
                    over_predictions = excluded.over_predictions,
                    under_predictions = excluded.under_predictions,
                    accurate_predictions = excluded.accurate_predictions,
                    correct_decisions = excluded.correct_decisions,
                    decision_accuracy = excluded.decision_accuracy,
                    avg_response_ms = excluded.avg_response_ms,
                    p50_response_ms = excluded.p50_response_ms,
                    p95_response_ms = excluded.p95_response_ms,
                    category_scores = excluded.category_scores,
                    vision_votes = excluded.vision_votes,
                    vision_accuracy = excluded.vision_accuracy,
                    overall_rank = excluded.overall_rank,
                    price_accuracy_rank = excluded.price_accuracy_rank,
                    speed_rank = excluded.speed_rank,
                    decision_accuracy_rank = excluded.decision_accuracy_rank,
                    composite_score = excluded.composite_score,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    sc.week_start.isoformat(),
                    sc.week_end.isoformat(),
                    sc.provider_id,
                    sc.provider_display_name,
                    sc.total_votes,
                    sc.successful_votes,
                    sc.total_votes - sc.successful_votes,
                    sc.mean_absolute_error,
                    sc.mean_absolute_percent_error,
                    sc.median_error_percent,
                    round(sc.accuracy_rate_10 * sc.successful_votes),
                    round(sc.accuracy_rate_25 * sc.successful_votes),
                    sc.accuracy_rate_10,
                    sc.accuracy_rate_25,
                    sc.over_predictions,
                    sc.under_predictions,
                    sc.accurate_predictions,
                    sc.correct_decisions,
                    sc.decision_accuracy,
                    sc.avg_response_ms,
                    sc.p50_response_ms,
                    sc.p95_response_ms,
                    json.dumps({k: v.model_dump() for k, v in sc.category_scores.items()}),
                    sc.vision_votes,
                    sc.vision_accuracy,
                    sc.overall_rank,
                    sc.price_accuracy_rank,
                    sc.speed_rank,
                    sc.decision_accuracy_rank,
                    sc.composite_score,
                ),
            )

    def get_week(self, week_start: date) -> List[WeeklyScorecard]:
        """Stored scorecards for a week, best composite score first."""
        rows = self.db.query(
            """
            SELECT * FROM provider_benchmark_weekly
            WHERE week_start = ?
            ORDER BY composite_score DESC, provider_id
            """,
            (week_start.isoformat(),),
        )

        scorecards = []
        for row in rows:
            data = dict(row)
            categories = json.loads(data.get("category_scores") or "{}")
            data["category_scores"] = {k: CategoryScore(**v) for k, v in categories.items()}
            scorecards.append(WeeklyScorecard.model_validate(data))
        return scorecards
