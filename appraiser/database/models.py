"""Database schema definitions for Appraiser."""

# SQL schema for creating tables

CREATE_ANALYSES_TABLE = """
CREATE TABLE IF NOT EXISTS analyses (
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
    evidence_text TEXT,
    tiebreaker_used BOOLEAN DEFAULT FALSE,
    weight_snapshot_version INTEGER,
    metadata TEXT,

    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

CREATE_ANALYSES_CREATED_INDEX = """
CREATE INDEX IF NOT EXISTS idx_analyses_created ON analyses(created_at);
"""

CREATE_VOTES_TABLE = """
CREATE TABLE IF NOT EXISTS votes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    analysis_id TEXT NOT NULL,
    provider_id TEXT NOT NULL,
    role TEXT NOT NULL,
    item_name TEXT,
    category TEXT,
    estimated_value REAL NOT NULL,
    decision TEXT NOT NULL,
    confidence REAL NOT NULL,
    weight REAL NOT NULL,
    latency_ms INTEGER,
    raw_response TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (analysis_id) REFERENCES analyses(id)
);
"""

CREATE_VOTES_ANALYSIS_INDEX = """
CREATE INDEX IF NOT EXISTS idx_votes_analysis ON votes(analysis_id);
"""

CREATE_PROVIDER_BENCHMARKS_TABLE = """
CREATE TABLE IF NOT EXISTS provider_benchmarks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    analysis_id TEXT NOT NULL,
    provider_id TEXT NOT NULL,
    stage TEXT,
    provider_price REAL NOT NULL,
    provider_decision TEXT NOT NULL,
    provider_confidence REAL,
    provider_item_name TEXT,
    provider_category TEXT,
    response_time_ms INTEGER,

    ground_truth_price REAL,
    ground_truth_source TEXT,
    authority_source TEXT,
    authority_price REAL,
    marketplace_median REAL,
    marketplace_listing_count INTEGER,
    market_confidence REAL,

    price_error_dollars REAL,
    price_error_percent REAL,
    price_direction TEXT,
    decision_correct BOOLEAN,

    item_name TEXT NOT NULL,
    category TEXT,
    category_confidence REAL,
    had_image BOOLEAN DEFAULT FALSE,

    consensus_price REAL,
    consensus_decision TEXT,
    final_blended_price REAL,
    total_votes INTEGER,
    quality TEXT,

    created_at TEXT NOT NULL
);
"""

CREATE_BENCHMARKS_PROVIDER_INDEX = """
CREATE INDEX IF NOT EXISTS idx_benchmarks_provider ON provider_benchmarks(provider_id, created_at);
"""

CREATE_BENCHMARKS_CREATED_INDEX = """
CREATE INDEX IF NOT EXISTS idx_benchmarks_created ON provider_benchmarks(created_at);
"""

CREATE_PROVIDER_BENCHMARK_WEEKLY_TABLE = """
CREATE TABLE IF NOT EXISTS provider_benchmark_weekly (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    week_start TEXT NOT NULL,
    week_end TEXT NOT NULL,
    provider_id TEXT NOT NULL,
    provider_display_name TEXT,
    total_votes INTEGER,
    successful_votes INTEGER,
    failed_votes INTEGER,
    mean_absolute_error REAL,
    mean_absolute_percent_error REAL,
    median_error_percent REAL,
    within_10_percent INTEGER,
    within_25_percent INTEGER,
    accuracy_rate_10 REAL,
    accuracy_rate_25 REAL,
    over_predictions INTEGER,
    under_predictions INTEGER,
    accurate_predictions INTEGER,
    correct_decisions INTEGER,
    decision_accuracy REAL,
    avg_response_ms INTEGER,
    p50_response_ms INTEGER,
    p95_response_ms INTEGER,
    category_scores TEXT,
    vision_votes INTEGER,
    vision_accuracy REAL,
    overall_rank INTEGER,
    price_accuracy_rank INTEGER,
    speed_rank INTEGER,
    decision_accuracy_rank INTEGER,
    composite_score REAL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(week_start, provider_id)
);
"""

ALL_TABLES = [
    CREATE_ANALYSES_TABLE,
    CREATE_ANALYSES_CREATED_INDEX,
    CREATE_VOTES_TABLE,
    CREATE_VOTES_ANALYSIS_INDEX,
    CREATE_PROVIDER_BENCHMARKS_TABLE,
    CREATE_BENCHMARKS_PROVIDER_INDEX,
    CREATE_BENCHMARKS_CREATED_INDEX,
    CREATE_PROVIDER_BENCHMARK_WEEKLY_TABLE,
]
