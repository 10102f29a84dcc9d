"""Configuration management for the Appraiser engine."""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM Provider API Keys (any of them may be absent)
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    xai_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    perplexity_api_key: Optional[str] = None
    deepseek_api_key: Optional[str] = None

    # Market data service
    market_service_url: Optional[str] = None
    market_service_api_key: Optional[str] = None

    # Database Configuration
    database_path: str = "data/appraiser.db"

    # Logging Configuration
    log_level: str = "INFO"
    log_file: str = "appraiser.log"

    # LLM Model Configuration
    default_llm_model_claude: str = "claude-sonnet-4-20250514"
    default_llm_model_openai: str = "gpt-4o"
    default_llm_model_grok: str = "grok-3"
    default_llm_model_gemini: str = "gemini-2.0-flash"
    default_llm_model_perplexity: str = "sonar"
    default_llm_model_deepseek: str = "deepseek-chat"

    # Consensus thresholds
    close_vote_threshold: float = 0.15
    tiebreaker_split_threshold: float = 15.0
    value_divergence_threshold: float = 50.0

    # Prices models report when they have no real data; JSON list in the environment
    suspicious_default_prices: List[float] = [120.0]

    # Timeouts (seconds)
    evidence_timeout_seconds: float = 15.0
    provider_timeout_seconds: float = 30.0
    persistence_timeout_seconds: float = 3.0
    capability_cache_ttl_seconds: float = 600.0

    # Benchmarks
    benchmark_buy_threshold: float = 2.00
    adaptive_weights_enabled: bool = False
    adaptive_min_samples: int = 20
    adaptive_window_days: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create settings singleton instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
