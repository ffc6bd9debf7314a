"""
Market Intelligence - Configuration.

============================================================
PURPOSE
============================================================
All tunable constants of the news pipeline, grouped by the
component that consumes them.

Values come from dataclass defaults, optionally overridden by
environment variables (a local .env file is honoured).

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_LEXICON_PATH = DATA_DIR / "lexicons.yaml"
DEFAULT_SOURCES_PATH = DATA_DIR / "sources.yaml"
DEFAULT_DATABASE_URL = "sqlite:///market_intel.db"


# ============================================================
# SCORING CONFIGURATION
# ============================================================

@dataclass
class ScoringConfig:
    """
    Constants for the rule-based classifiers.
    """

    sentiment_increment: float = 0.1
    """Score change per positive or negative term occurrence."""

    intensifier_factor: float = 1.2
    """Applied once when any intensifier word is present."""

    relevance_increment: float = 0.1
    """Relevance added per market keyword occurrence."""

    relevance_keyword_cap: float = 0.6
    """Maximum total contribution of market keywords."""

    numeral_bonus: float = 0.2
    """Relevance added when the headline contains a digit."""

    high_impact_threshold: int = 2
    """Distinct high-impact keywords needed for HIGH."""

    medium_impact_threshold: int = 2
    """Distinct medium-impact keywords needed for MEDIUM."""

    label_threshold: float = 0.3
    """Sentiment above/below +/- this is positive/negative."""


# ============================================================
# STORE CONFIGURATION
# ============================================================

@dataclass
class StoreConfig:
    """Stored collection lifecycle."""

    database_url: Optional[str] = DEFAULT_DATABASE_URL
    """SQLAlchemy URL; None keeps the collection in memory only."""

    max_retained: int = 100
    """Cap on stored articles."""

    stale_after_minutes: int = 30
    """Staleness window of the newest stored article."""

    auto_cleanup_days: Optional[int] = 7
    """Articles older than this are dropped on every merge."""


# ============================================================
# FETCH CONFIGURATION
# ============================================================

@dataclass
class FetchConfig:
    """HTTP behaviour of the source adapters."""

    timeout_seconds: float = 10.0
    """aiohttp total timeout per request."""

    source_timeout_seconds: float = 15.0
    """Registry-level guard around a whole source fetch, retries included."""

    max_retries: int = 2
    retry_delay_seconds: float = 1.0

    items_per_source: int = 20
    """Maximum raw articles kept from one source per cycle."""

    user_agent: str = "market-intel/1.0 (+news sentiment dashboard)"


# ============================================================
# AGGREGATOR CONFIGURATION
# ============================================================

@dataclass
class AggregatorConfig:
    """Sentiment summary window."""

    window_size: int = 50
    trending_count: int = 10
    top_authors_count: int = 10


# ============================================================
# PIPELINE CONFIGURATION
# ============================================================

@dataclass
class PipelineConfig:
    """Top-level configuration handed to the service factory."""

    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)

    lexicon_path: Path = DEFAULT_LEXICON_PATH
    sources_path: Path = DEFAULT_SOURCES_PATH

    api_keys: dict[str, str] = field(default_factory=dict)
    """Adapter kind -> API key (newsapi, alphavantage)."""

    use_seed_fallback: bool = True
    """Seed the built-in dataset when every source fails on an empty store."""

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "PipelineConfig":
        """
        Build configuration from environment variables.

        Args:
            env_file: Optional explicit .env path
        """
        load_dotenv(env_file)
        config = cls()

        db_url = os.getenv("MARKET_INTEL_DATABASE_URL")
        if db_url is not None:
            # Empty value disables persistence
            config.store.database_url = db_url or None

        lexicon = os.getenv("MARKET_INTEL_LEXICON_PATH")
        if lexicon:
            config.lexicon_path = Path(lexicon)

        sources = os.getenv("MARKET_INTEL_SOURCES_PATH")
        if sources:
            config.sources_path = Path(sources)

        config.store.stale_after_minutes = _env_int(
            "MARKET_INTEL_STALE_MINUTES", config.store.stale_after_minutes
        )
        config.store.max_retained = _env_int(
            "MARKET_INTEL_MAX_ARTICLES", config.store.max_retained
        )

        for kind, var in (("newsapi", "NEWSAPI_KEY"), ("alphavantage", "ALPHA_VANTAGE_KEY")):
            key = os.getenv(var)
            if key:
                config.api_keys[kind] = key

        return config


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default
