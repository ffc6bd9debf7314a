"""
Market Intelligence - Financial news ingestion and sentiment scoring.

This package provides:
- Source adapters: NewsAPI, Alpha Vantage, RSS feeds, HTML scraping
- Lexicon-based sentiment, sector, impact and relevance scoring
- Deduplicated, size-bounded article store with SQLite persistence
- On-demand sentiment summary over recent articles

Usage:
    from market_intel import create_service

    service = create_service()
    articles = await service.list("-created_date", limit=20)
    summary = await service.get_sentiment_summary()

    print(f"Overall sentiment: {summary.overall_sentiment}")
    print(f"Trending: {summary.trending_tickers}")

    await service.close()

Output Schema:
- sentiment_score: -1.0 (very bearish) to +1.0 (very bullish)
- relevance_score: 0.0 to 1.0
- impact_level: HIGH, MEDIUM or LOW
- sector: one of the Sector values, General when unclear
"""

from .aggregator import SentimentAggregator
from .clock import Clock, MockClock, SystemClock
from .config import (
    AggregatorConfig,
    FetchConfig,
    PipelineConfig,
    ScoringConfig,
    StoreConfig,
)
from .deduplicator import ArticleDeduplicator, headline_key
from .exceptions import (
    AuthenticationError,
    FetchError,
    LexiconError,
    MarketIntelError,
    NormalizationError,
    ParseError,
    RateLimitError,
    SourceError,
    StorageError,
    UnknownSourceError,
)
from .lexicon import Lexicon, load_default_lexicon
from .models import (
    Article,
    ImpactLevel,
    NewsSourceConfig,
    RawArticle,
    Sector,
    SentimentLabel,
    SentimentSummary,
    SortKey,
    SourceStats,
)
from .normalizer import ArticleNormalizer
from .registry import SourceRegistry, load_source_configs
from .scoring import ArticleScorer
from .service import MarketIntelligenceService, create_service
from .store import ArticleStore


__version__ = "1.0.0"

__all__ = [
    # Service
    "MarketIntelligenceService",
    "create_service",
    # Pipeline stages
    "ArticleDeduplicator",
    "ArticleNormalizer",
    "ArticleScorer",
    "ArticleStore",
    "SentimentAggregator",
    "SourceRegistry",
    "headline_key",
    "load_source_configs",
    # Lexicon
    "Lexicon",
    "load_default_lexicon",
    # Models
    "Article",
    "ImpactLevel",
    "NewsSourceConfig",
    "RawArticle",
    "Sector",
    "SentimentLabel",
    "SentimentSummary",
    "SortKey",
    "SourceStats",
    # Config
    "AggregatorConfig",
    "FetchConfig",
    "PipelineConfig",
    "ScoringConfig",
    "StoreConfig",
    # Clock
    "Clock",
    "MockClock",
    "SystemClock",
    # Exceptions
    "AuthenticationError",
    "FetchError",
    "LexiconError",
    "MarketIntelError",
    "NormalizationError",
    "ParseError",
    "RateLimitError",
    "SourceError",
    "StorageError",
    "UnknownSourceError",
]
