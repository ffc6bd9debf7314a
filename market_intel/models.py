"""
Market Intelligence Data Models - Canonical news structures.

Article is the unit flowing through the pipeline. Scores are
clamped on construction so that no consumer ever sees an
out-of-range sentiment or relevance value.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .clock import ensure_utc


class Sector(Enum):
    """Closed set of market sectors an article is assigned to."""
    TECHNOLOGY = "Technology"
    HEALTHCARE = "Healthcare"
    FINANCE = "Finance"
    ENERGY = "Energy"
    CONSUMER = "Consumer"
    INDUSTRIAL = "Industrial"
    REAL_ESTATE = "Real Estate"
    MATERIALS = "Materials"
    UTILITIES = "Utilities"
    COMMUNICATIONS = "Communications"
    CRYPTOCURRENCY = "Cryptocurrency"
    GENERAL = "General"

    @classmethod
    def from_string(cls, value: str) -> "Sector":
        """Parse by value or member name, case and space insensitive."""
        key = value.replace(" ", "").replace("_", "").lower()
        for member in cls:
            if key in (
                member.value.replace(" ", "").lower(),
                member.name.replace("_", "").lower(),
            ):
                return member
        raise ValueError(f"Unknown sector: {value!r}")


class ImpactLevel(Enum):
    """Coarse estimate of an article's market significance."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return {"HIGH": 3, "MEDIUM": 2, "LOW": 1}[self.value]


class SentimentLabel(Enum):
    """Dashboard bucket for a sentiment score."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"

    @classmethod
    def from_score(cls, score: float, threshold: float = 0.3) -> "SentimentLabel":
        if score > threshold:
            return cls.POSITIVE
        if score < -threshold:
            return cls.NEGATIVE
        return cls.NEUTRAL


class SortKey(Enum):
    """Supported orderings for listing the stored collection."""
    CREATED_DATE = "-created_date"
    SENTIMENT_SCORE = "-sentiment_score"
    IMPACT_LEVEL = "-impact_level"
    RELEVANCE_SCORE = "-relevance_score"

    @classmethod
    def parse(cls, value: "str | SortKey") -> "SortKey":
        if isinstance(value, SortKey):
            return value
        try:
            return cls(value)
        except ValueError:
            # Accept the bare field name as well
            try:
                return cls(f"-{value}")
            except ValueError:
                valid = ", ".join(k.value for k in cls)
                raise ValueError(f"Unknown sort key {value!r}; expected one of {valid}")


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))


@dataclass(frozen=True)
class RawArticle:
    """
    Loosely-typed article as returned by a source adapter.

    Any field may be absent; the normalizer decides what to keep.
    """
    source_name: str
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    published_at: Any = None
    author: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Article:
    """
    Normalized, scored news item - STRICT schema.

    sentiment_score: -1.0 (bearish framing) to +1.0 (bullish framing)
    relevance_score: 0.0 (off-topic) to 1.0 (market news)
    """
    # Core fields (required)
    id: str
    source: str
    headline: str
    sentiment_score: float
    sector: Sector
    impact_level: ImpactLevel
    created_date: datetime
    updated_date: datetime

    # Context fields
    summary: str = ""
    tickers_mentioned: frozenset[str] = field(default_factory=frozenset)
    relevance_score: float = 0.0
    published_date: Optional[datetime] = None
    url: Optional[str] = None
    author: Optional[str] = None

    def __post_init__(self) -> None:
        """Clamp scores and coerce collections."""
        if not self.headline or not self.headline.strip():
            raise ValueError("Article headline must be non-empty")
        object.__setattr__(
            self, "sentiment_score", clamp(float(self.sentiment_score), -1.0, 1.0)
        )
        object.__setattr__(
            self, "relevance_score", clamp(float(self.relevance_score), 0.0, 1.0)
        )
        if not isinstance(self.tickers_mentioned, frozenset):
            object.__setattr__(
                self, "tickers_mentioned",
                frozenset(t.upper() for t in self.tickers_mentioned),
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "source": self.source,
            "headline": self.headline,
            "summary": self.summary,
            "sentiment_score": self.sentiment_score,
            "sector": self.sector.value,
            "impact_level": self.impact_level.value,
            "tickers_mentioned": sorted(self.tickers_mentioned),
            "relevance_score": self.relevance_score,
            "published_date": self.published_date.isoformat() if self.published_date else None,
            "created_date": self.created_date.isoformat(),
            "updated_date": self.updated_date.isoformat(),
            "url": self.url,
            "author": self.author,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Article":
        """Create from dictionary."""
        created = _parse_dt(data["created_date"])
        return cls(
            id=str(data["id"]),
            source=data.get("source", ""),
            headline=data["headline"],
            summary=data.get("summary") or "",
            sentiment_score=float(data.get("sentiment_score", 0.0)),
            sector=Sector.from_string(data.get("sector", "General")),
            impact_level=ImpactLevel(data.get("impact_level", "LOW")),
            tickers_mentioned=frozenset(data.get("tickers_mentioned") or ()),
            relevance_score=float(data.get("relevance_score", 0.0)),
            published_date=_parse_dt(data.get("published_date")),
            created_date=created,
            updated_date=_parse_dt(data.get("updated_date")) or created,
            url=data.get("url"),
            author=data.get("author"),
        )


@dataclass
class NewsSourceConfig:
    """Configuration of one named news feed."""
    name: str
    kind: str  # adapter key: newsapi, alphavantage, rss, scrape
    enabled: bool = True
    reliability: float = 0.5  # 0.0 to 1.0
    category: str = "general"
    url: str = ""
    params: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.reliability = clamp(float(self.reliability), 0.0, 1.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "enabled": self.enabled,
            "reliability": self.reliability,
            "category": self.category,
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NewsSourceConfig":
        return cls(
            name=data["name"],
            kind=data["kind"],
            enabled=bool(data.get("enabled", True)),
            reliability=float(data.get("reliability", 0.5)),
            category=data.get("category", "general"),
            url=data.get("url", ""),
            params=dict(data.get("params") or {}),
        )


@dataclass
class SourceStats:
    """Per-source fetch bookkeeping."""
    last_fetch: Optional[datetime] = None
    articles_fetched: int = 0
    error_count: int = 0
    consecutive_failures: int = 0
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None

    def record_success(self, count: int, at: datetime) -> None:
        self.last_fetch = at
        self.articles_fetched = count
        self.consecutive_failures = 0

    def record_failure(self, error: str, at: datetime) -> None:
        self.error_count += 1
        self.consecutive_failures += 1
        self.last_error = error
        self.last_error_time = at

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_fetch": self.last_fetch.isoformat() if self.last_fetch else None,
            "articles_fetched": self.articles_fetched,
            "error_count": self.error_count,
            "consecutive_failures": self.consecutive_failures,
            "last_error": self.last_error,
            "last_error_time": self.last_error_time.isoformat() if self.last_error_time else None,
        }


@dataclass
class SourceIncident:
    """Record of a failed source fetch."""
    source_name: str
    incident_type: str
    timestamp: datetime
    error_message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_name": self.source_name,
            "incident_type": self.incident_type,
            "timestamp": self.timestamp.isoformat(),
            "error_message": self.error_message,
        }


@dataclass
class SentimentSummary:
    """
    Aggregated view over the most recent stored articles.

    Derived on every request; never persisted.
    """
    overall_sentiment: float
    label: SentimentLabel
    sector_sentiment: dict[str, float]
    news_count: int
    high_impact_count: int
    positive_count: int
    negative_count: int
    neutral_count: int
    trending_tickers: list[str]
    ticker_mentions: dict[str, int]
    source_breakdown: dict[str, int]
    top_authors: list[tuple[str, int]]
    last_updated: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_sentiment": self.overall_sentiment,
            "label": self.label.value,
            "sector_sentiment": self.sector_sentiment,
            "news_count": self.news_count,
            "high_impact_count": self.high_impact_count,
            "positive_count": self.positive_count,
            "negative_count": self.negative_count,
            "neutral_count": self.neutral_count,
            "trending_tickers": self.trending_tickers,
            "ticker_mentions": self.ticker_mentions,
            "source_breakdown": self.source_breakdown,
            "top_authors": [
                {"author": author, "count": count} for author, count in self.top_authors
            ],
            "last_updated": self.last_updated.isoformat(),
        }
