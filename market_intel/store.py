"""
Market Intelligence - Article Store.

============================================================
RESPONSIBILITY
============================================================
Owns the canonical stored collection and its lifecycle.

- Newest-first list bounded by max_retained
- Staleness check against the newest created_date
- Age-based cleanup and full clear
- Write-through persistence via ArticleRepository

============================================================
DEGRADATION
============================================================
If the repository fails (on load or on any write) the store
logs once and continues in memory-only mode for the rest of
the session. No storage error reaches the caller.

============================================================
"""

import dataclasses
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Mapping, Optional, Union

from .clock import Clock, SystemClock
from .config import StoreConfig
from .exceptions import NormalizationError, StorageError
from .models import Article, ImpactLevel, Sector, SortKey
from .normalizer import parse_published
from .storage import ArticleRepository


logger = logging.getLogger(__name__)


_SORT_FUNCS = {
    SortKey.CREATED_DATE: lambda a: a.created_date,
    SortKey.SENTIMENT_SCORE: lambda a: a.sentiment_score,
    SortKey.IMPACT_LEVEL: lambda a: a.impact_level.rank,
    SortKey.RELEVANCE_SCORE: lambda a: a.relevance_score,
}


class ArticleStore:
    """
    In-memory article collection with optional persistence.

    Usage:
        store = ArticleStore(StoreConfig(), clock, repository)
        store.create({"source": "Manual", "headline": "...", ...})
        latest = store.list("-created_date", limit=20)
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        clock: Optional[Clock] = None,
        repository: Optional[ArticleRepository] = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._clock = clock or SystemClock()
        self._repository = repository
        self._articles: List[Article] = []

        if self._repository is not None:
            try:
                self._articles = self._repository.load_all()[: self._config.max_retained]
                logger.info(f"Loaded {len(self._articles)} stored articles")
            except StorageError as e:
                self._degrade(e)

    # =========================================================
    # PROPERTIES
    # =========================================================

    @property
    def persistent(self) -> bool:
        """True while writes still reach the repository."""
        return self._repository is not None

    @property
    def max_retained(self) -> int:
        return self._config.max_retained

    @property
    def stale_window(self) -> timedelta:
        return timedelta(minutes=self._config.stale_after_minutes)

    def __len__(self) -> int:
        return len(self._articles)

    def snapshot(self) -> List[Article]:
        """Copy of the collection in stored order."""
        return list(self._articles)

    # =========================================================
    # QUERIES
    # =========================================================

    def list(
        self,
        sort_key: Union[str, SortKey] = SortKey.CREATED_DATE,
        limit: Optional[int] = None,
    ) -> List[Article]:
        """
        Sorted copy of the collection.

        Raises:
            ValueError: On an unknown sort key or negative limit
        """
        key = SortKey.parse(sort_key)
        if limit is not None and limit < 0:
            raise ValueError("limit must be non-negative")

        result = sorted(self._articles, key=_SORT_FUNCS[key], reverse=True)
        return result[:limit] if limit is not None else result

    def newest_created(
        self,
        collection: Optional[Iterable[Article]] = None,
    ) -> Optional[datetime]:
        articles = self._articles if collection is None else list(collection)
        if not articles:
            return None
        return max(a.created_date for a in articles)

    def is_stale(self, collection: Optional[Iterable[Article]] = None) -> bool:
        """
        True for an empty collection or when the newest article
        was created longer ago than the staleness window.
        """
        newest = self.newest_created(collection)
        if newest is None:
            return True
        return self._clock.now() - newest > self.stale_window

    # =========================================================
    # MUTATIONS
    # =========================================================

    def create(self, data: Union[Article, Mapping[str, Any]]) -> Article:
        """
        Add one article at the head of the collection.

        id, created_date and updated_date are always assigned here,
        whatever the input carries.

        Raises:
            ValueError: On an empty headline or unparseable published_date
        """
        now = self._clock.now()
        new_id = uuid.uuid4().hex

        if isinstance(data, Article):
            article = dataclasses.replace(
                data, id=new_id, created_date=now, updated_date=now
            )
        else:
            article = Article(
                id=new_id,
                source=data.get("source", "Manual"),
                headline=data.get("headline", ""),
                summary=data.get("summary") or "",
                sentiment_score=float(data.get("sentiment_score", 0.0)),
                sector=_coerce_sector(data.get("sector", Sector.GENERAL)),
                impact_level=_coerce_impact(data.get("impact_level", ImpactLevel.LOW)),
                tickers_mentioned=frozenset(
                    t.upper() for t in data.get("tickers_mentioned") or ()
                ),
                relevance_score=float(data.get("relevance_score", 0.0)),
                published_date=_coerce_published(data.get("published_date")) or now,
                created_date=now,
                updated_date=now,
                url=data.get("url"),
                author=data.get("author"),
            )

        self._articles.insert(0, article)
        del self._articles[self._config.max_retained:]
        self._persist()
        return article

    def replace_all(self, articles: Iterable[Article]) -> None:
        """Install a merged collection, enforcing the cap."""
        self._articles = list(articles)[: self._config.max_retained]
        self._persist()

    def delete_older_than(self, days: float) -> int:
        """
        Remove articles created before now - days.

        Returns:
            Number of articles removed
        """
        if days < 0:
            raise ValueError("days must be non-negative")

        cutoff = self._clock.now() - timedelta(days=days)
        kept = [a for a in self._articles if a.created_date >= cutoff]
        removed = len(self._articles) - len(kept)

        if removed:
            self._articles = kept
            self._persist()
            logger.info(f"Deleted {removed} articles older than {days} days")
        return removed

    def clear(self) -> None:
        """Empty the collection and its persisted copy."""
        self._articles = []
        if self._repository is not None:
            try:
                self._repository.clear()
            except StorageError as e:
                self._degrade(e)
        logger.info("Article store cleared")

    # =========================================================
    # PERSISTENCE
    # =========================================================

    def _persist(self) -> None:
        if self._repository is None:
            return
        try:
            self._repository.replace_all(self._articles)
        except StorageError as e:
            self._degrade(e)

    def _degrade(self, error: StorageError) -> None:
        logger.warning(
            f"Storage unavailable ({error.operation}: {error.message}); "
            "continuing in memory-only mode"
        )
        self._repository = None


def _coerce_sector(value: Union[str, Sector]) -> Sector:
    return value if isinstance(value, Sector) else Sector.from_string(str(value))


def _coerce_impact(value: Union[str, ImpactLevel]) -> ImpactLevel:
    return value if isinstance(value, ImpactLevel) else ImpactLevel(str(value).upper())


def _coerce_published(value: Any) -> Optional[datetime]:
    try:
        return parse_published(value)
    except NormalizationError as e:
        raise ValueError(e.message) from e
