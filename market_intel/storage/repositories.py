"""
Storage Repositories.

============================================================
PURPOSE
============================================================
Map domain objects to rows and back.

- ArticleRepository: the stored article collection
- SourceStateRepository: source toggles and fetch stats

The stored collection is small and bounded, so writes replace
the whole table inside one transaction. Every method raises
StorageError on failure; callers decide how to degrade.

============================================================
"""

import logging
from typing import Dict, List, Sequence, Tuple

from sqlalchemy import delete, select

from ..clock import ensure_utc
from ..models import Article, ImpactLevel, Sector, SourceStats
from .database import Database
from .models import ArticleRecord, SourceStateRecord


def _to_record(article: Article, position: int) -> ArticleRecord:
    return ArticleRecord(
        id=article.id,
        source=article.source,
        headline=article.headline,
        summary=article.summary,
        sentiment_score=article.sentiment_score,
        sector=article.sector.value,
        impact_level=article.impact_level.value,
        tickers_mentioned=sorted(article.tickers_mentioned),
        relevance_score=article.relevance_score,
        published_date=article.published_date,
        created_date=article.created_date,
        updated_date=article.updated_date,
        url=article.url,
        author=article.author,
        position=position,
    )


def _to_article(record: ArticleRecord) -> Article:
    return Article(
        id=record.id,
        source=record.source,
        headline=record.headline,
        summary=record.summary or "",
        sentiment_score=record.sentiment_score,
        sector=Sector(record.sector),
        impact_level=ImpactLevel(record.impact_level),
        tickers_mentioned=frozenset(record.tickers_mentioned or ()),
        relevance_score=record.relevance_score,
        published_date=ensure_utc(record.published_date) if record.published_date else None,
        created_date=ensure_utc(record.created_date),
        updated_date=ensure_utc(record.updated_date),
        url=record.url,
        author=record.author,
    )


class ArticleRepository:
    """Persistence of the stored article collection."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._logger = logging.getLogger("repository.articles")

    def load_all(self) -> List[Article]:
        """All stored articles in collection order."""
        with self._db.transaction("articles.load_all") as session:
            stmt = select(ArticleRecord).order_by(ArticleRecord.position)
            records = session.execute(stmt).scalars().all()
            articles = [_to_article(r) for r in records]
        self._logger.debug(f"Loaded {len(articles)} articles")
        return articles

    def replace_all(self, articles: Sequence[Article]) -> int:
        """Replace the stored collection; returns rows written."""
        with self._db.transaction("articles.replace_all") as session:
            session.execute(delete(ArticleRecord))
            session.add_all(_to_record(a, i) for i, a in enumerate(articles))
        self._logger.debug(f"Persisted {len(articles)} articles")
        return len(articles)

    def clear(self) -> int:
        with self._db.transaction("articles.clear") as session:
            result = session.execute(delete(ArticleRecord))
            return result.rowcount or 0


class SourceStateRepository:
    """Persistence of per-source enabled flags and stats."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._logger = logging.getLogger("repository.source_state")

    def load_all(self) -> Dict[str, Tuple[bool, SourceStats]]:
        """Source name -> (enabled, stats)."""
        with self._db.transaction("source_state.load_all") as session:
            records = session.execute(select(SourceStateRecord)).scalars().all()
            return {
                r.name: (
                    r.enabled,
                    SourceStats(
                        last_fetch=ensure_utc(r.last_fetch) if r.last_fetch else None,
                        articles_fetched=r.articles_fetched,
                        error_count=r.error_count,
                        last_error=r.last_error,
                    ),
                )
                for r in records
            }

    def save(self, name: str, enabled: bool, stats: SourceStats) -> None:
        with self._db.transaction("source_state.save") as session:
            record = session.get(SourceStateRecord, name)
            if record is None:
                record = SourceStateRecord(name=name)
                session.add(record)
            record.enabled = enabled
            record.last_fetch = stats.last_fetch
            record.articles_fetched = stats.articles_fetched
            record.error_count = stats.error_count
            record.last_error = stats.last_error
        self._logger.debug(f"Saved state for source {name!r} (enabled={enabled})")
