"""
Storage ORM Models.

============================================================
MODELS
============================================================
- ArticleRecord: One normalized, scored article
- SourceStateRecord: Enabled flag and fetch stats per source

============================================================
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for the market intelligence tables."""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class ArticleRecord(Base):
    """
    Persisted Article.

    Timestamps are stored timezone-aware; SQLite hands them back
    naive, so the repository re-attaches UTC on load.
    """

    __tablename__ = "market_articles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    source: Mapped[str] = mapped_column(String(128), nullable=False)
    headline: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sentiment_score: Mapped[float] = mapped_column(Float, nullable=False)
    sector: Mapped[str] = mapped_column(String(32), nullable=False)
    impact_level: Mapped[str] = mapped_column(String(8), nullable=False)
    tickers_mentioned: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    relevance_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    published_date: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    created_date: Mapped[datetime] = mapped_column(nullable=False)
    updated_date: Mapped[datetime] = mapped_column(nullable=False)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    author: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)

    # Insertion order of the in-memory collection
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_market_articles_created_date", "created_date"),
    )

    def __repr__(self) -> str:
        return f"<ArticleRecord {self.id} {self.source!r} {self.headline[:40]!r}>"


class SourceStateRecord(Base):
    """Toggle and bookkeeping for one configured news source."""

    __tablename__ = "news_source_state"

    name: Mapped[str] = mapped_column(String(128), primary_key=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_fetch: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    articles_fetched: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<SourceStateRecord {self.name!r} enabled={self.enabled}>"
