"""
Tests for the data model and seed dataset.
"""

import pytest
from datetime import datetime, timedelta, timezone

from market_intel.models import (
    Article,
    ImpactLevel,
    NewsSourceConfig,
    Sector,
    SentimentLabel,
    SortKey,
    SourceStats,
)
from market_intel.seed import build_seed_articles


NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_article(**overrides):
    fields = dict(
        id="a1",
        source="Test",
        headline="Headline",
        sentiment_score=0.0,
        sector=Sector.GENERAL,
        impact_level=ImpactLevel.LOW,
        created_date=NOW,
        updated_date=NOW,
    )
    fields.update(overrides)
    return Article(**fields)


class TestArticle:
    """Tests for Article invariants."""

    def test_scores_clamped(self):
        article = make_article(sentiment_score=-4.0, relevance_score=7.0)
        assert article.sentiment_score == -1.0
        assert article.relevance_score == 1.0

    def test_empty_headline_rejected(self):
        with pytest.raises(ValueError):
            make_article(headline="  ")

    def test_tickers_uppercased(self):
        assert make_article(tickers_mentioned=["spy", "qqq"]).tickers_mentioned == frozenset(
            {"SPY", "QQQ"}
        )

    def test_dict_round_trip(self):
        article = make_article(
            sector=Sector.REAL_ESTATE,
            impact_level=ImpactLevel.HIGH,
            tickers_mentioned=frozenset({"VNQ"}),
            published_date=NOW - timedelta(hours=1),
            url="https://example.com",
        )
        data = article.to_dict()
        assert data["sector"] == "Real Estate"
        assert "sentiment_label" not in data
        assert Article.from_dict(data) == article


class TestEnums:
    """Tests for enum parsing helpers."""

    @pytest.mark.parametrize("value", ["Real Estate", "RealEstate", "real_estate", "REAL_ESTATE"])
    def test_sector_from_string(self, value):
        assert Sector.from_string(value) is Sector.REAL_ESTATE

    def test_unknown_sector(self):
        with pytest.raises(ValueError):
            Sector.from_string("Gaming")

    def test_sort_key_parse(self):
        assert SortKey.parse("-impact_level") is SortKey.IMPACT_LEVEL
        assert SortKey.parse("impact_level") is SortKey.IMPACT_LEVEL
        assert SortKey.parse(SortKey.CREATED_DATE) is SortKey.CREATED_DATE
        with pytest.raises(ValueError):
            SortKey.parse("-headline")

    def test_impact_rank(self):
        assert ImpactLevel.HIGH.rank > ImpactLevel.MEDIUM.rank > ImpactLevel.LOW.rank

    def test_sentiment_label(self):
        assert SentimentLabel.from_score(0.5) is SentimentLabel.POSITIVE
        assert SentimentLabel.from_score(-0.5) is SentimentLabel.NEGATIVE
        assert SentimentLabel.from_score(0.3) is SentimentLabel.NEUTRAL


class TestSourceModels:
    """Tests for source configuration and stats."""

    def test_reliability_clamped(self):
        assert NewsSourceConfig(name="X", kind="rss", reliability=-1).reliability == 0.0

    def test_stats_bookkeeping(self):
        stats = SourceStats()
        stats.record_failure("timeout", NOW)
        stats.record_failure("timeout", NOW)
        assert stats.consecutive_failures == 2

        stats.record_success(5, NOW)
        assert stats.consecutive_failures == 0
        assert stats.error_count == 2
        assert stats.articles_fetched == 5


class TestSeed:
    """Tests for the fallback dataset."""

    def test_ten_articles_two_hours_apart(self):
        articles = build_seed_articles(NOW)
        assert len(articles) == 10
        assert articles[0].created_date == NOW - timedelta(hours=2)
        assert articles[-1].created_date == NOW - timedelta(hours=20)
        assert len({a.id for a in articles}) == 10

    def test_covers_sectors(self):
        sectors = {a.sector for a in build_seed_articles(NOW)}
        assert Sector.CRYPTOCURRENCY in sectors
        assert Sector.GENERAL not in sectors
