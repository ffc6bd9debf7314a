"""
Tests for the Market Intelligence Service.

============================================================
PURPOSE
============================================================
1. Reads: refresh on empty, background refresh on stale
2. The refresh cycle: dedupe, merge, cap, cleanup, seed fallback
3. Superseded refreshes are discarded
4. Source toggles and their persistence
5. Manual CRUD and lifecycle
6. Default wiring via create_service

============================================================
"""

import asyncio
import pytest
from datetime import timedelta
from itertools import count
from unittest.mock import AsyncMock, patch

from market_intel.config import FetchConfig, PipelineConfig, StoreConfig
from market_intel.exceptions import FetchError, UnknownSourceError
from market_intel.models import Article, ImpactLevel, RawArticle, Sector
from market_intel.registry import FetchResult, SourceRegistry
from market_intel.service import MarketIntelligenceService, create_service
from market_intel.storage import Database, SourceStateRepository
from market_intel.store import ArticleStore


def stored_article(clock, headline, age=timedelta(0)):
    created = clock.now() - age
    return Article(
        id=headline.lower().replace(" ", "-"),
        source="Stored",
        headline=headline,
        sentiment_score=0.0,
        sector=Sector.GENERAL,
        impact_level=ImpactLevel.LOW,
        created_date=created,
        updated_date=created,
    )


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def build_service(clock):
    """Factory wiring a service around the given sources."""
    def factory(*sources, store_config=None, source_state=None, **config_overrides):
        config = PipelineConfig(**config_overrides)
        config.store.database_url = None
        if store_config is not None:
            config.store = store_config

        registry = SourceRegistry(FetchConfig(source_timeout_seconds=1), clock=clock)
        for source in sources:
            registry.register(source)

        return MarketIntelligenceService(
            store=ArticleStore(config.store, clock=clock),
            registry=registry,
            config=config,
            clock=clock,
            source_state=source_state,
        )
    return factory


@pytest.fixture
def state_repository():
    db = Database("sqlite://")
    db.connect()
    yield SourceStateRepository(db)
    db.dispose()


# ============================================================
# READ TESTS
# ============================================================

class TestList:
    """Tests for list() refresh behaviour."""

    @pytest.mark.asyncio
    async def test_empty_store_falls_back_to_seed(self, build_service, make_source):
        """Every live source failing on an empty store loads the seed set."""
        service = build_service(
            make_source("A", error=FetchError("down")),
            make_source("B", error=FetchError("down")),
        )

        articles = await service.list()

        assert len(articles) == 10
        assert {a.id for a in articles} == {f"seed-{i}" for i in range(1, 11)}
        assert articles[0].id == "seed-1"

    @pytest.mark.asyncio
    async def test_empty_store_fetches_live(self, build_service, make_source, clock):
        service = build_service(make_source("A", [{"title": "Fed signals rate cut"}]))

        [article] = await service.list()

        assert article.headline == "Fed signals rate cut"
        assert article.impact_level is ImpactLevel.HIGH
        assert article.created_date == clock.now()

    @pytest.mark.asyncio
    async def test_fresh_store_not_refreshed(self, build_service, make_source, clock):
        source = make_source("A", [{"title": "New"}])
        service = build_service(source)
        service._store.replace_all([stored_article(clock, "Recent", timedelta(minutes=5))])

        articles = await service.list()

        assert [a.headline for a in articles] == ["Recent"]
        assert not service.refresh_in_progress
        assert source.calls == 0

    @pytest.mark.asyncio
    async def test_stale_store_refreshes_in_background(self, build_service, make_source, clock):
        source = make_source("A", [{"title": "Breaking story"}], delay=0.05)
        service = build_service(source)
        service._store.replace_all([stored_article(clock, "Old story", timedelta(hours=2))])

        first = await service.list()
        task = service._refresh_task
        second = await service.list()

        assert [a.headline for a in first] == ["Old story"]
        assert [a.headline for a in second] == ["Old story"]
        assert service._refresh_task is task

        await task

        assert source.calls == 1
        headlines = [a.headline for a in await service.list()]
        assert headlines == ["Breaking story", "Old story"]

    @pytest.mark.asyncio
    async def test_stale_store_refreshed_inline_when_waiting(self, build_service, make_source, clock):
        source = make_source("A", [{"title": "Breaking story"}])
        service = build_service(source)
        service._store.replace_all([stored_article(clock, "Old story", timedelta(hours=2))])

        articles = await service.list(wait_for_refresh=True)

        assert [a.headline for a in articles] == ["Breaking story", "Old story"]
        assert service._refresh_task is None
        assert source.calls == 1

    @pytest.mark.asyncio
    async def test_sort_and_limit(self, build_service, make_source):
        service = build_service(make_source("A", error=FetchError("down")))

        articles = await service.list("-sentiment_score", limit=3)

        assert len(articles) == 3
        scores = [a.sentiment_score for a in articles]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_invalid_sort_key(self, build_service, make_source):
        source = make_source("A", [{"title": "Story"}])
        service = build_service(source)

        with pytest.raises(ValueError):
            await service.list("-headline")
        assert source.calls == 0

    @pytest.mark.asyncio
    async def test_summary(self, build_service, make_source, clock):
        service = build_service(make_source("A", error=FetchError("down")))

        summary = await service.get_sentiment_summary()

        assert summary.news_count == 10
        assert summary.high_impact_count == 4
        assert summary.last_updated == clock.now()
        assert -1.0 <= summary.overall_sentiment <= 1.0


# ============================================================
# REFRESH CYCLE TESTS
# ============================================================

class TestUpdateNews:
    """Tests for the refresh cycle."""

    @pytest.mark.asyncio
    async def test_duplicates_collapsed_across_sources(self, build_service, make_source):
        service = build_service(
            make_source("A", [{"title": "Fed signals rate cut"}]),
            make_source("B", [{"title": "Fed signals rate cut"}, {"title": "Oil slides"}]),
        )

        articles = await service.update_news()

        assert sorted(a.headline for a in articles) == ["Fed signals rate cut", "Oil slides"]

    @pytest.mark.asyncio
    async def test_repeat_refresh_adds_nothing(self, build_service, make_source, clock):
        service = build_service(make_source("A", [{"title": "Same story"}]))

        first = await service.update_news()
        clock.advance(minutes=1)
        second = await service.update_news()

        assert len(second) == 1
        assert second[0].id == first[0].id

    @pytest.mark.asyncio
    async def test_cap_enforced(self, build_service, make_source):
        service = build_service(
            make_source("A", [{"title": f"Story {i}"} for i in range(6)]),
            store_config=StoreConfig(max_retained=4, database_url=None),
        )

        assert len(await service.update_news()) == 4

    @pytest.mark.asyncio
    async def test_old_articles_cleaned_on_merge(self, build_service, make_source, clock):
        service = build_service(make_source("A", [{"title": "Fresh"}]))
        service._store.replace_all([
            stored_article(clock, "Ancient", timedelta(days=10)),
            stored_article(clock, "Recent", timedelta(days=1)),
        ])

        articles = await service.update_news()

        assert [a.headline for a in articles] == ["Fresh", "Recent"]

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_existing(self, build_service, make_source, clock):
        service = build_service(make_source("A", error=FetchError("down")))
        service._store.replace_all([stored_article(clock, "Kept", timedelta(hours=1))])

        articles = await service.update_news()

        assert [a.headline for a in articles] == ["Kept"]

    @pytest.mark.asyncio
    async def test_seed_fallback_disabled(self, build_service, make_source):
        service = build_service(make_source("A", error=FetchError("down")), use_seed_fallback=False)
        assert await service.update_news() == []

    @pytest.mark.asyncio
    async def test_bad_timestamp_does_not_abort_cycle(self, build_service, make_source, clock):
        service = build_service(
            make_source("A", [
                {"title": "Fed signals rate cut"},
                {"title": "Oil slides", "published": float("nan")},
            ]),
            make_source("B", [{"title": "Chip stocks rally", "published": 1_700_000_000_000_000_000}]),
        )

        articles = await service.update_news()

        assert sorted(a.headline for a in articles) == [
            "Chip stocks rally", "Fed signals rate cut", "Oil slides",
        ]
        assert all(a.published_date == clock.now() for a in articles)

    @pytest.mark.asyncio
    async def test_superseded_refresh_discarded(self, build_service, make_source):
        service = build_service(make_source("A"))
        calls = count()

        async def fake_fetch():
            if next(calls) == 0:
                await asyncio.sleep(0.05)
                return FetchResult(articles=[RawArticle("A", title="Older cycle")])
            return FetchResult(articles=[RawArticle("A", title="Newer cycle")])

        with patch.object(service._registry, "fetch_all", side_effect=fake_fetch):
            first = asyncio.create_task(service.update_news())
            await asyncio.sleep(0)
            await service.update_news()
            await first

        assert [a.headline for a in service._store.snapshot()] == ["Newer cycle"]


# ============================================================
# SOURCE MANAGEMENT TESTS
# ============================================================

class TestSources:
    """Tests for source toggles and stats."""

    @pytest.mark.asyncio
    async def test_disabled_source_not_fetched(self, build_service, make_source):
        off = make_source("Off", [{"title": "Hidden"}])
        on = make_source("On", [{"title": "Visible"}])
        service = build_service(off, on)

        service.disable_source("Off")
        articles = await service.update_news()

        assert [a.headline for a in articles] == ["Visible"]
        assert off.calls == 0
        assert [c.enabled for c in service.get_news_sources()] == [False, True]

    def test_unknown_source(self, build_service, make_source):
        service = build_service(make_source("A"))
        with pytest.raises(UnknownSourceError):
            service.enable_source("B")

    @pytest.mark.asyncio
    async def test_stats(self, build_service, make_source, clock):
        service = build_service(
            make_source("Good", [{"title": "One"}, {"title": "Two"}]),
            make_source("Bad", error=FetchError("down")),
        )

        await service.update_news()
        stats = service.get_source_stats()

        assert stats["Good"].articles_fetched == 2
        assert stats["Good"].last_fetch == clock.now()
        assert stats["Bad"].error_count == 1

    @pytest.mark.asyncio
    async def test_state_persisted_and_restored(
        self, build_service, make_source, state_repository
    ):
        service = build_service(
            make_source("A", [{"title": "Story"}]),
            make_source("B"),
            source_state=state_repository,
        )
        service.disable_source("B")
        await service.update_news()

        restored = build_service(
            make_source("A"),
            make_source("B"),
            source_state=state_repository,
        )

        enabled = {c.name: c.enabled for c in restored.get_news_sources()}
        assert enabled == {"A": True, "B": False}
        assert restored.get_source_stats()["A"].articles_fetched == 1


# ============================================================
# CRUD AND LIFECYCLE TESTS
# ============================================================

class TestCrud:
    """Tests for manual create, cleanup and close."""

    @pytest.mark.asyncio
    async def test_create_scores_missing_fields(self, build_service, make_source):
        service = build_service(make_source("A"))

        article = await service.create({
            "source": "Manual",
            "headline": "Fed signals rate cut",
            "sentiment_score": -0.2,
        })

        assert article.impact_level is ImpactLevel.HIGH
        assert article.sector is Sector.FINANCE
        assert article.sentiment_score == -0.2
        assert len(service._store) == 1

    @pytest.mark.asyncio
    async def test_delete_old_news_and_clear(self, build_service, make_source, clock):
        service = build_service(make_source("A"))
        service._store.replace_all(
            [stored_article(clock, f"Old {i}", timedelta(days=10)) for i in range(3)]
            + [stored_article(clock, f"New {i}", timedelta(hours=i)) for i in range(7)]
        )

        assert await service.delete_old_news(7) == 3
        assert len(service._store) == 7

        await service.clear_cache()
        assert len(service._store) == 0

    @pytest.mark.asyncio
    async def test_close_cancels_background_refresh(self, build_service, make_source, clock):
        service = build_service(make_source("A", [{"title": "Slow"}], delay=5))
        service._store.replace_all([stored_article(clock, "Old", timedelta(hours=2))])
        await service.list()
        assert service.refresh_in_progress

        with patch.object(service._registry, "close", AsyncMock()) as close:
            await service.close()

        assert not service.refresh_in_progress
        close.assert_awaited_once()


# ============================================================
# WIRING TESTS
# ============================================================

class TestCreateService:
    """Tests for the default factory."""

    @pytest.fixture
    def sources_file(self, tmp_path):
        path = tmp_path / "sources.yaml"
        path.write_text(
            "sources:\n"
            "  - name: Feed\n"
            "    kind: rss\n"
            "    url: https://example.com/rss\n"
            "  - name: NewsAPI\n"
            "    kind: newsapi\n",
            encoding="utf-8",
        )
        return path

    @pytest.mark.asyncio
    async def test_memory_database(self, sources_file, clock):
        config = PipelineConfig(sources_path=sources_file)
        config.store.database_url = "sqlite://"

        service = create_service(config, clock=clock)
        try:
            assert [c.name for c in service.get_news_sources()] == ["Feed", "NewsAPI"]
            assert service._store.persistent
        finally:
            await service.close()

    @pytest.mark.asyncio
    async def test_no_database(self, sources_file, clock):
        config = PipelineConfig(sources_path=sources_file)
        config.store.database_url = None

        service = create_service(config, clock=clock)
        try:
            assert not service._store.persistent
        finally:
            await service.close()

    @pytest.mark.asyncio
    async def test_unreachable_database_degrades(self, sources_file, tmp_path, clock):
        config = PipelineConfig(sources_path=sources_file)
        config.store.database_url = f"sqlite:///{tmp_path}/missing/dir/db.sqlite"

        service = create_service(config, clock=clock)
        try:
            assert not service._store.persistent
        finally:
            await service.close()
