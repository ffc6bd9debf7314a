"""
Tests for the Source Registry.

============================================================
PURPOSE
============================================================
1. Registration and enable / disable toggles
2. Concurrent fetch with partial failures
3. Timeout guard and incident log

============================================================
"""

import pytest

from market_intel.config import FetchConfig
from market_intel.exceptions import FetchError, UnknownSourceError
from market_intel.models import NewsSourceConfig
from market_intel.registry import MAX_INCIDENTS, SourceRegistry
from market_intel.sources import NewsApiSource, RssFeedSource


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def registry(clock):
    return SourceRegistry(FetchConfig(source_timeout_seconds=0.2), clock=clock)


# ============================================================
# REGISTRATION TESTS
# ============================================================

class TestRegistration:
    """Tests for registering and toggling sources."""

    def test_from_configs(self, clock):
        configs = [
            NewsSourceConfig(name="NewsAPI", kind="newsapi"),
            NewsSourceConfig(name="Feed", kind="rss", url="https://example.com/rss"),
            NewsSourceConfig(name="Mystery", kind="telepathy"),
        ]

        registry = SourceRegistry.from_configs(configs, api_keys={"newsapi": "k"}, clock=clock)

        assert [c.name for c in registry.get_sources()] == ["NewsAPI", "Feed"]
        assert isinstance(registry.get("NewsAPI"), NewsApiSource)
        assert registry.get("NewsAPI").api_key == "k"
        assert isinstance(registry.get("Feed"), RssFeedSource)

    def test_enable_disable(self, registry, make_source):
        registry.register(make_source("Feed"))

        registry.disable("Feed")
        assert registry.get_sources()[0].enabled is False

        registry.enable("Feed")
        assert registry.get_sources()[0].enabled is True

    def test_unknown_name(self, registry):
        with pytest.raises(UnknownSourceError):
            registry.enable("Nope")
        with pytest.raises(KeyError):
            registry.disable("Nope")

    def test_register_overwrites(self, registry, make_source):
        registry.register(make_source("Feed", [{"title": "old"}]))
        registry.register(make_source("Feed", [{"title": "new"}]))
        assert len(registry.get_sources()) == 1
        assert registry.get("Feed").items == [{"title": "new"}]


# ============================================================
# FETCH TESTS
# ============================================================

class TestFetchAll:
    """Tests for concurrent fetching."""

    @pytest.mark.asyncio
    async def test_combines_sources(self, registry, make_source):
        registry.register(make_source("A", [{"title": "One"}, {"title": "Two"}]))
        registry.register(make_source("B", [{"title": "Three"}]))

        result = await registry.fetch_all()

        assert sorted(a.title for a in result.articles) == ["One", "Three", "Two"]
        assert result.counts == {"A": 2, "B": 1}
        assert result.failed == []
        assert registry.get_stats()["A"].articles_fetched == 2

    @pytest.mark.asyncio
    async def test_failed_source_contributes_nothing(self, registry, make_source):
        registry.register(make_source("Good", [{"title": "Fine"}]))
        registry.register(make_source("Bad", error=FetchError("down")))

        result = await registry.fetch_all()

        assert [a.title for a in result.articles] == ["Fine"]
        assert result.failed == ["Bad"]
        assert result.succeeded == ["Good"]
        assert registry.get_stats()["Bad"].error_count == 1

    @pytest.mark.asyncio
    async def test_unexpected_exception_recorded(self, registry, make_source):
        registry.register(make_source("Broken", error=RuntimeError("bug")))

        result = await registry.fetch_all()

        assert result.articles == []
        assert result.failed == ["Broken"]
        assert registry.incidents[0].incident_type == "fetch_error"
        assert registry.get_stats()["Broken"].last_error == "bug"

    @pytest.mark.asyncio
    async def test_hung_source_times_out(self, registry, make_source):
        registry.register(make_source("Slow", [{"title": "Late"}], delay=5))
        registry.register(make_source("Fast", [{"title": "Early"}]))

        result = await registry.fetch_all()

        assert [a.title for a in result.articles] == ["Early"]
        assert "Slow" in result.failed
        assert registry.incidents[-1].incident_type == "timeout"
        assert registry.get_stats()["Slow"].consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_disabled_and_unconfigured_skipped(self, registry, make_source, clock):
        disabled = make_source("Off", [{"title": "Hidden"}], enabled=False)
        registry.register(disabled)
        registry.register(NewsApiSource(NewsSourceConfig(name="NoKey", kind="newsapi"), clock=clock))

        result = await registry.fetch_all()

        assert result.articles == []
        assert result.counts == {}
        assert disabled.calls == 0

    @pytest.mark.asyncio
    async def test_incidents_capped(self, registry, make_source):
        registry.register(make_source("Broken", error=RuntimeError("bug")))

        for _ in range(MAX_INCIDENTS + 5):
            await registry.fetch_all()

        assert len(registry.incidents) == MAX_INCIDENTS
