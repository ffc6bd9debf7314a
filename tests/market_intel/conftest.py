"""
Shared fixtures for the market intelligence tests.

Stub sources return canned items without touching the network.
"""

import asyncio
import pytest
from datetime import datetime, timezone

from market_intel.clock import MockClock
from market_intel.config import FetchConfig
from market_intel.models import NewsSourceConfig, RawArticle
from market_intel.sources import BaseNewsSource


class StubSource(BaseNewsSource):
    """Source serving fixed items, an error, or a slow response."""

    KIND = "stub"

    def __init__(self, name, items=None, error=None, delay=0.0, enabled=True, **kwargs):
        super().__init__(NewsSourceConfig(name=name, kind=self.KIND, enabled=enabled), **kwargs)
        self.items = list(items or [])
        self.error = error
        self.delay = delay
        self.calls = 0

    async def _fetch_raw(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.items

    def _parse(self, item):
        return RawArticle(
            source_name=self.name,
            title=item.get("title"),
            description=item.get("summary"),
            published_at=item.get("published"),
            author=item.get("author"),
        )


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def now():
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now):
    return MockClock(now)


@pytest.fixture
def make_source(clock):
    """Factory for StubSource instances sharing the test clock."""
    def factory(name, items=None, **kwargs):
        kwargs.setdefault("fetch_config", FetchConfig(max_retries=0, retry_delay_seconds=0))
        kwargs.setdefault("clock", clock)
        return StubSource(name, items=items, **kwargs)
    return factory
