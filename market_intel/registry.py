"""
Source Registry - Central manager for all news sources.

The registry:
1. Builds adapters from source configuration
2. Tracks which sources are enabled
3. Fetches every enabled source concurrently (non-blocking)
4. Keeps per-source stats and an incident log
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import yaml

from .clock import Clock, SystemClock
from .config import FetchConfig
from .exceptions import UnknownSourceError
from .models import NewsSourceConfig, RawArticle, SourceIncident, SourceStats
from .sources import BaseNewsSource, create_source


logger = logging.getLogger(__name__)


# Maximum incidents kept in memory
MAX_INCIDENTS = 100


def load_source_configs(path: Union[str, Path]) -> List[NewsSourceConfig]:
    """
    Load source definitions from a YAML file.

    Expected layout:
        sources:
          - name: Yahoo Finance
            kind: rss
            url: https://...
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    entries = data.get("sources", []) if isinstance(data, dict) else data
    return [NewsSourceConfig.from_dict(entry) for entry in entries or []]


@dataclass
class FetchResult:
    """Outcome of one registry-wide fetch."""
    articles: List[RawArticle] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> List[str]:
        return [name for name in self.counts if name not in self.failed]


class SourceRegistry:
    """
    Central registry for news sources.

    DESIGN PRINCIPLES:
    1. NON-BLOCKING - Never wait indefinitely for any source
    2. GRACEFUL - Partial data is better than no data
    3. TRANSPARENT - Stats and incidents available

    Usage:
        registry = SourceRegistry.from_configs(
            load_source_configs("sources.yaml"),
            api_keys={"newsapi": "..."},
        )
        result = await registry.fetch_all()
    """

    def __init__(
        self,
        fetch_config: Optional[FetchConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._fetch_config = fetch_config or FetchConfig()
        self._clock = clock or SystemClock()
        self._sources: Dict[str, BaseNewsSource] = {}
        self._incidents: List[SourceIncident] = []

    @classmethod
    def from_configs(
        cls,
        configs: Iterable[NewsSourceConfig],
        api_keys: Optional[Dict[str, str]] = None,
        fetch_config: Optional[FetchConfig] = None,
        clock: Optional[Clock] = None,
    ) -> "SourceRegistry":
        """Build a registry, skipping entries with an unknown kind."""
        registry = cls(fetch_config=fetch_config, clock=clock)
        api_keys = api_keys or {}
        for config in configs:
            try:
                source = create_source(
                    config,
                    fetch_config=registry._fetch_config,
                    api_key=api_keys.get(config.kind),
                    clock=registry._clock,
                )
            except ValueError as e:
                logger.error(f"Skipping source {config.name!r}: {e}")
                continue
            registry.register(source)
        return registry

    # =========================================================
    # REGISTRATION
    # =========================================================

    def register(self, source: BaseNewsSource) -> None:
        """Register a news source."""
        if source.name in self._sources:
            logger.warning(f"Overwriting existing source: {source.name}")
        self._sources[source.name] = source
        logger.info(f"Registered news source: {source.name} ({source.KIND})")

    def get(self, name: str) -> BaseNewsSource:
        try:
            return self._sources[name]
        except KeyError:
            raise UnknownSourceError(f"Unknown news source: {name!r}", source_name=name)

    def get_sources(self) -> List[NewsSourceConfig]:
        """Configurations of all registered sources, in registration order."""
        return [source.config for source in self._sources.values()]

    def enable(self, name: str) -> None:
        self.get(name).config.enabled = True
        logger.info(f"Enabled news source: {name}")

    def disable(self, name: str) -> None:
        self.get(name).config.enabled = False
        logger.info(f"Disabled news source: {name}")

    def get_stats(self) -> Dict[str, SourceStats]:
        return {name: source.stats for name, source in self._sources.items()}

    @property
    def incidents(self) -> List[SourceIncident]:
        return list(self._incidents)

    # =========================================================
    # FETCHING
    # =========================================================

    async def fetch_all(self) -> FetchResult:
        """
        Fetch from every enabled source concurrently.

        NEVER raises - a failed or hung source contributes nothing.
        """
        active = [
            source for source in self._sources.values()
            if source.config.enabled and source.is_configured
        ]
        result = FetchResult()
        if not active:
            logger.warning("No enabled news sources to fetch")
            return result

        tasks = {
            source.name: asyncio.create_task(
                self._fetch_with_timeout(source), name=source.name
            )
            for source in active
        }
        outcomes = await asyncio.gather(*tasks.values(), return_exceptions=True)

        for source, outcome in zip(active, outcomes):
            if isinstance(outcome, BaseException):
                source.record_failure(str(outcome))
                self._record_incident(source.name, "fetch_error", str(outcome))
                result.counts[source.name] = 0
                result.failed.append(source.name)
                continue

            result.counts[source.name] = len(outcome)
            if outcome:
                result.articles.extend(outcome)
            elif source.stats.consecutive_failures:
                result.failed.append(source.name)

        logger.info(
            f"Fetched {len(result.articles)} raw articles from "
            f"{len(active) - len(result.failed)}/{len(active)} sources"
        )
        return result

    async def close(self) -> None:
        """Close all source sessions."""
        for source in self._sources.values():
            await source.close()

    async def _fetch_with_timeout(self, source: BaseNewsSource) -> List[RawArticle]:
        timeout = self._fetch_config.source_timeout_seconds
        try:
            return await asyncio.wait_for(source.fetch_articles(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Source {source.name} timed out after {timeout}s")
            source.record_failure(f"Timed out after {timeout}s")
            self._record_incident(source.name, "timeout", f"No response within {timeout}s")
            return []

    def _record_incident(self, source_name: str, incident_type: str, error_message: str) -> None:
        self._incidents.append(
            SourceIncident(
                source_name=source_name,
                incident_type=incident_type,
                timestamp=self._clock.now(),
                error_message=error_message,
            )
        )
        del self._incidents[:-MAX_INCIDENTS]
