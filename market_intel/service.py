"""
Market Intelligence Service.

============================================================
RESPONSIBILITY
============================================================
The single entry point used by callers (CLI, dashboards).

- Serves the stored collection, refreshing it when empty or stale
- Runs the fetch -> normalize -> dedupe -> merge -> cleanup cycle
- Derives the sentiment summary on demand
- Manages source toggles and persists their state

============================================================
CONCURRENCY
============================================================
Everything runs on one event loop. A stale read schedules at
most one background refresh. Each refresh takes a generation
number; a refresh that finishes after a newer one has started
discards its result (last write wins).

============================================================
USAGE
============================================================
```python
service = create_service()
articles = await service.list("-impact_level", limit=10)
summary = await service.get_sentiment_summary()
await service.close()
```

============================================================
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Union

from .aggregator import SentimentAggregator
from .clock import Clock, SystemClock
from .config import PipelineConfig
from .deduplicator import ArticleDeduplicator
from .exceptions import StorageError
from .lexicon import Lexicon
from .models import Article, NewsSourceConfig, SentimentSummary, SortKey, SourceStats
from .normalizer import ArticleNormalizer
from .registry import SourceRegistry, load_source_configs
from .scoring import ArticleScorer
from .seed import build_seed_articles
from .storage import ArticleRepository, Database, SourceStateRepository
from .store import ArticleStore


logger = logging.getLogger(__name__)


class MarketIntelligenceService:
    """
    Orchestrates the news pipeline over an ArticleStore.

    All collaborators are passed in; use create_service() for the
    default wiring.
    """

    def __init__(
        self,
        store: ArticleStore,
        registry: SourceRegistry,
        config: Optional[PipelineConfig] = None,
        normalizer: Optional[ArticleNormalizer] = None,
        scorer: Optional[ArticleScorer] = None,
        aggregator: Optional[SentimentAggregator] = None,
        deduplicator: Optional[ArticleDeduplicator] = None,
        clock: Optional[Clock] = None,
        source_state: Optional[SourceStateRepository] = None,
        database: Optional[Database] = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._clock = clock or SystemClock()
        self._store = store
        self._registry = registry
        self._scorer = scorer or ArticleScorer(config=self._config.scoring)
        self._normalizer = normalizer or ArticleNormalizer(self._scorer, clock=self._clock)
        self._aggregator = aggregator or SentimentAggregator(
            self._config.aggregator,
            label_threshold=self._config.scoring.label_threshold,
        )
        self._deduplicator = deduplicator or ArticleDeduplicator(store.max_retained)
        self._source_state = source_state
        self._database = database

        self._generation = 0
        self._refresh_task: Optional[asyncio.Task] = None

        self._restore_source_state()

    # =========================================================
    # READS
    # =========================================================

    async def list(
        self,
        sort: Union[str, SortKey] = SortKey.CREATED_DATE,
        limit: Optional[int] = None,
        wait_for_refresh: bool = False,
    ) -> List[Article]:
        """
        Stored articles, sorted descending by `sort`.

        An empty store is refreshed before returning. A stale store
        is returned as is while a background refresh runs, unless
        wait_for_refresh is set, in which case it is refreshed first.

        Raises:
            ValueError: On an unknown sort key or negative limit
        """
        key = SortKey.parse(sort)
        if limit is not None and limit < 0:
            raise ValueError("limit must be non-negative")

        if len(self._store) == 0:
            await self._refresh_now()
        elif self._store.is_stale():
            if wait_for_refresh:
                await self._refresh_now()
            else:
                self._schedule_refresh()

        return self._store.list(key, limit)

    async def get_sentiment_summary(self, wait_for_refresh: bool = False) -> SentimentSummary:
        """Aggregate statistics over the most recent articles."""
        await self.list(wait_for_refresh=wait_for_refresh)
        return self._aggregator.summarize(self._store.snapshot(), self._clock.now())

    @property
    def refresh_in_progress(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    # =========================================================
    # REFRESH CYCLE
    # =========================================================

    async def update_news(self) -> List[Article]:
        """
        Run one full refresh cycle.

        NEVER raises for source failures. Returns the stored
        collection after the cycle.
        """
        self._generation += 1
        generation = self._generation

        fetched = await self._registry.fetch_all()
        self._save_source_state()

        normalized = self._normalizer.normalize_batch(fetched.articles)
        fresh = self._deduplicator.dedupe_batch(normalized)

        if generation != self._generation:
            logger.info(f"Discarding superseded refresh #{generation}")
            return self._store.snapshot()

        if not fresh and len(self._store) == 0:
            if self._config.use_seed_fallback:
                logger.warning("No live articles available, loading fallback dataset")
                self._store.replace_all(build_seed_articles(self._clock.now()))
            return self._store.snapshot()

        merged = self._deduplicator.merge(fresh, self._store.snapshot(), self._store.max_retained)

        kept = merged.articles
        if self._config.store.auto_cleanup_days is not None:
            cutoff = self._clock.now() - timedelta(days=self._config.store.auto_cleanup_days)
            kept = [a for a in kept if a.created_date >= cutoff]
        self._store.replace_all(kept)

        logger.info(
            f"Refresh #{generation}: {len(normalized)} normalized, {merged.added} added, "
            f"{merged.skipped} duplicates, {len(merged.articles) - len(kept)} expired, "
            f"{len(self._store)} stored"
        )
        return self._store.snapshot()

    async def _refresh_now(self) -> None:
        if self.refresh_in_progress:
            await asyncio.shield(self._refresh_task)
        else:
            await self.update_news()

    def _schedule_refresh(self) -> None:
        if self.refresh_in_progress:
            return
        logger.debug("Store is stale, scheduling background refresh")
        self._refresh_task = asyncio.create_task(self._background_refresh())

    async def _background_refresh(self) -> None:
        try:
            await self.update_news()
        except Exception as e:
            logger.exception(f"Background refresh failed: {e}")

    # =========================================================
    # MUTATIONS
    # =========================================================

    async def create(self, data: Union[Article, Mapping[str, Any]]) -> Article:
        """
        Add one article manually.

        Mapping input without scores is scored from its headline
        and summary.
        """
        if not isinstance(data, Article):
            data = self._fill_scores(data)
        article = self._store.create(data)
        logger.info(f"Created article {article.id}: {article.headline[:60]}")
        return article

    async def delete_old_news(self, days: float = 7) -> int:
        """Remove articles created more than `days` ago; returns the count."""
        return self._store.delete_older_than(days)

    async def clear_cache(self) -> None:
        self._store.clear()

    # =========================================================
    # SOURCES
    # =========================================================

    def get_news_sources(self) -> List[NewsSourceConfig]:
        return self._registry.get_sources()

    def enable_source(self, name: str) -> None:
        """Raises UnknownSourceError for an unregistered name."""
        self._registry.enable(name)
        self._save_source_state()

    def disable_source(self, name: str) -> None:
        """Raises UnknownSourceError for an unregistered name."""
        self._registry.disable(name)
        self._save_source_state()

    def get_source_stats(self) -> Dict[str, SourceStats]:
        return self._registry.get_stats()

    # =========================================================
    # LIFECYCLE
    # =========================================================

    async def close(self) -> None:
        """Cancel any background refresh and release resources."""
        if self.refresh_in_progress:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
        self._refresh_task = None

        await self._registry.close()
        if self._database is not None:
            self._database.dispose()

    # =========================================================
    # INTERNALS
    # =========================================================

    def _fill_scores(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        filled = dict(data)
        result = self._scorer.score(filled.get("headline"), filled.get("summary"))
        filled.setdefault("sentiment_score", result.sentiment_score)
        filled.setdefault("sector", result.sector)
        filled.setdefault("impact_level", result.impact_level)
        filled.setdefault("tickers_mentioned", result.tickers)
        filled.setdefault("relevance_score", result.relevance_score)
        return filled

    def _restore_source_state(self) -> None:
        if self._source_state is None:
            return
        try:
            saved = self._source_state.load_all()
        except StorageError as e:
            self._degrade_source_state(e)
            return

        stats = self._registry.get_stats()
        for config in self._registry.get_sources():
            if config.name not in saved:
                continue
            enabled, stored = saved[config.name]
            config.enabled = enabled
            current = stats[config.name]
            current.last_fetch = stored.last_fetch
            current.articles_fetched = stored.articles_fetched
            current.error_count = stored.error_count
            current.last_error = stored.last_error
        logger.info(f"Restored state for {len(saved)} news sources")

    def _save_source_state(self) -> None:
        if self._source_state is None:
            return
        stats = self._registry.get_stats()
        try:
            for config in self._registry.get_sources():
                self._source_state.save(config.name, config.enabled, stats[config.name])
        except StorageError as e:
            self._degrade_source_state(e)

    def _degrade_source_state(self, error: StorageError) -> None:
        logger.warning(f"Source state storage unavailable ({error.message}); not persisting")
        self._source_state = None


def create_service(
    config: Optional[PipelineConfig] = None,
    clock: Optional[Clock] = None,
) -> MarketIntelligenceService:
    """
    Build a service with the default wiring.

    Persistence is skipped when no database URL is configured and
    degrades to memory-only if the database cannot be opened.

    Raises:
        LexiconError: If the lexicon file is malformed
        OSError: If the lexicon or sources file cannot be read
    """
    config = config or PipelineConfig.from_env()
    clock = clock or SystemClock()

    scorer = ArticleScorer(Lexicon.from_yaml(config.lexicon_path), config.scoring)

    database: Optional[Database] = None
    article_repo: Optional[ArticleRepository] = None
    state_repo: Optional[SourceStateRepository] = None
    if config.store.database_url:
        database = Database(config.store.database_url)
        try:
            database.connect()
            article_repo = ArticleRepository(database)
            state_repo = SourceStateRepository(database)
        except StorageError as e:
            logger.warning(f"Database unavailable ({e.message}); running memory-only")
            database = None

    registry = SourceRegistry.from_configs(
        load_source_configs(config.sources_path),
        api_keys=config.api_keys,
        fetch_config=config.fetch,
        clock=clock,
    )

    return MarketIntelligenceService(
        store=ArticleStore(config.store, clock=clock, repository=article_repo),
        registry=registry,
        config=config,
        scorer=scorer,
        clock=clock,
        source_state=state_repo,
        database=database,
    )
