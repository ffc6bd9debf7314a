"""
Base News Source - Abstract interface for all feed adapters.

Every adapter fetches raw payloads and turns each item into a
RawArticle. fetch_articles() is the only public entry point and
it never raises a SourceError: a failing source yields an empty
list and its stats record why.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import aiohttp

from ..clock import Clock, SystemClock
from ..config import FetchConfig
from ..exceptions import (
    AuthenticationError,
    FetchError,
    ParseError,
    RateLimitError,
    SourceError,
)
from ..models import NewsSourceConfig, RawArticle, SourceStats


logger = logging.getLogger(__name__)


class BaseNewsSource(ABC):
    """
    Abstract base class for news sources.

    DESIGN PRINCIPLES:
    1. NEVER raise from fetch_articles - log and return []
    2. RETRY transient fetch errors with linear backoff
    3. DO NOT retry rate limits, auth or parse failures
    4. TRACK per-source stats for observability

    Subclasses implement:
    - _fetch_raw() - Get raw items from the source
    - _parse() - Convert one raw item to RawArticle
    """

    # Adapter key used in source configuration files
    KIND: str = ""
    REQUIRES_API_KEY: bool = False

    def __init__(
        self,
        config: NewsSourceConfig,
        fetch_config: Optional[FetchConfig] = None,
        api_key: Optional[str] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config
        self.fetch_config = fetch_config or FetchConfig()
        self.api_key = api_key
        self._clock = clock or SystemClock()
        self._session: Optional[aiohttp.ClientSession] = None
        self.stats = SourceStats()

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def is_configured(self) -> bool:
        """False when a required API key is missing."""
        return bool(self.api_key) or not self.REQUIRES_API_KEY

    @abstractmethod
    async def _fetch_raw(self) -> List[Dict[str, Any]]:
        """
        Fetch raw items from the source.

        Should raise FetchError, RateLimitError, AuthenticationError
        or ParseError on failure.
        """
        pass

    @abstractmethod
    def _parse(self, item: Dict[str, Any]) -> Optional[RawArticle]:
        """Convert one raw item; None if it is unusable."""
        pass

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    async def fetch_articles(self) -> List[RawArticle]:
        """
        Fetch raw articles annotated with this source's name.

        NEVER raises source errors - returns an empty list on failure.
        """
        if not self.is_configured:
            logger.debug(f"[{self.name}] No API key configured, skipping")
            return []

        items = await self._fetch_with_retry()
        if items is None:
            return []

        articles: List[RawArticle] = []
        for item in items[: self.fetch_config.items_per_source]:
            try:
                article = self._parse(item)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.debug(f"[{self.name}] Skipping unparseable item: {e}")
                continue
            if article is not None:
                articles.append(article)

        self.stats.record_success(len(articles), self._clock.now())
        logger.info(f"[{self.name}] Fetched {len(articles)} articles")
        return articles

    def record_failure(self, error: str) -> None:
        """Record a failure detected outside the adapter (e.g. a timeout guard)."""
        self.stats.record_failure(error, self._clock.now())

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # ─────────────────────────────────────────────────────────────
    # Internal methods
    # ─────────────────────────────────────────────────────────────

    async def _fetch_with_retry(self) -> Optional[List[Dict[str, Any]]]:
        """Fetch with retry logic; None means the source failed."""
        last_error: Optional[Exception] = None
        attempts = self.fetch_config.max_retries + 1

        for attempt in range(attempts):
            try:
                return await self._fetch_raw()

            except (RateLimitError, AuthenticationError, ParseError) as e:
                logger.warning(f"[{self.name}] {e.__class__.__name__}: {e}")
                self.record_failure(str(e))
                return None

            except FetchError as e:
                last_error = e
                logger.warning(f"[{self.name}] Fetch error (attempt {attempt + 1}): {e}")

            except SourceError as e:
                last_error = e
                logger.warning(f"[{self.name}] Source error (attempt {attempt + 1}): {e}")

            if attempt < attempts - 1:
                await asyncio.sleep(self.fetch_config.retry_delay_seconds * (attempt + 1))

        self.record_failure(str(last_error))
        return None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.fetch_config.timeout_seconds)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"User-Agent": self.fetch_config.user_agent},
            )
        return self._session

    async def _request(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        as_json: bool = True,
    ) -> Any:
        """
        GET a URL and return decoded JSON or text.

        Raises:
            AuthenticationError: On 401/403
            RateLimitError: On 429
            FetchError: On other non-200 responses, network errors and timeouts
            ParseError: On an undecodable JSON body
        """
        session = await self._get_session()
        try:
            async with session.get(url, params=params) as response:
                if response.status in (401, 403):
                    raise AuthenticationError(
                        f"Access denied ({response.status})",
                        source_name=self.name,
                    )
                if response.status == 429:
                    retry_after = response.headers.get("Retry-After", "60")
                    raise RateLimitError(
                        "Rate limit exceeded",
                        source_name=self.name,
                        retry_after_seconds=int(retry_after) if retry_after.isdigit() else None,
                    )
                if response.status != 200:
                    text = await response.text()
                    raise FetchError(
                        f"HTTP {response.status}",
                        source_name=self.name,
                        status_code=response.status,
                        url=str(response.url),
                        details={"response": text[:500]},
                    )

                text = await response.text()
                if not as_json:
                    return text

                try:
                    return json.loads(text)
                except ValueError as e:
                    raise ParseError(
                        f"Invalid JSON: {e}",
                        source_name=self.name,
                        raw_data=text,
                    )

        except aiohttp.ClientError as e:
            raise FetchError(f"Network error: {e}", source_name=self.name, url=url)
        except asyncio.TimeoutError:
            raise FetchError("Request timed out", source_name=self.name, url=url)
