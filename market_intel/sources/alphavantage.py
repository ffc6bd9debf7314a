"""
Alpha Vantage Source - NEWS_SENTIMENT endpoint.

The free tier answers throttled calls with HTTP 200 and a
"Note" or "Information" message instead of a feed.
"""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import ParseError, RateLimitError
from ..models import RawArticle
from .base import BaseNewsSource


logger = logging.getLogger(__name__)


class AlphaVantageNewsSource(BaseNewsSource):
    """Alpha Vantage market news feed (API key required)."""

    KIND = "alphavantage"
    REQUIRES_API_KEY = True
    DEFAULT_URL = "https://www.alphavantage.co/query"

    async def _fetch_raw(self) -> List[Dict[str, Any]]:
        params = {
            "function": "NEWS_SENTIMENT",
            "apikey": self.api_key,
            "sort": "LATEST",
            "limit": self.fetch_config.items_per_source,
            **self.config.params,
        }
        data = await self._request(self.config.url or self.DEFAULT_URL, params=params)

        if not isinstance(data, dict):
            raise ParseError("Expected a JSON object", source_name=self.name, raw_data=str(data))

        for key in ("Note", "Information"):
            if key in data and "feed" not in data:
                logger.debug(f"[{self.name}] API notice: {data[key]}")
                raise RateLimitError(str(data[key]), source_name=self.name)

        feed = data.get("feed")
        if not isinstance(feed, list):
            raise ParseError("Missing 'feed' list", source_name=self.name, raw_data=str(data))
        return feed

    def _parse(self, item: Dict[str, Any]) -> Optional[RawArticle]:
        authors = item.get("authors") or []
        return RawArticle(
            source_name=self.name,
            title=item.get("title"),
            description=item.get("summary"),
            url=item.get("url"),
            published_at=item.get("time_published"),
            author=", ".join(authors) if authors else None,
            extra={"outlet": item.get("source")},
        )
