"""
NewsAPI Source - newsapi.org top headlines.

Response shape:
    {"status": "ok", "articles": [
        {"source": {"name": ...}, "author": ..., "title": ...,
         "description": ..., "url": ..., "publishedAt": ...}]}
"""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import AuthenticationError, FetchError, ParseError, RateLimitError
from ..models import RawArticle
from .base import BaseNewsSource


logger = logging.getLogger(__name__)


class NewsApiSource(BaseNewsSource):
    """NewsAPI.org headline feed (API key required)."""

    KIND = "newsapi"
    REQUIRES_API_KEY = True
    DEFAULT_URL = "https://newsapi.org/v2/top-headlines"

    async def _fetch_raw(self) -> List[Dict[str, Any]]:
        params = {
            "apiKey": self.api_key,
            "pageSize": self.fetch_config.items_per_source,
            **self.config.params,
        }
        data = await self._request(self.config.url or self.DEFAULT_URL, params=params)

        if not isinstance(data, dict):
            raise ParseError("Expected a JSON object", source_name=self.name, raw_data=str(data))

        if data.get("status") == "error":
            code = data.get("code", "")
            message = data.get("message", "unknown error")
            if code in ("apiKeyInvalid", "apiKeyMissing", "apiKeyDisabled"):
                raise AuthenticationError(message, source_name=self.name)
            if code == "rateLimited":
                raise RateLimitError(message, source_name=self.name)
            raise FetchError(message, source_name=self.name, details={"code": code})

        articles = data.get("articles")
        if not isinstance(articles, list):
            raise ParseError("Missing 'articles' list", source_name=self.name, raw_data=str(data))
        return articles

    def _parse(self, item: Dict[str, Any]) -> Optional[RawArticle]:
        title = item.get("title")
        # NewsAPI marks deleted stories with this placeholder
        if not title or title == "[Removed]":
            logger.debug(f"[{self.name}] Skipping removed or untitled article")
            return None
        return RawArticle(
            source_name=self.name,
            title=title,
            description=item.get("description"),
            url=item.get("url"),
            published_at=item.get("publishedAt"),
            author=item.get("author"),
            extra={"outlet": (item.get("source") or {}).get("name")},
        )
