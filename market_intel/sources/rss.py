"""
RSS Source - RSS/Atom feeds parsed with feedparser.

The feed body is downloaded with aiohttp (so the client timeout
applies) and parsed in the default executor.
"""

import asyncio
import calendar
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import feedparser
from bs4 import BeautifulSoup

from ..exceptions import ParseError
from ..models import RawArticle
from .base import BaseNewsSource


logger = logging.getLogger(__name__)


def strip_html(fragment: Optional[str]) -> str:
    """Plain text of an HTML snippet (feed summaries often carry markup)."""
    if not fragment:
        return ""
    return BeautifulSoup(fragment, "html.parser").get_text(" ", strip=True)


class RssFeedSource(BaseNewsSource):
    """Generic RSS / Atom feed."""

    KIND = "rss"

    async def _fetch_raw(self) -> List[Dict[str, Any]]:
        body = await self._request(self.config.url, as_json=False)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.parse_feed, body)

    def parse_feed(self, body: str) -> List[Dict[str, Any]]:
        """
        Extract entries from a feed document.

        Raises:
            ParseError: If the document is malformed and has no entries
        """
        feed = feedparser.parse(body)
        if feed.bozo and not feed.entries:
            raise ParseError(
                f"Malformed feed: {feed.get('bozo_exception')}",
                source_name=self.name,
                raw_data=body,
            )
        if feed.bozo:
            logger.debug(f"[{self.name}] Feed parsed with warnings: {feed.get('bozo_exception')}")
        return [
            {
                "title": entry.get("title"),
                "summary": entry.get("summary") or entry.get("description"),
                "link": entry.get("link"),
                "published": _entry_time(entry),
                "author": entry.get("author"),
            }
            for entry in feed.entries
        ]

    def _parse(self, item: Dict[str, Any]) -> Optional[RawArticle]:
        return RawArticle(
            source_name=self.name,
            title=strip_html(item.get("title")),
            description=strip_html(item.get("summary")),
            url=item.get("link"),
            published_at=item.get("published"),
            author=item.get("author"),
        )


def _entry_time(entry: Any) -> Optional[Any]:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if parsed:
        return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return entry.get("published") or entry.get("updated")
