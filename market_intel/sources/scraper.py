"""
HTML Scraper Source - headline lists scraped with BeautifulSoup.

Selectors come from the source's params:
- article_selector: one element per story (default "article")
- title_selector: headline inside the story (default "h2, h3")
- link_selector: anchor inside the story (default "a")
- summary_selector: optional teaser paragraph
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from ..exceptions import ParseError
from ..models import RawArticle
from .base import BaseNewsSource


logger = logging.getLogger(__name__)


class HtmlScraperSource(BaseNewsSource):
    """Scraped news index page."""

    KIND = "scrape"

    async def _fetch_raw(self) -> List[Dict[str, Any]]:
        html = await self._request(self.config.url, as_json=False)
        return self.parse_html(html)

    def parse_html(self, html: str) -> List[Dict[str, Any]]:
        """
        Extract story blocks from a page.

        Raises:
            ParseError: If the page has no story blocks at all
        """
        params = self.config.params
        soup = BeautifulSoup(html, "html.parser")

        article_selector = params.get("article_selector", "article")
        blocks = soup.select(article_selector)
        if not blocks and article_selector != "article":
            blocks = soup.find_all("article")
        if not blocks:
            raise ParseError(
                f"No elements match {article_selector!r}",
                source_name=self.name,
                raw_data=html,
            )

        items = []
        for block in blocks:
            link = block.select_one(params.get("link_selector", "a"))
            title_elem = block.select_one(params.get("title_selector", "h2, h3"))
            if title_elem is None:
                title_elem = link
            if title_elem is None:
                logger.debug(f"[{self.name}] Skipping block without title or link")
                continue

            summary_selector = params.get("summary_selector")
            summary_elem = block.select_one(summary_selector) if summary_selector else None

            href = link.get("href") if link is not None else None
            time_elem = block.find("time")
            items.append({
                "title": title_elem.get_text(" ", strip=True),
                "summary": summary_elem.get_text(" ", strip=True) if summary_elem else None,
                "url": urljoin(self.config.url, href) if href else None,
                "published": time_elem.get("datetime") if time_elem else None,
            })
        return items

    def _parse(self, item: Dict[str, Any]) -> Optional[RawArticle]:
        return RawArticle(
            source_name=self.name,
            title=item.get("title"),
            description=item.get("summary"),
            url=item.get("url"),
            published_at=item.get("published"),
        )
