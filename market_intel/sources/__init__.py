"""
News source adapters.

Each adapter implements BaseNewsSource and is looked up by the
`kind` field of its NewsSourceConfig.
"""

from typing import Dict, Optional, Type

from ..clock import Clock
from ..config import FetchConfig
from ..models import NewsSourceConfig
from .alphavantage import AlphaVantageNewsSource
from .base import BaseNewsSource
from .newsapi import NewsApiSource
from .rss import RssFeedSource
from .scraper import HtmlScraperSource


SOURCE_TYPES: Dict[str, Type[BaseNewsSource]] = {
    cls.KIND: cls
    for cls in (NewsApiSource, AlphaVantageNewsSource, RssFeedSource, HtmlScraperSource)
}


def create_source(
    config: NewsSourceConfig,
    fetch_config: Optional[FetchConfig] = None,
    api_key: Optional[str] = None,
    clock: Optional[Clock] = None,
) -> BaseNewsSource:
    """
    Instantiate the adapter for a source configuration.

    Raises:
        ValueError: If the kind has no registered adapter
    """
    try:
        cls = SOURCE_TYPES[config.kind]
    except KeyError:
        raise ValueError(
            f"Unknown source kind {config.kind!r} for {config.name!r}; "
            f"expected one of {sorted(SOURCE_TYPES)}"
        )
    return cls(config, fetch_config=fetch_config, api_key=api_key, clock=clock)


__all__ = [
    "AlphaVantageNewsSource",
    "BaseNewsSource",
    "HtmlScraperSource",
    "NewsApiSource",
    "RssFeedSource",
    "SOURCE_TYPES",
    "create_source",
]
