"""
Market Intelligence - Sentiment Aggregator.

Builds the on-demand SentimentSummary from the most recent
stored articles. Pure: the summary is re-derivable at any time
from the store's contents and nothing is cached here.
"""

from collections import Counter, defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .config import AggregatorConfig
from .models import Article, ImpactLevel, SentimentLabel, SentimentSummary


class SentimentAggregator:
    """
    Summary statistics over a window of articles.

    The window is the `window_size` most recently created articles.
    """

    def __init__(
        self,
        config: Optional[AggregatorConfig] = None,
        label_threshold: float = 0.3,
    ) -> None:
        self._config = config or AggregatorConfig()
        self._label_threshold = label_threshold

    def window(self, articles: Iterable[Article]) -> List[Article]:
        ordered = sorted(articles, key=lambda a: a.created_date, reverse=True)
        return ordered[: self._config.window_size]

    def summarize(self, articles: Iterable[Article], now: datetime) -> SentimentSummary:
        """
        Aggregate the window.

        Args:
            articles: Current stored collection (any order)
            now: Timestamp recorded as last_updated
        """
        window = self.window(articles)
        n = len(window)

        labels = Counter(
            SentimentLabel.from_score(a.sentiment_score, self._label_threshold)
            for a in window
        )
        ticker_counts = Counter(t for a in window for t in a.tickers_mentioned)
        source_counts = Counter(a.source for a in window)
        author_counts = Counter(a.author for a in window if a.author)

        overall = self._mean(a.sentiment_score for a in window)

        return SentimentSummary(
            overall_sentiment=overall,
            label=SentimentLabel.from_score(overall, self._label_threshold),
            sector_sentiment=self._sector_sentiment(window),
            news_count=n,
            high_impact_count=sum(1 for a in window if a.impact_level is ImpactLevel.HIGH),
            positive_count=labels[SentimentLabel.POSITIVE],
            negative_count=labels[SentimentLabel.NEGATIVE],
            neutral_count=labels[SentimentLabel.NEUTRAL],
            trending_tickers=[
                ticker for ticker, _ in self._ranked(ticker_counts)[: self._config.trending_count]
            ],
            ticker_mentions=dict(self._ranked(ticker_counts)),
            source_breakdown=dict(self._ranked(source_counts)),
            top_authors=self._ranked(author_counts)[: self._config.top_authors_count],
            last_updated=now,
        )

    def _sector_sentiment(self, window: List[Article]) -> Dict[str, float]:
        by_sector: Dict[str, List[float]] = defaultdict(list)
        for article in window:
            by_sector[article.sector.value].append(article.sentiment_score)
        return {sector: self._mean(scores) for sector, scores in by_sector.items()}

    @staticmethod
    def _mean(values: Iterable[float]) -> float:
        values = list(values)
        if not values:
            return 0.0
        return round(sum(values) / len(values), 6)

    @staticmethod
    def _ranked(counts: Counter) -> List[tuple]:
        """Descending by count, ties broken alphabetically."""
        return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
