"""
Market Intelligence - Article Normalizer.

============================================================
RESPONSIBILITY
============================================================
Converts one RawArticle, whatever its source shape, into
exactly one fully scored canonical Article.

- Absent text fields are treated as empty strings
- Articles without a headline are dropped
- id, created_date and updated_date are assigned here
- Scoring is delegated to ArticleScorer

============================================================
"""

import logging
import uuid
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, List, Optional

from .clock import Clock, SystemClock, ensure_utc
from .exceptions import NormalizationError
from .models import Article, RawArticle
from .scoring import ArticleScorer


logger = logging.getLogger(__name__)


def parse_published(value: Any) -> Optional[datetime]:
    """
    Parse a source timestamp.

    Accepts datetimes, ISO-8601 strings (with or without Z),
    RFC-2822 strings as used by RSS, the compact Alpha Vantage
    form (20240105T133000) and epoch seconds or milliseconds.

    Raises:
        NormalizationError: When the value cannot be interpreted
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as e:
            raise NormalizationError(
                f"Epoch timestamp out of range: {value!r}",
                raw_value=value,
                target_field="published_date",
            ) from e

    text = str(value).strip()
    try:
        return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return ensure_utc(datetime.strptime(text, "%Y%m%dT%H%M%S"))
    except ValueError:
        pass
    try:
        return ensure_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        pass

    raise NormalizationError(
        f"Unrecognised timestamp {text!r}",
        raw_value=value,
        target_field="published_date",
    )


class ArticleNormalizer:
    """
    Maps raw fetched articles to canonical Articles.

    ============================================================
    USAGE
    ============================================================
    ```python
    normalizer = ArticleNormalizer(ArticleScorer(), clock=SystemClock())
    articles = normalizer.normalize_batch(raw_articles)
    ```

    ============================================================
    """

    def __init__(
        self,
        scorer: Optional[ArticleScorer] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._scorer = scorer or ArticleScorer()
        self._clock = clock or SystemClock()
        self._stats = {
            "normalized": 0,
            "dropped": 0,
        }

    @property
    def stats(self) -> dict[str, int]:
        return dict(self._stats)

    def normalize(self, raw: RawArticle) -> Optional[Article]:
        """
        Normalize and score one raw article.

        Returns:
            The Article, or None if the raw item has no headline
        """
        headline = " ".join((raw.title or "").split())
        if not headline:
            self._stats["dropped"] += 1
            logger.debug(f"[{raw.source_name}] Dropping article without headline: {raw.url}")
            return None

        summary = " ".join((raw.description or "").split())
        now = self._clock.now()

        try:
            published = parse_published(raw.published_at)
        except NormalizationError as e:
            logger.debug(f"[{raw.source_name}] {e.message}, using normalization time")
            published = None

        scores = self._scorer.score(headline, summary)

        self._stats["normalized"] += 1
        return Article(
            id=uuid.uuid4().hex,
            source=raw.source_name,
            headline=headline,
            summary=summary,
            sentiment_score=scores.sentiment_score,
            sector=scores.sector,
            impact_level=scores.impact_level,
            tickers_mentioned=scores.tickers,
            relevance_score=scores.relevance_score,
            published_date=published or now,
            created_date=now,
            updated_date=now,
            url=raw.url or None,
            author=(raw.author or "").strip() or None,
        )

    def normalize_batch(self, raws: Iterable[RawArticle]) -> List[Article]:
        """Normalize many raw articles, skipping unusable ones."""
        results = []
        for raw in raws:
            try:
                article = self.normalize(raw)
            except Exception as e:
                self._stats["dropped"] += 1
                logger.warning(f"[{raw.source_name}] Dropping article that failed to normalize: {e}")
                continue
            if article is not None:
                results.append(article)
        return results
