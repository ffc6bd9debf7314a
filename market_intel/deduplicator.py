"""
Market Intelligence - Deduplicator.

============================================================
RESPONSIBILITY
============================================================
Merges the articles of one fetch cycle into a clean batch and
folds that batch into the stored collection.

- Duplicate key: the normalized headline
- Within a batch the more relevant duplicate wins
- Against the store, already-present headlines are skipped
- The merged collection is newest-first and capped

============================================================
DUPLICATE POLICY
============================================================
One key is used in both stages: the headline case-folded with
every non-alphanumeric character removed. Symbol-only headlines
fall back to their case-folded text. The source is not part of
the key, so the same story syndicated by two outlets is kept
once. An article matching a stored (headline, source)
pair therefore always counts as already present.

============================================================
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .models import Article


logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[\W_]+", re.UNICODE)


def headline_key(headline: str) -> str:
    """
    Case-folded headline with non-alphanumerics stripped.

    A headline made only of symbols keys on its case-folded,
    whitespace-collapsed text instead.
    """
    folded = headline.casefold()
    return _NON_ALNUM.sub("", folded) or " ".join(folded.split())


@dataclass
class MergeResult:
    """Outcome of folding a batch into the stored collection."""

    articles: List[Article]
    added: int
    skipped: int
    evicted: int


class ArticleDeduplicator:
    """
    Batch deduplication and collection merge.

    Both operations are pure: inputs are not mutated and repeating
    an operation on its own output changes nothing.
    """

    def __init__(self, max_retained: int = 100) -> None:
        if max_retained < 1:
            raise ValueError("max_retained must be at least 1")
        self._max_retained = max_retained

    @property
    def max_retained(self) -> int:
        return self._max_retained

    def dedupe_batch(self, articles: Iterable[Article]) -> List[Article]:
        """
        Collapse duplicates within one fetch cycle.

        The article with the higher relevance_score survives a
        collision; on equal relevance the first one seen is kept.

        Returns:
            Unique articles sorted by relevance_score descending
        """
        best: dict[str, Article] = {}
        for article in articles:
            key = headline_key(article.headline)
            if not key:
                continue
            current = best.get(key)
            if current is None or article.relevance_score > current.relevance_score:
                best[key] = article

        return sorted(best.values(), key=lambda a: a.relevance_score, reverse=True)

    def merge(
        self,
        fresh: Iterable[Article],
        existing: Iterable[Article],
        max_retained: Optional[int] = None,
    ) -> MergeResult:
        """
        Fold fresh articles into the stored collection.

        Fresh articles whose headline key is already stored are
        skipped. The combined list is sorted by created_date
        descending and truncated to the cap.
        """
        cap = max_retained or self._max_retained
        existing = list(existing)
        seen = {headline_key(a.headline) for a in existing}

        added: List[Article] = []
        skipped = 0
        for article in fresh:
            key = headline_key(article.headline)
            if not key or key in seen:
                skipped += 1
                continue
            seen.add(key)
            added.append(article)

        combined = sorted(
            added + existing,
            key=lambda a: a.created_date,
            reverse=True,
        )
        evicted = max(0, len(combined) - cap)

        if skipped or evicted:
            logger.debug(
                f"Merge: {len(added)} added, {skipped} duplicates skipped, "
                f"{evicted} evicted by cap {cap}"
            )

        return MergeResult(
            articles=combined[:cap],
            added=len(added),
            skipped=skipped,
            evicted=evicted,
        )
