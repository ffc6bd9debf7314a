"""
Market Intelligence - Article Scorer.

============================================================
RESPONSIBILITY
============================================================
Rule-based classifiers applied to headline + summary text.

- Sentiment: lexicon counting with a one-shot intensifier
- Sector: keyword-bucket voting
- Impact: keyword-hit thresholds
- Tickers: known-symbol extraction
- Relevance: market keyword density plus a numeral bonus

============================================================
DESIGN PRINCIPLES
============================================================
- Deterministic: same text, same scores
- Total: every text resolves to a sector and an impact level
- Clamped: scores never leave their domains
- Word lists live in the lexicon data file, not here

============================================================
"""

import re
from dataclasses import dataclass
from typing import FrozenSet, Optional

from .config import ScoringConfig
from .lexicon import Lexicon, load_default_lexicon
from .models import ImpactLevel, Sector, clamp


_DIGIT = re.compile(r"\d")


@dataclass(frozen=True)
class ScoreResult:
    """All scores for one article."""

    sentiment_score: float
    sector: Sector
    impact_level: ImpactLevel
    tickers: FrozenSet[str]
    relevance_score: float


def combine_text(headline: Optional[str], summary: Optional[str]) -> str:
    """Headline and summary joined the way every classifier sees them."""
    return f"{headline or ''} {summary or ''}"


class ArticleScorer:
    """
    Scores article text against a keyword lexicon.

    ============================================================
    USAGE
    ============================================================
    ```python
    scorer = ArticleScorer()
    result = scorer.score("Fed signals rate cut", "")
    result.impact_level  # ImpactLevel.HIGH
    ```

    ============================================================
    """

    def __init__(
        self,
        lexicon: Optional[Lexicon] = None,
        config: Optional[ScoringConfig] = None,
    ) -> None:
        self._lexicon = lexicon or load_default_lexicon()
        self._config = config or ScoringConfig()

    @property
    def lexicon(self) -> Lexicon:
        return self._lexicon

    # =========================================================
    # PUBLIC API
    # =========================================================

    def score(self, headline: Optional[str], summary: Optional[str]) -> ScoreResult:
        """Run every classifier over one article."""
        text = combine_text(headline, summary)
        return ScoreResult(
            sentiment_score=self.score_sentiment(text),
            sector=self.classify_sector(text),
            impact_level=self.classify_impact(text),
            tickers=self.extract_tickers(text),
            relevance_score=self.score_relevance(headline or "", text),
        )

    def score_sentiment(self, text: str) -> float:
        """
        Signed lexicon count.

        Every positive occurrence adds the increment and every
        negative occurrence subtracts it. Any intensifier in the
        text amplifies the running score once.
        """
        step = self._config.sentiment_increment
        score = step * self._lexicon.positive.count(text)
        score -= step * self._lexicon.negative.count(text)

        if score and self._lexicon.intensifiers.any_in(text):
            score *= self._config.intensifier_factor

        # Float noise (0.1 * 3 * 1.2) is rounded away before clamping
        return clamp(round(score, 6), -1.0, 1.0)

    def classify_sector(self, text: str) -> Sector:
        """Sector with the most keyword hits; ties and no hits are General."""
        best: Optional[Sector] = None
        best_count = 0
        tied = False

        for sector, terms in self._lexicon.sectors.items():
            count = terms.count(text)
            if count > best_count:
                best, best_count, tied = sector, count, False
            elif count and count == best_count:
                tied = True

        if best is None or tied:
            return Sector.GENERAL
        return best

    def classify_impact(self, text: str) -> ImpactLevel:
        """Threshold on distinct high / medium impact keywords."""
        high = len(self._lexicon.high_impact.matches(text))
        if high >= self._config.high_impact_threshold:
            return ImpactLevel.HIGH

        medium = len(self._lexicon.medium_impact.matches(text))
        if high >= 1 or medium >= self._config.medium_impact_threshold:
            return ImpactLevel.MEDIUM

        return ImpactLevel.LOW

    def extract_tickers(self, text: str) -> FrozenSet[str]:
        return frozenset(t.upper() for t in self._lexicon.tickers.matches(text))

    def score_relevance(self, headline: str, text: str) -> float:
        keyword_hits = self._lexicon.relevance.count(text)
        score = min(
            keyword_hits * self._config.relevance_increment,
            self._config.relevance_keyword_cap,
        )
        if _DIGIT.search(headline):
            score += self._config.numeral_bonus
        return clamp(round(score, 6), 0.0, 1.0)
