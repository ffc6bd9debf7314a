"""
Market Intelligence - Keyword Lexicon.

============================================================
RESPONSIBILITY
============================================================
Loads the word lists used by the article scorer from a YAML
data file and compiles them into whole-word matchers.

- Positive / negative sentiment terms and intensifiers
- Sector keyword buckets
- High / medium impact keywords
- Known ticker symbols
- Market relevance keywords

============================================================
USAGE
============================================================
    lexicon = Lexicon.from_yaml("market_intel/data/lexicons.yaml")
    lexicon.positive.count("Stocks surge on strong earnings")  # 2

============================================================
"""

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import yaml

from .config import DEFAULT_LEXICON_PATH
from .exceptions import LexiconError
from .models import Sector


logger = logging.getLogger(__name__)


def compile_term(term: str) -> "re.Pattern[str]":
    """
    Compile a whole-word, case-insensitive pattern for one term.

    Word boundaries are lookarounds on \\w so terms that start or end
    with punctuation (s&p 500, e-commerce) still match cleanly.
    """
    words = [re.escape(w) for w in term.strip().split()]
    if not words:
        raise LexiconError(f"Empty lexicon term: {term!r}")
    return re.compile(r"(?<!\w)" + r"\s+".join(words) + r"(?!\w)", re.IGNORECASE)


@dataclass
class TermSet:
    """An ordered set of terms with compiled matchers."""

    terms: List[str]
    _patterns: List["re.Pattern[str]"] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        seen = set()
        unique = []
        for term in self.terms:
            key = " ".join(str(term).lower().split())
            if key and key not in seen:
                seen.add(key)
                unique.append(key)
        self.terms = unique
        self._patterns = [compile_term(t) for t in unique]

    def __len__(self) -> int:
        return len(self.terms)

    def __contains__(self, term: str) -> bool:
        return " ".join(term.lower().split()) in self.terms

    def count(self, text: str) -> int:
        """Total number of occurrences of all terms in text."""
        return sum(len(p.findall(text)) for p in self._patterns)

    def matches(self, text: str) -> List[str]:
        """Distinct terms present in text, in lexicon order."""
        return [t for t, p in zip(self.terms, self._patterns) if p.search(text)]

    def any_in(self, text: str) -> bool:
        return any(p.search(text) for p in self._patterns)


@dataclass
class Lexicon:
    """All keyword tables used by the scorer."""

    positive: TermSet
    negative: TermSet
    intensifiers: TermSet
    sectors: Dict[Sector, TermSet]
    high_impact: TermSet
    medium_impact: TermSet
    tickers: TermSet
    relevance: TermSet

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lexicon":
        """
        Build a lexicon from the parsed YAML structure.

        Raises:
            LexiconError: On missing sections or unknown sector names
        """
        if not isinstance(data, dict):
            raise LexiconError("Lexicon data must be a mapping")

        try:
            sentiment = data["sentiment"]
            impact = data["impact"]
            raw_sectors = data["sectors"]
            tickers = data["tickers"]
            relevance = data["relevance"]
        except (KeyError, TypeError) as e:
            raise LexiconError(f"Lexicon is missing section: {e}")

        sectors: Dict[Sector, TermSet] = {}
        for name, terms in (raw_sectors or {}).items():
            try:
                sector = Sector.from_string(str(name))
            except ValueError as e:
                raise LexiconError(str(e))
            if sector is Sector.GENERAL:
                raise LexiconError("General is the fallback sector and takes no keywords")
            sectors[sector] = TermSet(_as_list(terms, f"sectors.{name}"))

        return cls(
            positive=TermSet(_as_list(sentiment.get("positive"), "sentiment.positive")),
            negative=TermSet(_as_list(sentiment.get("negative"), "sentiment.negative")),
            intensifiers=TermSet(_as_list(sentiment.get("intensifiers"), "sentiment.intensifiers")),
            sectors=sectors,
            high_impact=TermSet(_as_list(impact.get("high"), "impact.high")),
            medium_impact=TermSet(_as_list(impact.get("medium"), "impact.medium")),
            tickers=TermSet(_as_list(tickers, "tickers")),
            relevance=TermSet(_as_list(relevance, "relevance")),
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Lexicon":
        """Load a lexicon from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise LexiconError(f"Cannot read lexicon file {path}: {e}")
        except yaml.YAMLError as e:
            raise LexiconError(f"Invalid YAML in lexicon file {path}: {e}")

        lexicon = cls.from_dict(data)
        logger.debug(
            f"Loaded lexicon from {path}: {len(lexicon.positive)} positive, "
            f"{len(lexicon.negative)} negative, {len(lexicon.sectors)} sectors, "
            f"{len(lexicon.tickers)} tickers"
        )
        return lexicon


def _as_list(value: Any, section: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise LexiconError(f"Lexicon section {section} must be a list")
    return [str(v) for v in value]


@lru_cache(maxsize=1)
def load_default_lexicon() -> Lexicon:
    """Load (once) the lexicon shipped with the package."""
    return Lexicon.from_yaml(DEFAULT_LEXICON_PATH)
