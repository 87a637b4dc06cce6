"""Placeholder (Lorem-Ipsum-style filler) detection.

The filter is an ordered list of independent checks. Each check returns a
``(matched, reason)`` pair; the first match rejects the chunk. New
heuristics are added by appending a check to :data:`DEFAULT_CHECKS` or by
passing a custom list to :class:`PlaceholderFilter`.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Callable, Iterable, Sequence

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Words seen in common Latin placeholder passages.
FILLER_VOCABULARY: frozenset[str] = frozenset(
    {
        "lorem", "ipsum", "dolor", "sit", "amet", "consectetur", "adipiscing", "elit",
        "sed", "do", "eiusmod", "tempor", "incididunt", "ut", "labore", "et", "dolore",
        "magna", "aliqua", "enim", "ad", "minim", "veniam", "quis", "nostrud",
        "exercitation", "ullamco", "laboris", "nisi", "aliquip", "ex", "ea", "commodo",
        "consequat", "duis", "aute", "irure", "in", "reprehenderit", "voluptate",
        "velit", "esse", "cillum", "fugiat", "nulla", "pariatur", "excepteur", "sint",
        "occaecat", "cupidatat", "non", "proident", "sunt", "culpa", "qui", "officia",
        "deserunt", "mollit", "anim", "id", "est", "laborum", "vivamus", "mauris",
        "placerat", "eleifend", "leo", "diam", "sollicitudin", "fermentum",
        "ligula", "vitae", "hendrerit", "bibendum", "cursus", "risus", "pharetra", "vel",
    }
)  # fmt: skip

# Canonical filler word sequences with flexible whitespace, plus the usual
# concatenations left behind by bad text extraction.
STRONG_INDICATORS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"lorem\s*ipsum",
        r"ipsum\s*dolor",
        r"dolor\s*sit\s*amet",
        r"consectetur\s*adipiscing",
        r"eiusmod\s*tempor",
        r"labore\s*et\s*dolore",
        r"magna\s*aliqua",
        r"veniam\s*quis\s*nostrud",
        r"exercitation\s*ullamco",
        r"ut\s*aliquip\s*ex\s*ea",
        r"duis\s*aute\s*irure",
        r"reprehenderit\s*in\s*voluptate",
        r"cillum\s*dolore\s*eu\s*fugiat",
        r"excepteur\s*sint\s*occaecat",
        r"cupidatat\s*non\s*proident",
        r"officia\s*deserunt\s*mollit",
        r"ametlorem",
        r"loremipsum",
        r"ipsumdolor",
        r"dolorsit",
        r"sitamet",
    )
)

# The same word pairs allowing up to three arbitrary characters in between.
FLEXIBLE_PHRASES: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"lorem.{0,3}ipsum",
        r"dolor.{0,3}sit.{0,3}amet",
        r"consectetur.{0,3}adipiscing",
        r"ut.{0,3}labore.{0,3}et.{0,3}dolore",
        r"magna.{0,3}aliqua",
        r"enim.{0,3}ad.{0,3}minim",
        r"quis.{0,3}nostrud",
        r"ullamco.{0,3}laboris",
        r"commodo.{0,3}consequat",
        r"duis.{0,3}aute",
        r"irure.{0,3}dolor",
        r"voluptate.{0,3}velit",
        r"esse.{0,3}cillum",
        r"fugiat.{0,3}nulla",
        r"excepteur.{0,3}sint",
        r"occaecat.{0,3}cupidatat",
        r"sunt.{0,3}in.{0,3}culpa",
        r"deserunt.{0,3}mollit",
    )
)

_PUNCTUATION = re.compile(r"[^\w\s]")

CheckResult = tuple[bool, str]
PlaceholderCheck = Callable[[str], CheckResult]


def analysis_words(text: str) -> list[str]:
    """Lower-cased words longer than two characters, punctuation removed."""
    return [w for w in _PUNCTUATION.sub(" ", text.lower()).split() if len(w) > 2]


class PatternCheck:
    """Match if any of *patterns* occurs anywhere in the text."""

    def __init__(self, name: str, patterns: Iterable[re.Pattern[str]]) -> None:
        self.name = name
        self.patterns = tuple(patterns)

    def __call__(self, text: str) -> CheckResult:
        for pattern in self.patterns:
            if pattern.search(text):
                return True, f"{self.name} pattern /{pattern.pattern}/"
        return False, ""


class VocabularyRatioCheck:
    """Match when filler vocabulary dominates the text.

    Two ratios are tested: distinct filler words over distinct words (catches
    a few filler words repeated many times) and filler tokens over all tokens.
    """

    def __init__(
        self,
        vocabulary: frozenset[str] = FILLER_VOCABULARY,
        *,
        ratio_threshold: float = 0.5,
        unique_ratio_threshold: float = 0.4,
        min_words: int = 3,
        min_unique_matches: int = 3,
    ) -> None:
        self.vocabulary = vocabulary
        self.ratio_threshold = ratio_threshold
        self.unique_ratio_threshold = unique_ratio_threshold
        self.min_words = min_words
        self.min_unique_matches = min_unique_matches

    def __call__(self, text: str) -> CheckResult:
        words = analysis_words(text)
        if len(words) < self.min_words:
            return False, ""

        filler = [w for w in words if w in self.vocabulary]
        unique_words = set(words)
        unique_filler = set(filler)

        unique_ratio = len(unique_filler) / len(unique_words)
        if unique_ratio >= self.unique_ratio_threshold and len(unique_filler) >= self.min_unique_matches:
            return True, f"{unique_ratio:.0%} unique filler words"

        ratio = len(filler) / len(words)
        if ratio >= self.ratio_threshold:
            return True, f"{ratio:.0%} filler words"
        return False, ""


class RepetitionCheck:
    """Match when several distinct filler words each repeat."""

    def __init__(
        self,
        vocabulary: frozenset[str] = FILLER_VOCABULARY,
        *,
        min_occurrences: int = 2,
        min_repeated_words: int = 3,
    ) -> None:
        self.vocabulary = vocabulary
        self.min_occurrences = min_occurrences
        self.min_repeated_words = min_repeated_words

    def __call__(self, text: str) -> CheckResult:
        counts = Counter(analysis_words(text))
        repeated = [w for w, n in counts.items() if w in self.vocabulary and n >= self.min_occurrences]
        if len(repeated) >= self.min_repeated_words:
            return True, f"{len(repeated)} repeated filler words ({', '.join(sorted(repeated)[:5])})"
        return False, ""


DEFAULT_CHECKS: tuple[PlaceholderCheck, ...] = (
    PatternCheck("strong indicator", STRONG_INDICATORS),
    PatternCheck("flexible phrase", FLEXIBLE_PHRASES),
    VocabularyRatioCheck(),
    RepetitionCheck(),
)


class PlaceholderVerdict(BaseModel):
    """Outcome of running the checks against one chunk."""

    is_placeholder: bool
    reason: str = ""


class PlaceholderFilter:
    """Reject chunks that any of *checks* identifies as filler text.

    Parameters
    ----------
    checks:
        Ordered predicates; evaluation stops at the first match.
    """

    def __init__(self, checks: Sequence[PlaceholderCheck] = DEFAULT_CHECKS) -> None:
        self.checks = tuple(checks)

    def check(self, text: str) -> PlaceholderVerdict:
        if not text.strip():
            return PlaceholderVerdict(is_placeholder=False)
        for check in self.checks:
            matched, reason = check(text)
            if matched:
                return PlaceholderVerdict(is_placeholder=True, reason=reason)
        return PlaceholderVerdict(is_placeholder=False)

    def is_placeholder(self, text: str) -> bool:
        return self.check(text).is_placeholder

    def filter(self, chunks: list[str]) -> list[str]:
        """Return *chunks* with placeholder chunks removed, order preserved."""
        kept: list[str] = []
        for chunk in chunks:
            verdict = self.check(chunk)
            if verdict.is_placeholder:
                logger.warning("Removed placeholder chunk (%s)", verdict.reason)
                logger.debug("Placeholder chunk preview: %r", chunk[:100])
            else:
                kept.append(chunk)

        removed = len(chunks) - len(kept)
        if removed:
            logger.info("Removed %d placeholder chunks out of %d", removed, len(chunks))
        return kept
