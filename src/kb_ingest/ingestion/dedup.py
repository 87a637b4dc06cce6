"""Near-duplicate chunk removal using word-set Jaccard similarity.

Strategy:
    - Walk candidates in order, keeping a list of accepted chunks
    - Compare each candidate against every accepted chunk
    - Drop it as soon as one comparison reaches the threshold
The first occurrence always wins, so the result depends on input order.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def word_set(text: str) -> frozenset[str]:
    """Case-insensitive set of whitespace-delimited tokens in *text*."""
    return frozenset(text.lower().split())


def jaccard_similarity(a: str, b: str) -> float:
    """``|A ∩ B| / |A ∪ B|`` over the word sets of *a* and *b*.

    Two texts without any tokens are treated as identical (1.0).
    """
    return _jaccard(word_set(a), word_set(b))


def _jaccard(a: frozenset[str], b: frozenset[str]) -> float:
    union = a | b
    if not union:
        return 1.0
    return len(a & b) / len(union)


def deduplicate_chunks(chunks: list[str], threshold: float) -> list[str]:
    """Return *chunks* minus any chunk too similar to an earlier kept one.

    A candidate is kept only if its similarity to every kept chunk is
    strictly below *threshold*.
    """
    kept: list[str] = []
    kept_sets: list[frozenset[str]] = []

    for chunk in chunks:
        tokens = word_set(chunk)
        duplicate_of = next(
            (i for i, other in enumerate(kept_sets) if _jaccard(tokens, other) >= threshold),
            None,
        )
        if duplicate_of is None:
            kept.append(chunk)
            kept_sets.append(tokens)
        else:
            logger.debug("Dropping chunk similar to kept chunk #%d: %r", duplicate_of, chunk[:80])

    removed = len(chunks) - len(kept)
    if removed:
        logger.info("Deduplication removed %d of %d chunks (threshold=%.2f)", removed, len(chunks), threshold)
    return kept
