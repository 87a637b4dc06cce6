"""Hierarchical text chunking: paragraph → sentence → word.

Each level greedily packs units into chunks no longer than ``max_size``.
A unit that cannot fit falls to the next, finer level; the word level is
the last one, so the chain is at most three deep. Running chunks shorter
than ``min_size`` at a finalisation point are dropped, not merged back,
and counted in :attr:`SplitResult.fragments_dropped`.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from kb_ingest.ingestion.models import PipelineConfig, SplitResult

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

PARAGRAPH_SEPARATOR = re.compile(r"\n\s*\n")
# Split after terminal punctuation so sentences keep their own "." / "!" / "?".
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")

PARAGRAPH_JOINER = "\n\n"
SENTENCE_JOINER = " "
WORD_JOINER = " "


class HierarchicalSplitter:
    """Split normalised text into base chunks within ``[min_size, max_size]``.

    Parameters
    ----------
    config:
        Only ``min_size`` and ``max_size`` are read.
    """

    def __init__(self, config: PipelineConfig) -> None:
        self.min_size = config.min_size
        self.max_size = config.max_size
        self._dropped = 0

    def split(self, text: str) -> SplitResult:
        """Return the ordered base chunks for *text*."""
        self._dropped = 0
        text = text.strip()
        if not text:
            return SplitResult()

        paragraphs = [p.strip() for p in PARAGRAPH_SEPARATOR.split(text)]
        paragraphs = [p for p in paragraphs if p]
        logger.info("Found %d paragraphs", len(paragraphs))

        if len(paragraphs) <= 1:
            logger.info("No paragraph breaks found, falling back to sentence splitting")
            chunks = self._split_sentences(text)
        else:
            chunks = self._split_paragraphs(paragraphs)

        if self._dropped:
            logger.warning("Dropped %d undersized fragments (< %d chars)", self._dropped, self.min_size)
        return SplitResult(chunks=chunks, fragments_dropped=self._dropped)

    # -- levels ---------------------------------------------------------------

    def _split_paragraphs(self, paragraphs: list[str]) -> list[str]:
        chunks: list[str] = []
        current = ""
        for paragraph in paragraphs:
            if not current:
                current = paragraph
                continue
            candidate = current + PARAGRAPH_JOINER + paragraph
            if len(candidate) <= self.max_size:
                current = candidate
            else:
                chunks.extend(self._finalize_paragraph_group(current))
                current = paragraph
        chunks.extend(self._finalize_paragraph_group(current))
        return chunks

    def _finalize_paragraph_group(self, group: str) -> list[str]:
        if len(group) < self.min_size:
            self._drop(group)
            return []
        if len(group) <= self.max_size:
            return [group]
        # A single paragraph longer than max_size.
        return self._split_sentences(group)

    def _split_sentences(self, text: str) -> list[str]:
        sentences = [s.strip() for s in SENTENCE_BOUNDARY.split(text)]
        sentences = [s for s in sentences if s]
        if len(sentences) <= 1:
            logger.info("Sentence splitting failed, using word-based splitting")
            return self._split_words(text)

        chunks: list[str] = []
        current = ""
        for sentence in sentences:
            candidate = current + SENTENCE_JOINER + sentence if current else sentence
            if len(candidate) <= self.max_size:
                current = candidate
                continue
            self._emit(current, chunks)
            if len(sentence) <= self.max_size:
                current = sentence
            else:
                chunks.extend(self._split_words(sentence))
                current = ""
        self._emit(current, chunks)
        logger.debug("Sentence-based chunking created %d chunks", len(chunks))
        return chunks

    def _split_words(self, text: str) -> list[str]:
        chunks: list[str] = []
        current = ""
        for word in self._bounded_words(text):
            candidate = current + WORD_JOINER + word if current else word
            if len(candidate) <= self.max_size:
                current = candidate
            else:
                self._emit(current, chunks)
                current = word
        self._emit(current, chunks)
        logger.debug("Word-based splitting created %d chunks", len(chunks))
        return chunks

    # -- helpers --------------------------------------------------------------

    def _bounded_words(self, text: str) -> list[str]:
        """Whitespace tokens, with any token longer than ``max_size`` sliced."""
        words: list[str] = []
        for word in text.split():
            if len(word) <= self.max_size:
                words.append(word)
            else:
                words.extend(word[i : i + self.max_size] for i in range(0, len(word), self.max_size))
        return words

    def _emit(self, chunk: str, chunks: list[str]) -> None:
        if len(chunk) >= self.min_size:
            chunks.append(chunk)
        else:
            self._drop(chunk)

    def _drop(self, fragment: str) -> None:
        if fragment:
            self._dropped += 1
            logger.debug("Dropping %d-char fragment: %r", len(fragment), fragment[:80])


def split_text(text: str, config: PipelineConfig) -> SplitResult:
    """Split *text* into base chunks using a fresh :class:`HierarchicalSplitter`."""
    return HierarchicalSplitter(config).split(text)


def chunk_documents(documents: list[Document], config: PipelineConfig) -> list[Document]:
    """Split LangChain *documents* into base-chunk documents.

    Each chunk inherits its parent's metadata plus a ``chunk_index``.

    Parameters
    ----------
    documents:
        Source documents produced by a loader.
    config:
        Pipeline tunables; only the size bounds are used.

    Returns
    -------
    list[Document]
        Chunked documents in source order.
    """
    from langchain_core.documents import Document

    from kb_ingest.ingestion.normalizer import normalize_text

    chunked: list[Document] = []
    for doc in documents:
        result = split_text(normalize_text(doc.page_content), config)
        for idx, chunk in enumerate(result.chunks):
            chunked.append(Document(page_content=chunk, metadata={**doc.metadata, "chunk_index": idx}))
    return chunked
