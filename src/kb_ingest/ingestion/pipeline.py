"""Document ingestion pipeline: text in, embedded chunks persisted.

Usage::

    from kb_ingest.ingestion.embedder import get_embedding_provider
    from kb_ingest.ingestion.models import RawDocument
    from kb_ingest.ingestion.pipeline import IngestionPipeline
    from kb_ingest.storage.chroma_store import ChromaChunkStore

    pipeline = IngestionPipeline(get_embedding_provider(), ChromaChunkStore())
    summary  = pipeline.run(RawDocument(text_content=text, client_id="c1", source_id="s1"))

Stages run in order::

    normalizing → splitting → overlapping → deduplicating → filtering
    → capping → embedding → storing → done

Any :class:`IngestionError` moves the run to ``failed`` instead of ``done``;
an empty document fails while splitting.

Only the embedding and storing stages touch the network; a failure there
raises and halts the run. Nothing is retried.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable

from pydantic import BaseModel, Field

from kb_ingest.ingestion.chunker import split_text
from kb_ingest.ingestion.dedup import deduplicate_chunks
from kb_ingest.ingestion.embedder import EmbeddingProvider, embed_in_batches
from kb_ingest.ingestion.errors import IngestionError, InputError
from kb_ingest.ingestion.models import (
    ChunkRecord,
    ChunkSizeStats,
    IngestionSummary,
    PipelineConfig,
    PipelineStage,
    RawDocument,
)
from kb_ingest.ingestion.normalizer import normalize_text
from kb_ingest.ingestion.overlap import build_bridge_chunks
from kb_ingest.ingestion.pacing import BatchPacer
from kb_ingest.ingestion.placeholder import PlaceholderFilter
from kb_ingest.ingestion.writer import store_in_batches
from kb_ingest.storage.base import ChunkStoreBase

logger = logging.getLogger(__name__)


class PreparedChunks(BaseModel):
    """Output of the pure (no I/O) stages with per-stage counts."""

    chunks: list[str] = Field(default_factory=list)
    base_chunks: int = 0
    bridge_chunks: int = 0
    fragments_dropped: int = 0
    duplicates_removed: int = 0
    placeholders_removed: int = 0
    out_of_bounds: int = 0
    truncated: int = 0


def cap_chunks(chunks: list[str], max_count: int) -> tuple[list[str], int]:
    """Keep the first *max_count* chunks; return them and how many were cut."""
    if len(chunks) <= max_count:
        return chunks, 0
    truncated = len(chunks) - max_count
    logger.warning("Too many chunks (%d), limiting to %d", len(chunks), max_count)
    return chunks[:max_count], truncated


def prepare_chunks(
    text: str,
    config: PipelineConfig,
    placeholder_filter: PlaceholderFilter | None = None,
) -> PreparedChunks:
    """Run normalisation through capping on *text*.

    Raises
    ------
    InputError
        If *text* is empty after normalisation.
    """
    placeholder_filter = placeholder_filter or PlaceholderFilter()

    _enter(PipelineStage.NORMALIZING)
    normalized = normalize_text(text)
    logger.info("After normalization: %d characters (from %d)", len(normalized), len(text))

    _enter(PipelineStage.SPLITTING)
    if not normalized:
        raise InputError("Text content is empty after normalization")
    split = split_text(normalized, config)
    base = split.chunks
    logger.info("Splitter produced %d base chunks", len(base))

    _enter(PipelineStage.OVERLAPPING)
    bridges = build_bridge_chunks(base, config)
    logger.info("Created %d bridge chunks", len(bridges))

    _enter(PipelineStage.DEDUPLICATING)
    combined = base + bridges
    deduplicated = deduplicate_chunks(combined, config.similarity_threshold)

    _enter(PipelineStage.FILTERING)
    filtered = placeholder_filter.filter(deduplicated)
    bounded = [c for c in filtered if config.min_size <= len(c) <= config.max_size]
    logger.info("After placeholder and size filtering: %d chunks", len(bounded))

    _enter(PipelineStage.CAPPING)
    final, truncated = cap_chunks(bounded, config.max_chunk_count)

    return PreparedChunks(
        chunks=final,
        base_chunks=len(base),
        bridge_chunks=len(bridges),
        fragments_dropped=split.fragments_dropped,
        duplicates_removed=len(combined) - len(deduplicated),
        placeholders_removed=len(deduplicated) - len(filtered),
        out_of_bounds=len(filtered) - len(bounded),
        truncated=truncated,
    )


class IngestionPipeline:
    """Chunk, embed and store one document per :meth:`run` call.

    The instance holds only collaborators and settings, so one pipeline can
    serve concurrent callers; all per-document state lives inside ``run``.

    Parameters
    ----------
    embedder:
        Embedding provider called once per embedding batch.
    store:
        Destination chunk store.
    config:
        Default tunables; :meth:`run` accepts a per-call override.
    placeholder_filter:
        Filler-text filter; defaults to the built-in checks.
    sleep:
        Sleep function used for inter-batch pacing.
    backoff_factor:
        Growth factor for successive inter-batch waits.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        store: ChunkStoreBase,
        *,
        config: PipelineConfig | None = None,
        placeholder_filter: PlaceholderFilter | None = None,
        sleep: Callable[[float], None] = time.sleep,
        backoff_factor: float = 1.0,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.config = config or PipelineConfig()
        self.placeholder_filter = placeholder_filter or PlaceholderFilter()
        self._sleep = sleep
        self._backoff_factor = backoff_factor

    def run(self, document: RawDocument, config: PipelineConfig | None = None) -> IngestionSummary:
        """Process *document* end to end and return the run summary.

        Raises
        ------
        InputError
            Missing identifiers, empty text, or no chunk survived filtering.
        UpstreamEmbeddingError
            An embedding batch failed; nothing was stored.
        UpstreamStorageError
            A storage batch failed; earlier batches remain stored.
        """
        config = config or self.config
        try:
            summary = self._run(document, config)
        except IngestionError as exc:
            _enter(PipelineStage.FAILED)
            logger.error("Ingestion failed in stage %s: %s", exc.stage, exc.detail)
            raise

        _enter(PipelineStage.DONE)
        logger.info("Stored %d chunks for source=%s", summary.chunks_stored, document.source_id)
        return summary

    def _run(self, document: RawDocument, config: PipelineConfig) -> IngestionSummary:
        _validate(document)
        logger.info(
            "Processing document client=%s source=%s (%d characters)",
            document.client_id, document.source_id, len(document.text_content),
        )

        prepared = prepare_chunks(document.text_content, config, self.placeholder_filter)
        chunks = prepared.chunks
        if not chunks:
            raise InputError("No valid text chunks created")

        warnings: list[str] = []
        if prepared.truncated:
            warnings.append(
                f"Truncated {prepared.truncated} chunks beyond max_chunk_count={config.max_chunk_count}"
            )
        if prepared.fragments_dropped:
            warnings.append(f"Dropped {prepared.fragments_dropped} fragments shorter than {config.min_size} chars")
        if len(chunks) == 1 and len(document.text_content) > config.max_size:
            logger.warning("Only 1 chunk created from %d characters", len(document.text_content))
            warnings.append("Only one chunk was created for this document")

        _enter(PipelineStage.EMBEDDING)
        pacer = BatchPacer(config.inter_batch_delay, backoff_factor=self._backoff_factor, sleep=self._sleep)
        vectors = embed_in_batches(chunks, self.embedder, batch_size=config.embedding_batch_size, pacer=pacer)

        _enter(PipelineStage.STORING)
        records = [
            ChunkRecord(
                client_id=document.client_id,
                source_id=document.source_id,
                content=chunk,
                embedding=vector,
                chunk_index=idx,
            )
            for idx, (chunk, vector) in enumerate(zip(chunks, vectors))
        ]
        stored = store_in_batches(records, self.store, batch_size=config.storage_batch_size)

        return IngestionSummary(
            chunks_created=len(chunks),
            chunks_stored=stored,
            chunk_sizes=ChunkSizeStats.from_chunks(chunks),
            embedding_batches=_batch_count(len(chunks), config.embedding_batch_size),
            storage_batches=_batch_count(len(records), config.storage_batch_size),
            bridge_chunks=prepared.bridge_chunks,
            duplicates_removed=prepared.duplicates_removed,
            placeholders_removed=prepared.placeholders_removed,
            fragments_dropped=prepared.fragments_dropped,
            truncated=prepared.truncated,
            warnings=warnings,
        )


def process_document(
    text_content: str,
    client_id: str,
    source_id: str,
    *,
    embedder: EmbeddingProvider,
    store: ChunkStoreBase,
    config: PipelineConfig | None = None,
) -> IngestionSummary:
    """Functional shortcut for a one-off :class:`IngestionPipeline` run."""
    document = RawDocument(text_content=text_content, client_id=client_id, source_id=source_id)
    return IngestionPipeline(embedder, store, config=config).run(document)


# -- helpers ------------------------------------------------------------------


def _validate(document: RawDocument) -> None:
    missing = [
        name
        for name, value in (
            ("textContent", document.text_content),
            ("clientId", document.client_id),
            ("sourceId", document.source_id),
        )
        if not value
    ]
    if missing:
        raise InputError(f"Missing required parameters: {', '.join(missing)}")


def _enter(stage: PipelineStage) -> None:
    logger.debug("Entering stage: %s", stage.value)


def _batch_count(n: int, batch_size: int) -> int:
    return math.ceil(n / batch_size)
