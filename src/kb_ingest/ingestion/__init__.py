"""
Ingestion — turning extracted document text into stored, embedded chunks.

Pure stages (normalize → split → overlap → deduplicate → placeholder
filter → cap) run in memory; only the embedding and storage batchers
perform I/O.

Public surface
--------------
- :class:`IngestionPipeline` / :func:`process_document` — end-to-end run.
- :class:`PipelineConfig` — immutable per-invocation tunables.
- :class:`IngestionSummary` — success result.
- :class:`InputError`, :class:`UpstreamEmbeddingError`,
  :class:`UpstreamStorageError` — structured failures.
"""

from kb_ingest.ingestion.errors import (
    IngestionError,
    InputError,
    UpstreamEmbeddingError,
    UpstreamStorageError,
)
from kb_ingest.ingestion.models import (
    ChunkRecord,
    IngestionSummary,
    PipelineConfig,
    RawDocument,
)
from kb_ingest.ingestion.pipeline import IngestionPipeline, process_document

__all__ = [
    "ChunkRecord",
    "IngestionError",
    "IngestionPipeline",
    "IngestionSummary",
    "InputError",
    "PipelineConfig",
    "RawDocument",
    "UpstreamEmbeddingError",
    "UpstreamStorageError",
    "process_document",
]
