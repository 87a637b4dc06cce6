"""Structured failures raised by the ingestion pipeline.

Every error carries the ``stage`` it failed in and can render itself as
the failure payload returned to callers via :meth:`IngestionError.to_dict`.
Batch indexes are 1-based.
"""

from __future__ import annotations

from typing import Any


class IngestionError(Exception):
    """Base class for terminal pipeline failures."""

    stage: str = "unknown"
    error: str = "Document processing failed"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "stage": self.stage, "detail": self.detail}


class InputError(IngestionError):
    """Missing parameters, empty text, or no chunks survived processing."""

    stage = "input"
    error = "Invalid input"


class UpstreamEmbeddingError(IngestionError):
    """An embedding-provider batch call failed.

    Embeddings already computed for earlier batches are discarded; nothing
    has been persisted when this is raised.
    """

    stage = "embedding"
    error = "Failed to generate embeddings"

    def __init__(self, detail: str, *, batch_index: int, total_batches: int, embedded_count: int) -> None:
        super().__init__(detail)
        self.batch_index = batch_index
        self.total_batches = total_batches
        self.embedded_count = embedded_count

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "batch": self.batch_index,
            "totalBatches": self.total_batches,
            "chunksEmbedded": self.embedded_count,
            "recordsInserted": 0,
        }


class UpstreamStorageError(IngestionError):
    """A storage batch insert failed.

    Records from earlier batches stay committed; ``records_committed`` tells
    the caller how many to clean up if it wants to.
    """

    stage = "storage"
    error = "Database insertion failed"

    def __init__(self, detail: str, *, batch_index: int, total_batches: int, records_committed: int) -> None:
        super().__init__(detail)
        self.batch_index = batch_index
        self.total_batches = total_batches
        self.records_committed = records_committed

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "batch": self.batch_index,
            "totalBatches": self.total_batches,
            "recordsInserted": self.records_committed,
        }
