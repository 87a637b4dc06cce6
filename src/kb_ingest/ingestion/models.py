"""Domain models flowing through the ingestion pipeline."""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class PipelineStage(str, Enum):
    """Stages a single document invocation moves through, in order."""

    NORMALIZING = "normalizing"
    SPLITTING = "splitting"
    OVERLAPPING = "overlapping"
    DEDUPLICATING = "deduplicating"
    FILTERING = "filtering"
    CAPPING = "capping"
    EMBEDDING = "embedding"
    STORING = "storing"
    DONE = "done"
    FAILED = "failed"


class PipelineConfig(BaseModel):
    """Immutable per-invocation tunables.

    Attributes
    ----------
    min_size / max_size:
        Inclusive character bounds every stored chunk must satisfy.
    overlap_size:
        Characters taken from each side of a boundary for bridge chunks.
    similarity_threshold:
        Jaccard similarity at or above which a chunk counts as a duplicate.
    max_chunk_count:
        Hard cap on chunks stored per document; the tail is truncated.
    embedding_batch_size / storage_batch_size:
        Independent batch sizes for the embedding provider and the store.
    inter_batch_delay:
        Seconds to wait between successful embedding batches.
    """

    model_config = ConfigDict(frozen=True)

    min_size: int = Field(default=100, gt=0)
    max_size: int = Field(default=1200, gt=0)
    overlap_size: int = Field(default=150, ge=0)
    similarity_threshold: float = Field(default=0.8, gt=0.0, le=1.0)
    max_chunk_count: int = Field(default=100, gt=0)
    embedding_batch_size: int = Field(default=50, gt=0)
    storage_batch_size: int = Field(default=25, gt=0)
    inter_batch_delay: float = Field(default=0.1, ge=0.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> PipelineConfig:
        if self.min_size > self.max_size:
            raise ValueError(f"min_size ({self.min_size}) must be <= max_size ({self.max_size})")
        return self


class RawDocument(BaseModel):
    """Extracted document text plus the identifiers forwarded to the store."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    text_content: str
    client_id: str
    source_id: str


class ChunkRecord(BaseModel):
    """A chunk and its embedding, stamped with ownership ids, ready to persist."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    source_id: str
    content: str
    embedding: list[float]
    chunk_index: int = 0


class SplitResult(BaseModel):
    """Base chunks produced by the splitter and how many fragments it dropped."""

    chunks: list[str] = Field(default_factory=list)
    fragments_dropped: int = 0


class ChunkSizeStats(BaseModel):
    """Min / max / average character length of the stored chunks.

    The average is rounded half up, so 602.5 reports as 603.
    """

    min: int
    max: int
    avg: int

    @classmethod
    def from_chunks(cls, chunks: list[str]) -> ChunkSizeStats:
        if not chunks:
            return cls(min=0, max=0, avg=0)
        sizes = [len(c) for c in chunks]
        return cls(min=min(sizes), max=max(sizes), avg=math.floor(sum(sizes) / len(sizes) + 0.5))


class IngestionSummary(BaseModel):
    """Success result of one pipeline invocation.

    Serialised with camelCase keys (``model_dump(by_alias=True)``) for
    HTTP callers.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    chunks_created: int
    chunks_stored: int
    chunk_sizes: ChunkSizeStats
    embedding_batches: int
    storage_batches: int
    bridge_chunks: int = 0
    duplicates_removed: int = 0
    placeholders_removed: int = 0
    fragments_dropped: int = 0
    truncated: int = 0
    warnings: list[str] = Field(default_factory=list)
