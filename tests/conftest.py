"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from kb_ingest.ingestion.embedder import EmbeddingProvider
from kb_ingest.ingestion.models import ChunkRecord
from kb_ingest.storage.base import ChunkStoreBase
from kb_ingest.storage.models import MetadataFilter


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── In-memory fakes ─────────────────────────────────────────────────────


class FakeEmbeddingProvider(EmbeddingProvider):
    """Deterministic provider: vector = [len(text), position-in-batch, 0, …].

    Set ``fail_on_batch`` to a 1-based call number to make that call raise.
    """

    def __init__(self, dim: int = 4) -> None:
        self.dim = dim
        self.calls: list[list[str]] = []
        self.fail_on_batch: int | None = None

    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.fail_on_batch == len(self.calls):
            raise RuntimeError("embedding provider unavailable")
        return [[float(len(t)), float(i)] + [0.0] * (self.dim - 2) for i, t in enumerate(texts)]


class FakeChunkStore(ChunkStoreBase):
    """Append-only list store. ``fail_on_batch`` makes that insert call raise."""

    def __init__(self) -> None:
        super().__init__("test-collection")
        self.records: list[ChunkRecord] = []
        self.batches: list[int] = []
        self.fail_on_batch: int | None = None

    def insert_batch(self, records: list[ChunkRecord]) -> None:
        self.batches.append(len(records))
        if self.fail_on_batch == len(self.batches):
            raise RuntimeError("database unavailable")
        self.records.extend(records)

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        return [
            {"id": str(i), "content": r.content, "score": 1.0, "metadata": {"client_id": r.client_id}}
            for i, r in enumerate(self.records[:k])
        ]

    def health_check(self) -> bool:
        return True


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def fake_embedder() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture()
def fake_store() -> FakeChunkStore:
    return FakeChunkStore()


@pytest.fixture()
def sleeps() -> list[float]:
    """Durations passed to the recording sleep function."""
    return []


@pytest.fixture()
def recording_sleep(sleeps: list[float]):
    return sleeps.append


LOREM_PARAGRAPH = (
    "Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua. Ut enim ad minim veniam, quis nostrud "
    "exercitation ullamco laboris nisi ut aliquip ex ea commodo consequat. Duis aute irure "
    "dolor in reprehenderit in voluptate velit esse cillum dolore eu fugiat nulla pariatur. "
    "Excepteur sint occaecat cupidatat non proident, sunt in culpa qui officia deserunt "
    "mollit anim id est laborum."
)

ENGLISH_PARAGRAPH = (
    "The quarterly report summarizes how our regional offices performed during the spring "
    "season. Sales grew steadily in the northern territories, while the coastal branches "
    "reported modest gains after a slow start. Customer feedback highlighted faster delivery "
    "times and friendlier support staff as the main reasons for renewed loyalty. Next quarter, "
    "the leadership team plans to expand the training program, open two additional showrooms, "
    "and review pricing for the premium product line."
)


@pytest.fixture()
def lorem_paragraph() -> str:
    return LOREM_PARAGRAPH


@pytest.fixture()
def english_paragraph() -> str:
    return ENGLISH_PARAGRAPH


def numbered_paragraphs(count: int) -> list[str]:
    """Distinct ~100-char paragraphs whose pairwise Jaccard similarity is ~0.56."""
    return [
        f"Paragraph {i} discusses topic number {i} in considerable depth "
        f"with unique token tok{i}a tok{i}b tok{i}c."
        for i in range(count)
    ]


@pytest.fixture()
def make_paragraphs():
    return numbered_paragraphs
