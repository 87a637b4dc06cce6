"""Abstract base class for chunk-store backends.

Adding a backend (pgvector, Qdrant …) only requires subclassing
:class:`ChunkStoreBase` and implementing the abstract methods. The
ingestion pipeline only ever calls :meth:`ChunkStoreBase.insert_batch`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kb_ingest.ingestion.models import ChunkRecord
    from kb_ingest.storage.models import MetadataFilter


class ChunkStoreBase(ABC):
    """Append-only store of embedded chunks.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / table / index.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def insert_batch(self, records: list[ChunkRecord]) -> None:
        """Persist *records* as one unit.

        Must either store every record or raise; callers treat a raised
        exception as "nothing from this batch was committed".
        """
        ...

    @abstractmethod
    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        """Return the top-*k* chunks closest to *query_embedding*.

        Each result dict contains ``"id"``, ``"content"``, ``"score"``
        (higher = more similar) and ``"metadata"``.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def delete_source(self, client_id: str, source_id: str) -> None:
        """Delete every chunk of one source document. Optional; raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete_source")
