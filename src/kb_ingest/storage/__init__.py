"""
Storage — persistence of embedded chunks.

The ingestion pipeline talks to storage only through
:class:`ChunkStoreBase`, so backends can be swapped without touching it.

Public surface
--------------
- :class:`ChunkStoreBase` — abstract append-only chunk store.
- :class:`ChromaChunkStore` — default Chroma backend.
- :class:`MetadataFilter` — declarative query filter.
"""

from kb_ingest.storage.base import ChunkStoreBase
from kb_ingest.storage.models import MetadataFilter

__all__ = [
    "ChromaChunkStore",
    "ChunkStoreBase",
    "MetadataFilter",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaChunkStore to avoid pulling in chromadb at import time."""
    if name == "ChromaChunkStore":
        from kb_ingest.storage.chroma_store import ChromaChunkStore

        return ChromaChunkStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
