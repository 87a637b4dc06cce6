"""Chroma implementation of the chunk-store abstraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import chromadb

from kb_ingest.config import settings
from kb_ingest.storage.base import ChunkStoreBase

if TYPE_CHECKING:
    from kb_ingest.ingestion.models import ChunkRecord
    from kb_ingest.storage.models import MetadataFilter

logger = logging.getLogger(__name__)

_OP_MAP = {
    "eq": "$eq",
    "ne": "$ne",
    "gt": "$gt",
    "gte": "$gte",
    "lt": "$lt",
    "lte": "$lte",
    "in": "$in",
    "nin": "$nin",
}


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _record_metadata(record: ChunkRecord) -> dict[str, Any]:
    # Chroma metadata values must be flat str/int/float/bool.
    return {
        "client_id": record.client_id,
        "source_id": record.source_id,
        "chunk_index": record.chunk_index,
        "char_count": len(record.content),
    }


class ChromaChunkStore(ChunkStoreBase):
    """Chroma-backed chunk store.

    Every insert uses fresh random ids, so re-ingesting a source appends a
    second copy of its chunks; call :meth:`delete_source` first to replace.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    distance_metric:
        HNSW space for a newly created collection (``cosine`` | ``l2`` | ``ip``).
    client:
        Pre-built Chroma client; overrides *host* / *port*.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        distance_metric: str = "cosine",
        client: Any = None,
    ) -> None:
        super().__init__(collection_name)
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
        self._distance_metric = distance_metric
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": distance_metric},
        )

    # -- ChunkStoreBase overrides ---------------------------------------------

    def insert_batch(self, records: list[ChunkRecord]) -> None:
        if not records:
            return
        self._collection.add(
            ids=[uuid4().hex for _ in records],
            embeddings=[r.embedding for r in records],
            documents=[r.content for r in records],
            metadatas=[_record_metadata(r) for r in records],
        )
        logger.debug("Inserted %d records into %r", len(records), self.collection_name)

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        where = _build_chroma_where(filters) if filters else None

        results = self._collection.query(
            query_embeddings=[query_embedding],
            n_results=k,
            where=where,
            include=["documents", "metadatas", "distances"],
        )

        hits: list[dict[str, Any]] = []
        ids = results.get("ids", [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            hits.append(
                {
                    "id": doc_id,
                    "content": content or "",
                    "score": self._to_score(dist),
                    "metadata": meta or {},
                }
            )
        return hits

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def delete_source(self, client_id: str, source_id: str) -> None:
        self._collection.delete(
            where={"$and": [{"client_id": {"$eq": client_id}}, {"source_id": {"$eq": source_id}}]}
        )
        logger.info("Deleted chunks for client=%s source=%s", client_id, source_id)

    # -- internals ------------------------------------------------------------

    def _to_score(self, distance: float) -> float:
        if self._distance_metric == "cosine":
            return 1.0 - distance
        # l2 / ip: map an unbounded distance to a 0-1 similarity.
        return 1.0 / (1.0 + distance)
