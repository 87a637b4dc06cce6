"""Embedding providers and the batched, paced embedding step."""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from kb_ingest.config import settings
from kb_ingest.ingestion.errors import UpstreamEmbeddingError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from kb_ingest.ingestion.pacing import BatchPacer

logger = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """Turns a list of texts into an equal-length, same-order list of vectors."""

    @abstractmethod
    def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts*; may raise on any provider failure."""
        ...


class LangChainEmbeddingProvider(EmbeddingProvider):
    """Adapter exposing any LangChain :class:`Embeddings` as a provider."""

    def __init__(self, embeddings: Embeddings) -> None:
        self._embeddings = embeddings

    def embed(self, texts: list[str]) -> list[list[float]]:
        return self._embeddings.embed_documents(texts)


def get_embedding_function() -> Embeddings:
    """Return the LangChain embedding model selected by the settings.

    ``huggingface`` loads a local sentence-transformer; ``openai`` calls the
    OpenAI embeddings API with ``settings.openai_embedding_model``.
    """
    if settings.embedding_backend == "openai":
        from langchain_openai import OpenAIEmbeddings

        logger.info("Using OpenAI embeddings: %s", settings.openai_embedding_model)
        return OpenAIEmbeddings(model=settings.openai_embedding_model, api_key=settings.openai_api_key)

    from langchain_huggingface import HuggingFaceEmbeddings

    logger.info("Using HuggingFace embeddings: %s", settings.embedding_model)
    return HuggingFaceEmbeddings(model_name=settings.embedding_model)


def get_embedding_provider() -> EmbeddingProvider:
    """Return the configured provider wrapped for the pipeline."""
    return LangChainEmbeddingProvider(get_embedding_function())


def embed_in_batches(
    chunks: list[str],
    provider: EmbeddingProvider,
    *,
    batch_size: int,
    pacer: BatchPacer,
) -> list[list[float]]:
    """Embed *chunks* batch by batch, sequentially, failing fast.

    Parameters
    ----------
    chunks:
        Final ordered chunk texts.
    provider:
        Embedding provider called once per batch.
    batch_size:
        Maximum texts per provider call.
    pacer:
        Waited on between successful batches (not after the last one).

    Returns
    -------
    list[list[float]]
        One vector per chunk; ``vectors[i]`` belongs to ``chunks[i]``.

    Raises
    ------
    UpstreamEmbeddingError
        When a provider call raises or returns the wrong number of vectors.
        Reports the 1-based batch index, batch total, and how many chunks
        had already been embedded.
    """
    total_batches = math.ceil(len(chunks) / batch_size)
    vectors: list[list[float]] = []

    for batch_number, start in enumerate(range(0, len(chunks), batch_size), 1):
        batch = chunks[start : start + batch_size]
        logger.info("Embedding batch %d of %d (%d chunks)", batch_number, total_batches, len(batch))

        try:
            batch_vectors = provider.embed(batch)
        except Exception as exc:
            logger.error("Embedding batch %d of %d failed", batch_number, total_batches, exc_info=True)
            raise UpstreamEmbeddingError(
                f"Batch {batch_number} failed: {exc}",
                batch_index=batch_number,
                total_batches=total_batches,
                embedded_count=len(vectors),
            ) from exc

        if len(batch_vectors) != len(batch):
            logger.error(
                "Embedding batch %d of %d returned %d vectors for %d chunks",
                batch_number, total_batches, len(batch_vectors), len(batch),
            )
            raise UpstreamEmbeddingError(
                f"Batch {batch_number} returned {len(batch_vectors)} vectors for {len(batch)} chunks",
                batch_index=batch_number,
                total_batches=total_batches,
                embedded_count=len(vectors),
            )

        vectors.extend(batch_vectors)
        if batch_number < total_batches:
            pacer.wait()

    logger.info("Generated %d embeddings in %d batches", len(vectors), total_batches)
    return vectors
