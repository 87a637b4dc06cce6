"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import Field
from pydantic_settings import BaseSettings

if TYPE_CHECKING:
    from kb_ingest.ingestion.models import PipelineConfig


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Embedding
    embedding_backend: Literal["huggingface", "openai"] = Field(
        default="huggingface",
        description="Which embedding provider family to instantiate.",
    )
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    openai_embedding_model: str = "text-embedding-3-small"
    openai_api_key: str = Field(default="", description="OpenAI API key (only for the openai backend)")

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "chunks"

    # Pipeline defaults
    chunk_min_size: int = 100
    chunk_max_size: int = 1200
    chunk_overlap_size: int = 150
    chunk_similarity_threshold: float = 0.8
    chunk_max_count: int = 100
    embedding_batch_size: int = 50
    storage_batch_size: int = 25
    inter_batch_delay: float = Field(default=0.1, description="Seconds to wait between embedding batches")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def pipeline_config(self) -> PipelineConfig:
        """Build the default per-invocation :class:`PipelineConfig`."""
        from kb_ingest.ingestion.models import PipelineConfig

        return PipelineConfig(
            min_size=self.chunk_min_size,
            max_size=self.chunk_max_size,
            overlap_size=self.chunk_overlap_size,
            similarity_threshold=self.chunk_similarity_threshold,
            max_chunk_count=self.chunk_max_count,
            embedding_batch_size=self.embedding_batch_size,
            storage_batch_size=self.storage_batch_size,
            inter_batch_delay=self.inter_batch_delay,
        )


# Module-level singleton; import `settings` wherever needed.
settings = Settings()
