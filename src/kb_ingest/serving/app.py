"""FastAPI application exposing document ingestion as a REST API."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from kb_ingest.config import settings
from kb_ingest.ingestion.embedder import EmbeddingProvider, get_embedding_provider
from kb_ingest.ingestion.errors import IngestionError, InputError
from kb_ingest.ingestion.models import IngestionSummary, RawDocument
from kb_ingest.ingestion.pipeline import IngestionPipeline
from kb_ingest.storage.base import ChunkStoreBase

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Knowledge Base Ingestion API",
    version="0.1.0",
    description="Chunks, embeds and stores extracted document text.",
)


# ── Request / Response schemas ────────────────────────────────────────
class ProcessDocumentRequest(BaseModel):
    """Extracted text plus the ids to stamp on every stored chunk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    text_content: str = ""
    client_id: str = ""
    source_id: str = ""


class ProcessDocumentResponse(IngestionSummary):
    """Run summary returned on success."""

    message: str = "Document processed successfully"


# ── Dependencies ──────────────────────────────────────────────────────
@lru_cache(maxsize=1)
def get_embedder() -> EmbeddingProvider:
    """Build the configured embedding provider once per process."""
    return get_embedding_provider()


@lru_cache(maxsize=1)
def get_store() -> ChunkStoreBase:
    """Connect to the configured Chroma collection once per process."""
    from kb_ingest.storage.chroma_store import ChromaChunkStore

    return ChromaChunkStore()


def get_pipeline(
    embedder: EmbeddingProvider = Depends(get_embedder),
    store: ChunkStoreBase = Depends(get_store),
) -> IngestionPipeline:
    return IngestionPipeline(embedder, store, config=settings.pipeline_config())


# ── Error handlers ────────────────────────────────────────────────────
@app.exception_handler(IngestionError)
async def ingestion_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
    status = 400 if isinstance(exc, InputError) else 500
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Process document error on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/process-document", response_model=ProcessDocumentResponse, response_model_by_alias=True)
def process_document(
    request: ProcessDocumentRequest,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> ProcessDocumentResponse:
    """Run the ingestion pipeline on one extracted document."""
    document = RawDocument(
        text_content=request.text_content,
        client_id=request.client_id,
        source_id=request.source_id,
    )
    summary = pipeline.run(document)
    return ProcessDocumentResponse(**summary.model_dump())
