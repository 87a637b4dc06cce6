"""Unit tests for the serving layer."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from kb_ingest.serving.app import app, get_embedder, get_store


@pytest.fixture()
def client(fake_embedder, fake_store, monkeypatch: pytest.MonkeyPatch):
    from kb_ingest.config import settings

    monkeypatch.setattr(settings, "inter_batch_delay", 0.0)
    app.dependency_overrides[get_embedder] = lambda: fake_embedder
    app.dependency_overrides[get_store] = lambda: fake_store
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def _payload(text: str, client_id: str = "client-1", source_id: str = "source-1") -> dict[str, str]:
    return {"textContent": text, "clientId": client_id, "sourceId": source_id}


def test_health_endpoint() -> None:
    """GET /health should return 200 with status ok."""
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_process_document_success(client, fake_store, english_paragraph: str) -> None:
    response = client.post("/process-document", json=_payload(english_paragraph))
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Document processed successfully"
    assert body["chunksCreated"] == 1
    assert body["chunksStored"] == 1
    assert body["chunkSizes"]["min"] == len(english_paragraph)
    assert body["embeddingBatches"] == 1
    assert body["storageBatches"] == 1
    assert fake_store.records[0].source_id == "source-1"


def test_missing_parameter_is_400(client, fake_embedder) -> None:
    response = client.post("/process-document", json={"textContent": "hello", "clientId": "c1"})
    assert response.status_code == 400
    body = response.json()
    assert body["stage"] == "input"
    assert "sourceId" in body["detail"]
    assert fake_embedder.calls == []


def test_placeholder_only_document_is_400(client, lorem_paragraph: str) -> None:
    response = client.post("/process-document", json=_payload(lorem_paragraph))
    assert response.status_code == 400
    assert response.json()["detail"] == "No valid text chunks created"


def test_embedding_failure_is_500(client, fake_embedder, english_paragraph: str) -> None:
    fake_embedder.fail_on_batch = 1
    response = client.post("/process-document", json=_payload(english_paragraph))
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to generate embeddings"
    assert body["batch"] == 1
    assert body["totalBatches"] == 1
    assert body["recordsInserted"] == 0


def test_storage_failure_is_500(client, fake_store, english_paragraph: str) -> None:
    fake_store.fail_on_batch = 1
    response = client.post("/process-document", json=_payload(english_paragraph))
    assert response.status_code == 500
    body = response.json()
    assert body["stage"] == "storage"
    assert body["recordsInserted"] == 0
    assert body["detail"] == "database unavailable"


def test_unexpected_error_is_generic_500(fake_store) -> None:
    def explode():
        raise RuntimeError("misconfigured")

    app.dependency_overrides[get_embedder] = explode
    app.dependency_overrides[get_store] = lambda: fake_store
    try:
        response = TestClient(app, raise_server_exceptions=False).post(
            "/process-document", json=_payload("some text")
        )
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
