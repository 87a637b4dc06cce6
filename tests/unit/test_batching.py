"""Unit tests for pacing, batched embedding and batched storage."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from kb_ingest.config import settings
from kb_ingest.ingestion.embedder import (
    LangChainEmbeddingProvider,
    embed_in_batches,
    get_embedding_function,
)
from kb_ingest.ingestion.errors import UpstreamEmbeddingError, UpstreamStorageError
from kb_ingest.ingestion.models import ChunkRecord
from kb_ingest.ingestion.pacing import BatchPacer
from kb_ingest.ingestion.writer import store_in_batches


def _records(n: int) -> list[ChunkRecord]:
    return [
        ChunkRecord(client_id="c1", source_id="s1", content=f"chunk {i}", embedding=[float(i)], chunk_index=i)
        for i in range(n)
    ]


# ── BatchPacer ───────────────────────────────────────────────────────────


class TestBatchPacer:
    def test_fixed_delay(self, sleeps: list[float], recording_sleep) -> None:
        pacer = BatchPacer(0.1, sleep=recording_sleep)
        pacer.wait()
        pacer.wait()
        assert sleeps == [0.1, 0.1]

    def test_backoff_grows_and_caps(self, sleeps: list[float], recording_sleep) -> None:
        pacer = BatchPacer(0.1, backoff_factor=2.0, max_delay=0.3, sleep=recording_sleep)
        for _ in range(4):
            pacer.wait()
        assert sleeps == pytest.approx([0.1, 0.2, 0.3, 0.3])

    def test_zero_delay_never_sleeps(self, sleeps: list[float], recording_sleep) -> None:
        pacer = BatchPacer(0.0, sleep=recording_sleep)
        assert pacer.wait() == 0.0
        assert sleeps == []

    @pytest.mark.parametrize("kwargs", [{"delay": -1.0}, {"delay": 1.0, "backoff_factor": 0.5}])
    def test_invalid_parameters_raise(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            BatchPacer(**kwargs)


# ── embed_in_batches ─────────────────────────────────────────────────────


class TestEmbedInBatches:
    def test_vectors_match_chunks_in_order(self, fake_embedder, recording_sleep) -> None:
        chunks = [f"chunk number {i}" + "x" * i for i in range(7)]
        vectors = embed_in_batches(chunks, fake_embedder, batch_size=3, pacer=BatchPacer(0, sleep=recording_sleep))
        assert len(vectors) == len(chunks)
        assert [v[0] for v in vectors] == [float(len(c)) for c in chunks]

    def test_batches_are_sequential_and_bounded(self, fake_embedder, recording_sleep) -> None:
        chunks = [f"c{i}" for i in range(7)]
        embed_in_batches(chunks, fake_embedder, batch_size=3, pacer=BatchPacer(0, sleep=recording_sleep))
        assert fake_embedder.calls == [["c0", "c1", "c2"], ["c3", "c4", "c5"], ["c6"]]

    def test_waits_only_between_batches(self, fake_embedder, sleeps: list[float], recording_sleep) -> None:
        chunks = [f"c{i}" for i in range(6)]
        embed_in_batches(chunks, fake_embedder, batch_size=2, pacer=BatchPacer(0.1, sleep=recording_sleep))
        assert sleeps == [0.1, 0.1]

    def test_failure_reports_batch_progress(self, fake_embedder, recording_sleep) -> None:
        fake_embedder.fail_on_batch = 2
        chunks = [f"c{i}" for i in range(9)]
        with pytest.raises(UpstreamEmbeddingError) as exc_info:
            embed_in_batches(chunks, fake_embedder, batch_size=3, pacer=BatchPacer(0, sleep=recording_sleep))
        err = exc_info.value
        assert (err.batch_index, err.total_batches, err.embedded_count) == (2, 3, 3)
        assert isinstance(err.__cause__, RuntimeError)
        assert len(fake_embedder.calls) == 2

    def test_length_mismatch_is_an_upstream_error(self, recording_sleep) -> None:
        provider = MagicMock()
        provider.embed.return_value = [[0.1, 0.2]]
        with pytest.raises(UpstreamEmbeddingError, match="returned 1 vectors for 2 chunks"):
            embed_in_batches(["a", "b"], provider, batch_size=5, pacer=BatchPacer(0, sleep=recording_sleep))

    def test_error_payload(self, fake_embedder, recording_sleep) -> None:
        fake_embedder.fail_on_batch = 1
        with pytest.raises(UpstreamEmbeddingError) as exc_info:
            embed_in_batches(["a"], fake_embedder, batch_size=5, pacer=BatchPacer(0, sleep=recording_sleep))
        payload = exc_info.value.to_dict()
        assert payload["stage"] == "embedding"
        assert payload["batch"] == 1
        assert payload["totalBatches"] == 1
        assert payload["recordsInserted"] == 0


class TestLangChainEmbeddingProvider:
    def test_wraps_langchain_embeddings(self) -> None:
        provider = LangChainEmbeddingProvider(DeterministicFakeEmbedding(size=8))
        vectors = provider.embed(["first text", "second text"])
        assert len(vectors) == 2
        assert all(len(v) == 8 for v in vectors)
        assert provider.embed(["first text"])[0] == vectors[0]

    def test_huggingface_backend_is_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "embedding_backend", "huggingface")
        with patch("langchain_huggingface.HuggingFaceEmbeddings") as hf:
            get_embedding_function()
        hf.assert_called_once_with(model_name=settings.embedding_model)

    def test_openai_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "embedding_backend", "openai")
        monkeypatch.setattr(settings, "openai_api_key", "sk-test")
        with patch("langchain_openai.OpenAIEmbeddings") as oai:
            get_embedding_function()
        oai.assert_called_once_with(model="text-embedding-3-small", api_key="sk-test")


# ── store_in_batches ─────────────────────────────────────────────────────


class TestStoreInBatches:
    def test_all_records_committed(self, fake_store) -> None:
        committed = store_in_batches(_records(60), fake_store, batch_size=25)
        assert committed == 60
        assert fake_store.batches == [25, 25, 10]
        assert [r.chunk_index for r in fake_store.records] == list(range(60))

    def test_failure_keeps_prior_batches(self, fake_store) -> None:
        fake_store.fail_on_batch = 2
        with pytest.raises(UpstreamStorageError) as exc_info:
            store_in_batches(_records(60), fake_store, batch_size=25)
        err = exc_info.value
        assert (err.batch_index, err.total_batches, err.records_committed) == (2, 3, 25)
        assert len(fake_store.records) == 25
        assert err.to_dict()["recordsInserted"] == 25

    def test_empty_input_makes_no_calls(self, fake_store) -> None:
        assert store_in_batches([], fake_store, batch_size=25) == 0
        assert fake_store.batches == []
