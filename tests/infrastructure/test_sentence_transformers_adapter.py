import math
import sys

import pytest

from support_agent.domain.errors import EmbeddingError
from support_agent.infrastructure.embeddings.sentence_transformers_adapter import (
    SentenceTransformersEmbeddingAdapter,
)


class _FakeST:
    """Stand-in for sentence_transformers.SentenceTransformer."""

    loads = 0

    def __init__(self, model_name, device="cpu", local_files_only=False):
        type(self).loads += 1
        self.model_name = model_name
        self.device = device

    def encode(self, inputs, normalize_embeddings=True, convert_to_numpy=True, show_progress_bar=False):
        def _vec(text):
            raw = [float(len(text)), 1.0, 0.0]
            if normalize_embeddings:
                norm = math.sqrt(sum(x * x for x in raw))
                raw = [x / norm for x in raw]
            return raw

        if isinstance(inputs, str):
            return _vec(inputs)
        return [_vec(t) for t in inputs]


class _BrokenST:
    def __init__(self, *args, **kwargs):
        raise OSError("model not found")


def _install(monkeypatch, cls) -> None:
    fake_module = type(sys)("sentence_transformers")
    fake_module.SentenceTransformer = cls
    monkeypatch.setitem(sys.modules, "sentence_transformers", fake_module)


@pytest.mark.asyncio
async def test_embed_query_and_texts_are_normalized(monkeypatch):
    _install(monkeypatch, _FakeST)
    _FakeST.loads = 0
    adapter = SentenceTransformersEmbeddingAdapter(model_name="fake-model")

    query_vector = await adapter.embed_query("Which card has cashback?")
    text_vectors = await adapter.embed_texts(["one", "two words"])

    assert len(query_vector) == 3
    assert math.isclose(math.sqrt(sum(x * x for x in query_vector)), 1.0, rel_tol=1e-6)
    assert len(text_vectors) == 2
    assert text_vectors[0] != text_vectors[1]
    assert _FakeST.loads == 1


@pytest.mark.asyncio
async def test_empty_batch_skips_model(monkeypatch):
    _install(monkeypatch, _BrokenST)

    assert await SentenceTransformersEmbeddingAdapter().embed_texts([]) == []


@pytest.mark.asyncio
async def test_model_load_failure_is_embedding_error(monkeypatch):
    _install(monkeypatch, _BrokenST)

    with pytest.raises(EmbeddingError, match="model not found"):
        await SentenceTransformersEmbeddingAdapter().embed_query("x")
