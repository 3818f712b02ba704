import math

import pytest

from doc_search.ingest.embedder import HashingEmbedder
from doc_search.ingest.pipeline import embedding_text


def test_hashing_embedder_is_deterministic_and_normalized() -> None:
    embedder = HashingEmbedder(dimension=32)
    first = embedder.embed_query("sqlite vector search")
    second = embedder.embed_documents(["sqlite vector search"])[0]

    assert first == second
    assert len(first) == 32
    assert math.isclose(math.sqrt(sum(v * v for v in first)), 1.0, rel_tol=1e-9)


def test_blank_text_embeds_to_zero_vector() -> None:
    assert HashingEmbedder(dimension=8).embed_query("   ") == [0.0] * 8


def test_dimension_must_be_positive() -> None:
    with pytest.raises(ValueError):
        HashingEmbedder(dimension=0)


def test_embedding_text_includes_metadata() -> None:
    assert embedding_text("Title", "Body") == "Title\n\nBody"
    assert (
        embedding_text("Title", "Body", "guides", ["a", "b"])
        == "Title\n\nBody\nCategory: guides\nTags: a, b"
    )
