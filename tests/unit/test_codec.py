import struct

import pytest

from doc_search.errors import MalformedEmbeddingError
from doc_search.storage.codec import (
    Float32EmbeddingCodec,
    JsonEmbeddingCodec,
    decode_any,
    get_codec,
)


def test_json_codec_decodes_numeric_array() -> None:
    codec = JsonEmbeddingCodec()
    assert codec.decode(codec.encode([0.5, -1, 2])) == (0.5, -1.0, 2.0)


@pytest.mark.parametrize(
    "raw",
    ["not json", "{}", "[]", '["a", 1]', "[true, 1.0]", "[1.0, NaN]"],
)
def test_json_codec_rejects_malformed_payloads(raw: str) -> None:
    with pytest.raises(MalformedEmbeddingError):
        JsonEmbeddingCodec().decode(raw)


def test_float32_codec_packs_little_endian() -> None:
    encoded = Float32EmbeddingCodec().encode([1.0, 0.25])
    assert encoded == struct.pack("<2f", 1.0, 0.25)
    assert Float32EmbeddingCodec().decode(encoded) == (1.0, 0.25)


@pytest.mark.parametrize("raw", [b"", b"\x00\x00\x80", "[1.0]"])
def test_float32_codec_rejects_bad_lengths_and_text(raw) -> None:
    with pytest.raises(MalformedEmbeddingError):
        Float32EmbeddingCodec().decode(raw)


def test_decode_any_dispatches_on_storage_type() -> None:
    assert decode_any("[1.0, 2.0]") == (1.0, 2.0)
    assert decode_any(struct.pack("<2f", 1.0, 2.0)) == (1.0, 2.0)


def test_get_codec_by_name() -> None:
    assert isinstance(get_codec("JSON"), JsonEmbeddingCodec)
    assert isinstance(get_codec("float32"), Float32EmbeddingCodec)
    with pytest.raises(ValueError):
        get_codec("pickle")
