"""Embedding codecs used at the store boundary.

Stores decode embeddings exactly once, when rows are read; ranking code only
ever sees `EmbeddingVector` tuples.
"""

from __future__ import annotations

import json
import math
import struct
from abc import ABC, abstractmethod
from collections.abc import Sequence

from doc_search.errors import MalformedEmbeddingError
from doc_search.types import EmbeddingVector

_FLOAT32_SIZE = 4


class EmbeddingCodec(ABC):
    """Serializes embeddings for persistence."""

    name: str = ""

    @abstractmethod
    def encode(self, embedding: Sequence[float]) -> bytes | str:
        """Serialize one embedding."""

    @abstractmethod
    def decode(self, raw: bytes | str) -> EmbeddingVector:
        """Deserialize one embedding or raise `MalformedEmbeddingError`."""


class JsonEmbeddingCodec(EmbeddingCodec):
    """Textual JSON array encoding."""

    name = "json"

    def encode(self, embedding: Sequence[float]) -> str:
        return json.dumps([float(value) for value in embedding])

    def decode(self, raw: bytes | str) -> EmbeddingVector:
        if isinstance(raw, (bytes, bytearray, memoryview)):
            try:
                raw = bytes(raw).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MalformedEmbeddingError("embedding is not UTF-8 JSON") from exc
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedEmbeddingError(f"invalid JSON embedding: {exc.msg}") from exc
        if not isinstance(payload, list) or not payload:
            raise MalformedEmbeddingError("embedding must be a non-empty JSON array")
        values: list[float] = []
        for item in payload:
            # bool is an int subclass; reject it explicitly.
            if isinstance(item, bool) or not isinstance(item, (int, float)):
                raise MalformedEmbeddingError(f"non-numeric embedding component: {item!r}")
            values.append(float(item))
        return _finite(values)


class Float32EmbeddingCodec(EmbeddingCodec):
    """Binary little-endian float32 encoding."""

    name = "float32"

    def encode(self, embedding: Sequence[float]) -> bytes:
        values = [float(value) for value in embedding]
        return struct.pack(f"<{len(values)}f", *values)

    def decode(self, raw: bytes | str) -> EmbeddingVector:
        if isinstance(raw, str):
            raise MalformedEmbeddingError("float32 embedding must be binary, got text")
        data = bytes(raw)
        if not data or len(data) % _FLOAT32_SIZE:
            raise MalformedEmbeddingError(
                f"float32 embedding byte length {len(data)} is not a positive multiple of 4"
            )
        return _finite(struct.unpack(f"<{len(data) // _FLOAT32_SIZE}f", data))


_CODECS: dict[str, type[EmbeddingCodec]] = {
    JsonEmbeddingCodec.name: JsonEmbeddingCodec,
    Float32EmbeddingCodec.name: Float32EmbeddingCodec,
}


def get_codec(name: str) -> EmbeddingCodec:
    try:
        return _CODECS[name.lower()]()
    except KeyError as exc:
        raise ValueError(f"Unknown embedding codec: {name}") from exc


def decode_any(raw: bytes | str) -> EmbeddingVector:
    """Decode by storage type: text is JSON, binary is float32."""

    if isinstance(raw, str):
        return JsonEmbeddingCodec().decode(raw)
    return Float32EmbeddingCodec().decode(raw)


def _finite(values: Sequence[float]) -> EmbeddingVector:
    if not all(math.isfinite(value) for value in values):
        raise MalformedEmbeddingError("embedding contains NaN or infinite components")
    return tuple(values)
