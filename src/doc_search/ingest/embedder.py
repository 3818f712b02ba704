"""Embedding providers used for document ingestion and query vectors."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections import Counter
from hashlib import sha256
from math import sqrt

_TOKEN_RE = re.compile(r"\w+")


class Embedder(ABC):
    """Turns text into fixed-length vectors; the search core only sees the vectors."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector this embedder produces."""

    @abstractmethod
    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed many documents."""

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed one query."""


class HashingEmbedder(Embedder):
    """Signed feature hashing over lowercase word tokens, L2 normalized.

    Needs no model download, so tests and offline setups get stable vectors.
    Texts sharing words land close together; there is no notion of synonyms.
    """

    def __init__(self, dimension: int = 256) -> None:
        if dimension < 1:
            raise ValueError("dimension must be positive")
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for token, count in Counter(_TOKEN_RE.findall(text.lower())).items():
            bucket, sign = self._feature(token)
            vector[bucket] += sign * count

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]

    def _feature(self, token: str) -> tuple[int, float]:
        digest = sha256(token.encode("utf-8")).digest()
        bucket = int.from_bytes(digest[:8], "big") % self._dimension
        return bucket, (1.0 if digest[8] & 1 else -1.0)
