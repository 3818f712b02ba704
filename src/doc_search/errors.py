"""Error taxonomy for vector comparison and embedding decoding."""

from __future__ import annotations


class DocSearchError(Exception):
    """Base class for all document search errors."""


class DimensionMismatchError(DocSearchError, ValueError):
    """Raised when two vectors of different length are compared.

    Usually means the corpus was embedded with a different model than the
    query; the fix is re-embedding the corpus, not retrying.
    """

    def __init__(self, expected: int, actual: int, *, document_id: int | None = None) -> None:
        self.expected = expected
        self.actual = actual
        self.document_id = document_id
        where = f" (document {document_id})" if document_id is not None else ""
        super().__init__(
            f"Vectors must have the same length: expected {expected}, got {actual}{where}"
        )


class MalformedEmbeddingError(DocSearchError, ValueError):
    """Raised when a stored embedding cannot be decoded into numbers."""

    def __init__(self, message: str, *, document_id: int | None = None) -> None:
        self.document_id = document_id
        where = f"document {document_id}: " if document_id is not None else ""
        super().__init__(f"{where}{message}")
