"""Document store contract and in-memory adapter."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Protocol

from doc_search.types import DateRange, Document, EmbeddingVector, StoredDocument, as_utc


class DocumentStore(Protocol):
    """Minimal read contract the search core depends on."""

    def list_all(self, date_range: DateRange | None = None) -> list[StoredDocument]:
        """Return every document with its decoded embedding, optionally date filtered."""

    def get_by_id(self, document_id: int) -> StoredDocument | None:
        """Return one document with its embedding, or None when absent."""


class WritableDocumentStore(DocumentStore, Protocol):
    """Write side used by ingestion and re-embedding."""

    def insert(
        self,
        title: str,
        content: str,
        embedding: Sequence[float] | None,
        *,
        category: str | None = None,
        tags: Sequence[str] = (),
        created_at: datetime | None = None,
    ) -> int:
        """Store a new document and return its id."""

    def update_embedding(self, document_id: int, embedding: Sequence[float]) -> bool:
        """Replace a document's embedding; False when the id is unknown."""


@dataclass(slots=True)
class _Record:
    document: Document
    embedding: EmbeddingVector | None


class InMemoryDocumentStore:
    """Deterministic document store used for tests and local prototyping."""

    def __init__(self) -> None:
        self._records: dict[int, _Record] = {}
        self._next_id = 1

    def insert(
        self,
        title: str,
        content: str,
        embedding: Sequence[float] | None,
        *,
        category: str | None = None,
        tags: Sequence[str] = (),
        created_at: datetime | None = None,
        document_id: int | None = None,
    ) -> int:
        doc_id = document_id if document_id is not None else self._next_id
        if doc_id in self._records:
            raise ValueError(f"Document id already exists: {doc_id}")
        self._next_id = max(self._next_id, doc_id + 1)
        self._records[doc_id] = _Record(
            document=Document(
                id=doc_id,
                title=title,
                content=content,
                created_at=as_utc(created_at or datetime.now(timezone.utc)),
                category=category,
                tags=tuple(tags),
            ),
            embedding=tuple(float(v) for v in embedding) if embedding is not None else None,
        )
        return doc_id

    def update_embedding(self, document_id: int, embedding: Sequence[float]) -> bool:
        record = self._records.get(document_id)
        if record is None:
            return False
        record.embedding = tuple(float(v) for v in embedding)
        return True

    def update_document(
        self, document_id: int, *, title: str | None = None, content: str | None = None
    ) -> bool:
        record = self._records.get(document_id)
        if record is None or (title is None and content is None):
            return False
        changes: dict[str, str] = {}
        if title is not None:
            changes["title"] = title
        if content is not None:
            changes["content"] = content
        record.document = replace(record.document, **changes)
        return True

    def delete(self, document_id: int) -> bool:
        return self._records.pop(document_id, None) is not None

    def list_all(self, date_range: DateRange | None = None) -> list[StoredDocument]:
        return [
            StoredDocument(document=record.document, embedding=record.embedding)
            for record in self._records.values()
            if date_range is None or date_range.contains(record.document.created_at)
        ]

    def get_by_id(self, document_id: int) -> StoredDocument | None:
        record = self._records.get(document_id)
        if record is None:
            return None
        return StoredDocument(document=record.document, embedding=record.embedding)
