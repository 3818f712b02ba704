"""SQLite-backed document store with pluggable embedding encoding."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import closing, contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from doc_search.errors import MalformedEmbeddingError
from doc_search.storage.codec import EmbeddingCodec, JsonEmbeddingCodec, decode_any
from doc_search.types import DateRange, Document, StoredDocument, StoreStats, as_utc

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = "id, title, content, category, tags, created_at, embedding"


class SqliteDocumentStore:
    """Stores documents and embeddings in one `documents` table.

    Embeddings are written with the configured codec. On read, the column's
    storage type picks the decoder (BLOB is float32, TEXT is JSON), so a
    database written with either codec stays readable. Decoding failures are
    recorded per row on `StoredDocument.embedding_error` instead of aborting
    the whole read.
    """

    def __init__(
        self,
        db_path: str | Path = "doc_search.db",
        *,
        codec: EmbeddingCodec | None = None,
    ) -> None:
        self._db_path = Path(db_path)
        self._codec = codec or JsonEmbeddingCodec()
        self._ensure_schema()

    @property
    def codec(self) -> EmbeddingCodec:
        return self._codec

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection for one transaction and close it afterwards."""
        with closing(sqlite3.connect(self._db_path)) as conn:
            conn.row_factory = sqlite3.Row
            with conn:
                yield conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    category TEXT,
                    tags TEXT,
                    embedding BLOB,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_documents_created_at ON documents(created_at)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_documents_category ON documents(category)"
            )

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
        """Insert one document and return its assigned id."""

        moment = as_utc(created_at or datetime.now(timezone.utc))
        encoded = self._codec.encode(embedding) if embedding is not None else None
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO documents (title, content, category, tags, embedding, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    title,
                    content,
                    category or None,
                    ", ".join(tags) if tags else None,
                    encoded,
                    _format_timestamp(moment),
                ),
            )
            doc_id = int(cursor.lastrowid)
        logger.debug(
            "Inserted document %s (%s embedding)", doc_id, self._codec.name if encoded is not None else "no"
        )
        return doc_id

    def update_embedding(self, document_id: int, embedding: Sequence[float]) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE documents SET embedding = ? WHERE id = ?",
                (self._codec.encode(embedding), document_id),
            )
        updated = cursor.rowcount > 0
        if not updated:
            logger.warning("No document found with id %s; embedding not updated", document_id)
        return updated

    def update_document(
        self, document_id: int, *, title: str | None = None, content: str | None = None
    ) -> bool:
        updates: list[str] = []
        params: list[Any] = []
        if title is not None:
            updates.append("title = ?")
            params.append(title)
        if content is not None:
            updates.append("content = ?")
            params.append(content)
        if not updates:
            return False
        params.append(document_id)
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE documents SET {', '.join(updates)} WHERE id = ?", params
            )
        return cursor.rowcount > 0

    def delete(self, document_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        return cursor.rowcount > 0

    def list_all(self, date_range: DateRange | None = None) -> list[StoredDocument]:
        sql = f"SELECT {_SELECT_COLUMNS} FROM documents"
        params: list[str] = []
        if date_range is not None:
            sql += " WHERE created_at BETWEEN ? AND ?"
            params.extend(
                [
                    _format_timestamp(as_utc(date_range.start)),
                    _format_timestamp(as_utc(date_range.end)),
                ]
            )
        sql += " ORDER BY id"
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._to_stored(row) for row in rows]

    def get_by_id(self, document_id: int) -> StoredDocument | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM documents WHERE id = ?", (document_id,)
            ).fetchone()
        if row is None:
            return None
        return self._to_stored(row)

    def stats(self) -> StoreStats:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total, COUNT(embedding) AS embedded FROM documents"
            ).fetchone()
        total = int(row["total"])
        embedded = int(row["embedded"])
        return StoreStats(documents=total, embeddings=embedded, missing_embeddings=total - embedded)

    def categories(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT DISTINCT category FROM documents
                WHERE category IS NOT NULL AND category != ''
                ORDER BY category
                """
            ).fetchall()
        return [row["category"] for row in rows]

    def tags(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT tags FROM documents WHERE tags IS NOT NULL AND tags != ''"
            ).fetchall()
        unique: set[str] = set()
        for row in rows:
            unique.update(_split_tags(row["tags"]))
        return sorted(unique)

    def documents_by_category(self, category: str) -> list[Document]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_SELECT_COLUMNS} FROM documents
                WHERE category = ?
                ORDER BY created_at DESC, id DESC
                """,
                (category,),
            ).fetchall()
        return [_to_document(row) for row in rows]

    def _to_stored(self, row: sqlite3.Row) -> StoredDocument:
        document = _to_document(row)
        raw = row["embedding"]
        if raw is None:
            return StoredDocument(document=document, embedding=None)
        try:
            embedding = decode_any(raw)
        except MalformedEmbeddingError as exc:
            error = MalformedEmbeddingError(str(exc), document_id=document.id)
            return StoredDocument(document=document, embedding=None, embedding_error=error)
        return StoredDocument(document=document, embedding=embedding)


def _to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=int(row["id"]),
        title=row["title"],
        content=row["content"],
        created_at=_parse_timestamp(row["created_at"]),
        category=row["category"] or None,
        tags=_split_tags(row["tags"]),
    )


def _split_tags(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(tag.strip() for tag in raw.split(",") if tag.strip())


def _format_timestamp(moment: datetime) -> str:
    # Fixed-width naive UTC text, so string order matches time order.
    utc = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return utc.isoformat(sep=" ", timespec="microseconds")


def _parse_timestamp(raw: str) -> datetime:
    return as_utc(datetime.fromisoformat(raw))
