"""Metadata catalog of uploaded documents."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Protocol

from docbot.types import DocumentRef


class DocumentCatalog(Protocol):
    """Lists known documents, most recent upload first."""

    async def list_recent(self, limit: int) -> list[DocumentRef]:
        """Return at most `limit` documents ordered newest first."""


class InMemoryDocumentCatalog:
    """Catalog backed by a list; later additions count as more recent."""

    def __init__(self, documents: list[DocumentRef] | None = None) -> None:
        self._documents: list[DocumentRef] = list(documents or [])

    def add(self, document: DocumentRef) -> None:
        self._documents.append(document)

    async def list_recent(self, limit: int) -> list[DocumentRef]:
        return list(reversed(self._documents))[:limit]


class SqliteDocumentCatalog:
    """Reads the `files` table written by the upload service.

    Queries run in a worker thread so the event loop is never blocked on
    disk I/O.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self._schema_ready = False

    def add_document(self, filename: str | None, content_address: str, size: int | None = None) -> None:
        self._ensure_schema()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT OR IGNORE INTO files(filename, cid, size) VALUES(?, ?, ?)",
                (filename, content_address, size),
            )
            conn.commit()

    async def list_recent(self, limit: int) -> list[DocumentRef]:
        return await asyncio.to_thread(self._list_recent, limit)

    def _list_recent(self, limit: int) -> list[DocumentRef]:
        self._ensure_schema()
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT filename, cid FROM files ORDER BY upload_date DESC, id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [
            DocumentRef(filename=filename or cid, content_address=cid)
            for filename, cid in rows
        ]

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS files (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    filename TEXT,
                    cid TEXT NOT NULL UNIQUE,
                    size INTEGER,
                    upload_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.commit()
        self._schema_ready = True
