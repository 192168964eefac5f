"""SQLite-backed substitute for Firestore-style document storage."""

from __future__ import annotations

import json
import re
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional
from uuid import uuid4

from .document_store import (
    Document,
    DuplicateDocumentError,
    FieldFilter,
    StorageUnavailableError,
    expectations_hold,
)

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SQL_OPERATORS: Dict[str, str] = {
    "==": "=",
    "!=": "!=",
    "<": "<",
    "<=": "<=",
    ">": ">",
    ">=": ">=",
}


def _where(
    filters: Iterable[FieldFilter], clauses: list[str], params: list[Any]
) -> tuple[str, list[Any]]:
    for flt in filters:
        if not _FIELD_NAME.match(flt.field):
            raise ValueError(f"Invalid field name for query: {flt.field!r}")
        clauses.append(f"json_extract(data, '$.{flt.field}') {_SQL_OPERATORS[flt.op]} ?")
        params.append(flt.value)
    return " AND ".join(clauses), params


@contextmanager
def _storage_errors() -> Iterator[None]:
    try:
        yield
    except sqlite3.IntegrityError:
        raise
    except sqlite3.Error as exc:
        raise StorageUnavailableError(f"SQLite operation failed: {exc}") from exc


class SQLiteDocumentStore:
    """Document store using one table keyed by (collection, id) with JSON bodies."""

    def __init__(self, db_path: str, *, busy_timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._busy_timeout = busy_timeout
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self._db_path,
            timeout=self._busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with _storage_errors(), closing(self._connect()) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
                """
            )

    def insert(
        self,
        collection: str,
        document: Mapping[str, Any],
        *,
        document_id: Optional[str] = None,
    ) -> str:
        doc_id = document_id or uuid4().hex
        data = dict(document)
        data["id"] = doc_id
        try:
            with _storage_errors(), closing(self._connect()) as conn:
                conn.execute(
                    "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)",
                    (collection, doc_id, json.dumps(data)),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateDocumentError(f"{collection}/{doc_id} already exists") from exc
        return doc_id

    def get(self, collection: str, document_id: str) -> Optional[Document]:
        with _storage_errors(), closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, document_id),
            ).fetchone()
        if not row:
            return None
        return json.loads(row["data"])

    def query(self, collection: str, filters: Iterable[FieldFilter]) -> list[Document]:
        clauses, params = _where(filters, ["collection = ?"], [collection])
        sql = f"SELECT data FROM documents WHERE {clauses}"
        with _storage_errors(), closing(self._connect()) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [json.loads(row["data"]) for row in rows]

    def update(
        self,
        collection: str,
        document_id: str,
        patch: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        with _storage_errors(), closing(self._connect()) as conn:
            # IMMEDIATE takes the write lock before reading, so concurrent
            # conditional updates on the same row serialize.
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute(
                    "SELECT data FROM documents WHERE collection = ? AND id = ?",
                    (collection, document_id),
                ).fetchone()
                if not row:
                    conn.execute("ROLLBACK")
                    return False
                current = json.loads(row["data"])
                if not expectations_hold(current, expected):
                    conn.execute("ROLLBACK")
                    return False
                current.update(patch)
                current["id"] = document_id
                conn.execute(
                    "UPDATE documents SET data = ? WHERE collection = ? AND id = ?",
                    (json.dumps(current), collection, document_id),
                )
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
        return True

    def delete(
        self,
        collection: str,
        document_id: str,
        *,
        conditions: Iterable[FieldFilter] = (),
    ) -> bool:
        clauses, params = _where(
            conditions, ["collection = ?", "id = ?"], [collection, document_id]
        )
        with _storage_errors(), closing(self._connect()) as conn:
            cursor = conn.execute(f"DELETE FROM documents WHERE {clauses}", params)
            return cursor.rowcount > 0


__all__ = ["SQLiteDocumentStore"]
