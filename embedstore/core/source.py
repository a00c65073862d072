"""
SQLite-backed storage collaborator for the search core.
"""

import sqlite3
from typing import Dict, Iterable, List, Optional, Tuple

from ..vector.source import IEmbeddingSource, normalize_direction
from ..vector.types import StoredRow
from .errors import CollaboratorError, NotFoundError

# Stay well under SQLite's bound-parameter limit
_MAX_PARAMS = 500


class SqliteEmbeddingSource(IEmbeddingSource):
    """IEmbeddingSource over the embeddings/meta tables of an open connection.

    Id order is rowid order, i.e. insertion order. Every sqlite3.Error is
    raised as CollaboratorError with the original chained.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def _query(self, sql: str, params: tuple = ()) -> list:
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise CollaboratorError(f"Embedding query failed: {e}") from e

    def fetch_all(self) -> List[StoredRow]:
        rows = self._query("SELECT id_text, embedding, data_type FROM embeddings ORDER BY rowid")
        return [StoredRow(id, bytes(payload), data_type) for id, payload, data_type in rows]

    def fetch_ids(self) -> List[str]:
        return [row[0] for row in self._query("SELECT id_text FROM embeddings ORDER BY rowid")]

    def fetch_by_ids(self, ids: Iterable[str]) -> Dict[str, Tuple[bytes, str]]:
        ids = [str(id) for id in ids]
        found = {}
        for start in range(0, len(ids), _MAX_PARAMS):
            chunk = ids[start:start + _MAX_PARAMS]
            placeholders = ",".join("?" * len(chunk))
            rows = self._query(
                f"SELECT id_text, embedding, data_type FROM embeddings WHERE id_text IN ({placeholders})",
                tuple(chunk),
            )
            for id, payload, data_type in rows:
                found[id] = (bytes(payload), data_type)
        return found

    def fetch_adjacent(self, current_id: Optional[str], direction: str = "next") -> Optional[StoredRow]:
        forward = normalize_direction(direction) == "next"
        order = "ASC" if forward else "DESC"

        if current_id is None:
            rows = self._query(
                f"SELECT id_text, embedding, data_type FROM embeddings ORDER BY rowid {order} LIMIT 1"
            )
        else:
            anchor = self._query("SELECT rowid FROM embeddings WHERE id_text = ?", (str(current_id),))
            if not anchor:
                raise NotFoundError(f"No embedding with id '{current_id}'")
            comparison = ">" if forward else "<"
            rows = self._query(
                f"SELECT id_text, embedding, data_type FROM embeddings "
                f"WHERE rowid {comparison} ? ORDER BY rowid {order} LIMIT 1",
                (anchor[0][0],),
            )

        if not rows:
            return None
        id, payload, data_type = rows[0]
        return StoredRow(id, bytes(payload), data_type)

    def declared_meta(self) -> Tuple[str, int]:
        try:
            row = self.conn.execute("SELECT data_type, embedding_length FROM meta WHERE id = 1").fetchone()
        except sqlite3.OperationalError as e:
            raise NotFoundError(f"Database is not initialized: {e}") from e
        except sqlite3.Error as e:
            raise CollaboratorError(f"Meta query failed: {e}") from e
        if row is None:
            raise NotFoundError("Database is not initialized: meta table is empty")
        return row[0], row[1]
