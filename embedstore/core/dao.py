"""
CRUD and meta operations on an initialized embedding database.

Every write validates the whole batch (count, length, exact
representability in the declared type) before touching the table, and runs
as a single transaction, so a rejected call leaves the table unchanged.
"""

import sqlite3
from typing import Dict, List, Optional, Union

import numpy as np
from pydantic import ValidationError

from ..api.schemas import InitializeRequest
from ..util.logging import logger
from ..vector.codec import decode, encode, infer_type
from ..vector.source import normalize_direction
from .config import BULK_LIMIT, strict_type_check_enabled
from .db import get_db, init_schema, tables_exist
from .errors import (
    BulkLimitError,
    CollaboratorError,
    DimensionMismatchError,
    EmbedStoreError,
    NotFoundError,
    TypeMismatchError,
)
from .schema import DatabaseMeta, EmbeddingRecord
from .source import SqliteEmbeddingSource


def _as_batch(ids, vectors=None):
    """Accept a single id (and vector) or parallel sequences of them."""
    if isinstance(ids, (str, bytes, int, np.integer)):
        ids = [ids]
        vectors = None if vectors is None else [vectors]
    else:
        ids = list(ids)
        vectors = None if vectors is None else list(vectors)

    ids = [id.decode() if isinstance(id, bytes) else str(id) for id in ids]
    if vectors is not None and len(ids) != len(vectors):
        raise DimensionMismatchError(f"Got {len(ids)} ids but {len(vectors)} embeddings")
    if len(ids) > BULK_LIMIT:
        raise BulkLimitError(f"Bulk operation of {len(ids)} records exceeds the limit of {BULK_LIMIT}")
    return ids, vectors


def _require_meta(conn: sqlite3.Connection) -> DatabaseMeta:
    meta = get_meta_data(conn)
    if meta is None:
        raise NotFoundError("Database is not initialized; call initialize_db() first")
    return meta


def _encode_all(meta: DatabaseMeta, vectors: list) -> List[bytes]:
    strict = strict_type_check_enabled()
    payloads = []
    for vector in vectors:
        if len(vector) != meta.embedding_length:
            raise DimensionMismatchError(
                f"Embedding length {len(vector)} does not match declared length {meta.embedding_length}"
            )
        if strict and infer_type(vector) != meta.data_type:
            raise TypeMismatchError(
                f"Embedding type {infer_type(vector)} does not match declared type {meta.data_type}"
            )
        payloads.append(encode(vector, meta.data_type))
    return payloads


def _write(conn: sqlite3.Connection, operation: str, statements: list) -> List[int]:
    """Run (sql, params) statements in one transaction; returns each rowcount."""
    try:
        with conn:
            return [conn.execute(sql, params).rowcount for sql, params in statements]
    except sqlite3.Error as e:
        logger.log_operation(f"store.{operation}", "failed", {"error": str(e)})
        raise CollaboratorError(f"{operation} failed: {e}") from e


def initialize_db(db_path: str, embedding_length: int, data_type: str, description: str = "") -> DatabaseMeta:
    """
    Create the tables and record the declared element type and length.

    Re-initializing an existing database with the same type and length is a
    no-op (a non-empty description replaces the stored one). Any other type or
    length is rejected; changing them requires a fresh database.

    Args:
        db_path: path to the SQLite file; parent directories are created
        embedding_length: length of every embedding, 1 or greater
        data_type: one of list_supported_types()
        description: free-text note stored in the meta table

    Returns:
        The DatabaseMeta now in effect
    """
    try:
        request = InitializeRequest(
            db_path=db_path, embedding_length=embedding_length, data_type=data_type, description=description
        )
    except ValidationError as e:
        logger.log_validation_error("initialize", e, {"db_path": db_path})
        raise

    with get_db(request.db_path) as conn:
        init_schema(conn)
        existing = get_meta_data(conn)

        if existing is None:
            _write(conn, "initialize", [(
                "INSERT INTO meta (id, data_type, embedding_length, description, embedding_count) "
                "VALUES (1, ?, ?, ?, 0)",
                (request.data_type, request.embedding_length, request.description),
            )])
        elif existing.data_type != request.data_type:
            raise TypeMismatchError(
                f"Database '{db_path}' is declared as {existing.data_type}, not {request.data_type}"
            )
        elif existing.embedding_length != request.embedding_length:
            raise DimensionMismatchError(
                f"Database '{db_path}' is declared with length {existing.embedding_length}, "
                f"not {request.embedding_length}"
            )
        elif request.description:
            update_description(conn, request.description)

        meta = get_meta_data(conn)

    logger.log_operation("store.initialize", "success", {
        "db_path": db_path,
        "data_type": meta.data_type,
        "embedding_length": meta.embedding_length,
    })
    return meta


def insert_embeddings(conn: sqlite3.Connection, ids, embeddings) -> int:
    """Insert one embedding (single id) or several (parallel sequences). Returns the number inserted."""
    try:
        ids, embeddings = _as_batch(ids, embeddings)
        meta = _require_meta(conn)
        payloads = _encode_all(meta, embeddings)
    except EmbedStoreError as e:
        logger.log_validation_error("insert", e)
        raise

    statements = [
        ("INSERT INTO embeddings (id_text, embedding, data_type) VALUES (?, ?, ?)", (id, payload, meta.data_type))
        for id, payload in zip(ids, payloads)
    ]
    statements.append(("UPDATE meta SET embedding_count = embedding_count + ? WHERE id = 1", (len(ids),)))
    _write(conn, "insert", statements)

    logger.log_store_operation("insert", ids, {"data_type": meta.data_type})
    return len(ids)


def update_embeddings(conn: sqlite3.Connection, ids, embeddings) -> int:
    """Replace the embeddings of existing ids. Absent ids raise NotFoundError."""
    try:
        ids, embeddings = _as_batch(ids, embeddings)
        meta = _require_meta(conn)
        payloads = _encode_all(meta, embeddings)

        existing = SqliteEmbeddingSource(conn).fetch_by_ids(ids)
        missing = [id for id in ids if id not in existing]
        if missing:
            raise NotFoundError(f"Cannot update missing embeddings: {missing}")
    except EmbedStoreError as e:
        logger.log_validation_error("update", e)
        raise

    _write(conn, "update", [
        ("UPDATE embeddings SET embedding = ?, data_type = ? WHERE id_text = ?", (payload, meta.data_type, id))
        for id, payload in zip(ids, payloads)
    ])

    logger.log_store_operation("update", ids)
    return len(ids)


def delete_embeddings(conn: sqlite3.Connection, ids) -> int:
    """Delete embeddings by id. Returns how many rows were actually removed."""
    ids, _ = _as_batch(ids)
    _require_meta(conn)

    # Cached count is recomputed inside the same transaction
    statements = [("DELETE FROM embeddings WHERE id_text = ?", (id,)) for id in ids]
    statements.append((
        "UPDATE meta SET embedding_count = (SELECT COUNT(*) FROM embeddings) WHERE id = 1", ()
    ))
    rowcounts = _write(conn, "delete", statements)
    deleted = sum(rowcounts[:-1])

    logger.log_store_operation("delete", ids, {"deleted": deleted})
    return deleted


def delete_all_embeddings(conn: sqlite3.Connection) -> int:
    """Remove every embedding and reset the cached count. Returns rows removed."""
    _require_meta(conn)
    rowcounts = _write(conn, "delete_all", [
        ("DELETE FROM embeddings", ()),
        ("UPDATE meta SET embedding_count = 0 WHERE id = 1", ()),
    ])

    logger.log_store_operation("delete_all", details={"deleted": rowcounts[0]})
    return rowcounts[0]


def get_embedding(conn: sqlite3.Connection, id) -> np.ndarray:
    """Return the decoded embedding for one id, or raise NotFoundError."""
    id = str(id)
    return get_embeddings(conn, [id])[id]


def get_embeddings(conn: sqlite3.Connection, ids) -> Dict[str, np.ndarray]:
    """Return id -> decoded embedding. Any absent id raises NotFoundError."""
    ids, _ = _as_batch(ids)
    meta = _require_meta(conn)
    rows = SqliteEmbeddingSource(conn).fetch_by_ids(ids)

    missing = [id for id in ids if id not in rows]
    if missing:
        raise NotFoundError(f"No embeddings with ids {missing}")

    return {id: decode(rows[id][0], rows[id][1], meta.embedding_length) for id in ids}


def get_all_embeddings(conn: sqlite3.Connection) -> Dict[str, np.ndarray]:
    """Return every embedding keyed by id, in insertion order."""
    meta = _require_meta(conn)
    return {
        row.id: decode(row.payload, row.data_type, meta.embedding_length)
        for row in SqliteEmbeddingSource(conn).fetch_all()
    }


def get_all_ids(conn: sqlite3.Connection) -> List[str]:
    """Return every id in insertion order."""
    return SqliteEmbeddingSource(conn).fetch_ids()


def get_adjacent_id(conn: sqlite3.Connection, current_id, direction: str = "next",
                    full_row: bool = True) -> Union[EmbeddingRecord, str, None]:
    """
    Return the record just after (or before) current_id in insertion order.

    With full_row the result is an EmbeddingRecord, otherwise the bare id.
    Returns None past either end; an unknown current_id raises NotFoundError.
    """
    direction = normalize_direction(direction)
    meta = _require_meta(conn)
    row = SqliteEmbeddingSource(conn).fetch_adjacent(current_id, direction)

    if row is None:
        return None
    if not full_row:
        return row.id
    return EmbeddingRecord(row.id, decode(row.payload, row.data_type, meta.embedding_length), row.data_type)


def random_embeddings(conn: sqlite3.Connection, num: int) -> Dict[str, np.ndarray]:
    """Return up to num randomly chosen embeddings keyed by id."""
    if num < 0:
        raise ValueError(f"num must be 0 or greater, got {num}")
    meta = _require_meta(conn)

    try:
        rows = conn.execute(
            "SELECT id_text, embedding, data_type FROM embeddings ORDER BY RANDOM() LIMIT ?", (num,)
        ).fetchall()
    except sqlite3.Error as e:
        raise CollaboratorError(f"Random sample failed: {e}") from e

    return {id: decode(bytes(payload), data_type, meta.embedding_length) for id, payload, data_type in rows}


def count_entries(conn: sqlite3.Connection, update_meta: bool = False) -> int:
    """Count rows in the embeddings table, optionally refreshing the cached count."""
    _require_meta(conn)
    try:
        count = conn.execute("SELECT COUNT(*) FROM embeddings").fetchone()[0]
    except sqlite3.Error as e:
        raise CollaboratorError(f"Count failed: {e}") from e

    if update_meta:
        _write(conn, "count", [("UPDATE meta SET embedding_count = ? WHERE id = 1", (count,))])
        logger.log_operation("store.count", "success", {"embedding_count": count, "meta_updated": True})
    return count


def get_meta_data(conn: sqlite3.Connection) -> Optional[DatabaseMeta]:
    """Return the meta row, or None if the database has not been initialized."""
    if not tables_exist(conn):
        return None

    try:
        row = conn.execute(
            "SELECT data_type, embedding_length, description, embedding_count FROM meta WHERE id = 1"
        ).fetchone()
    except sqlite3.Error as e:
        raise CollaboratorError(f"Meta query failed: {e}") from e

    if row is None:
        return None
    return DatabaseMeta(data_type=row[0], embedding_length=row[1], description=row[2], embedding_count=row[3])


def update_description(conn: sqlite3.Connection, description: str = "") -> None:
    """Replace the free-text description in the meta table."""
    _require_meta(conn)
    _write(conn, "update_description", [("UPDATE meta SET description = ? WHERE id = 1", (description,))])
    logger.log_operation("store.update_description", "success", {"length": len(description)})
