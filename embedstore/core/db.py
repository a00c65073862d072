"""
SQLite connection handling and schema for the embedding store.

Connections are explicit handles: open_db() returns one, get_db() scopes one
to a with-block. Nothing in the package keeps a connection between calls.
"""

import os
import sqlite3
from contextlib import contextmanager
from typing import Generator

from ..util.logging import logger
from .config import DB_PATH, ensure_db_directory, validate_config
from .errors import CollaboratorError, NotFoundError


def open_db(db_path: str = None) -> sqlite3.Connection:
    """Open (creating if needed) the database file with WAL journaling."""
    for issue in validate_config():
        logger.warning(f"Configuration issue: {issue}")

    db_path = db_path or DB_PATH
    try:
        ensure_db_directory(db_path)
    except OSError as e:
        raise CollaboratorError(f"Could not create directory for database '{db_path}': {e}") from e

    try:
        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
    except sqlite3.Error as e:
        raise CollaboratorError(f"Could not open database '{db_path}': {e}") from e
    return conn


def close_db(conn: sqlite3.Connection) -> None:
    """Close a connection returned by open_db()."""
    conn.close()


@contextmanager
def get_db(db_path: str = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection for the duration of a with-block."""
    conn = open_db(db_path)
    try:
        yield conn
    finally:
        close_db(conn)


def init_schema(conn: sqlite3.Connection) -> None:
    """Create the embeddings and meta tables if they do not exist."""
    try:
        with conn:
            # rowid gives ids their insertion order
            conn.execute('''
                CREATE TABLE IF NOT EXISTS embeddings (
                    id_text TEXT PRIMARY KEY,
                    embedding BLOB NOT NULL,
                    data_type TEXT NOT NULL
                )
            ''')

            # Single-row meta table
            conn.execute('''
                CREATE TABLE IF NOT EXISTS meta (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    data_type TEXT NOT NULL,
                    embedding_length INTEGER NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    embedding_count INTEGER NOT NULL DEFAULT 0
                )
            ''')
    except sqlite3.Error as e:
        raise CollaboratorError(f"Could not create tables: {e}") from e


def tables_exist(conn: sqlite3.Connection) -> bool:
    """Check that both store tables are present."""
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    except sqlite3.Error as e:
        raise CollaboratorError(f"Could not read schema: {e}") from e
    table_names = {row[0] for row in rows}
    return {"embeddings", "meta"} <= table_names


def health_check(db_path: str = None) -> bool:
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            return tables_exist(conn)
    except CollaboratorError:
        return False


def delete_db(db_path: str) -> None:
    """Delete the database file along with its WAL and shared-memory files."""
    if not os.path.exists(db_path):
        raise NotFoundError(f"Database file '{db_path}' does not exist")

    try:
        os.remove(db_path)
        for suffix in ("-wal", "-shm"):
            if os.path.exists(db_path + suffix):
                os.remove(db_path + suffix)
    except OSError as e:
        raise CollaboratorError(f"Could not delete database '{db_path}': {e}") from e
