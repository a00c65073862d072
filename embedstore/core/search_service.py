"""
Path-level entry point for searching a database file.

Resolves the path to a connection, wraps it in the SQLite collaborator and
hands off to the search core. The connection is closed before returning.
"""

from typing import List

from ..vector.search import search
from ..vector.types import TopKEntry
from .config import DEFAULT_BATCH_SIZE, DEFAULT_METRIC, DEFAULT_STRATEGY, DEFAULT_TOP_K
from .db import get_db
from .source import SqliteEmbeddingSource


def search_db(db_path: str, query_vector, metric: str = DEFAULT_METRIC, top_k: int = DEFAULT_TOP_K,
              strategy: str = DEFAULT_STRATEGY, batch_size: int = DEFAULT_BATCH_SIZE) -> List[TopKEntry]:
    """Run search() against the database file at db_path."""
    with get_db(db_path) as conn:
        return search(SqliteEmbeddingSource(conn), query_vector, metric=metric, top_k=top_k,
                      strategy=strategy, batch_size=batch_size)
