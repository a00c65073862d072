"""
Storage collaborator interface consumed by the search strategies.

The search core never talks to a database directly. It asks an
IEmbeddingSource for raw rows and decodes them itself. The SQLite-backed
implementation lives in embedstore.core.source; the in-memory one here serves
tests and callers that already hold their embeddings in memory.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.errors import DimensionMismatchError, NotFoundError
from .codec import encode
from .registry import resolve
from .types import StoredRow

_DIRECTIONS = {"next": "next", "previous": "previous", "prev": "previous"}


def normalize_direction(direction: str) -> str:
    """Map 'next', 'previous' or 'prev' to 'next' or 'previous'."""
    normalized = _DIRECTIONS.get(str(direction).strip().lower())
    if normalized is None:
        raise ValueError(f"Invalid direction '{direction}'. Use 'next', 'previous' or 'prev'")
    return normalized


class IEmbeddingSource(ABC):
    """Abstract interface for embedding retrieval."""

    @abstractmethod
    def fetch_all(self) -> List[StoredRow]:
        """Return every row in id order."""
        pass

    @abstractmethod
    def fetch_ids(self) -> List[str]:
        """Return every id in id order."""
        pass

    @abstractmethod
    def fetch_by_ids(self, ids: Iterable[str]) -> Dict[str, Tuple[bytes, str]]:
        """Return id -> (payload, data_type) for the ids that exist."""
        pass

    @abstractmethod
    def fetch_adjacent(self, current_id: Optional[str], direction: str = "next") -> Optional[StoredRow]:
        """Return the row after (or before) current_id, or None at the end.

        current_id=None anchors at the first row for 'next' and the last for
        'previous'. An unknown current_id raises NotFoundError.
        """
        pass

    @abstractmethod
    def declared_meta(self) -> Tuple[str, int]:
        """Return the (data_type, embedding_length) every row conforms to."""
        pass


class InMemoryEmbeddingSource(IEmbeddingSource):
    """In-memory implementation of IEmbeddingSource; ids keep insertion order."""

    def __init__(self, data_type: str, embedding_length: int):
        self.data_type = resolve(data_type).name
        self.embedding_length = embedding_length
        self._rows = {}       # id -> (payload, data_type)
        self._ids = []        # insertion order
        self._positions = {}  # id -> index into _ids

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, id, vector) -> None:
        """Encode and append a vector under the declared type."""
        if len(vector) != self.embedding_length:
            raise DimensionMismatchError(
                f"Embedding length {len(vector)} does not match declared length {self.embedding_length}"
            )
        self.add_raw(id, encode(vector, self.data_type), self.data_type)

    def add_raw(self, id, payload: bytes, data_type: str) -> None:
        """Append an already-encoded payload as-is."""
        id = str(id)
        if id in self._rows:
            raise ValueError(f"Duplicate id '{id}'")
        self._rows[id] = (bytes(payload), data_type)
        self._positions[id] = len(self._ids)
        self._ids.append(id)

    def remove(self, id) -> None:
        id = str(id)
        if id not in self._rows:
            raise NotFoundError(f"No embedding with id '{id}'")
        del self._rows[id]
        self._ids.remove(id)
        self._positions = {rid: i for i, rid in enumerate(self._ids)}

    def clear(self) -> None:
        self._rows.clear()
        self._ids.clear()
        self._positions.clear()

    def fetch_all(self) -> List[StoredRow]:
        return [StoredRow(id, *self._rows[id]) for id in self._ids]

    def fetch_ids(self) -> List[str]:
        return list(self._ids)

    def fetch_by_ids(self, ids: Iterable[str]) -> Dict[str, Tuple[bytes, str]]:
        return {str(id): self._rows[str(id)] for id in ids if str(id) in self._rows}

    def fetch_adjacent(self, current_id: Optional[str], direction: str = "next") -> Optional[StoredRow]:
        step = 1 if normalize_direction(direction) == "next" else -1

        if current_id is None:
            if not self._ids:
                return None
            position = 0 if step == 1 else len(self._ids) - 1
        else:
            current_id = str(current_id)
            if current_id not in self._positions:
                raise NotFoundError(f"No embedding with id '{current_id}'")
            position = self._positions[current_id] + step

        if not 0 <= position < len(self._ids):
            return None
        id = self._ids[position]
        return StoredRow(id, *self._rows[id])

    def declared_meta(self) -> Tuple[str, int]:
        return self.data_type, self.embedding_length
