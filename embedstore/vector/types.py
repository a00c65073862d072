"""
Transient value types passed between the storage collaborator and the search core.
"""

from typing import NamedTuple


class StoredRow(NamedTuple):
    """A raw embedding row as the storage collaborator returns it."""

    id: str
    """Record identifier"""

    payload: bytes
    """Flat encoded embedding"""

    data_type: str
    """Registered element type the payload was encoded with"""


class TopKEntry(NamedTuple):
    """One search result. Compares equal to a plain (distance, id) tuple."""

    distance: float
    """Distance from the query under the requested metric"""

    id: str
    """Identifier of the matching record"""
