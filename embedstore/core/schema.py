"""
Records exchanged between the CRUD layer and its callers.
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class EmbeddingRecord:
    id: str
    embedding: np.ndarray
    data_type: str


@dataclass
class DatabaseMeta:
    data_type: str
    embedding_length: int
    description: str
    embedding_count: int
