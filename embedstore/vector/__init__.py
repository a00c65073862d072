"""
Vector core: element type registry, codec, distance metrics, top-k selection
and the exact search strategies.
"""

from .registry import TypeSpec, resolve, list_supported_types
from .codec import encode, decode, encode_vector, decode_vector, infer_type
from .distance import distance, register_metric, list_supported_metrics
from .topk import BoundedTopK
from .types import StoredRow, TopKEntry
from .source import IEmbeddingSource, InMemoryEmbeddingSource
from .search import search, list_search_strategies

__all__ = [
    'TypeSpec',
    'resolve',
    'list_supported_types',
    'encode',
    'decode',
    'encode_vector',
    'decode_vector',
    'infer_type',
    'distance',
    'register_metric',
    'list_supported_metrics',
    'BoundedTopK',
    'StoredRow',
    'TopKEntry',
    'IEmbeddingSource',
    'InMemoryEmbeddingSource',
    'search',
    'list_search_strategies',
]
