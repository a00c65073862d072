"""
embedstore - a SQLite-backed embedding table with exact nearest-neighbor search.
"""

from .core.config import VERSION as __version__
from .core.errors import (
    EmbedStoreError,
    UnsupportedTypeError,
    TypeMismatchError,
    DimensionMismatchError,
    CorruptPayloadError,
    DegenerateVectorError,
    UnsupportedMetricError,
    UnsupportedStrategyError,
    BulkLimitError,
    NotFoundError,
    CollaboratorError,
)
from .vector import (
    encode_vector,
    decode_vector,
    infer_type,
    list_supported_types,
    list_supported_metrics,
    list_search_strategies,
    search,
    InMemoryEmbeddingSource,
    IEmbeddingSource,
    TopKEntry,
)
from .core.db import open_db, close_db, get_db, delete_db
from .core.source import SqliteEmbeddingSource
from .core.search_service import search_db
from .core.dao import (
    initialize_db,
    insert_embeddings,
    update_embeddings,
    delete_embeddings,
    delete_all_embeddings,
    get_embedding,
    get_embeddings,
    get_all_embeddings,
    get_all_ids,
    get_adjacent_id,
    random_embeddings,
    count_entries,
    get_meta_data,
    update_description,
)
