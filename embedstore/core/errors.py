"""
Error hierarchy for the embedding store.

Every failure the store detects is raised as one of these. Nothing is
returned as an error string and nothing is defaulted silently.
"""


class EmbedStoreError(Exception):
    """Base error for the embedding store."""


class UnsupportedTypeError(EmbedStoreError, ValueError):
    """Unknown element type name, or a vector whose type cannot be inferred."""


class TypeMismatchError(EmbedStoreError, ValueError):
    """Value not exactly representable in the target type, or declared/inferred type conflict."""


class DimensionMismatchError(EmbedStoreError, ValueError):
    """Vector length differs from the declared or query length."""


class CorruptPayloadError(EmbedStoreError, ValueError):
    """Byte payload malformed for its declared type or length."""


class DegenerateVectorError(EmbedStoreError, ValueError):
    """Metric preconditions violated (zero norm under cosine, NaN distance)."""


class UnsupportedMetricError(EmbedStoreError, ValueError):
    pass


class UnsupportedStrategyError(EmbedStoreError, ValueError):
    pass


class BulkLimitError(EmbedStoreError, ValueError):
    """Bulk operation larger than BULK_LIMIT records."""


class NotFoundError(EmbedStoreError, LookupError):
    """Requested id (or database file) is absent."""


class CollaboratorError(EmbedStoreError):
    """Failure surfaced from the storage layer."""
