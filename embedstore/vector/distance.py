"""
Distance metrics over equal-length numeric vectors.

Both operands are coerced to float64 before scoring, so a query does not need
to share the stored element type. Metrics are plain functions registered by
name; they take two float64 arrays and return a float.
"""

from typing import Callable, Dict, List

import numpy as np

from ..core.errors import DegenerateVectorError, DimensionMismatchError, TypeMismatchError, UnsupportedMetricError

Metric = Callable[[np.ndarray, np.ndarray], float]


def _real(x) -> float:
    # float() would also parse "1" and accept True
    if isinstance(x, (str, bytes, bytearray, bool, np.bool_)):
        raise TypeMismatchError(f"Element {x!r} of type {type(x).__name__} is not a real number")
    return float(x)


def to_float_array(vector) -> np.ndarray:
    """Coerce a decoded embedding or query to a 1-D float64 array."""
    if isinstance(vector, (str, bytes, bytearray)):
        raise TypeMismatchError(f"Vector must be a numeric sequence, got {type(vector).__name__}")

    if isinstance(vector, np.ndarray) and vector.dtype.kind in "iuf":
        arr = vector.astype(np.float64)
    else:
        try:
            arr = np.array([_real(x) for x in vector], dtype=np.float64)
        except (TypeError, ValueError, OverflowError) as e:
            raise TypeMismatchError(f"Vector cannot be converted to floating point: {e}") from e

    if arr.ndim != 1:
        raise TypeMismatchError(f"Vector must be one-dimensional, got shape {arr.shape}")
    return arr


def euclidean(a: np.ndarray, b: np.ndarray) -> float:
    """Square root of the summed squared differences, scaled to avoid overflow."""
    diff = a - b
    if not diff.size:
        return 0.0

    scale = np.max(np.abs(diff))
    if scale == 0.0:
        return 0.0
    if not np.isfinite(scale):
        return float(scale)

    scaled = diff / scale
    return float(scale * np.sqrt(np.dot(scaled, scaled)))


def cosine(a: np.ndarray, b: np.ndarray) -> float:
    """1 - cos(angle), in [0, 2]. Zero-norm vectors are rejected."""
    scale_a = np.max(np.abs(a)) if a.size else 0.0
    scale_b = np.max(np.abs(b)) if b.size else 0.0
    if scale_a == 0.0 or scale_b == 0.0:
        raise DegenerateVectorError("Cosine distance is undefined for a zero-norm vector")

    # Max-abs scaling keeps the dot product and norms in range
    a = a / scale_a
    b = b / scale_b
    similarity = np.dot(a, b) / (np.sqrt(np.dot(a, a)) * np.sqrt(np.dot(b, b)))
    return float(np.clip(1.0 - similarity, 0.0, 2.0))


_METRICS: Dict[str, Metric] = {
    "euclidean": euclidean,
    "cosine": cosine,
}


def register_metric(name: str, fn: Metric) -> None:
    """Register a new distance metric. Names are case-insensitive."""
    if not callable(fn):
        raise TypeError(f"Metric '{name}' must be callable")
    _METRICS[name.strip().lower()] = fn


def get_metric(metric_name: str) -> Metric:
    if not isinstance(metric_name, str) or metric_name.strip().lower() not in _METRICS:
        raise UnsupportedMetricError(
            f"Unsupported metric '{metric_name}'. Supported metrics: {list_supported_metrics()}"
        )
    return _METRICS[metric_name.strip().lower()]


def list_supported_metrics() -> List[str]:
    """Return the registered metric names, sorted."""
    return sorted(_METRICS)


def make_scorer(query, metric_name: str) -> Callable[[object], float]:
    """
    Bind a query vector and metric once for scoring many candidates.

    The returned function raises DimensionMismatchError for candidates of a
    different length and DegenerateVectorError when the metric yields NaN.
    """
    fn = get_metric(metric_name)
    q = to_float_array(query)

    def score(candidate) -> float:
        c = to_float_array(candidate)
        if c.shape[0] != q.shape[0]:
            raise DimensionMismatchError(f"Vector length {c.shape[0]} does not match query length {q.shape[0]}")
        with np.errstate(all="ignore"):
            result = float(fn(q, c))
        if np.isnan(result):
            raise DegenerateVectorError(f"Metric '{metric_name}' produced NaN (vector contains NaN values)")
        return result

    return score


def distance(a, b, metric_name: str) -> float:
    """Distance between two equal-length vectors under the named metric."""
    return make_scorer(a, metric_name)(b)
