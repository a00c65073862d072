"""
Embedding codec: typed vectors <-> flat little-endian byte payloads.

Encoding is exact. An element that cannot be represented in the target type
without rounding, truncation or wrap-around raises TypeMismatchError instead
of being coerced.
"""

import math
from decimal import Decimal
from typing import List

import numpy as np

from ..core.errors import CorruptPayloadError, TypeMismatchError, UnsupportedTypeError
from .registry import TYPE_REGISTRY, TypeSpec, resolve

_INT32_MIN, _INT32_MAX = -(1 << 31), (1 << 31) - 1


def _elements(vector) -> List[object]:
    if isinstance(vector, np.ndarray):
        if vector.ndim != 1:
            raise TypeMismatchError(f"Embedding must be one-dimensional, got shape {vector.shape}")
        return list(vector)
    if isinstance(vector, (str, bytes, bytearray)):
        raise TypeMismatchError(f"Embedding must be a numeric sequence, got {type(vector).__name__}")
    try:
        return list(vector)
    except TypeError:
        raise TypeMismatchError(f"Embedding must be a numeric sequence, got {type(vector).__name__}") from None


def _to_number(value):
    """Normalize a scalar to int, float or Decimal without losing information."""
    if isinstance(value, (bool, np.bool_)):
        raise TypeMismatchError(f"Boolean element {value!r} is not a numeric embedding value")
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, np.floating) and value.dtype.itemsize > 8:
        as_float = float(value)
        if not math.isnan(as_float) and np.longdouble(as_float) != value:
            raise TypeMismatchError(f"Element {value!r} does not fit a 64-bit float")
        return as_float
    if isinstance(value, (float, np.floating)):
        return float(value)
    if isinstance(value, Decimal):
        return value
    raise TypeMismatchError(f"Element {value!r} of type {type(value).__name__} is not a real number")


def _exact_integer(value, spec: TypeSpec) -> int:
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise TypeMismatchError(f"Value {value!r} is not an integer and cannot be stored as {spec.name}")
        value = int(value)
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise TypeMismatchError(f"Value {value!r} is not an integer and cannot be stored as {spec.name}")
        value = int(value)

    if not spec.min_value <= value <= spec.max_value:
        raise TypeMismatchError(
            f"Value {value} is outside the {spec.name} range [{spec.min_value}, {spec.max_value}]"
        )
    return value


def _exact_binary_float(value, spec: TypeSpec) -> float:
    if isinstance(value, Decimal):
        if value.is_nan():
            return float("nan")
        as_float = float(value)
        if value.is_finite() and Decimal(as_float) != value:
            raise TypeMismatchError(f"Value {value} is not exactly representable as {spec.name}")
        value = as_float
    elif isinstance(value, int):
        try:
            as_float = float(value)
        except OverflowError:
            raise TypeMismatchError(f"Value {value} is not exactly representable as {spec.name}") from None
        if as_float != value:
            raise TypeMismatchError(f"Value {value} is not exactly representable as {spec.name}")
        value = as_float

    if math.isnan(value):
        return value

    with np.errstate(over="ignore"):
        narrowed = float(spec.dtype.type(value))
    if narrowed != value:
        raise TypeMismatchError(f"Value {value!r} is not exactly representable as {spec.name}")
    return value


def _exact_bigfloat(value, spec: TypeSpec) -> Decimal:
    if not isinstance(value, Decimal):
        # Decimal(float) is exact, including nan and infinities
        value = Decimal(value)

    sign, digits, exponent = value.as_tuple()
    # Digit count first so oversized literals never reach int()
    too_wide = len(digits) > len(str(spec.max_value))
    if not too_wide and digits:
        too_wide = int("".join(str(d) for d in digits)) > spec.max_value
    if too_wide:
        raise TypeMismatchError(
            f"Value {value} needs a coefficient wider than {spec.max_value.bit_length()} bits for bigfloat"
        )
    if not isinstance(exponent, str) and not _INT32_MIN <= exponent <= _INT32_MAX:
        raise TypeMismatchError(f"Value {value} has an exponent outside the bigfloat range")
    return value


def _exact_elements(vector, spec: TypeSpec) -> list:
    numbers = [_to_number(v) for v in _elements(vector)]
    if spec.domain == "decimal_float":
        return [_exact_bigfloat(v, spec) for v in numbers]
    if spec.is_integer:
        return [_exact_integer(v, spec) for v in numbers]
    return [_exact_binary_float(v, spec) for v in numbers]


def _exact_array(arr: np.ndarray, spec: TypeSpec):
    """Vectorized exactness check for plain numeric arrays. Returns None when it does not apply."""
    src = arr.dtype
    if src == spec.dtype:
        return arr

    if spec.is_integer and src.kind in "iuf":
        if arr.size:
            if src.kind == "f" and not (np.all(np.isfinite(arr)) and np.all(arr == np.trunc(arr))):
                raise TypeMismatchError(f"Embedding has non-integer values and cannot be stored as {spec.name}")
            lo, hi = int(arr.min()), int(arr.max())
            if lo < spec.min_value or hi > spec.max_value:
                raise TypeMismatchError(
                    f"Embedding values [{lo}, {hi}] fall outside the {spec.name} range "
                    f"[{spec.min_value}, {spec.max_value}]"
                )
        return arr.astype(spec.dtype)

    if not spec.is_integer and src.kind == "f":
        with np.errstate(all="ignore"):
            converted = arr.astype(spec.dtype)
            roundtrip = converted.astype(src)
        if not np.array_equal(roundtrip, arr, equal_nan=True):
            raise TypeMismatchError(f"Embedding values are not exactly representable as {spec.name}")
        return converted

    # int -> float and object arrays go element by element
    return None


def encode(vector, type_name: str) -> bytes:
    """
    Serialize a vector into a flat payload of fixed-width little-endian elements.

    Args:
        vector: numpy array or sequence of numbers
        type_name: registered element type name

    Returns:
        bytes of length len(vector) * width(type_name)
    """
    spec = resolve(type_name)

    values = None
    if spec.dtype is not None and isinstance(vector, np.ndarray) and vector.ndim == 1:
        values = _exact_array(vector, spec)
    if values is None:
        values = _exact_elements(vector, spec)

    payload = spec.encode_fn(values)
    if len(payload) != len(values) * spec.width:
        raise CorruptPayloadError(
            f"Encoded {len(values)} {spec.name} elements into {len(payload)} bytes, "
            f"expected {len(values) * spec.width}"
        )
    return payload


def decode(payload, type_name: str, expected_length: int) -> np.ndarray:
    """
    Rebuild a vector from its payload.

    Returns a numpy array in the type's native dtype, or an object array of
    int/Decimal for int128, uint128 and bigfloat.
    """
    spec = resolve(type_name)

    if not isinstance(payload, (bytes, bytearray, memoryview)):
        raise CorruptPayloadError(f"Payload must be bytes, got {type(payload).__name__}")
    payload = bytes(payload)

    if len(payload) % spec.width:
        raise CorruptPayloadError(
            f"Payload of {len(payload)} bytes is not a multiple of the {spec.name} width ({spec.width})"
        )
    count = len(payload) // spec.width
    if count != expected_length:
        raise CorruptPayloadError(f"Payload holds {count} {spec.name} elements, expected {expected_length}")

    return spec.decode_fn(payload)


def infer_type(vector) -> str:
    """Return the registered type name matching the vector's element representation."""
    if isinstance(vector, np.ndarray) and vector.dtype != object and vector.ndim == 1:
        if vector.dtype.name in TYPE_REGISTRY:
            return vector.dtype.name
        raise UnsupportedTypeError(f"No registered type matches dtype '{vector.dtype}'")

    elements = _elements(vector)
    if not elements:
        raise UnsupportedTypeError("Cannot infer the element type of an empty embedding")

    # Homogeneous numpy scalars keep their own type
    if all(isinstance(e, np.generic) for e in elements):
        dtypes = {e.dtype for e in elements}
        if len(dtypes) == 1:
            return infer_type(np.array(elements, dtype=dtypes.pop()))

    kinds = set()
    for e in elements:
        if isinstance(e, (bool, np.bool_)):
            raise UnsupportedTypeError("Boolean embeddings are not supported")
        if isinstance(e, Decimal):
            kinds.add("decimal")
        elif isinstance(e, (float, np.floating)):
            kinds.add("float")
        elif isinstance(e, (int, np.integer)):
            kinds.add("int")
        else:
            raise UnsupportedTypeError(f"No registered type matches element {e!r} ({type(e).__name__})")

    if "decimal" in kinds:
        return "bigfloat"
    if "float" in kinds:
        return "float64"

    lo, hi = min(int(e) for e in elements), max(int(e) for e in elements)
    for name in ("int64", "int128", "uint128"):
        spec = TYPE_REGISTRY[name]
        if spec.min_value <= lo and hi <= spec.max_value:
            return name
    raise UnsupportedTypeError(f"Integer values [{lo}, {hi}] exceed every registered integer type")


# Names used by the CRUD layer
encode_vector = encode
decode_vector = decode

