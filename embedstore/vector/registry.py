"""
Registry of the element types an embedding database can be declared with.

Each entry knows its fixed byte width, its numeric domain and how to turn an
already-validated sequence of elements into little-endian bytes and back.
Exactness checks live in the codec; the routines here only pack and unpack.
"""

import struct
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Callable, Dict, List, Optional

import numpy as np

from ..core.errors import CorruptPayloadError, UnsupportedTypeError

BYTE_ORDER = "little"

# bigfloat cell: flags, sign, 2 pad bytes, int32 exponent, then a 2560-bit coefficient.
# 2560 bits hold the exact decimal expansion of every float64 (at most 2547 bits).
_BIGFLOAT_HEADER = struct.Struct("<BBxxi")
BIGFLOAT_COEFFICIENT_BYTES = 320
BIGFLOAT_WIDTH = _BIGFLOAT_HEADER.size + BIGFLOAT_COEFFICIENT_BYTES

_FINITE, _INFINITE, _NAN, _SNAN = 0, 1, 2, 3
_SPECIAL_EXPONENTS = {"F": _INFINITE, "n": _NAN, "N": _SNAN}
_SPECIAL_FLAGS = {v: k for k, v in _SPECIAL_EXPONENTS.items()}


@dataclass(frozen=True)
class TypeSpec:
    """Everything the codec needs to know about one element type."""

    name: str
    width: int
    domain: str  # signed|unsigned|binary_float|decimal_float
    min_value: object
    max_value: object
    encode_fn: Callable[[object], bytes]
    decode_fn: Callable[[bytes], np.ndarray]
    dtype: Optional[np.dtype] = None

    @property
    def is_integer(self) -> bool:
        return self.domain in ("signed", "unsigned")


def _numpy_spec(name: str) -> TypeSpec:
    native = np.dtype(name)
    wire = native.newbyteorder("<")

    if native.kind == "f":
        info = np.finfo(native)
        domain = "binary_float"
        lo, hi = float(info.min), float(info.max)
    else:
        info = np.iinfo(native)
        domain = "signed" if native.kind == "i" else "unsigned"
        lo, hi = int(info.min), int(info.max)

    def encode(values) -> bytes:
        return np.asarray(values, dtype=native).astype(wire, copy=False).tobytes()

    def decode(payload: bytes) -> np.ndarray:
        return np.frombuffer(payload, dtype=wire).astype(native)

    return TypeSpec(name, native.itemsize, domain, lo, hi, encode, decode, native)


def _int128_spec(name: str, signed: bool) -> TypeSpec:
    width = 16
    if signed:
        lo, hi = -(1 << 127), (1 << 127) - 1
    else:
        lo, hi = 0, (1 << 128) - 1

    def encode(values: List[int]) -> bytes:
        return b"".join(int(v).to_bytes(width, BYTE_ORDER, signed=signed) for v in values)

    def decode(payload: bytes) -> np.ndarray:
        values = [
            int.from_bytes(payload[i:i + width], BYTE_ORDER, signed=signed)
            for i in range(0, len(payload), width)
        ]
        return np.array(values, dtype=object)

    return TypeSpec(name, width, "signed" if signed else "unsigned", lo, hi, encode, decode)


def _pack_bigfloat(value: Decimal) -> bytes:
    sign, digits, exponent = value.as_tuple()
    coefficient = int("".join(str(d) for d in digits)) if digits else 0

    if isinstance(exponent, str):
        header = _BIGFLOAT_HEADER.pack(_SPECIAL_EXPONENTS[exponent], sign, 0)
    else:
        header = _BIGFLOAT_HEADER.pack(_FINITE, sign, exponent)
    return header + coefficient.to_bytes(BIGFLOAT_COEFFICIENT_BYTES, BYTE_ORDER)


def _unpack_bigfloat(cell: bytes) -> Decimal:
    flags, sign, exponent = _BIGFLOAT_HEADER.unpack_from(cell)
    coefficient = int.from_bytes(cell[_BIGFLOAT_HEADER.size:], BYTE_ORDER)

    if sign not in (0, 1):
        raise CorruptPayloadError(f"bigfloat cell has invalid sign byte {sign}")

    if flags == _FINITE:
        return Decimal((sign, tuple(int(c) for c in str(coefficient)), exponent))
    if flags == _INFINITE:
        return Decimal((sign, (0,), "F"))
    if flags in (_NAN, _SNAN):
        digits = tuple(int(c) for c in str(coefficient)) if coefficient else ()
        return Decimal((sign, digits, _SPECIAL_FLAGS[flags]))
    raise CorruptPayloadError(f"bigfloat cell has invalid flags byte {flags}")


def _bigfloat_spec() -> TypeSpec:
    max_coefficient = (1 << (8 * BIGFLOAT_COEFFICIENT_BYTES)) - 1

    def encode(values: List[Decimal]) -> bytes:
        return b"".join(_pack_bigfloat(v) for v in values)

    def decode(payload: bytes) -> np.ndarray:
        values = [
            _unpack_bigfloat(payload[i:i + BIGFLOAT_WIDTH])
            for i in range(0, len(payload), BIGFLOAT_WIDTH)
        ]
        return np.array(values, dtype=object)

    # Bounds are on the coefficient; the exponent is any int32
    return TypeSpec("bigfloat", BIGFLOAT_WIDTH, "decimal_float", -max_coefficient, max_coefficient, encode, decode)


def _build_registry() -> Dict[str, TypeSpec]:
    specs = {}
    for name in ("int8", "int16", "int32", "int64",
                 "uint8", "uint16", "uint32", "uint64",
                 "float16", "float32", "float64"):
        specs[name] = _numpy_spec(name)
    specs["int128"] = _int128_spec("int128", signed=True)
    specs["uint128"] = _int128_spec("uint128", signed=False)
    specs["bigfloat"] = _bigfloat_spec()
    return specs


# Populated once at import, read-only afterwards
TYPE_REGISTRY = MappingProxyType(_build_registry())


def resolve(type_name: str) -> TypeSpec:
    """Look up a registered element type by name (case-insensitive)."""
    if not isinstance(type_name, str):
        raise UnsupportedTypeError(f"Type name must be a string, got {type(type_name).__name__}")

    spec = TYPE_REGISTRY.get(type_name.strip().lower())
    if spec is None:
        raise UnsupportedTypeError(
            f"Unsupported data type '{type_name}'. Supported types: {list_supported_types()}"
        )
    return spec


def list_supported_types() -> List[str]:
    """Return the registered type names, sorted."""
    return sorted(TYPE_REGISTRY)
