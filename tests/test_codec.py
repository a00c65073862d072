"""
Tests for the embedding codec: exact encoding, length checks and type inference.
"""

import struct
from decimal import Decimal

import pytest
import numpy as np

from embedstore.core.errors import CorruptPayloadError, TypeMismatchError, UnsupportedTypeError
from embedstore.vector.codec import decode, encode, infer_type
from embedstore.vector.registry import resolve


ROUND_TRIP_CASES = [
    ("int8", [-128, 0, 127]),
    ("int16", [-32768, 1, 32767]),
    ("int32", [-(2 ** 31), 7, 2 ** 31 - 1]),
    ("int64", [-(2 ** 63), 0, 2 ** 63 - 1]),
    ("int128", [-(2 ** 127), 0, 2 ** 127 - 1]),
    ("uint8", [0, 1, 255]),
    ("uint16", [0, 65535]),
    ("uint32", [0, 2 ** 32 - 1]),
    ("uint64", [0, 2 ** 64 - 1]),
    ("uint128", [0, 12345, 2 ** 128 - 1]),
    ("float16", [0.5, -2.0, 65504.0]),
    ("float32", [1.5, -0.25, float(np.finfo(np.float32).max)]),
    ("float64", [0.1, -1e300, 5e-324]),
    ("bigfloat", [Decimal("3.14159265358979323846264338327950288"), Decimal("-1E-50"), Decimal("0.00")]),
]


@pytest.mark.parametrize("type_name,values", ROUND_TRIP_CASES)
def test_round_trip(type_name, values):
    """decode(encode(v)) reproduces v exactly and re-encodes to the same bytes."""
    payload = encode(values, type_name)

    assert len(payload) == len(values) * resolve(type_name).width

    decoded = decode(payload, type_name, len(values))
    assert len(decoded) == len(values)
    assert list(decoded) == values
    assert encode(decoded, type_name) == payload


def test_bigfloat_keeps_exponent_and_sign():
    """Trailing zeros and negative zero survive the bigfloat cell."""
    values = [Decimal("1.500"), Decimal("-0"), Decimal("12E+30")]

    decoded = decode(encode(values, "bigfloat"), "bigfloat", 3)

    assert [d.as_tuple() for d in decoded] == [v.as_tuple() for v in values]


def test_bigfloat_special_values():
    """Infinities and NaN are stored in the flags byte."""
    values = [Decimal("Infinity"), Decimal("-Infinity"), Decimal("NaN")]

    decoded = decode(encode(values, "bigfloat"), "bigfloat", 3)

    assert [str(d) for d in decoded] == ["Infinity", "-Infinity", "NaN"]


def test_bigfloat_accepts_binary_floats_exactly():
    """A Python float becomes the exact Decimal of its binary value."""
    decoded = decode(encode([0.1, 3], "bigfloat"), "bigfloat", 2)

    assert decoded[0] == Decimal(0.1)
    assert decoded[1] == Decimal(3)


@pytest.mark.parametrize("value", [
    1e-11,
    1e-20,
    1e80,
    5e-324,
    2.2250738585072014e-308,
    float(np.finfo(np.float64).max),
    -float(np.nextafter(np.float64(2.0 ** -1022), np.float64(0.0))),
])
def test_bigfloat_holds_every_float64(value):
    """Any float64, including subnormals and the extremes, is stored exactly."""
    decoded = decode(encode([value], "bigfloat"), "bigfloat", 1)

    assert decoded[0] == Decimal(value)
    assert float(decoded[0]) == value


def test_bigfloat_holds_float64_arrays():
    values = np.array([1e-300, -3.5e-17, 7e250, 0.0])

    decoded = decode(encode(values, "bigfloat"), "bigfloat", 4)

    assert [float(d) for d in decoded] == list(values)


def test_bigfloat_coefficient_limit():
    """Coefficients wider than the cell are not representable."""
    with pytest.raises(TypeMismatchError):
        encode([Decimal("1" * 800)], "bigfloat")
    with pytest.raises(TypeMismatchError):
        encode([Decimal("9" * 5000)], "bigfloat")


def test_float_nan_bits_survive():
    """NaN round-trips bit for bit."""
    arr = np.array([np.nan, 1.0, -np.inf], dtype=np.float32)

    payload = encode(arr, "float32")

    assert encode(decode(payload, "float32", 3), "float32") == payload


def test_payload_is_little_endian():
    """Elements are written least significant byte first."""
    assert encode([1], "int16") == b"\x01\x00"
    assert encode([1.0], "float32") == struct.pack("<f", 1.0)
    assert encode([1], "int128") == b"\x01" + b"\x00" * 15


def test_decode_returns_native_dtype():
    """numpy-backed types decode to arrays of their own dtype."""
    decoded = decode(encode([1, 2, 3], "uint16"), "uint16", 3)

    assert isinstance(decoded, np.ndarray)
    assert decoded.dtype == np.uint16


def test_decode_wide_types_return_object_arrays():
    """int128 and bigfloat decode to object arrays of Python numbers."""
    decoded = decode(encode([2 ** 100], "int128"), "int128", 1)

    assert decoded.dtype == object
    assert decoded[0] == 2 ** 100


def test_empty_vector_round_trips():
    """Zero elements encode to zero bytes."""
    assert encode([], "float64") == b""
    assert len(decode(b"", "float64", 0)) == 0


class TestExactness:
    """Values that would be rounded, truncated or wrapped are rejected."""

    def test_fractional_into_integer(self):
        with pytest.raises(TypeMismatchError):
            encode([1.5, 2], "int32")

    def test_fractional_array_into_integer(self):
        with pytest.raises(TypeMismatchError):
            encode(np.array([1.0, 1.5]), "int8")

    def test_integral_floats_accepted(self):
        assert encode([1.0, 2.0], "int16") == encode([1, 2], "int16")
        assert encode(np.array([1.0, -2.0]), "int16") == encode([1, -2], "int16")

    @pytest.mark.parametrize("type_name,value", [
        ("uint8", 256),
        ("uint64", -1),
        ("int8", -129),
        ("int64", 2 ** 63),
        ("int128", 2 ** 127),
        ("uint128", 2 ** 128),
    ])
    def test_out_of_range_integers(self, type_name, value):
        with pytest.raises(TypeMismatchError):
            encode([value], type_name)

    def test_out_of_range_array(self):
        with pytest.raises(TypeMismatchError):
            encode(np.array([-1, 5], dtype=np.int64), "uint32")

    def test_float_rounding(self):
        with pytest.raises(TypeMismatchError):
            encode([0.1], "float32")

    def test_float_array_rounding(self):
        with pytest.raises(TypeMismatchError):
            encode(np.array([0.1, 0.5]), "float16")

    def test_float_overflow(self):
        with pytest.raises(TypeMismatchError):
            encode([70000.0], "float16")

    def test_large_int_into_float64(self):
        with pytest.raises(TypeMismatchError):
            encode([2 ** 53 + 1], "float64")

    def test_exact_widening_accepted(self):
        arr = np.array([0.5, -1.25], dtype=np.float16)
        payload = encode(arr, "float64")
        assert list(decode(payload, "float64", 2)) == [0.5, -1.25]

    def test_nan_into_integer(self):
        with pytest.raises(TypeMismatchError):
            encode([float("nan")], "int64")

    def test_decimal_into_float(self):
        assert encode([Decimal("0.5")], "float32") == encode([0.5], "float32")
        with pytest.raises(TypeMismatchError):
            encode([Decimal("0.1")], "float64")

    @pytest.mark.parametrize("bad", [[True, False], ["1"], [1 + 2j], "abc", 5])
    def test_non_numeric_rejected(self, bad):
        with pytest.raises(TypeMismatchError):
            encode(bad, "float64")

    def test_two_dimensional_rejected(self):
        with pytest.raises(TypeMismatchError):
            encode(np.zeros((2, 2)), "float64")


class TestDecodeErrors:
    """Malformed payloads fail instead of being truncated."""

    def test_length_not_multiple_of_width(self):
        with pytest.raises(CorruptPayloadError):
            decode(b"\x00" * 5, "int32", 1)

    def test_element_count_mismatch(self):
        with pytest.raises(CorruptPayloadError):
            decode(b"\x00" * 8, "int32", 1)

    def test_payload_not_bytes(self):
        with pytest.raises(CorruptPayloadError):
            decode("abcd", "int32", 1)

    def test_bigfloat_bad_flags(self):
        payload = bytearray(encode([Decimal(1)], "bigfloat"))
        payload[0] = 9
        with pytest.raises(CorruptPayloadError):
            decode(bytes(payload), "bigfloat", 1)

    def test_unknown_type(self):
        with pytest.raises(UnsupportedTypeError):
            decode(b"\x00" * 4, "float128", 1)
        with pytest.raises(UnsupportedTypeError):
            encode([1.0], "float128")


class TestInferType:
    """Type inference from the vector's element representation."""

    @pytest.mark.parametrize("dtype", ["int8", "uint32", "int64", "float16", "float32", "float64"])
    def test_numpy_arrays(self, dtype):
        assert infer_type(np.zeros(3, dtype=dtype)) == dtype

    def test_python_ints(self):
        assert infer_type([1, 2, 3]) == "int64"
        assert infer_type([2 ** 70, -1]) == "int128"
        assert infer_type([2 ** 127]) == "uint128"

    def test_python_floats_and_mixed(self):
        assert infer_type([1.0, 2.5]) == "float64"
        assert infer_type([1, 2.5]) == "float64"

    def test_decimals(self):
        assert infer_type([Decimal("1.5"), 2]) == "bigfloat"

    def test_numpy_scalars(self):
        assert infer_type([np.float16(1), np.float16(2)]) == "float16"

    def test_object_array(self):
        assert infer_type(np.array([2 ** 100, 1], dtype=object)) == "int128"

    @pytest.mark.parametrize("bad", [
        [],
        [True, False],
        ["a"],
        [2 ** 200],
        np.array([1 + 2j]),
        np.array([True]),
    ])
    def test_unsupported(self, bad):
        with pytest.raises(UnsupportedTypeError):
            infer_type(bad)
