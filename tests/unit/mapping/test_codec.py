##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Tests for the `codec.py` module.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import pytest

from genpersist.common.enums import TypeKind
from genpersist.exceptions import MappingError
from genpersist.mapping import codec
from genpersist.mapping.codec import INT64_MAX, INT64_MIN, decode, encode, register_converter, storage_kind
from genpersist.mapping.type_info import TypeTag


class Color(Enum):
    RED = "red"
    GREEN = "green"
    BLUE = "blue"


class Point:
    """A type without built-in support, used to exercise custom converters."""

    def __init__(self, x: int, y: int):
        self.x = x
        self.y = y

    def __eq__(self, other):
        return isinstance(other, Point) and (self.x, self.y) == (other.x, other.y)


@pytest.fixture
def point_converter():
    """Register a converter storing a `Point` as `"x,y"` text for the duration of a test."""
    register_converter(
        Point, lambda p: f"{p.x},{p.y}", lambda text: Point(*(int(part) for part in text.split(","))), TypeKind.TEXT
    )
    yield
    codec.unregister_converter(Point)


INT = TypeTag(TypeKind.INT, int)
FLOAT = TypeTag(TypeKind.FLOAT, float)
TEXT = TypeTag(TypeKind.TEXT, str)
BOOL = TypeTag(TypeKind.BOOL, bool)
BLOB = TypeTag(TypeKind.BLOB, bytes)
COLOR = TypeTag(TypeKind.ENUM, Color)


@pytest.mark.parametrize(
    "value, tag",
    [
        (42, INT),
        (INT64_MAX, INT),
        (INT64_MIN, INT),
        (3.25, FLOAT),
        ("hello", TEXT),
        ("", TEXT),
        (True, BOOL),
        (False, BOOL),
        (b"\x00\x01", BLOB),
        (Color.BLUE, COLOR),
        (None, TypeTag(TypeKind.INT, int, nullable=True)),
        (datetime(2024, 5, 17, 8, 30, 15), TypeTag(TypeKind.CUSTOM, datetime)),
        (date(2024, 5, 17), TypeTag(TypeKind.CUSTOM, date)),
        (Decimal("12.50"), TypeTag(TypeKind.CUSTOM, Decimal)),
        (UUID("12345678-1234-5678-1234-567812345678"), TypeTag(TypeKind.CUSTOM, UUID)),
    ],
)
def test_round_trip(value: Any, tag: TypeTag):
    """
    Test that decoding an encoded value gives back the original value.

    Args:
        value: The field value.
        tag: The tag of the field.
    """
    assert decode(encode(value, tag), tag) == value


def test_enum_is_stored_as_ordinal():
    """Test that enum members are encoded as their declaration index."""
    assert encode(Color.RED, COLOR) == 0
    assert encode(Color.BLUE, COLOR) == 2
    assert decode(1, COLOR) is Color.GREEN


@pytest.mark.parametrize("ordinal", [-1, 3])
def test_enum_ordinal_out_of_range(ordinal: int):
    """
    Test that decoding an ordinal outside of the enum fails.

    Args:
        ordinal: The stored ordinal.
    """
    with pytest.raises(MappingError, match="out of range"):
        decode(ordinal, COLOR)


@pytest.mark.parametrize("value", [INT64_MAX + 1, INT64_MIN - 1])
def test_int_out_of_range(value: int):
    """
    Test that integers outside of the signed 64-bit range are rejected both ways.

    Args:
        value: The integer.
    """
    with pytest.raises(MappingError, match="64-bit"):
        encode(value, INT)
    with pytest.raises(MappingError, match="64-bit"):
        decode(value, INT)


@pytest.mark.parametrize(
    "value, tag",
    [
        ("42", INT),
        (True, INT),
        (1.5, INT),
        (1, TEXT),
        (1, BOOL),
        ("x", FLOAT),
        (10**400, FLOAT),
        ("abc", BLOB),
        ("RED", COLOR),
    ],
)
def test_encode_type_mismatch(value: Any, tag: TypeTag):
    """
    Test that values not matching their field type are rejected.

    Args:
        value: The field value.
        tag: The tag of the field.
    """
    with pytest.raises(MappingError):
        encode(value, tag)


def test_none_requires_nullable():
    """Test that None is only accepted by nullable tags."""
    with pytest.raises(MappingError, match="None"):
        encode(None, TEXT)
    with pytest.raises(MappingError, match="NULL"):
        decode(None, TEXT)
    assert decode(None, TypeTag(TypeKind.TEXT, str, nullable=True)) is None


def test_decode_lenient_backend_values():
    """Test that integers are accepted for booleans and floats, and bytearrays for blobs."""
    assert decode(1, BOOL) is True
    assert decode(0, BOOL) is False
    assert decode(2, FLOAT) == 2.0
    assert isinstance(decode(2, FLOAT), float)
    assert decode(bytearray(b"ab"), BLOB) == b"ab"
    with pytest.raises(MappingError):
        decode(2, BOOL)


def test_decode_integer_beyond_float_range():
    """Test that an integer too large for a float is rejected instead of overflowing."""
    with pytest.raises(MappingError, match="floating point range"):
        decode(10**400, FLOAT)


def test_encode_float_accepts_int():
    """Test that an int stored in a float field is widened."""
    assert encode(3, FLOAT) == 3.0


def test_embedded_is_not_handled_by_the_codec():
    """Test that the codec refuses embedded tags."""
    tag = TypeTag(TypeKind.EMBEDDED, object)
    with pytest.raises(MappingError, match="Embedded"):
        encode(object(), tag)
    with pytest.raises(MappingError, match="Embedded"):
        decode("x", tag)
    with pytest.raises(MappingError):
        storage_kind(tag)


def test_custom_converter(point_converter):
    """
    Test that a registered converter is used in both directions and decides the storage kind.

    Args:
        point_converter: Registers the `Point` converter.
    """
    tag = TypeTag(TypeKind.CUSTOM, Point)
    assert encode(Point(1, 2), tag) == "1,2"
    assert decode("3,4", tag) == Point(3, 4)
    assert storage_kind(tag) is TypeKind.TEXT


def test_converter_failure_is_a_mapping_error(point_converter):
    """
    Test that exceptions raised by a converter surface as `MappingError`.

    Args:
        point_converter: Registers the `Point` converter.
    """
    with pytest.raises(MappingError, match="Converter"):
        decode("not-a-point", TypeTag(TypeKind.CUSTOM, Point))


def test_converter_overrides_enum_ordinals():
    """Test that a converter registered for an enum replaces ordinal encoding."""
    register_converter(Color, lambda color: color.value, Color, TypeKind.TEXT)
    try:
        assert encode(Color.GREEN, COLOR) == "green"
        assert decode("blue", COLOR) is Color.BLUE
        assert storage_kind(COLOR) is TypeKind.TEXT
    finally:
        codec.unregister_converter(Color)
    assert encode(Color.GREEN, COLOR) == 1


def test_register_converter_rejects_non_storage_kind():
    """Test that converters must produce one of the storage kinds."""
    with pytest.raises(ValueError):
        register_converter(Point, str, str, TypeKind.ENUM)


def test_invalid_decimal_text():
    """Test that malformed decimal text is reported as a `MappingError`."""
    with pytest.raises(MappingError):
        decode("twelve", TypeTag(TypeKind.CUSTOM, Decimal))


def test_storage_kinds():
    """Test the storage kind of primitive and enum tags."""
    assert storage_kind(INT) is TypeKind.INT
    assert storage_kind(BOOL) is TypeKind.BOOL
    assert storage_kind(COLOR) is TypeKind.INT
    assert storage_kind(TypeTag(TypeKind.CUSTOM, datetime)) is TypeKind.TEXT
