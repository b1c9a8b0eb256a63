##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Conversion between typed field values and generic database values.

A `DbValue` is one of `None`, `int`, `float`, `str`, `bool` or `bytes`; it is the
only kind of value that crosses the boundary to a database adapter. The
functions in this module convert single field values to and from that
representation, driven by the field's [`TypeTag`][mapping.type_info.TypeTag].

Enumerations are stored as their ordinal (declaration index) unless a custom
converter is registered for the enum class with `register_converter`. The
converter registry is process wide; registering a converter for a type changes
how that type is stored everywhere.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Union
from uuid import UUID

from genpersist.common.enums import TypeKind
from genpersist.exceptions import MappingError
from genpersist.mapping.type_info import TypeTag


LOG = logging.getLogger(__name__)

DbValue = Union[None, int, float, str, bool, bytes]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

STORAGE_KINDS = (TypeKind.INT, TypeKind.FLOAT, TypeKind.TEXT, TypeKind.BOOL, TypeKind.BLOB)


@dataclass(frozen=True)
class Converter:
    """
    A user supplied bidirectional conversion for one Python type.

    Attributes:
        to_db: Turns a field value into a `DbValue`.
        from_db: Turns a `DbValue` back into a field value.
        kind: The storage kind of the produced `DbValue`; used to pick column types.
    """

    to_db: Callable[[Any], DbValue]
    from_db: Callable[[DbValue], Any]
    kind: TypeKind = TypeKind.TEXT


# Writers swap in a new read-only snapshot under the lock, readers never lock
_REGISTRY_LOCK = threading.Lock()
_CONVERTERS: Mapping[type, Converter] = MappingProxyType({})


def register_converter(
    py_type: type,
    to_db: Callable[[Any], DbValue],
    from_db: Callable[[DbValue], Any],
    kind: TypeKind = TypeKind.TEXT,
):
    """
    Register a custom conversion for `py_type`, overriding the default behavior
    (e.g. ordinal encoding of enums) process wide.

    Args:
        py_type: The Python type the conversion applies to.
        to_db: Callable converting a value of `py_type` into a `DbValue`.
        from_db: Callable converting a `DbValue` back into a value of `py_type`.
        kind: The storage kind of the values produced by `to_db`.

    Raises:
        ValueError: If `kind` is not a storage kind.
    """
    global _CONVERTERS  # pylint: disable=global-statement
    if kind not in STORAGE_KINDS:
        raise ValueError(f"Converters must store values as one of {[k.name for k in STORAGE_KINDS]}, not {kind.name}")

    with _REGISTRY_LOCK:
        updated = dict(_CONVERTERS)
        updated[py_type] = Converter(to_db=to_db, from_db=from_db, kind=kind)
        _CONVERTERS = MappingProxyType(updated)
    LOG.debug(f"Registered converter for {py_type.__name__} stored as {kind.name}")


def unregister_converter(py_type: type):
    """
    Remove a previously registered conversion. Unknown types are ignored.

    Args:
        py_type: The Python type to remove the conversion for.
    """
    global _CONVERTERS  # pylint: disable=global-statement
    with _REGISTRY_LOCK:
        updated = dict(_CONVERTERS)
        if updated.pop(py_type, None) is not None:
            _CONVERTERS = MappingProxyType(updated)
            LOG.debug(f"Unregistered converter for {py_type.__name__}")


def converter_for(py_type: Any) -> Optional[Converter]:
    """
    Find the converter registered for `py_type` or its closest base class.

    Args:
        py_type: The Python type to look up.

    Returns:
        The registered converter, or None if there isn't one.
    """
    converters = _CONVERTERS
    if not isinstance(py_type, type):
        return None
    for klass in py_type.__mro__:
        if klass in converters:
            return converters[klass]
    return None


def storage_kind(tag: TypeTag) -> TypeKind:
    """
    The kind of `DbValue` a field is stored as. This decides the column type
    generated for the field.

    Args:
        tag: The tag of the field.

    Returns:
        One of the storage kinds INT, FLOAT, TEXT, BOOL or BLOB.

    Raises:
        MappingError: For embedded tags, which span several columns.
    """
    converter = converter_for(tag.py_type)
    if converter is not None:
        return converter.kind
    if tag.kind is TypeKind.ENUM:
        return TypeKind.INT
    if tag.kind in STORAGE_KINDS:
        return tag.kind
    raise MappingError(f"No storage kind for field type {tag}")


def _type_error(value: Any, tag: TypeTag, direction: str) -> MappingError:
    return MappingError(f"Cannot {direction} value {value!r} of type {type(value).__name__} as {tag}")


def _check_int64(value: int, tag: TypeTag) -> int:
    if not INT64_MIN <= value <= INT64_MAX:
        raise MappingError(f"Integer {value} is out of the 64-bit range of {tag}")
    return value


def _as_float(value: Union[int, float], tag: TypeTag) -> float:
    try:
        return float(value)
    except OverflowError as exc:
        raise MappingError(f"Number {value} is out of the floating point range of {tag}") from exc


def encode(value: Any, tag: TypeTag) -> DbValue:
    """
    Convert a field value into a `DbValue`.

    Args:
        value: The field value.
        tag: The declared type of the field.

    Returns:
        The database representation of `value`.

    Raises:
        MappingError: If the value does not fit the tag.
    """
    if value is None:
        if tag.nullable:
            return None
        raise MappingError(f"None is not allowed for non-nullable field type {tag}")

    converter = converter_for(tag.py_type)
    if converter is not None:
        try:
            return converter.to_db(value)
        except (TypeError, ValueError, AttributeError, ArithmeticError) as exc:
            raise MappingError(f"Converter for {tag} failed on {value!r}: {exc}") from exc

    kind = tag.kind
    if kind is TypeKind.INT:
        if isinstance(value, int) and not isinstance(value, bool):
            return _check_int64(value, tag)
    elif kind is TypeKind.FLOAT:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return _as_float(value, tag)
    elif kind is TypeKind.TEXT:
        if isinstance(value, str):
            return value
    elif kind is TypeKind.BOOL:
        if isinstance(value, bool):
            return value
    elif kind is TypeKind.BLOB:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
    elif kind is TypeKind.ENUM:
        if isinstance(value, tag.py_type):
            return list(tag.py_type).index(value)
    elif kind is TypeKind.EMBEDDED:
        raise MappingError(f"Embedded field type {tag} is converted by the entity row mapping, not the codec")
    raise _type_error(value, tag, "encode")


def decode(db_value: DbValue, tag: TypeTag) -> Any:
    """
    Convert a `DbValue` back into a field value.

    Args:
        db_value: The value read from the database.
        tag: The declared type of the target field.

    Returns:
        The field value.

    Raises:
        MappingError: If the database value is incompatible with the tag.
    """
    if db_value is None:
        if tag.nullable:
            return None
        raise MappingError(f"NULL cannot be decoded into non-nullable field type {tag}")

    converter = converter_for(tag.py_type)
    if converter is not None:
        try:
            return converter.from_db(db_value)
        except (TypeError, ValueError, AttributeError, ArithmeticError) as exc:
            raise MappingError(f"Converter for {tag} failed on {db_value!r}: {exc}") from exc

    kind = tag.kind
    is_number = isinstance(db_value, (int, float)) and not isinstance(db_value, bool)
    if kind is TypeKind.INT:
        if isinstance(db_value, int) and not isinstance(db_value, bool):
            return _check_int64(db_value, tag)
    elif kind is TypeKind.FLOAT:
        if is_number:
            return _as_float(db_value, tag)
    elif kind is TypeKind.TEXT:
        if isinstance(db_value, str):
            return db_value
    elif kind is TypeKind.BOOL:
        # Backends without a boolean type hand back 0 and 1
        if isinstance(db_value, bool):
            return db_value
        if isinstance(db_value, int) and db_value in (0, 1):
            return bool(db_value)
    elif kind is TypeKind.BLOB:
        if isinstance(db_value, (bytes, bytearray, memoryview)):
            return bytes(db_value)
    elif kind is TypeKind.ENUM:
        if isinstance(db_value, int) and not isinstance(db_value, bool):
            members = list(tag.py_type)
            if 0 <= db_value < len(members):
                return members[db_value]
            raise MappingError(f"Ordinal {db_value} is out of range for enum {tag.py_type.__name__}")
    elif kind is TypeKind.EMBEDDED:
        raise MappingError(f"Embedded field type {tag} is converted by the entity row mapping, not the codec")
    raise _type_error(db_value, tag, "decode")


def _register_builtin_converters():
    register_converter(datetime, datetime.isoformat, datetime.fromisoformat, TypeKind.TEXT)
    register_converter(date, date.isoformat, date.fromisoformat, TypeKind.TEXT)
    register_converter(Decimal, str, lambda text: Decimal(str(text)), TypeKind.TEXT)
    register_converter(UUID, str, lambda text: UUID(str(text)), TypeKind.TEXT)


_register_builtin_converters()
