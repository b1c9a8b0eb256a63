##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Runtime reflection of entity types into [`TypeInfo`][mapping.type_info.TypeInfo].

Only single-constructor record shapes are supported, which in Python means
dataclasses: their field names and annotations are recovered once per class
and turned into immutable metadata. The defaults can be overridden per class,
either through the keywords of an [`Entity`][mapping.entity.Entity] subclass or
with an explicit `register_entity` call for plain dataclasses:

    @register_entity(table_name="BOOK_TBL", id_field="book_id")
    @dataclass
    class Book:
        book_id: int
        title: str

Reflection is pure, so results are cached per class. Two threads racing to
reflect the same class compute the same value and the first one stored wins.
"""

import dataclasses
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from types import UnionType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union, get_args, get_origin, get_type_hints

from genpersist.common.enums import TypeKind
from genpersist.exceptions import MappingError
from genpersist.mapping.codec import converter_for
from genpersist.mapping.type_info import FieldDescriptor, TypeInfo, TypeTag


LOG = logging.getLogger(__name__)

_NONE_TYPE = type(None)

_UNION_ORIGINS = (Union, UnionType)

_PRIMITIVE_KINDS = {
    bool: TypeKind.BOOL,
    int: TypeKind.INT,
    float: TypeKind.FLOAT,
    str: TypeKind.TEXT,
    bytes: TypeKind.BLOB,
    bytearray: TypeKind.BLOB,
}


@dataclass(frozen=True)
class EntityConfig:
    """
    Per-type overrides of the reflected defaults. Every attribute is optional.

    Attributes:
        table_name: Table name; defaults to the class name.
        id_field: Name of the identifier field; defaults to `lowercase(table_name) + "ID"`.
        fields_to_columns: Ordered `(field, column)` pairs. When given, only these
            fields are persisted, in this order.
        auto_increment: True if the backend assigns identifier values.
    """

    table_name: Optional[str] = None
    id_field: Optional[str] = None
    fields_to_columns: Optional[Tuple[Tuple[str, str], ...]] = None
    auto_increment: Optional[bool] = None

    @classmethod
    def build(
        cls,
        table_name: str = None,
        id_field: str = None,
        fields_to_columns: Union[Mapping[str, str], Iterable[Tuple[str, str]]] = None,
        auto_increment: bool = None,
    ) -> "EntityConfig":
        """
        Create a config, normalizing `fields_to_columns` into ordered pairs.

        Args:
            table_name: Table name override.
            id_field: Identifier field override.
            fields_to_columns: A mapping or a sequence of `(field, column)` pairs.
            auto_increment: Autoincrement override.

        Returns:
            A new `EntityConfig`.
        """
        pairs = None
        if fields_to_columns is not None:
            items = fields_to_columns.items() if isinstance(fields_to_columns, Mapping) else fields_to_columns
            pairs = tuple((str(field_name), str(column)) for field_name, column in items)
        return cls(table_name=table_name, id_field=id_field, fields_to_columns=pairs, auto_increment=auto_increment)


_LOCK = threading.Lock()
_CACHE: Dict[type, TypeInfo] = {}
_REGISTERED: Dict[type, EntityConfig] = {}


def register_entity(
    cls: type = None,
    *,
    table_name: str = None,
    id_field: str = None,
    fields_to_columns: Union[Mapping[str, str], Iterable[Tuple[str, str]]] = None,
    auto_increment: bool = None,
):
    """
    Register a dataclass as an entity, optionally overriding reflected defaults.

    Can be called directly (`register_entity(Person, id_field="id")`) or used as
    a class decorator with or without arguments.

    Args:
        cls: The dataclass to register.
        table_name: Table name override.
        id_field: Identifier field override.
        fields_to_columns: Field to column mapping override.
        auto_increment: Autoincrement override.

    Returns:
        The registered class, or a decorator if `cls` was not given.
    """
    config = EntityConfig.build(table_name, id_field, fields_to_columns, auto_increment)

    def _register(klass: type) -> type:
        with _LOCK:
            _REGISTERED[klass] = config
            _CACHE.pop(klass, None)
        LOG.debug(f"Registered entity {klass.__name__} with {config}")
        return klass

    if cls is None:
        return _register
    return _register(cls)


def clear_cache():
    """Drop every cached `TypeInfo`. Registrations are kept."""
    with _LOCK:
        _CACHE.clear()


def config_for(cls: type) -> EntityConfig:
    """
    Find the overrides that apply to `cls`.

    Explicit registrations win over the keywords of an `Entity` subclass.

    Args:
        cls: The entity class.

    Returns:
        The applicable `EntityConfig` (all defaults if nothing was configured).
    """
    registered = _REGISTERED.get(cls)
    if registered is not None:
        return registered
    # Only look at the class itself so subclasses don't inherit a parent's table
    return cls.__dict__.get("__entity_config__", EntityConfig())


def reflect(value_or_type: Any) -> TypeInfo:
    """
    Reflect an entity value or class into its `TypeInfo`.

    Args:
        value_or_type: An entity instance or an entity class.

    Returns:
        The (cached) metadata of the entity type.

    Raises:
        MappingError: If the shape is not a single-constructor record with named
            fields, if a persisted field has an unsupported type, or if the
            identifier field cannot be found.
    """
    if get_origin(value_or_type) in _UNION_ORIGINS:
        raise MappingError(f"{value_or_type} has more than one constructor; only record types are supported")
    cls = value_or_type if isinstance(value_or_type, type) else type(value_or_type)

    cached = _CACHE.get(cls)
    if cached is not None:
        return cached

    type_info = _build_type_info(cls, config_for(cls), with_id=True, seen=())
    with _LOCK:
        type_info = _CACHE.setdefault(cls, type_info)
    LOG.debug(f"Reflected {cls.__name__} into table {type_info.table_name} with columns {type_info.column_names}")
    return type_info


def _build_type_info(cls: type, config: EntityConfig, with_id: bool, seen: Tuple[type, ...]) -> TypeInfo:
    """
    Build the metadata of a dataclass.

    Args:
        cls: The dataclass to reflect.
        config: The overrides that apply to it.
        with_id: False when reflecting an embedded record, which has no identifier.
        seen: The classes currently being reflected, used to reject recursive embedding.

    Returns:
        The reflected `TypeInfo`.
    """
    if not dataclasses.is_dataclass(cls):
        raise MappingError(
            f"Type {getattr(cls, '__name__', cls)} does not have named fields; only dataclasses can be persisted"
        )
    try:
        hints = get_type_hints(cls)
    except (NameError, TypeError) as exc:
        raise MappingError(f"Could not resolve the field annotations of {cls.__name__}: {exc}") from exc

    declared = [f.name for f in dataclasses.fields(cls)]
    if not declared:
        raise MappingError(f"Type {cls.__name__} has no fields")

    if config.fields_to_columns is not None:
        pairs = config.fields_to_columns
        for field_name, _ in pairs:
            if field_name not in declared:
                raise MappingError(f"Field '{field_name}' is not present in type {cls.__name__}")
    else:
        pairs = tuple((name, name) for name in declared)

    descriptors = tuple(
        FieldDescriptor(field_name, column, _tag_for(hints[field_name], cls, field_name, seen + (cls,)))
        for field_name, column in pairs
    )

    table_name = config.table_name or cls.__name__
    if not with_id:
        return TypeInfo(entity_type=cls, table_name=table_name, fields=descriptors)

    id_name = config.id_field or f"{table_name.lower()}ID"
    matches = [descriptor for descriptor in descriptors if descriptor.field_name == id_name]
    if len(matches) != 1:
        raise MappingError(f"Type {cls.__name__} has no persisted identifier field '{id_name}'")
    id_field = matches[0]
    if id_field.type_tag.kind is TypeKind.EMBEDDED:
        raise MappingError(f"Identifier field '{id_name}' of {cls.__name__} cannot be an embedded record")

    auto_increment = bool(config.auto_increment)
    if auto_increment and id_field.type_tag.kind is not TypeKind.INT:
        raise MappingError(f"Autoincrement identifier '{id_name}' of {cls.__name__} must be an int")

    return TypeInfo(
        entity_type=cls,
        table_name=table_name,
        fields=descriptors,
        id_field=id_field,
        auto_increment=auto_increment,
    )


def _tag_for(annotation: Any, owner: type, field_name: str, seen: Tuple[type, ...]) -> TypeTag:
    """
    Work out the `TypeTag` of an annotated field.

    Args:
        annotation: The resolved annotation of the field.
        owner: The class declaring the field (for error messages).
        field_name: The name of the field (for error messages).
        seen: The classes currently being reflected.

    Returns:
        The tag of the field.
    """
    nullable = False
    if get_origin(annotation) in _UNION_ORIGINS:
        members = [arg for arg in get_args(annotation) if arg is not _NONE_TYPE]
        if len(members) != 1:
            raise MappingError(f"Field '{field_name}' of {owner.__name__} has an unsupported union type {annotation}")
        nullable = True
        annotation = members[0]

    if annotation in _PRIMITIVE_KINDS:
        return TypeTag(_PRIMITIVE_KINDS[annotation], annotation, nullable)
    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return TypeTag(TypeKind.ENUM, annotation, nullable)
    if converter_for(annotation) is not None:
        return TypeTag(TypeKind.CUSTOM, annotation, nullable)
    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        if annotation in seen:
            raise MappingError(f"Field '{field_name}' of {owner.__name__} embeds {annotation.__name__} recursively")
        embedded = _build_type_info(annotation, config_for(annotation), with_id=False, seen=seen)
        return TypeTag(TypeKind.EMBEDDED, annotation, nullable, embedded)

    raise MappingError(
        f"Field '{field_name}' of {owner.__name__} has unsupported type {annotation}; register a converter for it"
    )
