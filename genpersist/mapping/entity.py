##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
The entity capability set: turning entity values into rows and back.

Any dataclass can be persisted. The default row conversion is derived from
its reflected [`TypeInfo`][mapping.type_info.TypeInfo]: one value per column,
in field order, embedded records flattened in place. Classes that need more
control subclass `Entity` and override `to_row` and/or `from_row`, for
example to load or store related entities through the same connection:

    @dataclass
    class Author(Entity, fields_to_columns={"authorID": "authorID", "name": "name"}):
        authorID: int
        name: str
        articles: List[Article] = field(default_factory=list)

        @classmethod
        def from_row(cls, conn, row):
            author = super().from_row(conn, row)
            author.articles = GenericPersistence().select(conn, Article, field("authorId") == author.authorID)
            return author
"""

import dataclasses
import logging
from typing import Any, Dict, List, Sequence, Type, TypeVar

from genpersist.common.enums import TypeKind
from genpersist.exceptions import MappingError
from genpersist.mapping.codec import DbValue, decode, encode
from genpersist.mapping.reflection import EntityConfig, reflect
from genpersist.mapping.type_info import TypeInfo


LOG = logging.getLogger(__name__)
E = TypeVar("E")


class Entity:
    """
    Optional base class for entity dataclasses.

    Subclassing is only needed to override defaults. Class keywords configure
    the mapping and `to_row`/`from_row` may be overridden:

        @dataclass
        class Car(Entity, auto_increment=True, id_field="carID"):
            carID: int = 0
            carType: str = ""

    Methods:
        to_row: Convert this entity into a row of database values.
        from_row (classmethod): Build an entity from a row of database values.
    """

    def __init_subclass__(
        cls,
        table_name: str = None,
        id_field: str = None,
        fields_to_columns=None,
        auto_increment: bool = None,
        **kwargs,
    ):
        super().__init_subclass__(**kwargs)
        config = EntityConfig.build(table_name, id_field, fields_to_columns, auto_increment)
        # dataclass(slots=True) recreates the class without keywords; keep the first config
        if config != EntityConfig() or "__entity_config__" not in cls.__dict__:
            cls.__entity_config__ = config

    def to_row(self, conn) -> List[DbValue]:  # pylint: disable=unused-argument
        """
        Convert this entity into a row of database values.

        Args:
            conn: The [`Conn`][backends.conn.Conn] the row is written through.

        Returns:
            One value per column of the entity's table, in column order.
        """
        return default_to_row(reflect(self), self)

    @classmethod
    def from_row(cls: Type[E], conn, row: Sequence[DbValue]) -> E:  # pylint: disable=unused-argument
        """
        Build an entity from a row of database values.

        Args:
            conn: The [`Conn`][backends.conn.Conn] the row was read from.
            row: One value per column of the entity's table, in column order.

        Returns:
            The reconstructed entity.
        """
        return default_from_row(reflect(cls), row)


def default_to_row(type_info: TypeInfo, entity: Any) -> List[DbValue]:
    """
    Encode every persisted field of `entity`, flattening embedded records.

    Args:
        type_info: The metadata of the entity type.
        entity: The entity (or embedded record) to encode.

    Returns:
        The encoded row.
    """
    row: List[DbValue] = []
    for descriptor in type_info.fields:
        value = getattr(entity, descriptor.field_name)
        tag = descriptor.type_tag
        if tag.kind is TypeKind.EMBEDDED:
            if value is None:
                if not tag.nullable:
                    raise MappingError(f"Embedded field '{descriptor.field_name}' of {type_info.type_name} is None")
                row.extend([None] * descriptor.width)
            else:
                row.extend(default_to_row(tag.embedded, value))
        else:
            row.append(encode(value, tag))
    return row


def default_from_row(type_info: TypeInfo, row: Sequence[DbValue]) -> Any:
    """
    Decode a row and invoke the entity's constructor with the decoded field values.

    Args:
        type_info: The metadata of the entity type.
        row: The values read from the database, in column order.

    Returns:
        A new instance of `type_info.entity_type`.

    Raises:
        MappingError: If the row has the wrong number of values, a value cannot be
            decoded, or the constructor rejects the decoded values.
    """
    expected = len(type_info.column_names)
    if len(row) != expected:
        raise MappingError(f"Row for {type_info.type_name} has {len(row)} values but {expected} columns are mapped")

    values: Dict[str, Any] = {}
    position = 0
    for descriptor in type_info.fields:
        tag = descriptor.type_tag
        if tag.kind is TypeKind.EMBEDDED:
            chunk = row[position : position + descriptor.width]
            if tag.nullable and all(item is None for item in chunk):
                values[descriptor.field_name] = None
            else:
                values[descriptor.field_name] = default_from_row(tag.embedded, chunk)
        else:
            values[descriptor.field_name] = decode(row[position], tag)
        position += descriptor.width

    return _construct(type_info, values)


def _construct(type_info: TypeInfo, values: Dict[str, Any]) -> Any:
    """Call the dataclass constructor, setting `init=False` fields afterwards."""
    init_fields = {f.name for f in dataclasses.fields(type_info.entity_type) if f.init}
    kwargs = {name: value for name, value in values.items() if name in init_fields}
    try:
        instance = type_info.entity_type(**kwargs)
    except TypeError as exc:
        raise MappingError(f"Could not construct {type_info.type_name} from row values: {exc}") from exc
    for name, value in values.items():
        if name not in init_fields:
            object.__setattr__(instance, name, value)
    return instance


def entity_to_row(conn, entity: Any) -> List[DbValue]:
    """
    Convert an entity into a row, honoring `to_row` overrides.

    Args:
        conn: The connection the row will be written through.
        entity: The entity to convert.

    Returns:
        The row, one value per mapped column.
    """
    type_info = reflect(entity)
    row = entity.to_row(conn) if isinstance(entity, Entity) else default_to_row(type_info, entity)
    row = list(row)
    if len(row) != len(type_info.column_names):
        raise MappingError(
            f"to_row of {type_info.type_name} produced {len(row)} values for {len(type_info.column_names)} columns"
        )
    return row


def entity_from_row(conn, entity_type: Type[E], row: Sequence[DbValue]) -> E:
    """
    Build an entity from a row, honoring `from_row` overrides.

    Args:
        conn: The connection the row was read from.
        entity_type: The class to build.
        row: The row values in column order.

    Returns:
        The reconstructed entity.
    """
    if isinstance(entity_type, type) and issubclass(entity_type, Entity):
        return entity_type.from_row(conn, row)
    return default_from_row(reflect(entity_type), row)


def id_value(entity: Any) -> Any:
    """
    Get the identifier value of an entity.

    Args:
        entity: The entity.

    Returns:
        The value of its identifier field.
    """
    return getattr(entity, reflect(entity).id_field.field_name)


def with_id(entity: E, db_value: DbValue) -> E:
    """
    Assign a backend generated identifier to an entity.

    Mutable dataclasses are updated in place; frozen ones are copied with
    `dataclasses.replace`.

    Args:
        entity: The entity that was just inserted.
        db_value: The identifier value returned by the backend.

    Returns:
        The entity carrying the new identifier.
    """
    id_field = reflect(entity).id_field
    value = decode(db_value, id_field.type_tag)
    try:
        setattr(entity, id_field.field_name, value)
    except dataclasses.FrozenInstanceError:
        entity = dataclasses.replace(entity, **{id_field.field_name: value})
    return entity
