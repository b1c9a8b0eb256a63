##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Immutable metadata describing how an entity type maps onto a table.

This module houses the dataclasses produced by reflection and consumed by the
codec, the statement builder and the where-clause compiler:

- `TypeTag`: the declared type category of a field.
- `FieldDescriptor`: one field, its column name and its tag.
- `TypeInfo`: the table name, ordered fields, identifier and autoincrement flag
  of an entity type.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from genpersist.common.enums import TypeKind
from genpersist.exceptions import MappingError


@dataclass(frozen=True)
class TypeTag:
    """
    The declared type of a field as far as persistence is concerned.

    Attributes:
        kind: The category of the type (see [`TypeKind`][common.enums.TypeKind]).
        py_type: The Python class of the field value (e.g. `int`, an `Enum`
            subclass, a nested dataclass).
        nullable: True if the field was annotated as `Optional[...]`.
        embedded: For `TypeKind.EMBEDDED` tags, the reflected metadata of the nested record.
    """

    kind: TypeKind
    py_type: Any
    nullable: bool = False
    embedded: Optional["TypeInfo"] = None

    def __str__(self) -> str:
        name = getattr(self.py_type, "__name__", repr(self.py_type))
        return f"{self.kind.name}({name}){'?' if self.nullable else ''}"


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Describes one persisted field of an entity type.

    Attributes:
        field_name: The attribute name on the dataclass.
        column_name: The column the field is stored in.
        type_tag: The [`TypeTag`][mapping.type_info.TypeTag] of the field.
    """

    field_name: str
    column_name: str
    type_tag: TypeTag

    @property
    def column_names(self) -> List[str]:
        """
        The columns this field occupies. Scalar fields occupy their own column;
        embedded records are flattened into one column per nested column,
        prefixed with this field's column name.

        Returns:
            The flattened list of column names.
        """
        if self.type_tag.kind is not TypeKind.EMBEDDED:
            return [self.column_name]
        return [f"{self.column_name}_{column}" for column in self.type_tag.embedded.column_names]

    @property
    def width(self) -> int:
        """Number of row values this field consumes."""
        return len(self.column_names)


@dataclass(frozen=True)
class TypeInfo:
    """
    Reflected metadata of an entity type.

    For top-level entities `id_field` names exactly one of `fields`. Embedded
    record types are reflected without an identifier.

    Attributes:
        entity_type: The class this metadata was built from.
        table_name: The table the entity is stored in.
        fields: The persisted fields, in column and row order.
        id_field: The descriptor of the identifier field, or None for embedded records.
        auto_increment: True if identifier values are assigned by the backend.
    """

    entity_type: Any
    table_name: str
    fields: Tuple[FieldDescriptor, ...]
    id_field: Optional[FieldDescriptor] = None
    auto_increment: bool = False

    @property
    def type_name(self) -> str:
        """The name of the reflected class."""
        return self.entity_type.__name__

    @property
    def column_names(self) -> List[str]:
        """All columns of the table, flattened, in field order."""
        return [column for descriptor in self.fields for column in descriptor.column_names]

    @property
    def id_column(self) -> str:
        """
        The column holding the identifier.

        Raises:
            MappingError: If this metadata describes an embedded record.
        """
        if self.id_field is None:
            raise MappingError(f"Type {self.type_name} has no identifier field")
        return self.id_field.column_name

    def field_named(self, name: str) -> FieldDescriptor:
        """
        Look up a field descriptor by its attribute name.

        Args:
            name: The attribute name of the field.

        Returns:
            The matching descriptor.

        Raises:
            MappingError: If the type has no persisted field with that name.
        """
        for descriptor in self.fields:
            if descriptor.field_name == name:
                return descriptor
        raise MappingError(f"Field '{name}' is not present in type {self.type_name}")

    def fields_to_columns(self) -> Dict[str, str]:
        """The field name to column name mapping of this type."""
        return {descriptor.field_name: descriptor.column_name for descriptor in self.fields}
