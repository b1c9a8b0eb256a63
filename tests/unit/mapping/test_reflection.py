##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Tests for the `reflection.py` module.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

import pytest

from genpersist.common.enums import TypeKind
from genpersist.exceptions import MappingError
from genpersist.mapping import reflection
from genpersist.mapping.reflection import EntityConfig, reflect, register_entity
from tests.fixture_data_classes import Author, Book, BookCategory, Car, Location, Person, Store


@dataclass
class Node:
    """A record that embeds itself."""

    nodeID: int
    parent: Optional["Node"] = None


class TestDefaults:
    """Tests for the metadata reflected without any configuration."""

    def test_person(self):
        """Test that table, identifier and columns are derived from the class."""
        type_info = reflect(Person)
        assert type_info.table_name == "Person"
        assert type_info.id_field.field_name == "personID"
        assert type_info.id_column == "personID"
        assert type_info.column_names == ["personID", "name", "age", "address"]
        assert type_info.auto_increment is False
        assert [d.type_tag.kind for d in type_info.fields] == [
            TypeKind.INT,
            TypeKind.TEXT,
            TypeKind.INT,
            TypeKind.TEXT,
        ]

    def test_reflect_instance_and_type_agree(self):
        """Test that reflecting an instance gives the metadata of its class."""
        assert reflect(Person(1, "Alice", 25, "West Street 79")) is reflect(Person)

    def test_cached(self):
        """Test that metadata is built once per class until the cache is cleared."""
        first = reflect(Person)
        assert reflect(Person) is first
        reflection.clear_cache()
        assert reflect(Person) is not first
        assert reflect(Person) == first

    def test_optional_field_is_nullable(self):
        """Test that `Optional[X]` fields are nullable fields of type X."""
        color = reflect(Car).field_named("color")
        assert color.type_tag.kind is TypeKind.TEXT
        assert color.type_tag.nullable is True

    def test_pipe_union_with_none_is_nullable(self):
        """Test that `X | None` annotations are handled like `Optional[X]`."""

        @dataclass
        class Gadget:
            gadgetID: int
            label: str | None = None

        assert reflect(Gadget).field_named("label").type_tag.nullable is True


class TestOverrides:
    """Tests for the ways reflected defaults can be overridden."""

    def test_entity_keywords(self):
        """Test that class keywords of an `Entity` subclass apply."""
        type_info = reflect(Car)
        assert type_info.table_name == "Car"
        assert type_info.id_column == "carID"
        assert type_info.auto_increment is True

    def test_registered_columns(self):
        """Test that a registration renames table, identifier and columns."""
        type_info = reflect(Book)
        assert type_info.table_name == "BOOK_TBL"
        assert type_info.id_field.field_name == "book_id"
        assert type_info.id_column == "bookId"
        assert type_info.column_names == ["bookId", "bookTitle", "bookAuthor", "bookYear", "bookCategory"]
        assert type_info.field_named("category").type_tag.py_type is BookCategory
        assert type_info.fields_to_columns()["title"] == "bookTitle"

    def test_mapping_limits_persisted_fields(self):
        """Test that fields left out of the mapping are transient."""
        type_info = reflect(Author)
        assert type_info.column_names == ["authorID", "name", "address"]
        with pytest.raises(MappingError, match="articles"):
            type_info.field_named("articles")

    def test_register_entity_as_decorator(self):
        """Test that `register_entity` works as a decorator with arguments."""

        @register_entity(table_name="gadgets", id_field="serial")
        @dataclass
        class Gadget:
            serial: str
            label: str

        type_info = reflect(Gadget)
        assert type_info.table_name == "gadgets"
        assert type_info.id_column == "serial"

    def test_registration_invalidates_cache(self):
        """Test that registering a class after reflecting it takes effect."""

        @dataclass
        class Gadget:
            gadgetID: int
            label: str

        assert reflect(Gadget).table_name == "Gadget"
        register_entity(Gadget, table_name="GADGET_TBL", id_field="gadgetID")
        assert reflect(Gadget).table_name == "GADGET_TBL"

    def test_default_id_uses_table_name(self):
        """Test that the default identifier is derived from the configured table name."""

        @register_entity(table_name="Machine")
        @dataclass
        class Gadget:
            machineID: int

        assert reflect(Gadget).id_column == "machineID"

    def test_entity_config_accepts_pairs(self):
        """Test that a mapping given as pairs keeps its order."""
        config = EntityConfig.build(fields_to_columns=[("b", "B"), ("a", "A")])
        assert config.fields_to_columns == (("b", "B"), ("a", "A"))


class TestEmbedded:
    """Tests for entities embedding other records."""

    def test_columns_are_flattened(self):
        """Test that embedded records contribute one prefixed column per field."""
        type_info = reflect(Store)
        assert type_info.column_names == [
            "storeID",
            "name",
            "location_street",
            "location_city",
            "location_zip_code",
            "opened",
            "rating",
            "active",
        ]
        location = type_info.field_named("location")
        assert location.type_tag.kind is TypeKind.EMBEDDED
        assert location.type_tag.embedded.entity_type is Location
        assert location.type_tag.embedded.id_field is None
        assert location.width == 3

    def test_opened_uses_converter(self):
        """Test that fields with a registered converter are custom fields."""
        assert reflect(Store).field_named("opened").type_tag.kind is TypeKind.CUSTOM

    def test_recursive_embedding_rejected(self):
        """Test that a record embedding itself cannot be reflected."""
        with pytest.raises(MappingError, match="recursively"):
            reflect(Node)


class TestFailures:
    """Tests for shapes that cannot be reflected."""

    def test_not_a_dataclass(self):
        """Test that classes without named fields are rejected."""

        class Plain:
            def __init__(self, plainID):
                self.plainID = plainID

        with pytest.raises(MappingError, match="dataclass"):
            reflect(Plain)

    def test_primitive(self):
        """Test that primitive values are rejected."""
        with pytest.raises(MappingError):
            reflect(42)

    def test_union(self):
        """Test that sum types are rejected."""
        with pytest.raises(MappingError, match="constructor"):
            reflect(Union[Person, Car])

    def test_missing_id_field(self):
        """Test that an entity needs its identifier field."""

        @dataclass
        class Gadget:
            serial: int

        with pytest.raises(MappingError, match="gadgetID"):
            reflect(Gadget)

    def test_unsupported_field_type(self):
        """Test that fields of unsupported types need a converter."""

        @dataclass
        class Gadget:
            gadgetID: int
            parts: List[str] = field(default_factory=list)

        with pytest.raises(MappingError, match="unsupported type"):
            reflect(Gadget)

    def test_unknown_field_in_mapping(self):
        """Test that a mapping naming a missing field is rejected."""

        @register_entity(fields_to_columns={"gadgetID": "id", "nope": "nope"})
        @dataclass
        class Gadget:
            gadgetID: int

        with pytest.raises(MappingError, match="nope"):
            reflect(Gadget)

    def test_auto_increment_requires_int(self):
        """Test that only integer identifiers can be assigned by the backend."""

        @register_entity(auto_increment=True)
        @dataclass
        class Gadget:
            gadgetID: str

        with pytest.raises(MappingError, match="must be an int"):
            reflect(Gadget)

    def test_union_field(self):
        """Test that fields with a union of several types are rejected."""

        @dataclass
        class Gadget:
            gadgetID: int
            value: Union[int, str] = 0

        with pytest.raises(MappingError, match="union"):
            reflect(Gadget)
