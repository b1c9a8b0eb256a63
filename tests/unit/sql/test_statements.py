##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Tests for the `statements.py` module.
"""

from dataclasses import dataclass

import pytest

from genpersist.exceptions import MappingError
from genpersist.mapping.reflection import reflect
from genpersist.sql.dialects import MSSQL, MYSQL, ORACLE, POSTGRES
from genpersist.sql.statements import (
    count_stmt,
    create_table_stmt,
    delete_stmt,
    drop_table_stmt,
    insert_returning_stmt,
    insert_stmt,
    select_all_stmt,
    select_by_id_stmt,
    select_stmt,
    update_stmt,
)
from genpersist.sql.where import all_entries, desc, field, limit, limit_offset, order_by
from tests.fixture_data_classes import Book, Car, Person, Store


@dataclass
class Tag:
    """An entity made of its identifier only."""

    tagID: str


class TestInsert:
    """Tests for INSERT statements."""

    def test_person(self):
        """Test that every column is bound for caller assigned identifiers."""
        statement = insert_stmt(reflect(Person))
        assert statement.sql == "INSERT INTO Person (personID, name, age, address) VALUES (?, ?, ?, ?);"
        assert statement.slots == ["personID", "name", "age", "address"]

    def test_auto_increment_excludes_id(self):
        """Test that generated identifiers are left to the database."""
        statement = insert_stmt(reflect(Car))
        assert statement.sql == "INSERT INTO Car (carType, color) VALUES (?, ?);"
        assert statement.slots == ["carType", "color"]

    def test_returning(self):
        """Test that the identifier column is returned."""
        assert insert_returning_stmt(reflect(Car)).sql == "INSERT INTO Car (carType, color) VALUES (?, ?) RETURNING carID;"
        assert (
            insert_returning_stmt(reflect(Car), POSTGRES).sql
            == "INSERT INTO Car (carType, color) VALUES ($1, $2) RETURNING carID;"
        )

    def test_returning_unsupported(self):
        """Test that dialects without RETURNING refuse the statement."""
        with pytest.raises(MappingError, match="RETURNING"):
            insert_returning_stmt(reflect(Car), MYSQL)

    def test_mysql_placeholders(self):
        """Test the `%s` placeholders of MySQL."""
        assert insert_stmt(reflect(Person), MYSQL).sql == (
            "INSERT INTO Person (personID, name, age, address) VALUES (%s, %s, %s, %s);"
        )


class TestUpdate:
    """Tests for UPDATE statements."""

    def test_person(self):
        """Test that the identifier is only used in the WHERE clause."""
        statement = update_stmt(reflect(Person))
        assert statement.sql == "UPDATE Person SET name = ?, age = ?, address = ? WHERE personID = ?;"
        assert statement.slots == ["name", "age", "address", "personID"]

    def test_remapped_columns(self):
        """Test that configured table and column names are used."""
        assert update_stmt(reflect(Book)).sql == (
            "UPDATE BOOK_TBL SET bookTitle = ?, bookAuthor = ?, bookYear = ?, bookCategory = ? WHERE bookId = ?;"
        )

    def test_numbered_placeholders(self):
        """Test that numbered placeholders continue into the WHERE clause."""
        assert update_stmt(reflect(Person), POSTGRES).sql == (
            "UPDATE Person SET name = $1, age = $2, address = $3 WHERE personID = $4;"
        )

    def test_nothing_to_update(self):
        """Test that an entity without columns besides its identifier cannot be updated."""
        with pytest.raises(MappingError, match="no columns to update"):
            update_stmt(reflect(Tag))


class TestSelectAndDelete:
    """Tests for SELECT, COUNT and DELETE statements."""

    def test_select_by_id(self):
        """Test selecting one row by identifier."""
        statement = select_by_id_stmt(reflect(Person))
        assert statement.sql == "SELECT personID, name, age, address FROM Person WHERE personID = ?;"
        assert statement.slots == ["personID"]

    def test_select_all(self):
        """Test selecting every row."""
        assert select_all_stmt(reflect(Person)).sql == "SELECT personID, name, age, address FROM Person;"

    def test_select_where(self):
        """Test that a where clause is appended with its parameters."""
        sql, params = select_stmt(reflect(Person), field("age") > 30)
        assert sql == "SELECT personID, name, age, address FROM Person WHERE age > ?;"
        assert params == [30]

    def test_select_without_where(self):
        """Test that `all_entries` adds nothing to the statement."""
        assert select_stmt(reflect(Person)) == ("SELECT personID, name, age, address FROM Person;", [])

    def test_select_with_modifiers_on_oracle(self):
        """Test ordering and limiting with Oracle placeholders."""
        sql, params = select_stmt(reflect(Person), limit(order_by(field("age") > 30, desc("age")), 2), ORACLE)
        assert sql == (
            "SELECT personID, name, age, address FROM Person WHERE age > :1 ORDER BY age DESC "
            "OFFSET :2 ROWS FETCH NEXT :3 ROWS ONLY;"
        )
        assert params == [30, 0, 2]

    def test_count(self):
        """Test counting with and without a where clause."""
        assert count_stmt(reflect(Person)) == ("SELECT COUNT(*) FROM Person;", [])
        assert count_stmt(reflect(Person), field("name") == "Alice") == (
            "SELECT COUNT(*) FROM Person WHERE name = ?;",
            ["Alice"],
        )

    def test_count_limited(self):
        """Test that a limited count counts the rows of the limited SELECT."""
        assert count_stmt(reflect(Person), limit(field("age") > 20, 2)) == (
            "SELECT COUNT(*) FROM (SELECT personID, name, age, address FROM Person WHERE age > ? LIMIT ?) counted;",
            [20, 2],
        )
        assert count_stmt(reflect(Person), limit_offset(all_entries(), 2, 1), ORACLE) == (
            "SELECT COUNT(*) FROM (SELECT personID, name, age, address FROM Person "
            "OFFSET :1 ROWS FETCH NEXT :2 ROWS ONLY) counted;",
            [1, 2],
        )

    def test_count_ordered(self):
        """Test that ordering is dropped from a count."""
        assert count_stmt(reflect(Person), order_by(field("age") > 20, desc("age"))) == (
            "SELECT COUNT(*) FROM Person WHERE age > ?;",
            [20],
        )

    def test_select_paged_on_mssql(self):
        """Test that unordered MSSQL paging orders by a constant."""
        sql, params = select_stmt(reflect(Person), limit_offset(all_entries(), 2, 4), MSSQL)
        assert sql == (
            "SELECT personID, name, age, address FROM Person ORDER BY (SELECT NULL) "
            "OFFSET ? ROWS FETCH NEXT ? ROWS ONLY;"
        )
        assert params == [4, 2]

    def test_delete(self):
        """Test deleting one row by identifier."""
        statement = delete_stmt(reflect(Book))
        assert statement.sql == "DELETE FROM BOOK_TBL WHERE bookId = ?;"
        assert statement.slots == ["bookId"]


class TestSchema:
    """Tests for CREATE TABLE and DROP TABLE statements."""

    def test_create_person(self):
        """Test that the identifier becomes the primary key."""
        assert create_table_stmt(reflect(Person)).sql == (
            "CREATE TABLE Person (personID INTEGER PRIMARY KEY, name TEXT, age INTEGER, address TEXT);"
        )

    def test_create_auto_increment(self):
        """Test the autoincrement syntax of SQLite and Postgres."""
        assert create_table_stmt(reflect(Car)).sql == (
            "CREATE TABLE Car (carID INTEGER PRIMARY KEY AUTOINCREMENT, carType TEXT, color TEXT);"
        )
        assert create_table_stmt(reflect(Car), POSTGRES).sql == (
            "CREATE TABLE Car (carID bigserial PRIMARY KEY, carType varchar, color varchar);"
        )

    def test_create_with_embedded_record(self):
        """Test that embedded records get one column per field and converters pick the column type."""
        assert create_table_stmt(reflect(Store)).sql == (
            "CREATE TABLE Store (storeID INTEGER PRIMARY KEY, name TEXT, location_street TEXT, location_city TEXT, "
            "location_zip_code TEXT, opened TEXT, rating REAL, active INTEGER);"
        )

    def test_create_enum_column(self):
        """Test that enums are stored in integer columns."""
        assert create_table_stmt(reflect(Book)).sql == (
            "CREATE TABLE BOOK_TBL (bookId INTEGER PRIMARY KEY, bookTitle TEXT, bookAuthor TEXT, "
            "bookYear INTEGER, bookCategory INTEGER);"
        )

    def test_drop(self):
        """Test that dropping a missing table is not an error."""
        assert drop_table_stmt(reflect(Person)).sql == "DROP TABLE IF EXISTS Person;"
