##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
SQL dialects for the relational backends Genpersist can generate SQL for.

A `Dialect` captures the handful of places where backends disagree: the
placeholder syntax, column types, autoincrement syntax, how a generated key is
read back after an insert, and how LIMIT/OFFSET is spelled. Table and column
names are passed through unmodified; quoting is left to the configured names.
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from genpersist.common.enums import DatabaseKind, TypeKind
from genpersist.exceptions import DatabaseNotSupportedError
from genpersist.mapping.codec import storage_kind
from genpersist.mapping.type_info import TypeTag


QMARK = "qmark"
FORMAT = "format"
DOLLAR = "dollar"
NUMERIC = "numeric"

LIMIT_OFFSET = "limit_offset"
OFFSET_FETCH = "offset_fetch"


@dataclass(frozen=True)
class Dialect:
    """
    The backend specific parts of SQL generation.

    Attributes:
        kind: The database kind this dialect belongs to.
        column_types: Column type per storage kind.
        auto_increment_column: Template for an autoincrement identifier column
            definition; `{column}` is replaced with the column name.
        placeholder_style: One of `qmark` (`?`), `format` (`%s`), `dollar` (`$1`) or `numeric` (`:1`).
        supports_returning: True if `INSERT ... RETURNING` is available.
        last_insert_id_query: Follow-up query returning the last generated key, if any.
        limit_style: `limit_offset` (`LIMIT ? OFFSET ?`) or `offset_fetch` (`OFFSET ? ROWS FETCH NEXT ? ROWS ONLY`).
        limit_requires_order: True if OFFSET/FETCH is only accepted after an ORDER BY.
    """

    kind: DatabaseKind
    column_types: Mapping[TypeKind, str]
    auto_increment_column: str
    placeholder_style: str = QMARK
    supports_returning: bool = False
    last_insert_id_query: Optional[str] = None
    limit_style: str = LIMIT_OFFSET
    limit_requires_order: bool = False

    def placeholder(self, position: int) -> str:
        """
        The placeholder for the parameter at 1-based `position`.

        Args:
            position: Position of the parameter in the statement, counting from 1.

        Returns:
            The placeholder text.
        """
        if self.placeholder_style == FORMAT:
            return "%s"
        if self.placeholder_style == DOLLAR:
            return f"${position}"
        if self.placeholder_style == NUMERIC:
            return f":{position}"
        return "?"

    def column_type(self, tag: TypeTag) -> str:
        """
        The column type used to store a scalar field.

        Args:
            tag: The tag of the field.

        Returns:
            The backend column type.
        """
        return self.column_types[storage_kind(tag)]

    def limit_clause(self, limit: int, offset: Optional[int], position: int) -> Tuple[str, List[int]]:
        """
        Build the LIMIT/OFFSET suffix of a query with bound values.

        Args:
            limit: Maximum number of rows.
            offset: Number of rows to skip, or None.
            position: 1-based position of the first placeholder of the clause.

        Returns:
            The clause text and its parameters, in placeholder order.
        """
        if self.limit_style == OFFSET_FETCH:
            first, second = self.placeholder(position), self.placeholder(position + 1)
            return f"OFFSET {first} ROWS FETCH NEXT {second} ROWS ONLY", [offset or 0, limit]
        if offset is None:
            return f"LIMIT {self.placeholder(position)}", [limit]
        return f"LIMIT {self.placeholder(position)} OFFSET {self.placeholder(position + 1)}", [limit, offset]


SQLITE = Dialect(
    kind=DatabaseKind.SQLITE,
    column_types={
        TypeKind.INT: "INTEGER",
        TypeKind.FLOAT: "REAL",
        TypeKind.TEXT: "TEXT",
        TypeKind.BOOL: "INTEGER",
        TypeKind.BLOB: "BLOB",
    },
    auto_increment_column="{column} INTEGER PRIMARY KEY AUTOINCREMENT",
    supports_returning=True,
    last_insert_id_query="SELECT last_insert_rowid();",
)

POSTGRES = Dialect(
    kind=DatabaseKind.POSTGRES,
    column_types={
        TypeKind.INT: "bigint",
        TypeKind.FLOAT: "double precision",
        TypeKind.TEXT: "varchar",
        TypeKind.BOOL: "boolean",
        TypeKind.BLOB: "bytea",
    },
    auto_increment_column="{column} bigserial PRIMARY KEY",
    placeholder_style=DOLLAR,
    supports_returning=True,
    last_insert_id_query="SELECT lastval();",
)

MYSQL = Dialect(
    kind=DatabaseKind.MYSQL,
    column_types={
        TypeKind.INT: "BIGINT",
        TypeKind.FLOAT: "DOUBLE",
        TypeKind.TEXT: "TEXT",
        TypeKind.BOOL: "BOOLEAN",
        TypeKind.BLOB: "BLOB",
    },
    auto_increment_column="{column} BIGINT AUTO_INCREMENT PRIMARY KEY",
    placeholder_style=FORMAT,
    last_insert_id_query="SELECT LAST_INSERT_ID();",
)

ORACLE = Dialect(
    kind=DatabaseKind.ORACLE,
    column_types={
        TypeKind.INT: "NUMBER(19)",
        TypeKind.FLOAT: "BINARY_DOUBLE",
        TypeKind.TEXT: "VARCHAR2(4000)",
        TypeKind.BOOL: "NUMBER(1)",
        TypeKind.BLOB: "BLOB",
    },
    auto_increment_column="{column} NUMBER(19) GENERATED ALWAYS AS IDENTITY PRIMARY KEY",
    placeholder_style=NUMERIC,
    limit_style=OFFSET_FETCH,
)

MSSQL = Dialect(
    kind=DatabaseKind.MSSQL,
    column_types={
        TypeKind.INT: "BIGINT",
        TypeKind.FLOAT: "FLOAT",
        TypeKind.TEXT: "NVARCHAR(MAX)",
        TypeKind.BOOL: "BIT",
        TypeKind.BLOB: "VARBINARY(MAX)",
    },
    auto_increment_column="{column} BIGINT IDENTITY(1,1) PRIMARY KEY",
    last_insert_id_query="SELECT SCOPE_IDENTITY();",
    limit_style=OFFSET_FETCH,
    limit_requires_order=True,
)

DIALECTS = {dialect.kind: dialect for dialect in (SQLITE, POSTGRES, MYSQL, ORACLE, MSSQL)}


def get_dialect(kind: DatabaseKind) -> Dialect:
    """
    Look up the dialect of a database kind.

    Args:
        kind: The database kind.

    Returns:
        The matching `Dialect`.

    Raises:
        DatabaseNotSupportedError: If no dialect exists for `kind`.
    """
    try:
        return DIALECTS[kind]
    except KeyError as exc:
        raise DatabaseNotSupportedError(f"No SQL dialect for database kind '{kind}'") from exc
