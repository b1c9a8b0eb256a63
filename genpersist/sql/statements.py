##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Generation of parameterized SQL statements from reflected entity metadata.

Every function here is pure: it takes a [`TypeInfo`][mapping.type_info.TypeInfo]
(and a [`Dialect`][sql.dialects.Dialect]) and returns SQL text along with the
columns bound to its placeholders, left to right. Values are never part of the
SQL text.

Example (SQLite):

    >>> insert_stmt(reflect(Person)).sql
    'INSERT INTO Person (personID, name, age, address) VALUES (?, ?, ?, ?);'
"""

import logging
from typing import List, NamedTuple, Tuple

from genpersist.exceptions import MappingError
from genpersist.mapping.codec import DbValue
from genpersist.mapping.type_info import TypeInfo
from genpersist.sql.dialects import SQLITE, Dialect
from genpersist.sql.where import ALL_ENTRIES, WhereClauseExpr
from genpersist.sql.where_compiler import compile_where, peel_modifiers


LOG = logging.getLogger(__name__)


class Statement(NamedTuple):
    """
    A SQL statement and the columns whose values fill its placeholders.

    Attributes:
        sql: The SQL text.
        slots: Column names in placeholder order.
    """

    sql: str
    slots: List[str]


def _placeholders(dialect: Dialect, count: int, start: int = 1) -> List[str]:
    return [dialect.placeholder(position) for position in range(start, start + count)]


def _non_id_columns(type_info: TypeInfo) -> List[str]:
    id_column = type_info.id_column
    return [column for column in type_info.column_names if column != id_column]


def _finish(sql: str, suffix: str = "") -> str:
    return f"{sql} {suffix};" if suffix else f"{sql};"


def insert_columns(type_info: TypeInfo) -> List[str]:
    """
    The columns an INSERT binds, which excludes the identifier of autoincrement types.

    Args:
        type_info: The metadata of the entity type.

    Returns:
        The bound columns, in row order.
    """
    if type_info.auto_increment:
        return _non_id_columns(type_info)
    return type_info.column_names


def insert_stmt(type_info: TypeInfo, dialect: Dialect = SQLITE) -> Statement:
    """
    `INSERT INTO t (c1, c2) VALUES (?, ?);`

    Args:
        type_info: The metadata of the entity type.
        dialect: The SQL dialect to generate for.

    Returns:
        The insert statement.
    """
    columns = insert_columns(type_info)
    values = ", ".join(_placeholders(dialect, len(columns)))
    sql = f"INSERT INTO {type_info.table_name} ({', '.join(columns)}) VALUES ({values});"
    return Statement(sql, columns)


def insert_returning_stmt(type_info: TypeInfo, dialect: Dialect = SQLITE) -> Statement:
    """
    `INSERT INTO t (c2, c3) VALUES (?, ?) RETURNING idcol;`

    Args:
        type_info: The metadata of the entity type.
        dialect: The SQL dialect to generate for.

    Returns:
        The insert statement returning the generated identifier.

    Raises:
        MappingError: If `dialect` has no RETURNING support.
    """
    if not dialect.supports_returning:
        raise MappingError(f"The {dialect.kind.value} dialect does not support INSERT ... RETURNING")
    statement = insert_stmt(type_info, dialect)
    sql = f"{statement.sql[:-1]} RETURNING {type_info.id_column};"
    return Statement(sql, statement.slots)


def update_stmt(type_info: TypeInfo, dialect: Dialect = SQLITE) -> Statement:
    """
    `UPDATE t SET c2 = ?, c3 = ? WHERE idcol = ?;`

    Args:
        type_info: The metadata of the entity type.
        dialect: The SQL dialect to generate for.

    Returns:
        The update statement; its last slot is the identifier column.

    Raises:
        MappingError: If the type has no columns besides its identifier.
    """
    columns = _non_id_columns(type_info)
    if not columns:
        raise MappingError(f"Type {type_info.type_name} has no columns to update")
    placeholders = _placeholders(dialect, len(columns) + 1)
    assignments = ", ".join(f"{column} = {placeholder}" for column, placeholder in zip(columns, placeholders))
    sql = f"UPDATE {type_info.table_name} SET {assignments} WHERE {type_info.id_column} = {placeholders[-1]};"
    return Statement(sql, columns + [type_info.id_column])


def select_by_id_stmt(type_info: TypeInfo, dialect: Dialect = SQLITE) -> Statement:
    """
    `SELECT c1, c2 FROM t WHERE idcol = ?;`

    Args:
        type_info: The metadata of the entity type.
        dialect: The SQL dialect to generate for.

    Returns:
        The select statement.
    """
    columns = ", ".join(type_info.column_names)
    sql = f"SELECT {columns} FROM {type_info.table_name} WHERE {type_info.id_column} = {dialect.placeholder(1)};"
    return Statement(sql, [type_info.id_column])


def select_all_stmt(type_info: TypeInfo) -> Statement:
    """`SELECT c1, c2 FROM t;`"""
    return Statement(f"SELECT {', '.join(type_info.column_names)} FROM {type_info.table_name};", [])


def select_stmt(
    type_info: TypeInfo, expr: WhereClauseExpr = ALL_ENTRIES, dialect: Dialect = SQLITE
) -> Tuple[str, List[DbValue]]:
    """
    `SELECT c1, c2 FROM t WHERE ...;` for a where clause expression.

    Args:
        type_info: The metadata of the entity type.
        expr: The where clause expression.
        dialect: The SQL dialect to generate for.

    Returns:
        The SQL text and the encoded parameters of the where clause.
    """
    where = compile_where(expr, type_info, dialect)
    sql = _finish(f"SELECT {', '.join(type_info.column_names)} FROM {type_info.table_name}", where.sql)
    return sql, where.params


def count_stmt(
    type_info: TypeInfo, expr: WhereClauseExpr = ALL_ENTRIES, dialect: Dialect = SQLITE
) -> Tuple[str, List[DbValue]]:
    """
    `SELECT COUNT(*) FROM t WHERE ...;` for a where clause expression.

    Ordering does not change a count and is dropped. A limited expression
    counts the rows of the limited SELECT, wrapped as a derived table.

    Args:
        type_info: The metadata of the entity type.
        expr: The where clause expression.
        dialect: The SQL dialect to generate for.

    Returns:
        The SQL text and the encoded parameters of the where clause.
    """
    base, _, limits = peel_modifiers(expr)
    if limits is None:
        where = compile_where(base, type_info, dialect)
        return _finish(f"SELECT COUNT(*) FROM {type_info.table_name}", where.sql), where.params

    # Oracle rejects AS before a table alias
    inner, params = select_stmt(type_info, expr, dialect)
    return f"SELECT COUNT(*) FROM ({inner.rstrip(';')}) counted;", params


def delete_stmt(type_info: TypeInfo, dialect: Dialect = SQLITE) -> Statement:
    """`DELETE FROM t WHERE idcol = ?;`"""
    sql = f"DELETE FROM {type_info.table_name} WHERE {type_info.id_column} = {dialect.placeholder(1)};"
    return Statement(sql, [type_info.id_column])


def create_table_stmt(type_info: TypeInfo, dialect: Dialect = SQLITE) -> Statement:
    """
    `CREATE TABLE t (idcol INTEGER PRIMARY KEY, c2 TEXT, ...);`

    Column types come from the dialect. The identifier column is the primary
    key, declared with the dialect's autoincrement syntax for autoincrement types.

    Args:
        type_info: The metadata of the entity type.
        dialect: The SQL dialect to generate for.

    Returns:
        The create statement.
    """
    definitions = []
    for descriptor in type_info.fields:
        if type_info.id_field is not None and descriptor.field_name == type_info.id_field.field_name:
            if type_info.auto_increment:
                definitions.append(dialect.auto_increment_column.format(column=descriptor.column_name))
            else:
                column_type = dialect.column_type(descriptor.type_tag)
                definitions.append(f"{descriptor.column_name} {column_type} PRIMARY KEY")
            continue
        definitions.extend(f"{column} {column_type}" for column, column_type in _column_types(descriptor, dialect))
    return Statement(f"CREATE TABLE {type_info.table_name} ({', '.join(definitions)});", [])


def _column_types(descriptor, dialect: Dialect) -> List[Tuple[str, str]]:
    """Pair every (flattened) column of a field with its dialect column type."""
    tag = descriptor.type_tag
    if tag.embedded is None:
        return [(descriptor.column_name, dialect.column_type(tag))]
    pairs = []
    for sub in tag.embedded.fields:
        pairs.extend((f"{descriptor.column_name}_{column}", column_type) for column, column_type in _column_types(sub, dialect))
    return pairs


def drop_table_stmt(type_info: TypeInfo) -> Statement:
    """`DROP TABLE IF EXISTS t;`"""
    return Statement(f"DROP TABLE IF EXISTS {type_info.table_name};", [])
