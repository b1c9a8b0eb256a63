##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Compilation of [`where`][sql.where] expressions into SQL fragments.

`compile_where` validates every referenced field against an entity's
`TypeInfo`, encodes literals through the codec using the referenced field's
type, and renders the suffix of a SELECT statement in the fixed order WHERE,
ORDER BY, LIMIT/OFFSET. Literal values are never interpolated into the SQL
text; they are returned as an ordered parameter list.
"""

import logging
from typing import Any, List, NamedTuple, Optional, Tuple

from genpersist.common.enums import TypeKind
from genpersist.exceptions import MappingError
from genpersist.mapping.codec import DbValue, encode
from genpersist.mapping.type_info import FieldDescriptor, TypeInfo
from genpersist.sql.dialects import SQLITE, Dialect
from genpersist.sql.where import (
    EQ,
    LIKE,
    MODIFIERS,
    NE,
    AllEntries,
    And,
    Between,
    ById,
    Compare,
    FieldRef,
    In,
    IsNull,
    Limit,
    LimitOffset,
    Not,
    Or,
    OrderBy,
    OrderKey,
    SqlFunction,
    WhereClauseExpr,
)


LOG = logging.getLogger(__name__)


class CompiledWhere(NamedTuple):
    """The SQL suffix of a query and the parameters bound to its placeholders."""

    sql: str
    params: List[DbValue]


def compile_where(expr: WhereClauseExpr, type_info: TypeInfo, dialect: Dialect = SQLITE, start: int = 1) -> CompiledWhere:
    """
    Compile a where clause expression for an entity type.

    Args:
        expr: The expression to compile.
        type_info: The metadata of the entity type the expression is applied to.
        dialect: The SQL dialect to render placeholders and LIMIT/OFFSET in.
        start: 1-based position of the first placeholder, for statements that
            already bind parameters before the where clause.

    Returns:
        The rendered fragment (empty for `all_entries()`) and its parameters.

    Raises:
        MappingError: If a field is unknown, a literal does not fit its field,
            or a modifier is nested inside a logical combinator or repeated.
    """
    base, order_keys, limits = peel_modifiers(expr)
    compiler = _Compiler(type_info, dialect, start)

    parts = []
    if not isinstance(base, AllEntries):
        parts.append(f"WHERE {compiler.visit(base)}")
    if order_keys:
        parts.append(f"ORDER BY {', '.join(compiler.order_key(key) for key in order_keys)}")
    elif limits is not None and dialect.limit_requires_order:
        # MSSQL only pages an ordered result
        parts.append("ORDER BY (SELECT NULL)")
    if limits is not None:
        count, offset = limits
        clause, params = dialect.limit_clause(count, offset, compiler.position)
        compiler.params.extend(params)
        compiler.position += len(params)
        parts.append(clause)

    compiled = CompiledWhere(" ".join(parts), compiler.params)
    LOG.debug(f"Compiled where clause for {type_info.type_name}: '{compiled.sql}' with params {compiled.params}")
    return compiled


def peel_modifiers(
    expr: WhereClauseExpr,
) -> Tuple[WhereClauseExpr, Optional[Tuple[OrderKey, ...]], Optional[Tuple[int, Optional[int]]]]:
    """
    Strip the modifier wrappers off an expression.

    Returns:
        The base expression, the ORDER BY keys (or None) and the `(limit, offset)` pair (or None).
    """
    order_keys = None
    limits = None
    node = expr
    while isinstance(node, MODIFIERS):
        if isinstance(node, OrderBy):
            if order_keys is not None:
                raise MappingError("An expression can only be ordered once")
            order_keys = node.keys
        else:
            if limits is not None:
                raise MappingError("An expression can only be limited once")
            limits = (node.count, node.offset if isinstance(node, LimitOffset) else None)
        node = node.expr
    if not isinstance(node, WhereClauseExpr):
        raise MappingError(f"Not a where clause expression: {node!r}")
    return node, order_keys, limits


class _Compiler:
    """Renders the boolean part of an expression, collecting parameters in placeholder order."""

    def __init__(self, type_info: TypeInfo, dialect: Dialect, start: int):
        self.type_info = type_info
        self.dialect = dialect
        self.position = start
        self.params: List[DbValue] = []

    def bind(self, value: DbValue) -> str:
        placeholder = self.dialect.placeholder(self.position)
        self.position += 1
        self.params.append(value)
        return placeholder

    def descriptor(self, ref: FieldRef) -> FieldDescriptor:
        descriptor = self.type_info.field_named(ref.field_name)
        if descriptor.type_tag.kind is TypeKind.EMBEDDED:
            raise MappingError(f"Embedded field '{ref.field_name}' of {self.type_info.type_name} cannot be compared")
        return descriptor

    def column(self, ref: FieldRef) -> str:
        column = self.descriptor(ref).column_name
        if isinstance(ref, SqlFunction):
            return f"{ref.function}({column})"
        return column

    def literal(self, ref: FieldRef, value: Any) -> str:
        """Bind a literal compared against `ref`, encoded with the field's type."""
        if isinstance(ref, SqlFunction):
            # the function result type is unknown, so only plain database values are accepted
            if value is not None and not isinstance(value, (int, float, str, bool, bytes)):
                raise MappingError(f"Cannot compare {ref.function}({ref.field_name}) with {value!r}")
            return self.bind(value)
        return self.bind(encode(value, self.descriptor(ref).type_tag))

    def operand(self, ref: FieldRef, value: Any) -> str:
        if isinstance(value, FieldRef):
            return self.column(value)
        return self.literal(ref, value)

    def order_key(self, key: OrderKey) -> str:
        return f"{self.column(key.ref)} {key.order.value}"

    def wrap(self, expr: WhereClauseExpr) -> str:
        rendered = self.visit(expr)
        return f"({rendered})" if isinstance(expr, (And, Or)) else rendered

    def visit(self, expr: WhereClauseExpr) -> str:  # pylint: disable=too-many-return-statements
        if isinstance(expr, Compare):
            column = self.column(expr.left)
            if expr.right is None and expr.op in (EQ, NE):
                return f"{column} IS NULL" if expr.op == EQ else f"{column} IS NOT NULL"
            if expr.op == LIKE:
                return f"{column} LIKE {self.bind(expr.right)}"
            return f"{column} {expr.op} {self.operand(expr.left, expr.right)}"
        if isinstance(expr, Between):
            column = self.column(expr.ref)
            low = self.operand(expr.ref, expr.low)
            high = self.operand(expr.ref, expr.high)
            return f"{column} BETWEEN {low} AND {high}"
        if isinstance(expr, In):
            column = self.column(expr.ref)
            if not expr.values:
                return "1 = 0"
            placeholders = ", ".join(self.operand(expr.ref, value) for value in expr.values)
            return f"{column} IN ({placeholders})"
        if isinstance(expr, IsNull):
            return f"{self.column(expr.ref)} IS NULL"
        if isinstance(expr, Not):
            return f"NOT ({self.visit(expr.expr)})"
        if isinstance(expr, And):
            return f"{self.wrap(expr.left)} AND {self.wrap(expr.right)}"
        if isinstance(expr, Or):
            return f"{self.wrap(expr.left)} OR {self.wrap(expr.right)}"
        if isinstance(expr, ById):
            id_field = self.type_info.id_field
            if id_field is None:
                raise MappingError(f"Type {self.type_info.type_name} has no identifier field")
            return f"{id_field.column_name} = {self.bind(encode(expr.value, id_field.type_tag))}"
        if isinstance(expr, AllEntries):
            return "1 = 1"
        if isinstance(expr, (OrderBy, Limit, LimitOffset)):
            raise MappingError("ORDER BY and LIMIT modifiers must wrap the whole expression")
        raise MappingError(f"Unsupported where clause expression {expr!r}")
