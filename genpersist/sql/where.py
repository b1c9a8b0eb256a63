##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
A small expression language for WHERE clauses.

Expressions are immutable trees built from field references, comparisons and
logical combinators. They are bound only to field *names*; the names are checked
against an entity's [`TypeInfo`][mapping.type_info.TypeInfo] when the expression
is compiled (see [`where_compiler`][sql.where_compiler]), so expressions can be
built before any entity type has been reflected.

Both a functional and an operator style are supported:

    and_(ge("age", 18), like("name", "A%"))
    (field("age") >= 18) & field("name").like("A%")

Note that `&`, `|` and `~` bind tighter than comparisons, so comparisons have to
be parenthesized when combining them with operators. Modifiers wrap a complete
expression and always render in the order WHERE, ORDER BY, LIMIT/OFFSET:

    limit(order_by(gt("age", 30), desc("age"), "name"), 10)
"""

import re
from dataclasses import dataclass
from typing import Any, Sequence, Tuple, Union

from genpersist.common.enums import SortOrder


_FUNCTION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")

EQ = "="
NE = "<>"
GT = ">"
LT = "<"
GE = ">="
LE = "<="
LIKE = "LIKE"


class WhereClauseExpr:
    """Base class of every node of a where clause expression."""

    def __and__(self, other: "WhereClauseExpr") -> "And":
        return and_(self, other)

    def __or__(self, other: "WhereClauseExpr") -> "Or":
        return or_(self, other)

    def __invert__(self) -> "Not":
        return not_(self)

    def order_by(self, *keys) -> "OrderBy":
        """Wrap this expression with an ORDER BY modifier."""
        return order_by(self, *keys)

    def limit(self, count: int) -> "Limit":
        """Wrap this expression with a LIMIT modifier."""
        return limit(self, count)

    def limit_offset(self, count: int, offset: int) -> "LimitOffset":
        """Wrap this expression with a LIMIT ... OFFSET modifier."""
        return limit_offset(self, count, offset)


class FieldRef:
    """
    Base class of things that can appear on either side of a comparison:
    plain fields and server-side functions applied to a field.
    """

    @property
    def field_name(self) -> str:
        """The name of the entity field this reference is bound to."""
        raise NotImplementedError("Subclasses of `FieldRef` must implement a `field_name` property.")

    def __eq__(self, other: Any) -> "Compare":  # type: ignore[override]
        return eq(self, other)

    def __ne__(self, other: Any) -> "Compare":  # type: ignore[override]
        return ne(self, other)

    def __gt__(self, other: Any) -> "Compare":
        return gt(self, other)

    def __lt__(self, other: Any) -> "Compare":
        return lt(self, other)

    def __ge__(self, other: Any) -> "Compare":
        return ge(self, other)

    def __le__(self, other: Any) -> "Compare":
        return le(self, other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, repr(self)))

    def like(self, pattern: str) -> "Compare":
        """`field LIKE pattern`"""
        return like(self, pattern)

    def contains(self, text: str) -> "Compare":
        """`field LIKE '%text%'`"""
        return contains(self, text)

    def between(self, low: Any, high: Any) -> "Between":
        """`field BETWEEN low AND high`, inclusive on both ends."""
        return between(self, low, high)

    def in_(self, values: Sequence[Any]) -> "In":
        """`field IN (values...)`"""
        return in_(self, values)

    def is_null(self) -> "IsNull":
        """`field IS NULL`"""
        return is_null(self)


@dataclass(frozen=True, eq=False)
class Field(FieldRef):
    """A reference to an entity field by name."""

    name: str

    @property
    def field_name(self) -> str:
        return self.name


@dataclass(frozen=True, eq=False)
class SqlFunction(FieldRef):
    """A server-side function applied to a field, e.g. `upper(name)`."""

    function: str
    field: Field

    @property
    def field_name(self) -> str:
        return self.field.name


@dataclass(frozen=True, eq=False)
class OrderKey:
    """One ORDER BY key: a field reference and a direction."""

    ref: FieldRef
    order: SortOrder = SortOrder.ASC


@dataclass(frozen=True, eq=False)
class Compare(WhereClauseExpr):
    """`left op right`, where `right` is a literal or another field reference."""

    left: FieldRef
    op: str
    right: Any


@dataclass(frozen=True, eq=False)
class Between(WhereClauseExpr):
    """`ref BETWEEN low AND high`"""

    ref: FieldRef
    low: Any
    high: Any


@dataclass(frozen=True, eq=False)
class In(WhereClauseExpr):
    """`ref IN (values...)`; an empty tuple matches nothing."""

    ref: FieldRef
    values: Tuple[Any, ...]


@dataclass(frozen=True, eq=False)
class IsNull(WhereClauseExpr):
    """`ref IS NULL`"""

    ref: FieldRef


@dataclass(frozen=True, eq=False)
class Not(WhereClauseExpr):
    """`NOT (expr)`"""

    expr: WhereClauseExpr


@dataclass(frozen=True, eq=False)
class And(WhereClauseExpr):
    """`left AND right`"""

    left: WhereClauseExpr
    right: WhereClauseExpr


@dataclass(frozen=True, eq=False)
class Or(WhereClauseExpr):
    """`left OR right`"""

    left: WhereClauseExpr
    right: WhereClauseExpr


@dataclass(frozen=True, eq=False)
class AllEntries(WhereClauseExpr):
    """Matches every row; compiles to no WHERE clause at all."""


@dataclass(frozen=True, eq=False)
class ById(WhereClauseExpr):
    """Matches the row whose identifier column equals `value`."""

    value: Any


@dataclass(frozen=True, eq=False)
class OrderBy(WhereClauseExpr):
    """Modifier appending `ORDER BY keys...` to `expr`."""

    expr: WhereClauseExpr
    keys: Tuple[OrderKey, ...]


@dataclass(frozen=True, eq=False)
class Limit(WhereClauseExpr):
    """Modifier appending `LIMIT count` to `expr`."""

    expr: WhereClauseExpr
    count: int


@dataclass(frozen=True, eq=False)
class LimitOffset(WhereClauseExpr):
    """Modifier appending `LIMIT count OFFSET offset` to `expr`."""

    expr: WhereClauseExpr
    count: int
    offset: int


MODIFIERS = (OrderBy, Limit, LimitOffset)

FieldLike = Union[str, FieldRef]

ALL_ENTRIES = AllEntries()


def _as_ref(value: FieldLike) -> FieldRef:
    if isinstance(value, FieldRef):
        return value
    if isinstance(value, str) and value:
        return Field(value)
    raise TypeError(f"Expected a field name or field reference, got {value!r}")


def _as_expr(value: Any, ctx: str) -> WhereClauseExpr:
    if isinstance(value, WhereClauseExpr):
        return value
    raise TypeError(f"{ctx} requires where clause expressions, got {value!r}")


def _check_count(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def field(name: str) -> Field:
    """
    Reference an entity field by name. The name is validated at compile time.

    Args:
        name: The attribute name of the field.

    Returns:
        A field reference.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("field() requires a non-empty field name")
    return Field(name)


def sql_fun(function: str, ref: FieldLike) -> SqlFunction:
    """
    Apply a server-side SQL function to a field, e.g. `sql_fun("upper", "name")`.

    Args:
        function: The SQL function name.
        ref: The field (or field name) the function is applied to.

    Returns:
        A function reference usable wherever a field reference is.
    """
    if not isinstance(function, str) or not _FUNCTION_NAME.match(function):
        raise ValueError(f"Invalid SQL function name {function!r}")
    inner = _as_ref(ref)
    if not isinstance(inner, Field):
        raise TypeError("sql_fun() can only be applied to a plain field")
    return SqlFunction(function, inner)


def eq(ref: FieldLike, value: Any) -> Compare:
    return Compare(_as_ref(ref), EQ, value)


def ne(ref: FieldLike, value: Any) -> Compare:
    return Compare(_as_ref(ref), NE, value)


def gt(ref: FieldLike, value: Any) -> Compare:
    return Compare(_as_ref(ref), GT, value)


def lt(ref: FieldLike, value: Any) -> Compare:
    return Compare(_as_ref(ref), LT, value)


def ge(ref: FieldLike, value: Any) -> Compare:
    return Compare(_as_ref(ref), GE, value)


def le(ref: FieldLike, value: Any) -> Compare:
    return Compare(_as_ref(ref), LE, value)


def like(ref: FieldLike, pattern: str) -> Compare:
    if not isinstance(pattern, str):
        raise TypeError(f"like() requires a string pattern, got {pattern!r}")
    return Compare(_as_ref(ref), LIKE, pattern)


def contains(ref: FieldLike, text: str) -> Compare:
    """`ref LIKE '%text%'`"""
    if not isinstance(text, str):
        raise TypeError(f"contains() requires a string, got {text!r}")
    return Compare(_as_ref(ref), LIKE, f"%{text}%")


def between(ref: FieldLike, low: Any, high: Any) -> Between:
    """Inclusive range check on both bounds."""
    return Between(_as_ref(ref), low, high)


def in_(ref: FieldLike, values: Sequence[Any]) -> In:
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple, set, frozenset)):
        raise TypeError(f"in_() requires a sequence of values, got {values!r}")
    return In(_as_ref(ref), tuple(values))


def is_null(ref: FieldLike) -> IsNull:
    return IsNull(_as_ref(ref))


def not_(expr: WhereClauseExpr) -> Not:
    return Not(_as_expr(expr, "not_()"))


def and_(*exprs: WhereClauseExpr) -> WhereClauseExpr:
    """Combine expressions with AND, folding left: `and_(a, b, c)` is `(a AND b) AND c`."""
    if not exprs:
        raise ValueError("and_() requires at least one expression")
    nodes = [_as_expr(expr, "and_()") for expr in exprs]
    result = nodes[0]
    for node in nodes[1:]:
        result = And(result, node)
    return result


def or_(*exprs: WhereClauseExpr) -> WhereClauseExpr:
    """Combine expressions with OR, folding left."""
    if not exprs:
        raise ValueError("or_() requires at least one expression")
    nodes = [_as_expr(expr, "or_()") for expr in exprs]
    result = nodes[0]
    for node in nodes[1:]:
        result = Or(result, node)
    return result


def all_entries() -> AllEntries:
    return ALL_ENTRIES


def by_id(value: Any) -> ById:
    return ById(value)


def asc(ref: FieldLike) -> OrderKey:
    return OrderKey(_as_ref(ref), SortOrder.ASC)


def desc(ref: FieldLike) -> OrderKey:
    return OrderKey(_as_ref(ref), SortOrder.DESC)


def order_by(expr: WhereClauseExpr, *keys: Union[FieldLike, OrderKey]) -> OrderBy:
    """
    Sort the rows matched by `expr`. Keys are applied left to right; plain
    field names or references sort ascending.

    Args:
        expr: The expression to wrap.
        keys: `asc(...)`/`desc(...)` keys, field names or field references.

    Returns:
        The wrapped expression.
    """
    if not keys:
        raise ValueError("order_by() requires at least one key")
    order_keys = tuple(key if isinstance(key, OrderKey) else asc(key) for key in keys)
    return OrderBy(_as_expr(expr, "order_by()"), order_keys)


def limit(expr: WhereClauseExpr, count: int) -> Limit:
    return Limit(_as_expr(expr, "limit()"), _check_count(count, "limit"))


def limit_offset(expr: WhereClauseExpr, count: int, offset: int) -> LimitOffset:
    return LimitOffset(_as_expr(expr, "limit_offset()"), _check_count(count, "limit"), _check_count(offset, "offset"))
