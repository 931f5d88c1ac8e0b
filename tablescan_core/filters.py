"""Pushdown filters and their translation into DuckDB SQL.

A filter that cannot be translated is reported back to the caller as
"unhandled" and must be applied after the scan.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Union

from tablescan_core.sql import quote_ident, quote_literal


@dataclass(frozen=True)
class EqualTo:
    attribute: str
    value: Any


@dataclass(frozen=True)
class EqualNullSafe:
    attribute: str
    value: Any


@dataclass(frozen=True)
class GreaterThan:
    attribute: str
    value: Any


@dataclass(frozen=True)
class GreaterThanOrEqual:
    attribute: str
    value: Any


@dataclass(frozen=True)
class LessThan:
    attribute: str
    value: Any


@dataclass(frozen=True)
class LessThanOrEqual:
    attribute: str
    value: Any


@dataclass(frozen=True)
class In:
    attribute: str
    values: tuple[Any, ...]


@dataclass(frozen=True)
class IsNull:
    attribute: str


@dataclass(frozen=True)
class IsNotNull:
    attribute: str


@dataclass(frozen=True)
class StringStartsWith:
    attribute: str
    value: str


@dataclass(frozen=True)
class StringEndsWith:
    attribute: str
    value: str


@dataclass(frozen=True)
class StringContains:
    attribute: str
    value: str


@dataclass(frozen=True)
class And:
    left: Filter
    right: Filter


@dataclass(frozen=True)
class Or:
    left: Filter
    right: Filter


@dataclass(frozen=True)
class Not:
    child: Filter


Filter = Union[
    EqualTo,
    EqualNullSafe,
    GreaterThan,
    GreaterThanOrEqual,
    LessThan,
    LessThanOrEqual,
    In,
    IsNull,
    IsNotNull,
    StringStartsWith,
    StringEndsWith,
    StringContains,
    And,
    Or,
    Not,
]

_COMPARISONS: dict[type, str] = {
    EqualTo: "=",
    GreaterThan: ">",
    GreaterThanOrEqual: ">=",
    LessThan: "<",
    LessThanOrEqual: "<=",
}


def compile_value(value: Any) -> str | None:
    """Render a Python value as a SQL literal, or ``None`` when unsupported."""

    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        return str(value)
    if isinstance(value, str):
        return quote_literal(value)
    # datetime is a date subclass, check it first.
    if isinstance(value, datetime):
        return f"TIMESTAMP {quote_literal(value.isoformat(sep=' '))}"
    if isinstance(value, date):
        return f"DATE {quote_literal(value.isoformat())}"
    return None


def _like_pattern(value: Any, prefix: str, suffix: str) -> str | None:
    if not isinstance(value, str):
        return None
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"{quote_literal(prefix + escaped + suffix)} ESCAPE '\\'"


def compile_filter(filter_: Any) -> str | None:
    """Translate a filter into a SQL boolean expression.

    Returns ``None`` when the filter, or any part of it, cannot be translated.
    """

    operator = _COMPARISONS.get(type(filter_))
    if operator is not None:
        literal = compile_value(filter_.value)
        if literal is None:
            return None
        return f"{quote_ident(filter_.attribute)} {operator} {literal}"

    if isinstance(filter_, EqualNullSafe):
        literal = compile_value(filter_.value)
        if literal is None:
            return None
        return f"{quote_ident(filter_.attribute)} IS NOT DISTINCT FROM {literal}"
    if isinstance(filter_, IsNull):
        return f"{quote_ident(filter_.attribute)} IS NULL"
    if isinstance(filter_, IsNotNull):
        return f"{quote_ident(filter_.attribute)} IS NOT NULL"
    if isinstance(filter_, In):
        if not filter_.values:
            column = quote_ident(filter_.attribute)
            return f"CASE WHEN {column} IS NULL THEN NULL ELSE FALSE END"
        literals = [compile_value(value) for value in filter_.values]
        if any(literal is None for literal in literals):
            return None
        return f"{quote_ident(filter_.attribute)} IN ({', '.join(literals)})"

    if isinstance(filter_, (StringStartsWith, StringEndsWith, StringContains)):
        prefix = "" if isinstance(filter_, StringStartsWith) else "%"
        suffix = "" if isinstance(filter_, StringEndsWith) else "%"
        pattern = _like_pattern(filter_.value, prefix, suffix)
        if pattern is None:
            return None
        return f"{quote_ident(filter_.attribute)} LIKE {pattern}"

    if isinstance(filter_, (And, Or)):
        left = compile_filter(filter_.left)
        right = compile_filter(filter_.right)
        if left is None or right is None:
            return None
        joiner = "AND" if isinstance(filter_, And) else "OR"
        return f"({left}) {joiner} ({right})"
    if isinstance(filter_, Not):
        child = compile_filter(filter_.child)
        if child is None:
            return None
        return f"(NOT ({child}))"

    return None


def compile_filters(filters: Iterable[Any]) -> list[str]:
    """Compile the translatable filters, silently skipping the rest."""

    compiled = (compile_filter(filter_) for filter_ in filters)
    return [sql for sql in compiled if sql is not None]


def unhandled_filters(filters: Sequence[Any]) -> list[Any]:
    """Return the filters the SQL compiler cannot translate, in input order."""

    return [filter_ for filter_ in filters if compile_filter(filter_) is None]
