"""SQL text helpers shared by the planner, filter compiler and connectors."""

from __future__ import annotations

from collections.abc import Sequence


def quote_ident(identifier: str) -> str:
    """Quote an identifier for DuckDB SQL."""

    if identifier == "":
        raise ValueError("identifier must not be empty")
    return '"' + identifier.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Quote a string literal, doubling embedded single quotes."""

    return "'" + value.replace("'", "''") + "'"


def build_select_sql(
    *,
    relation: str,
    columns: Sequence[str],
    where: Sequence[str] = (),
) -> str:
    """Build ``SELECT ... FROM ... [WHERE ...]`` for one partition scan.

    ``relation`` must already be quoted. Each ``where`` fragment is wrapped in
    parentheses and the fragments are joined with ``AND``.
    """

    if not relation.strip():
        raise ValueError("relation is required")

    select_list = ", ".join(quote_ident(column) for column in columns) if columns else "1"
    sql = f"SELECT {select_list} FROM {relation}"
    clauses = [f"({fragment})" for fragment in where if fragment and fragment.strip()]
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    return sql
