"""Compute/execution helpers (DuckDB)."""

from tablescan_core.compute.execution import (
    create_temporary_connection,
    execute_sql,
    normalize_duckdb_path,
    temporary_connection,
)

__all__ = [
    "create_temporary_connection",
    "execute_sql",
    "normalize_duckdb_path",
    "temporary_connection",
]
