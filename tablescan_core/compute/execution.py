"""DuckDB connection helpers.

Each metadata lookup and each partition scan runs on its own short-lived
connection, opened and closed through :func:`temporary_connection`.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import duckdb


def normalize_duckdb_path(path_or_uri: str | Path) -> str:
    """Normalize a database path/URI for DuckDB.

    Accepts plain filesystem paths, ``file://`` URIs, ``jdbc:duckdb:`` or
    ``duckdb:`` prefixed paths and ``:memory:``.
    """

    value = str(path_or_uri or "").strip()
    if not value:
        raise ValueError("database path is required")
    if value.startswith("jdbc:"):
        value = value[len("jdbc:") :]
    if value.startswith("duckdb:"):
        value = value[len("duckdb:") :]
        if value.startswith("//"):
            value = value[2:]
    if value.startswith("file://"):
        parsed = urlparse(value)
        raw_path = unquote(parsed.path or "")
        local_path = url2pathname(raw_path)
        if local_path.startswith("/") and len(local_path) >= 3 and local_path[2] == ":":
            # Windows drive letter: /C:/path -> C:/path
            local_path = local_path[1:]
        return local_path
    return value


def create_temporary_connection(database: str | Path | None = None) -> duckdb.DuckDBPyConnection:
    """Create an isolated DuckDB connection.

    Args:
        database: Optional database path. Defaults to an in-memory connection.

    Returns:
        A connected ``DuckDBPyConnection`` instance.
    """

    db_path = ":memory:" if database is None else normalize_duckdb_path(database)
    return duckdb.connect(database=db_path, read_only=False)


@contextmanager
def temporary_connection(
    database: str | Path | None = None,
) -> Iterator[duckdb.DuckDBPyConnection]:
    """Context manager for an isolated DuckDB connection that always closes."""

    connection = create_temporary_connection(database=database)
    try:
        yield connection
    finally:
        connection.close()


def execute_sql(
    connection: duckdb.DuckDBPyConnection, sql: str, parameters: list[object] | None = None
) -> duckdb.DuckDBPyConnection:
    """Execute a SQL statement and return the connection holding its result."""

    if not sql.strip():
        raise ValueError("SQL must not be empty")
    if parameters is None:
        return connection.execute(sql)
    return connection.execute(sql, parameters)
