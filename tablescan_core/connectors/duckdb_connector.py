from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any

import duckdb
import pandas as pd

from tablescan_core.compute import execute_sql, normalize_duckdb_path, temporary_connection
from tablescan_core.connectors.base import ColumnInfo, ConnectorResult
from tablescan_core.errors import (
    ConnectorError,
    ConnectorQueryError,
    ConnectorUnavailableError,
    MalformedResponseError,
)
from tablescan_core.filters import compile_filters
from tablescan_core.models import Partition, TableRef
from tablescan_core.observability import log_event
from tablescan_core.sql import build_select_sql

logger = logging.getLogger(__name__)

# Rough per-value width used to turn a row estimate into a byte estimate.
ESTIMATED_VALUE_BYTES = 8

_INDEX_COLUMNS_RE = re.compile(
    r"\bON\s+[^(]+\((?P<columns>.*)\)\s*;?\s*$", re.IGNORECASE | re.DOTALL
)

_SCHEMA_SQL = """
SELECT column_name, data_type, is_nullable
FROM information_schema.columns
WHERE table_schema = ? AND table_name = ?
ORDER BY ordinal_position
""".strip()

_STATS_SQL = """
SELECT estimated_size, column_count
FROM duckdb_tables()
WHERE schema_name = ? AND table_name = ?
""".strip()

_KEY_COLUMNS_SQL = """
SELECT constraint_column_names
FROM duckdb_constraints()
WHERE schema_name = ? AND table_name = ?
  AND constraint_type IN ('PRIMARY KEY', 'UNIQUE')
""".strip()

_INDEX_SQL = """
SELECT sql
FROM duckdb_indexes()
WHERE schema_name = ? AND table_name = ?
""".strip()


def _translate_error(exc: duckdb.Error, action: str) -> ConnectorError:
    if isinstance(exc, (duckdb.IOException, duckdb.ConnectionException)):
        return ConnectorUnavailableError(f"{action}: {exc}")
    return ConnectorQueryError(f"{action}: {exc}")


def parse_index_columns(index_sql: str | None) -> list[str]:
    """Extract plain column names from a ``CREATE INDEX ... ON t(a, b)`` statement.

    Expression entries (anything other than an optionally quoted identifier)
    are ignored.
    """

    if not index_sql:
        return []
    match = _INDEX_COLUMNS_RE.search(index_sql.strip())
    if not match:
        return []
    columns: list[str] = []
    for raw in match.group("columns").split(","):
        name = raw.strip()
        if len(name) >= 2 and name[0] == name[-1] == '"':
            columns.append(name[1:-1].replace('""', '"'))
        elif re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", name):
            columns.append(name)
    return columns


class DuckDBConnector:
    """Metadata and partitioned scans over a DuckDB database file."""

    def __init__(self, database: str | Path) -> None:
        self.database = database

    def _missing_database(self, action: str) -> ConnectorUnavailableError | None:
        """Error for a database file that does not exist yet, else ``None``."""

        path = normalize_duckdb_path(self.database)
        if path == ":memory:" or Path(path).exists():
            return None
        return ConnectorUnavailableError(f"{action}: database not found: {path}")

    def resolve_schema(self, table: TableRef) -> list[ColumnInfo]:
        missing = self._missing_database(f"resolve schema of {table}")
        if missing is not None:
            raise missing
        try:
            with temporary_connection(self.database) as connection:
                rows = execute_sql(connection, _SCHEMA_SQL, [table.schema, table.table]).fetchall()
        except duckdb.Error as exc:
            raise _translate_error(exc, f"resolve schema of {table}") from exc

        if not rows:
            raise ConnectorQueryError(f"Table not found: {table}")
        return [
            ColumnInfo(name=str(name), data_type=str(data_type), nullable=str(nullable) == "YES")
            for name, data_type, nullable in rows
        ]

    def estimate_row_count_and_size(
        self, table: TableRef
    ) -> ConnectorResult[tuple[int | None, int | None]]:
        missing = self._missing_database(f"estimate size of {table}")
        if missing is not None:
            return ConnectorResult.failure(missing)
        try:
            with temporary_connection(self.database) as connection:
                row = execute_sql(connection, _STATS_SQL, [table.schema, table.table]).fetchone()
        except duckdb.Error as exc:
            return ConnectorResult.failure(_translate_error(exc, f"estimate size of {table}"))

        if row is None:
            return ConnectorResult.success((None, None))
        if len(row) != 2:
            return ConnectorResult.failure(
                MalformedResponseError(f"Unexpected statistics row for {table}: {row!r}")
            )
        estimated_rows, column_count = row
        try:
            table_rows = int(estimated_rows)
            data_length = table_rows * int(column_count) * ESTIMATED_VALUE_BYTES
        except (TypeError, ValueError):
            return ConnectorResult.failure(
                MalformedResponseError(f"Unexpected statistics row for {table}: {row!r}")
            )
        return ConnectorResult.success((table_rows, data_length))

    def list_indexed_columns(self, table: TableRef) -> ConnectorResult[set[str]]:
        missing = self._missing_database(f"list indexes of {table}")
        if missing is not None:
            return ConnectorResult.failure(missing)
        params = [table.schema, table.table]
        try:
            with temporary_connection(self.database) as connection:
                key_rows = execute_sql(connection, _KEY_COLUMNS_SQL, params).fetchall()
                index_rows = execute_sql(connection, _INDEX_SQL, params).fetchall()
        except duckdb.Error as exc:
            return ConnectorResult.failure(_translate_error(exc, f"list indexes of {table}"))

        columns: set[str] = set()
        for (names,) in key_rows:
            if not isinstance(names, (list, tuple)):
                return ConnectorResult.failure(
                    MalformedResponseError(f"Unexpected constraint columns for {table}: {names!r}")
                )
            columns.update(str(name) for name in names)
        for (index_sql,) in index_rows:
            columns.update(parse_index_columns(index_sql))
        return ConnectorResult.success(columns)

    def _scan_partition(self, sql: str, partition: Partition) -> pd.DataFrame:
        try:
            with temporary_connection(self.database) as connection:
                frame = execute_sql(connection, sql).df()
        except duckdb.Error as exc:
            raise _translate_error(exc, f"scan partition {partition.index}") from exc
        log_event(
            logger,
            "connector.scan_partition",
            index=partition.index,
            predicate=partition.predicate,
            row_count=len(frame),
        )
        return frame

    def scan(
        self,
        table: TableRef,
        schema: Sequence[ColumnInfo],
        required_columns: Sequence[str],
        filters: Sequence[Any],
        partitions: Sequence[Partition],
        *,
        max_workers: int = 1,
    ) -> Iterator[pd.DataFrame]:
        known = {column.name for column in schema}
        missing = [name for name in required_columns if name not in known]
        if known and missing:
            raise ConnectorQueryError(f"Unknown columns for {table}: {missing}")

        pushed = compile_filters(filters)
        queries = [
            (
                partition,
                build_select_sql(
                    relation=table.qualified_name,
                    columns=required_columns,
                    where=[*pushed, partition.predicate or ""],
                ),
            )
            for partition in partitions
        ]
        if not queries:
            return

        workers = max(1, min(int(max_workers), len(queries)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            pending = {
                pool.submit(self._scan_partition, sql, partition) for partition, sql in queries
            }
            try:
                while pending:
                    done, pending = wait(pending, return_when=FIRST_EXCEPTION)
                    for future in done:
                        frame = future.result()
                        if not required_columns:
                            frame = frame.iloc[:, 0:0]
                        yield frame
            finally:
                for future in pending:
                    future.cancel()

    def write(self, rows: pd.DataFrame, table: TableRef, *, overwrite: bool) -> None:
        target = table.qualified_name
        try:
            with temporary_connection(self.database) as connection:
                connection.register("_tablescan_rows", rows)
                connection.begin()
                try:
                    if overwrite:
                        execute_sql(
                            connection,
                            f"CREATE OR REPLACE TABLE {target} AS SELECT * FROM _tablescan_rows",
                        )
                    else:
                        execute_sql(
                            connection,
                            f"CREATE TABLE IF NOT EXISTS {target} AS "
                            "SELECT * FROM _tablescan_rows LIMIT 0",
                        )
                        execute_sql(
                            connection, f"INSERT INTO {target} SELECT * FROM _tablescan_rows"
                        )
                    connection.commit()
                except duckdb.Error:
                    connection.rollback()
                    raise
        except duckdb.Error as exc:
            raise _translate_error(exc, f"write to {table}") from exc
        log_event(
            logger,
            "connector.write",
            table=str(table),
            mode="overwrite" if overwrite else "append",
            row_count=len(rows),
        )
