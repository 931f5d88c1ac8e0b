from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from functools import cached_property
from typing import Any

import pandas as pd

from tablescan_core.connectors.base import ColumnInfo, TableConnector
from tablescan_core.connectors.duckdb_connector import DuckDBConnector
from tablescan_core.errors import ConfigError
from tablescan_core.filters import unhandled_filters
from tablescan_core.models import Partition, TableStats
from tablescan_core.observability import error_log_fields, log_event
from tablescan_core.planning import column_partition, describe_partitions
from tablescan_core.settings import ScanOptions

_logger = logging.getLogger(__name__)


class TableScanRelation:
    """A table in an external SQL source, scanned as independent partitions.

    Size and index statistics are advisory: when the source cannot provide
    them the relation falls back to defaults and stays usable for scans and
    inserts.
    """

    def __init__(
        self,
        parts: Sequence[Partition],
        options: ScanOptions,
        connector: TableConnector | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.parts: tuple[Partition, ...] = tuple(parts)
        self.options = options
        self.connector: TableConnector = connector or DuckDBConnector(options.database)
        self._logger = logger or _logger
        self.stats = self._estimate_stats()

    @classmethod
    def from_options(
        cls,
        options: ScanOptions,
        connector: TableConnector | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> TableScanRelation:
        """Plan partitions from ``options.partitioning`` and build the relation."""

        parts = column_partition(options.partitioning, logger=logger)
        log_event(
            logger or _logger,
            "partitioning.planned",
            table=str(options.table),
            column=options.partitioning.column if options.partitioning else None,
            num_partitions=len(parts),
        )
        return cls(parts, options, connector, logger=logger)

    @cached_property
    def schema(self) -> list[ColumnInfo]:
        return self.connector.resolve_schema(self.options.table)

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.schema]

    @property
    def row_count(self) -> int | None:
        return self.stats.table_rows

    @property
    def size_in_bytes(self) -> int:
        return self.stats.data_length

    def _estimate_stats(self) -> TableStats:
        default = TableStats(table_rows=None, data_length=self.options.default_size_in_bytes)
        result = self.connector.estimate_row_count_and_size(self.options.table)
        if not result.ok:
            log_event(
                self._logger,
                "relation.stats_failed",
                level=logging.ERROR,
                table=str(self.options.table),
                **error_log_fields(result.error),
            )
            return default

        table_rows, data_length = result.value
        return TableStats(
            table_rows=table_rows,
            data_length=default.data_length if data_length is None else data_length,
        )

    def indexes(self) -> set[str]:
        """Indexed columns of the table, or an empty set when unknown."""

        result = self.connector.list_indexed_columns(self.options.table)
        if not result.ok:
            log_event(
                self._logger,
                "relation.indexes_failed",
                level=logging.ERROR,
                table=str(self.options.table),
                **error_log_fields(result.error),
            )
            return set()
        return set(result.value)

    def unhandled_filters(self, filters: Sequence[Any]) -> list[Any]:
        """Filters the source cannot evaluate; callers apply them after the scan."""

        return unhandled_filters(filters)

    def _check_columns(self, required_columns: Sequence[str]) -> None:
        known = set(self.column_names)
        missing = [name for name in required_columns if name not in known]
        if missing:
            raise ConfigError(f"Unknown columns for {self.options.table}: {', '.join(missing)}")

    def iter_scan(
        self, required_columns: Sequence[str], filters: Sequence[Any] = ()
    ) -> Iterator[pd.DataFrame]:
        """Yield one frame per partition as each partition scan completes."""

        self._check_columns(required_columns)
        return self.connector.scan(
            self.options.table,
            self.schema,
            list(required_columns),
            list(filters),
            self.parts,
            max_workers=self.options.max_workers,
        )

    def build_scan(
        self, required_columns: Sequence[str], filters: Sequence[Any] = ()
    ) -> pd.DataFrame:
        """Scan every partition and union the results (no overall row order)."""

        frames = list(self.iter_scan(required_columns, filters))
        if not frames:
            return pd.DataFrame(columns=list(required_columns))
        return pd.concat(frames, ignore_index=True)

    def insert(self, data: pd.DataFrame, overwrite: bool) -> None:
        self.connector.write(data, self.options.table, overwrite=overwrite)

    def __str__(self) -> str:
        # Only the table name: the database location may carry credentials.
        return f"TableScanRelation({self.options.table}){describe_partitions(self.parts)}"
