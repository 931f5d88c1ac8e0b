"""Contracts between the scan facade and an external SQL connector.

Metadata lookups return a :class:`ConnectorResult` instead of raising, so the
facade decides how each kind of failure degrades. Scans and writes raise
:class:`~tablescan_core.errors.ConnectorError` subclasses.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

import pandas as pd

from tablescan_core.errors import ConnectorError
from tablescan_core.models import Partition, TableRef

T = TypeVar("T")


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    data_type: str
    nullable: bool = True


@dataclass(frozen=True)
class ConnectorResult(Generic[T]):
    """Either a value or the connector error that prevented computing it."""

    value: T | None = None
    error: ConnectorError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> ConnectorResult[T]:
        return cls(value=value, error=None)

    @classmethod
    def failure(cls, error: ConnectorError) -> ConnectorResult[T]:
        return cls(value=None, error=error)


class MetadataConnector(Protocol):
    """Out-of-band metadata about a table."""

    def resolve_schema(self, table: TableRef) -> list[ColumnInfo]:
        """Return the table's columns in ordinal order (raises on failure)."""

    def estimate_row_count_and_size(
        self, table: TableRef
    ) -> ConnectorResult[tuple[int | None, int | None]]:
        """Return ``(table_rows, data_length)``; ``None`` entries mean unknown."""

    def list_indexed_columns(self, table: TableRef) -> ConnectorResult[set[str]]:
        """Return the names of columns covered by an index or key."""


class ScanConnector(Protocol):
    """Partitioned reads and bulk writes."""

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
        """Yield one frame per partition, in completion order."""

    def write(self, rows: pd.DataFrame, table: TableRef, *, overwrite: bool) -> None:
        """Write ``rows`` to ``table``, replacing its contents when ``overwrite``."""


class TableConnector(MetadataConnector, ScanConnector, Protocol):
    """A connector serving both metadata and scans for one database."""
