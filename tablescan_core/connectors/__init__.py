"""Connector implementations for partitioned table scans."""

from tablescan_core.connectors.base import (
    ColumnInfo,
    ConnectorResult,
    MetadataConnector,
    ScanConnector,
    TableConnector,
)
from tablescan_core.connectors.duckdb_connector import DuckDBConnector, parse_index_columns

__all__ = [
    "ColumnInfo",
    "ConnectorResult",
    "DuckDBConnector",
    "MetadataConnector",
    "ScanConnector",
    "TableConnector",
    "parse_index_columns",
]
