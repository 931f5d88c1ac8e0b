"""Stable public imports for `tablescan_core`.

Prefer importing from these symbols when wiring a scan into an executor.
Lower-level utilities should be imported from their submodules explicitly.
"""

from tablescan_core.connectors import (
    ColumnInfo,
    ConnectorResult,
    DuckDBConnector,
    MetadataConnector,
    ScanConnector,
    TableConnector,
)
from tablescan_core.errors import (
    ConfigError,
    ConnectorError,
    ConnectorQueryError,
    ConnectorUnavailableError,
    InvalidRangeError,
    MalformedResponseError,
    TableScanError,
)
from tablescan_core.models import Partition, PartitioningSpec, TableRef, TableStats
from tablescan_core.planning import column_partition
from tablescan_core.relation import TableScanRelation
from tablescan_core.settings import (
    ScanOptions,
    load_scan_options,
    parse_scan_options,
    resolve_scan_options,
)

__all__ = [
    "ColumnInfo",
    "ConfigError",
    "ConnectorError",
    "ConnectorQueryError",
    "ConnectorResult",
    "ConnectorUnavailableError",
    "DuckDBConnector",
    "InvalidRangeError",
    "MalformedResponseError",
    "MetadataConnector",
    "Partition",
    "PartitioningSpec",
    "ScanConnector",
    "ScanOptions",
    "TableConnector",
    "TableRef",
    "TableScanError",
    "TableScanRelation",
    "TableStats",
    "column_partition",
    "load_scan_options",
    "parse_scan_options",
    "resolve_scan_options",
]
