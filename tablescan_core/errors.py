from __future__ import annotations


class TableScanError(Exception):
    """Base error for tablescan_core."""


class InvalidRangeError(TableScanError, ValueError):
    """Raised when a partitioning specification violates its preconditions."""


class ConfigError(TableScanError, ValueError):
    """Raised when scan options cannot be parsed."""


class ConnectorError(TableScanError):
    """Base error for failures reported by an external connector."""


class ConnectorUnavailableError(ConnectorError):
    """Raised when the connector cannot open a connection to the source."""


class ConnectorQueryError(ConnectorError):
    """Raised when a query sent to the source fails."""


class MalformedResponseError(ConnectorError):
    """Raised when a query succeeds but its response has an unexpected shape."""
