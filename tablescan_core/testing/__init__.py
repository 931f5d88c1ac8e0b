"""Test doubles for tablescan_core."""

from tablescan_core.testing.recording_connector import ConnectorOp, RecordingConnector

__all__ = ["ConnectorOp", "RecordingConnector"]
