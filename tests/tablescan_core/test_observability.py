from __future__ import annotations

import logging

from tablescan_core.errors import ConnectorUnavailableError
from tablescan_core.observability import error_log_fields, log_event

logger = logging.getLogger("tests.tablescan_core.observability")


def test_log_event_appends_key_value_fields(caplog) -> None:
    caplog.set_level(logging.INFO)

    log_event(logger, "connector.write", table="main.t", rows=3, overwrite=False)

    assert caplog.records[-1].getMessage() == (
        "connector.write table=main.t rows=3 overwrite=False"
    )


def test_log_event_drops_empty_fields(caplog) -> None:
    caplog.set_level(logging.INFO)

    log_event(logger, "partitioning.planned", column=None, table=" ", num_partitions=1)
    log_event(logger, "bare.event")

    messages = [r.getMessage() for r in caplog.records]
    assert messages == ["partitioning.planned num_partitions=1", "bare.event"]


def test_log_event_respects_level(caplog) -> None:
    caplog.set_level(logging.WARNING)

    log_event(logger, "quiet.event")
    log_event(
        logger,
        "relation.stats_failed",
        level=logging.ERROR,
        **error_log_fields(ConnectorUnavailableError("connection refused")),
    )

    assert len(caplog.records) == 1
    record = caplog.records[0]
    assert record.levelno == logging.ERROR
    assert record.getMessage() == (
        "relation.stats_failed error_type=ConnectorUnavailableError error=connection refused"
    )
