from __future__ import annotations

import logging
from pathlib import Path

import duckdb
import pandas as pd
import pytest

from tablescan_core.connectors import ColumnInfo, ConnectorResult
from tablescan_core.errors import ConfigError, ConnectorUnavailableError, MalformedResponseError
from tablescan_core.filters import EqualTo, GreaterThan
from tablescan_core.models import Partition, PartitioningSpec, TableRef
from tablescan_core.relation import TableScanRelation
from tablescan_core.settings import ScanOptions
from tablescan_core.testing import RecordingConnector

COLUMNS = [ColumnInfo("id", "BIGINT"), ColumnInfo("name", "VARCHAR")]


def _options(**overrides) -> ScanOptions:
    values = {
        "database": "warehouse.duckdb",
        "table": TableRef("main", "orders"),
        "partitioning": PartitioningSpec("id", 0, 100, 4),
        "max_workers": 2,
        "default_size_in_bytes": 1024,
    }
    values.update(overrides)
    return ScanOptions(**values)


def test_estimation_failure_falls_back_to_defaults(caplog) -> None:
    caplog.set_level(logging.ERROR)
    connector = RecordingConnector(
        columns=COLUMNS,
        stats=ConnectorResult.failure(ConnectorUnavailableError("connection refused")),
    )

    relation = TableScanRelation.from_options(_options(), connector)

    assert relation.row_count is None
    assert relation.size_in_bytes == 1024
    messages = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert any(
        "relation.stats_failed" in m and "error_type=ConnectorUnavailableError" in m
        for m in messages
    )


def test_unreachable_duckdb_does_not_break_construction(tmp_path: Path) -> None:
    options = _options(database=str(tmp_path / "missing-dir" / "w.duckdb"))

    relation = TableScanRelation.from_options(options)

    assert relation.row_count is None
    assert relation.size_in_bytes == options.default_size_in_bytes
    assert relation.indexes() == set()


def test_mistyped_database_path_is_reported_and_not_created(tmp_path: Path, caplog) -> None:
    caplog.set_level(logging.ERROR)
    path = tmp_path / "typo.duckdb"

    relation = TableScanRelation.from_options(_options(database=str(path)))

    assert relation.row_count is None
    assert relation.indexes() == set()
    assert not path.exists()
    messages = [r.getMessage() for r in caplog.records]
    assert any(
        "relation.stats_failed" in m and "error_type=ConnectorUnavailableError" in m
        for m in messages
    )
    assert any("relation.indexes_failed" in m for m in messages)


@pytest.mark.parametrize(
    "stats,expected_rows,expected_size",
    [
        ((10, 800), 10, 800),
        ((10, None), 10, 1024),
        ((None, None), None, 1024),
    ],
)
def test_estimation_success(stats, expected_rows, expected_size) -> None:
    connector = RecordingConnector(columns=COLUMNS, stats=ConnectorResult.success(stats))

    relation = TableScanRelation([Partition(None, 0)], _options(), connector)

    assert relation.row_count == expected_rows
    assert relation.size_in_bytes == expected_size


def test_indexes_degrade_to_empty_set(caplog) -> None:
    caplog.set_level(logging.ERROR)
    connector = RecordingConnector(
        columns=COLUMNS,
        indexed=ConnectorResult.failure(MalformedResponseError("unexpected row")),
    )
    relation = TableScanRelation([Partition(None, 0)], _options(), connector)

    assert relation.indexes() == set()
    assert any("relation.indexes_failed" in r.getMessage() for r in caplog.records)


def test_indexes_pass_through() -> None:
    connector = RecordingConnector(
        columns=COLUMNS, indexed=ConnectorResult.success({"id"})
    )
    relation = TableScanRelation([Partition(None, 0)], _options(), connector)

    assert relation.indexes() == {"id"}


def test_from_options_plans_partitions(caplog) -> None:
    caplog.set_level(logging.INFO)
    connector = RecordingConnector(columns=COLUMNS)

    relation = TableScanRelation.from_options(_options(), connector)

    assert [p.index for p in relation.parts] == [0, 1, 2, 3]
    assert relation.parts[0].predicate == "id < 25 or id is null"
    assert str(relation) == "TableScanRelation(main.orders) [numPartitions=4]"
    assert any(
        "partitioning.planned" in r.getMessage() and "num_partitions=4" in r.getMessage()
        for r in caplog.records
    )


def test_unpartitioned_options_plan_single_partition() -> None:
    connector = RecordingConnector(columns=COLUMNS)

    relation = TableScanRelation.from_options(_options(partitioning=None), connector)

    assert relation.parts == (Partition(None, 0),)


def test_str_does_not_leak_database_location() -> None:
    connector = RecordingConnector(columns=COLUMNS)
    relation = TableScanRelation.from_options(
        _options(database="/secret/path/warehouse.duckdb"), connector
    )
    assert "secret" not in str(relation)


def test_build_scan_unions_partition_frames() -> None:
    connector = RecordingConnector(
        columns=COLUMNS,
        frames={
            0: pd.DataFrame({"id": [1, None], "name": ["a", "null"]}),
            3: pd.DataFrame({"id": [80], "name": ["z"]}),
        },
    )
    relation = TableScanRelation.from_options(_options(), connector)
    filters = [GreaterThan("id", 0)]

    frame = relation.build_scan(["id", "name"], filters)

    assert sorted(frame["name"].tolist()) == ["a", "null", "z"]
    scan_op = [op for op in connector.ops if op.name == "scan"][0]
    _, required, passed_filters, partitions, max_workers = scan_op.args
    assert required == ("id", "name")
    assert passed_filters == tuple(filters)
    assert len(partitions) == 4
    assert max_workers == 2


def test_build_scan_with_no_partitions_returns_empty_frame() -> None:
    connector = RecordingConnector(columns=COLUMNS)
    relation = TableScanRelation([], _options(), connector)

    frame = relation.build_scan(["id"])

    assert list(frame.columns) == ["id"]
    assert frame.empty


def test_build_scan_rejects_unknown_columns() -> None:
    relation = TableScanRelation.from_options(_options(), RecordingConnector(columns=COLUMNS))

    with pytest.raises(ConfigError, match="nope"):
        relation.build_scan(["id", "nope"])


def test_schema_is_resolved_once() -> None:
    connector = RecordingConnector(columns=COLUMNS)
    relation = TableScanRelation.from_options(_options(), connector)

    relation.build_scan(["id"])
    relation.build_scan(["name"])

    assert connector.op_names().count("resolve_schema") == 1


def test_construction_does_not_resolve_schema() -> None:
    connector = RecordingConnector()

    relation = TableScanRelation.from_options(_options(), connector)

    assert "resolve_schema" not in connector.op_names()
    assert relation.row_count is None


def test_unhandled_filters() -> None:
    relation = TableScanRelation.from_options(_options(), RecordingConnector(columns=COLUMNS))
    unsupported = EqualTo("name", object())

    assert relation.unhandled_filters([EqualTo("id", 1), unsupported]) == [unsupported]


@pytest.mark.parametrize("overwrite", [True, False])
def test_insert_delegates_write_mode(overwrite: bool) -> None:
    connector = RecordingConnector(columns=COLUMNS)
    relation = TableScanRelation.from_options(_options(), connector)
    rows = pd.DataFrame({"id": [1], "name": ["a"]})

    relation.insert(rows, overwrite=overwrite)

    assert connector.written[0][1] is overwrite
    assert connector.ops[-1].args == (TableRef("main", "orders"), overwrite)


def test_end_to_end_partitioned_scan_over_duckdb(tmp_path: Path) -> None:
    database = tmp_path / "w.duckdb"
    connection = duckdb.connect(str(database))
    try:
        connection.execute("CREATE TABLE orders (id BIGINT, name VARCHAR)")
        connection.execute("INSERT INTO orders SELECT range, concat('n', range) FROM range(250)")
        connection.execute(
            "INSERT INTO orders VALUES (NULL, 'null'), (-5, 'below'), (999, 'above')"
        )
    finally:
        connection.close()

    relation = TableScanRelation.from_options(
        _options(database=str(database), partitioning=PartitioningSpec("id", 0, 200, 7))
    )
    frame = relation.build_scan(["id", "name"])

    assert len(relation.parts) == 7
    assert len(frame) == 253
    assert frame["name"].is_unique
    assert relation.column_names == ["id", "name"]

    relation.insert(frame.head(3), overwrite=True)
    assert len(relation.build_scan(["id"])) == 3
