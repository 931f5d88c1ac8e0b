"""Scan options (env-first overrides, YAML or mapping input).

Keys follow the usual JDBC-source option names so that existing configs carry
over unchanged::

    url: warehouse.duckdb
    dbtable: main.orders
    partitionColumn: order_id
    lowerBound: 0
    upperBound: 1000000
    numPartitions: 8
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from tablescan_core.errors import ConfigError, InvalidRangeError
from tablescan_core.models import PartitioningSpec, TableRef

DEFAULT_MAX_WORKERS = 4
# Matches the "unknown size" estimate: a relation whose size is not known must
# never look small enough to broadcast.
DEFAULT_SIZE_IN_BYTES = 2**63 - 1

_PARTITION_KEYS = ("partitionColumn", "lowerBound", "upperBound", "numPartitions")


@dataclass(frozen=True)
class ScanOptions:
    database: str
    table: TableRef
    partitioning: PartitioningSpec | None = None
    max_workers: int = DEFAULT_MAX_WORKERS
    default_size_in_bytes: int = DEFAULT_SIZE_IN_BYTES

    def __post_init__(self) -> None:
        if not (self.database or "").strip():
            raise ConfigError("ScanOptions.database is required")
        if self.max_workers < 1:
            raise ConfigError(f"ScanOptions.max_workers must be >= 1, got {self.max_workers}")
        if self.default_size_in_bytes < 0:
            raise ConfigError("ScanOptions.default_size_in_bytes must not be negative")


def _first(options: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = options.get(key)
        if value is not None and str(value).strip() != "":
            return value
    return None


def _parse_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _parse_partitioning(options: Mapping[str, Any]) -> PartitioningSpec | None:
    present = [key for key in _PARTITION_KEYS if _first(options, key) is not None]
    range_keys = [key for key in present if key != "numPartitions"]
    if not range_keys:
        return None
    if len(present) != len(_PARTITION_KEYS):
        missing = [key for key in _PARTITION_KEYS if key not in present]
        raise ConfigError(
            "Options 'partitionColumn', 'lowerBound', 'upperBound' and 'numPartitions' "
            f"must all be specified together; missing: {', '.join(missing)}"
        )
    try:
        return PartitioningSpec(
            column=str(options["partitionColumn"]).strip(),
            lower_bound=_parse_int("lowerBound", options["lowerBound"]),
            upper_bound=_parse_int("upperBound", options["upperBound"]),
            num_partitions=_parse_int("numPartitions", options["numPartitions"]),
        )
    except InvalidRangeError as exc:
        raise ConfigError(str(exc)) from exc


def parse_scan_options(options: Mapping[str, Any]) -> ScanOptions:
    """Build :class:`ScanOptions` from a flat option mapping."""

    database = _first(options, "url", "database")
    if database is None:
        raise ConfigError("Option 'url' (or 'database') is required")
    table = _first(options, "dbtable", "table")
    if table is None:
        raise ConfigError("Option 'dbtable' (or 'table') is required")

    try:
        table_ref = TableRef.from_string(str(table))
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    max_workers = DEFAULT_MAX_WORKERS
    raw_workers = _first(options, "maxWorkers")
    if raw_workers is not None:
        max_workers = _parse_int("maxWorkers", raw_workers)
    elif _first(options, "numPartitions") is not None:
        max_workers = max(1, _parse_int("numPartitions", options["numPartitions"]))

    default_size = DEFAULT_SIZE_IN_BYTES
    raw_size = _first(options, "defaultSizeInBytes")
    if raw_size is not None:
        default_size = _parse_int("defaultSizeInBytes", raw_size)

    return ScanOptions(
        database=str(database).strip(),
        table=table_ref,
        partitioning=_parse_partitioning(options),
        max_workers=max_workers,
        default_size_in_bytes=default_size,
    )


def resolve_scan_options(
    options: Mapping[str, Any], env: Mapping[str, str] | None = None
) -> ScanOptions:
    """Apply ``TABLESCAN_*`` environment overrides, then parse."""

    env = os.environ if env is None else env
    merged = dict(options)
    database = (env.get("TABLESCAN_DATABASE") or "").strip()
    if database:
        merged["url"] = database
    max_workers = (env.get("TABLESCAN_MAX_WORKERS") or "").strip()
    if max_workers:
        merged["maxWorkers"] = max_workers
    return parse_scan_options(merged)


def load_scan_options(path: str | Path, env: Mapping[str, str] | None = None) -> ScanOptions:
    """Load scan options from a YAML file."""

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Scan config not found: {config_path}")
    with open(config_path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid scan config: {config_path}")
    return resolve_scan_options(data, env=env)
