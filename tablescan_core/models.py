from __future__ import annotations

from dataclasses import dataclass

from tablescan_core.errors import InvalidRangeError
from tablescan_core.sql import quote_ident

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

DEFAULT_SCHEMA = "main"


def _check_int(name: str, value: object, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRangeError(f"PartitioningSpec.{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise InvalidRangeError(
            f"PartitioningSpec.{name} is out of range [{low}, {high}]: {value}"
        )


@dataclass(frozen=True)
class PartitioningSpec:
    """Instructions on how to split a table scan among workers.

    ``lower_bound`` and ``upper_bound`` are advisory: wrong values make the
    partitioning uneven but never drop or duplicate rows. The ordering of the
    bounds is checked by the planner, not here.
    """

    column: str
    lower_bound: int
    upper_bound: int
    num_partitions: int

    def __post_init__(self) -> None:
        if not (self.column or "").strip():
            raise InvalidRangeError("PartitioningSpec.column is required")
        _check_int("lower_bound", self.lower_bound, INT64_MIN, INT64_MAX)
        _check_int("upper_bound", self.upper_bound, INT64_MIN, INT64_MAX)
        _check_int("num_partitions", self.num_partitions, INT32_MIN, INT32_MAX)


@dataclass(frozen=True)
class Partition:
    """One slice of a scan: an optional WHERE fragment and its ordinal."""

    predicate: str | None
    index: int


@dataclass(frozen=True)
class TableStats:
    table_rows: int | None
    data_length: int


@dataclass(frozen=True)
class TableRef:
    """A ``schema.table`` identifier."""

    schema: str
    table: str

    def __post_init__(self) -> None:
        if not (self.schema or "").strip():
            raise ValueError("TableRef.schema is required")
        if not (self.table or "").strip():
            raise ValueError("TableRef.table is required")

    @classmethod
    def from_string(cls, value: str, default_schema: str = DEFAULT_SCHEMA) -> TableRef:
        text = (value or "").strip()
        if not text:
            raise ValueError("table name is required")
        if "." in text:
            schema, table = text.split(".", 1)
            return cls(schema=schema.strip(), table=table.strip())
        return cls(schema=default_schema, table=text)

    @property
    def qualified_name(self) -> str:
        return f"{quote_ident(self.schema)}.{quote_ident(self.table)}"

    def __str__(self) -> str:
        return f"{self.schema}.{self.table}"
