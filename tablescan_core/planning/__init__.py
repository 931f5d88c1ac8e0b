"""Planning: translate a partitioning specification into scan partitions."""

from tablescan_core.planning.partitioner import (
    column_partition,
    describe_partitions,
    effective_partition_count,
)

__all__ = [
    "column_partition",
    "describe_partitions",
    "effective_partition_count",
]
