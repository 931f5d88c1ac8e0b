"""Column range partitioning.

Given a partitioning schematic (an integral column, a number of partitions and
advisory bounds on the column's value), generate WHERE fragments so that every
row of the table appears in exactly one partition. Bounds that do not match the
data only make the partitions uneven; no row is ever dropped or duplicated.

Example (``id`` in ``[0, 100]``, 4 partitions, stride 25)::

    0: id < 25 or id is null
    1: id >= 25 AND id < 50
    2: id >= 50 AND id < 75
    3: id >= 75

NULL values are routed to the first partition.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from tablescan_core.errors import InvalidRangeError
from tablescan_core.models import INT64_MAX, Partition, PartitioningSpec
from tablescan_core.observability import log_event

_logger = logging.getLogger(__name__)


def _trunc_div(value: int, divisor: int) -> int:
    # Truncates toward zero, unlike Python's floor division.
    quotient = abs(value) // abs(divisor)
    return quotient if (value >= 0) == (divisor > 0) else -quotient


def effective_partition_count(
    spec: PartitioningSpec, *, logger: logging.Logger | None = None
) -> int:
    """Cap ``num_partitions`` at the width of the value span.

    Assumes a non-degenerate spec with ``lower_bound < upper_bound``.
    """

    span = spec.upper_bound - spec.lower_bound
    if span >= spec.num_partitions:
        return spec.num_partitions

    log_event(
        logger or _logger,
        "partitioning.reduced",
        level=logging.WARNING,
        reason="requested partitions exceed the bound span",
        column=spec.column,
        requested=spec.num_partitions,
        updated=span,
        lower_bound=spec.lower_bound,
        upper_bound=spec.upper_bound,
    )
    return span


def column_partition(
    spec: PartitioningSpec | None, *, logger: logging.Logger | None = None
) -> list[Partition]:
    """Split ``spec``'s value range into mutually exclusive WHERE fragments.

    Args:
        spec: Partitioning instructions, or ``None`` for an unpartitioned scan.
        logger: Receives the warning emitted when the partition count is reduced.

    Returns:
        Partitions ordered by index. Degenerate specs yield a single partition
        without a predicate.

    Raises:
        InvalidRangeError: ``lower_bound`` is larger than ``upper_bound``.
    """

    if spec is None or spec.num_partitions <= 1 or spec.lower_bound == spec.upper_bound:
        return [Partition(predicate=None, index=0)]

    lower_bound = spec.lower_bound
    upper_bound = spec.upper_bound
    if lower_bound > upper_bound:
        raise InvalidRangeError(
            "Operation not allowed: the lower bound of partitioning column is larger than "
            f"the upper bound. Lower bound: {lower_bound}; Upper bound: {upper_bound}"
        )

    num_partitions = effective_partition_count(spec, logger=logger)
    # Divide each bound before subtracting so the stride fits in 64 bits.
    stride = _trunc_div(upper_bound, num_partitions) - _trunc_div(lower_bound, num_partitions)

    column = spec.column
    current_value = lower_bound
    partitions: list[Partition] = []
    for index in range(num_partitions):
        lower_clause = f"{column} >= {current_value}" if index != 0 else None
        # The stride is never negative, so only INT64_MAX can be overshot.
        current_value = min(current_value + stride, INT64_MAX)
        upper_clause = f"{column} < {current_value}" if index != num_partitions - 1 else None

        if upper_clause is None:
            predicate = lower_clause
        elif lower_clause is None:
            predicate = f"{upper_clause} or {column} is null"
        else:
            predicate = f"{lower_clause} AND {upper_clause}"
        partitions.append(Partition(predicate=predicate, index=index))
    return partitions


def describe_partitions(partitions: Sequence[Partition]) -> str:
    """Suffix used when printing a relation, e.g. `` [numPartitions=4]``."""

    return f" [numPartitions={len(partitions)}]" if partitions else ""
