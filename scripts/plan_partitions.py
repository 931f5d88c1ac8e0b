from __future__ import annotations

import argparse
import logging
from pathlib import Path

from tablescan_core.errors import TableScanError
from tablescan_core.models import PartitioningSpec, TableRef
from tablescan_core.planning import column_partition
from tablescan_core.relation import TableScanRelation
from tablescan_core.settings import ScanOptions, load_scan_options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Plan (and optionally run) a partitioned scan.")
    parser.add_argument("--config", type=Path, default=None)

    parser.add_argument("--database", type=str, default=None)
    parser.add_argument("--table", type=str, default=None)
    parser.add_argument("--column", type=str, default=None)
    parser.add_argument("--lower-bound", type=int, default=None)
    parser.add_argument("--upper-bound", type=int, default=None)
    parser.add_argument("--num-partitions", type=int, default=None)
    parser.add_argument("--max-workers", type=int, default=4)

    parser.add_argument("--scan", action="store_true", default=False)
    return parser


def _build_options(parser: argparse.ArgumentParser, args: argparse.Namespace) -> ScanOptions:
    if args.config:
        return load_scan_options(args.config)

    if not args.table:
        parser.error("--table is required without --config")
    if args.scan and not args.database:
        parser.error("--database is required with --scan")
    range_args = (args.column, args.lower_bound, args.upper_bound, args.num_partitions)
    if any(value is not None for value in range_args) and any(
        value is None for value in range_args
    ):
        parser.error(
            "--column, --lower-bound, --upper-bound and --num-partitions go together"
        )

    partitioning = None
    if args.column is not None:
        partitioning = PartitioningSpec(
            column=args.column,
            lower_bound=args.lower_bound,
            upper_bound=args.upper_bound,
            num_partitions=args.num_partitions,
        )
    return ScanOptions(
        database=args.database or ":memory:",
        table=TableRef.from_string(args.table),
        partitioning=partitioning,
        max_workers=args.max_workers,
    )


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = _build_options(parser, args)
        if args.scan:
            relation = TableScanRelation.from_options(options)
            frame = relation.build_scan(relation.column_names)
            print(f"{relation}\trows={len(frame)}")
            return 0

        for partition in column_partition(options.partitioning):
            print(f"{partition.index}\t{partition.predicate or ''}")
    except (TableScanError, ValueError) as exc:
        parser.error(str(exc))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
