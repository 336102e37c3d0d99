"""
Command line driver: load options from a properties file, drain the
generator with worker threads and print a summary.
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from .generator import YCSBGenerator, YCSBLoadGenerator, YCSBRunGenerator
from .options import ConfigError, YCSBGeneratorOptions
from .stats import OperationStatsAnalyzer
from .utils.log_file_handler import setup_run_logging
from .worker import OperationWriter, run_workload

logger = logging.getLogger("ycsbgen")


def build_generator(options: YCSBGeneratorOptions, phase: str):
    if phase == "load":
        return YCSBLoadGenerator(options, "cli")
    elif phase == "run":
        # run against a store that was loaded earlier
        return YCSBRunGenerator(options, options.record_count, "cli")
    return YCSBGenerator(options, "cli")


def print_summary(console: Console, options: YCSBGeneratorOptions, result, analyzer: OperationStatsAnalyzer):
    mix = analyzer.operation_mix()
    table = Table(show_header=True, header_style="bold magenta",
                  title=f"Operation mix ({options.request_distribution})")
    for col_name in mix.columns:
        if col_name == 'Operation':
            table.add_column(col_name, style="dim", width=12)
        else:
            table.add_column(col_name, justify="right", width=12)
    for _, row in mix.iterrows():
        table.add_row(str(row['Operation']), f"{row['Count']:,}", f"{row['Share (%)']:.2f}")
    console.print(table)

    skew = analyzer.key_skew()
    skew_table = Table(show_header=True, header_style="bold magenta", title="Key access skew")
    skew_table.add_column("Metric", style="dim")
    skew_table.add_column("Value", justify="right")
    skew_table.add_row("Keyed accesses", f"{skew['accesses']:,}")
    skew_table.add_row("Distinct keys", f"{skew['distinct_keys']:,}")
    skew_table.add_row("Hottest key share (%)", f"{skew['top_key_share'] * 100:.2f}")
    skew_table.add_row("Top 1% keys share (%)", f"{skew['top_1pct_share'] * 100:.2f}")
    skew_table.add_row("Top 10% keys share (%)", f"{skew['top_10pct_share'] * 100:.2f}")
    skew_table.add_row("Median accesses per key", f"{skew['median_accesses_per_key']:.1f}")
    skew_table.add_row("Throughput (ops/sec)", f"{result.throughput:,.0f}")
    console.print(skew_table)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate a YCSB style key-value operation stream",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('config', help="Workload properties file (name = value per line)")
    parser.add_argument('--phase', choices=['load', 'run', 'all'], default='all',
                        help="Which phase to generate")
    parser.add_argument('--threads', type=int, default=1, help="Number of worker threads")
    parser.add_argument('--output', type=str, default=None,
                        help="Write one line per operation to this file")
    parser.add_argument('--load-sleep', type=int, default=None,
                        help="Override the pause between load and run phase (seconds)")
    parser.add_argument('--log-level', type=str, default="INFO", help="Console log level")
    parser.add_argument('--log-dir', type=str, default=None, help="Also write a run log under this directory")
    parser.add_argument('--no-summary', action='store_true', help="Skip the summary tables")
    args = parser.parse_args(argv)

    log_handler = setup_run_logging(
        "ycsbgen",
        console_level=getattr(logging, args.log_level.upper(), logging.INFO),
        log_dir=args.log_dir
    )
    if log_handler.get_log_file_path():
        logger.info(f"Run log: {log_handler.get_log_file_path()}")

    try:
        options = YCSBGeneratorOptions.read_from_file(args.config)
        if args.load_sleep is not None:
            options.load_sleep = args.load_sleep
        generator = build_generator(options, args.phase)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        log_handler.close()
        return 2

    logger.info(f"Options:\n{options.to_string()}")

    try:
        if args.output:
            with open(args.output, 'w', encoding='utf-8') as out:
                result = run_workload(generator, args.threads, options.base_seed,
                                      sink=OperationWriter(out),
                                      record_operations=not args.no_summary)
            logger.info(f"Operations written to {args.output}")
        else:
            result = run_workload(generator, args.threads, options.base_seed,
                                  record_operations=not args.no_summary)

        if not args.no_summary:
            print_summary(Console(), options, result, OperationStatsAnalyzer(result.operations))
    finally:
        log_handler.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
