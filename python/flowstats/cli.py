"""Command-line entry point: per-run capture directories to flow statistics CSVs."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .config import DEFAULT_FILE_PREFIX, DEFAULT_HIST_RESOLUTION, RunRange, StatsConfig
from .experiment import run_experiment
from .sinks import CsvDirectorySink
from .trace_reader import run_directory_events

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute per-flow and per-run packet statistics from sender/receiver captures.",
    )
    parser.add_argument(
        "output_dir",
        type=Path,
        help="Directory where the Summary, scalar and vector CSVs will be written.",
    )
    parser.add_argument(
        "run_dirs",
        type=Path,
        nargs="+",
        metavar="RUN_DIR",
        help="One directory per run holding tx*.pcap and rx-<node>-<app>*.pcap captures.",
    )
    parser.add_argument(
        "--prefix",
        default=DEFAULT_FILE_PREFIX,
        help=f"Output file name prefix (default: {DEFAULT_FILE_PREFIX}).",
    )
    parser.add_argument(
        "--start-run",
        type=int,
        default=1,
        metavar="N",
        help="Index of the first run (default: 1).",
    )
    parser.add_argument(
        "--stop-run",
        type=int,
        metavar="N",
        help="Index of the last run (default: start run + number of run directories - 1).",
    )
    parser.add_argument(
        "--current-run",
        type=int,
        metavar="N",
        help="Process a single externally controlled run; needs exactly one RUN_DIR.",
    )
    parser.add_argument(
        "--hist-resolution",
        type=float,
        default=DEFAULT_HIST_RESOLUTION,
        metavar="SECONDS",
        help=f"Delay histogram bin width in seconds (default: {DEFAULT_HIST_RESOLUTION}).",
    )
    parser.add_argument(
        "--scalar",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Write the per-run scalar CSV (default: enabled).",
    )
    parser.add_argument(
        "--vector",
        action="store_true",
        help="Write the per-run delay vector CSV.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Log level for diagnostic output.",
    )
    return parser


def build_run_range(parser: argparse.ArgumentParser, args: argparse.Namespace) -> RunRange:
    run_dirs: Sequence[Path] = args.run_dirs
    if args.current_run is not None:
        if len(run_dirs) != 1:
            parser.error("--current-run needs exactly one RUN_DIR.")
        stop_run = args.stop_run if args.stop_run is not None else args.current_run
        external = True
    else:
        stop_run = args.stop_run if args.stop_run is not None else args.start_run + len(run_dirs) - 1
        if stop_run - args.start_run + 1 != len(run_dirs):
            parser.error("Number of RUN_DIRs must match the run range.")
        external = False
    if args.start_run > stop_run:
        parser.error("First run number must be less or equal to last.")
    if external and not args.start_run <= args.current_run <= stop_run:
        parser.error("--current-run must lie between the start and stop run.")
    return RunRange(args.start_run, stop_run, external, args.current_run)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level))

    if args.hist_resolution <= 0:
        parser.error("--hist-resolution must be greater than 0 seconds.")
    run_range = build_run_range(parser, args)

    missing = [path for path in args.run_dirs if not path.is_dir()]
    if missing:
        for path in missing:
            logger.error("Run directory does not exist: %s", path)
        return 1

    if run_range.external_control:
        directories = {run_range.current_run: args.run_dirs[0]}
    else:
        directories = dict(zip(run_range.run_indices(), args.run_dirs))

    config = StatsConfig(
        file_prefix=args.prefix,
        hist_resolution=args.hist_resolution,
        scalar_output=args.scalar,
        vector_output=args.vector,
    )
    sink = CsvDirectorySink(args.output_dir)

    def events_for_run(run_index: int):
        logger.info("Processing run %d from %s", run_index, directories[run_index])
        return run_directory_events(directories[run_index])

    try:
        aggregator = run_experiment(events_for_run, run_range, config, sink)
    except Exception:  # pragma: no cover - unexpected runtime failures
        logger.exception("Failed processing runs %s", ", ".join(str(path) for path in args.run_dirs))
        return 1

    logger.info(
        "Finished %d run(s); summary in %s",
        aggregator.runs_processed,
        sink.path_for(aggregator.table_name),
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
