"""Command-line entry point: search word geodes for sha256 amulets."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence, TextIO

from models import SearchOptions, SearchReport, SearchResult
from search import AmuletSearch
from utils import load_config, options_from_config, parse_words, setup_logging, validate_options

EXIT_COMPLETE = 0
EXIT_DEGRADED = 1
EXIT_NO_WORDS = 2
EXIT_BAD_OPTIONS = 2
EXIT_CANCELLED = 130


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amulet-geodes",
        description="Enumerate every geode of the given words and report sha256 amulets.",
    )
    parser.add_argument("words", nargs="*", help="Words to combine; read from stdin when omitted.")
    parser.add_argument("-w", "--workers", type=positive_int, help="Worker processes (default: all CPUs).")
    parser.add_argument("--min-run", type=int, help="Shortest run of 8s that qualifies (default: 6).")
    parser.add_argument("--log-level", default="INFO", help="Log level for the app log file.")
    return parser


def resolve_options(args: argparse.Namespace, config: dict) -> SearchOptions:
    """Config file values, overridden by any flags given on the command line."""
    options = options_from_config(config)
    if args.workers is not None:
        options.workers = args.workers
    if args.min_run is not None:
        options.min_run = args.min_run
    return validate_options(options)


def report_result(result: SearchResult, out: TextIO | None = None) -> None:
    out = out or sys.stdout
    out.write(f"{result.quality}\t{result.worker_id}\t{result.geode.text!r}\n")
    out.flush()


def report_summary(report: SearchReport, out: TextIO | None = None) -> None:
    out = out or sys.stdout
    out.write(
        f"Searched {report.scanned} of {report.total_candidates} geodes, "
        f"{report.hits} amulets in {report.elapsed_seconds:.2f}s\n"
    )
    if report.failed_workers:
        out.write(f"Degraded run: workers {report.failed_workers} failed\n")
    if report.cancelled:
        out.write("Cancelled before all workers finished\n")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level.upper())
    logger = logging.getLogger(__name__)

    words = list(args.words) or parse_words(sys.stdin.read())
    if not words:
        sys.stderr.write("No words given.\n")
        return EXIT_NO_WORDS

    try:
        options = resolve_options(args, load_config())
    except (TypeError, ValueError) as exc:
        logger.error("Invalid search options: %s", exc)
        sys.stderr.write(f"Invalid search options: {exc}\n")
        return EXIT_BAD_OPTIONS

    logger.info("Starting search over %s", words)
    report = AmuletSearch(words, options).run(on_result=report_result)
    report_summary(report)

    if report.cancelled:
        return EXIT_CANCELLED
    return EXIT_COMPLETE if report.complete else EXIT_DEGRADED


if __name__ == "__main__":
    sys.exit(main())
