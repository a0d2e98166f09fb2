#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/cli.py
"""Command-line entry point for filter scripts.

pandoc runs a filter as ``filter TARGET_FORMAT`` with the JSON document on
stdin and expects the filtered document on stdout. :func:`run_filter_main`
implements that contract for any :class:`FilterRuntime`; ``panfilter`` on
its own runs a filter without rules, which normalizes the JSON it is given.

Usage::

    pandoc input.md --filter ./my_filter.py -o output.html
    pandoc input.md -t json | panfilter --schema v2 --indent 2 html

"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import IO, TYPE_CHECKING, Optional, Sequence

from panfilter.constants import EXIT_ERROR, EXIT_SUCCESS
from panfilter.exceptions import PanfilterError
from panfilter.logging_utils import configure_logging
from panfilter.options import load_options

if TYPE_CHECKING:
    from panfilter.filter import FilterRuntime

logger = logging.getLogger(__name__)


def create_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    """Create the argument parser shared by all filter scripts."""
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Run a pandoc JSON filter: read a document on stdin, write the filtered document to stdout.",
    )
    parser.add_argument(
        "target_format",
        nargs="?",
        default="",
        help="Output format pandoc is converting to (passed by pandoc)",
    )
    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Read options from this configuration file instead of searching for one",
    )
    parser.add_argument(
        "--schema",
        choices=["auto", "v1", "v2"],
        help="Wire layout of the output document (default: same as the input)",
    )
    parser.add_argument(
        "--indent",
        type=int,
        metavar="N",
        help="Pretty-print the output JSON with N spaces of indentation",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: WARNING, or the configured level)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        metavar="PATH",
        help="Write log messages to specified file in addition to stderr",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable trace mode with debug logging, timestamps and logger names",
    )
    return parser


def run_filter_main(
    runtime: FilterRuntime,
    argv: Optional[Sequence[str]] = None,
    stdin: Optional[IO[str]] = None,
    stdout: Optional[IO[str]] = None,
) -> int:
    """Parse filter arguments and run ``runtime`` over stdin.

    Options from the configuration file are applied first, then the command
    line. The runtime keeps the resulting options.

    Returns
    -------
    int
        0 when the run completed or halted, 1 on any panfilter error

    """
    parsed_args = create_parser().parse_args(argv)

    updates: dict[str, object] = {}
    if parsed_args.schema is not None:
        updates["output_schema"] = parsed_args.schema
    if parsed_args.indent is not None:
        updates["json_indent"] = parsed_args.indent
    if parsed_args.log_level is not None:
        updates["log_level"] = parsed_args.log_level

    try:
        options = load_options(parsed_args.config).create_updated(**updates)
    except (PanfilterError, ValueError) as e:
        configure_logging(parsed_args.log_level or "WARNING", log_file=parsed_args.log_file)
        logger.error(f"Error: {e}")
        return EXIT_ERROR

    # --trace takes precedence over --log-level
    log_level = "DEBUG" if parsed_args.trace else options.log_level
    configure_logging(log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)

    runtime.options = options
    try:
        result = runtime.run(stdin or sys.stdin, stdout or sys.stdout, parsed_args.target_format)
    except PanfilterError as e:
        logger.error(f"Error: {e}")
        return EXIT_ERROR

    if result.halted:
        logger.info("Filter stopped early")
    return EXIT_SUCCESS


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the filter without rules."""
    from panfilter.filter import FilterRuntime

    return run_filter_main(FilterRuntime(), argv)


if __name__ == "__main__":
    sys.exit(main())
