"""proctree - command-line entry point."""

import argparse
import logging
import os
import sys
from collections.abc import Sequence

from proctree.collector import ProcessCollector
from proctree.errors import EmptyResult, SourceUnavailable
from proctree.renderer import TreeRenderer
from proctree.sources import (
    DEFAULT_PROC_ROOT,
    ProcessSource,
    ProcfsSource,
    PsutilSource,
    default_source,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_DATA = 1
EXIT_SOURCE_UNAVAILABLE = 3

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def positive_int(value: str) -> int:
    """argparse type for options that must be >= 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="proctree",
        description="Print the processes visible to the current user as a parent/child tree.",
    )
    parser.add_argument(
        "--root",
        type=int,
        default=0,
        metavar="PID",
        help="Process id to start the tree from (default: 0, the system root).",
    )
    parser.add_argument(
        "--source",
        choices=["auto", "procfs", "psutil"],
        default="auto",
        help="Where to read process data from (default: auto).",
    )
    parser.add_argument(
        "--proc-root",
        default=DEFAULT_PROC_ROOT,
        metavar="PATH",
        help=f"Mount point of procfs (default: {DEFAULT_PROC_ROOT}).",
    )
    parser.add_argument(
        "--workers",
        type=positive_int,
        default=1,
        metavar="N",
        help="Number of threads reading process entries (default: 1).",
    )
    parser.add_argument(
        "--log",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get("LOGLEVEL", "WARNING").upper(),
        help="Logging level (default: $LOGLEVEL or WARNING).",
    )
    return parser


def select_source(args: argparse.Namespace) -> ProcessSource:
    """Return the process source named by `--source`."""
    if args.source == "procfs":
        return ProcfsSource(args.proc_root)
    if args.source == "psutil":
        return PsutilSource()
    return default_source(args.proc_root)


def print_tree(source: ProcessSource, root_id: int = 0, workers: int = 1) -> None:
    """
    Collect a snapshot from `source` and print it as a tree to stdout.

    Raises:
        SourceUnavailable: If the process listing cannot be opened.
        EmptyResult: If no process entry could be read.
    """
    logger.info("Gathering process information...")
    records = ProcessCollector(source, workers=workers).collect()
    if not records:
        raise EmptyResult("no process information retrieved")

    logger.info("Building and printing process tree...")
    for line in TreeRenderer(records).render(root_id):
        print(line)


def main(argv: Sequence[str] | None = None, source: ProcessSource | None = None) -> int:
    """
    Run proctree and return the process exit status.

    Args:
        argv: Command-line arguments, `sys.argv[1:]` when None.
        source: Process source to use instead of the one selected by
            `--source`.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log,
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
    )
    logging.getLogger().setLevel(args.log)

    if source is None:
        source = select_source(args)

    try:
        print_tree(source, root_id=args.root, workers=args.workers)
    except SourceUnavailable as exc:
        logger.error("Process information is unavailable: %s", exc)
        return EXIT_SOURCE_UNAVAILABLE
    except EmptyResult:
        logger.error(
            "No process information retrieved. This might happen on hosts "
            "without a process listing or due to permissions."
        )
        return EXIT_NO_DATA
    except BrokenPipeError:
        # Reader went away (e.g. `proctree | head`); silence the flush at exit
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        os.close(devnull)
        return EXIT_OK

    return EXIT_OK


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
