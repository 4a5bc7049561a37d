"""
Command-Line Interface (CLI) setup for shrink-ray.

This module uses Python's `argparse` to define and parse the command-line
arguments that control which files are converted and where results go.
"""
import argparse
from pathlib import Path
from typing import Optional, Sequence

from . import PRODUCT_NAME, __version__
from .domain.job import OutputOptions

LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR"]


def get_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for shrink-ray.

    By default every input is replaced in place by its converted version.
    The output options instead write results to an explicit file, a path
    prefix or a directory, leaving the inputs untouched.

    Args:
        argv: The arguments to parse; defaults to `sys.argv[1:]`.

    Returns:
        argparse.Namespace: The parsed arguments. `output` holds the
                            resulting `OutputOptions`.
    """
    parser = argparse.ArgumentParser(
        prog=PRODUCT_NAME,
        description="Shrink images and videos with GraphicsMagick and FFmpeg.",
    )
    parser.add_argument(
        "inputs", nargs="+", type=Path, metavar="INPUT", help="Files to convert."
    )

    output_group = parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "-o", "--output-file", type=Path, default=None,
        help="Write the result to this new file (single input only).",
    )
    output_group.add_argument(
        "-p", "--output-prefix", type=Path, default=None,
        help="Write the result to this path plus the tool's extension.",
    )
    output_group.add_argument(
        "-d", "--output-dir", type=Path, default=None,
        help="Write results into this directory, named after their inputs.",
    )

    parser.add_argument(
        "-G", "--no-grow", action="store_true",
        help="Discard results that are larger than their input.",
    )
    parser.add_argument(
        "-n", "--dry-run", action="store_true",
        help="Print the commands that would run without running them.",
    )
    parser.add_argument(
        "-k", "--keep-going", action="store_true",
        help="Continue with the next file after a failed conversion.",
    )
    parser.add_argument(
        "--log-level", type=str.upper, default=None, choices=LOG_LEVELS,
        help="Set the logging level (default: $SHRINK_RAY_LOG or WARNING).",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args(argv)

    if args.output_file is not None and len(args.inputs) > 1:
        parser.error("--output-file can only be used with a single input")

    args.output = OutputOptions(
        file=args.output_file,
        prefix=args.output_prefix,
        directory=args.output_dir,
    )
    return args
