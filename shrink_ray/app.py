"""
Application entry point: argument parsing, logger setup and the batch run.
"""
import os
import sys
from typing import Optional, Sequence

from loguru import logger

from .cli import get_args
from .config.common import (
    DEFAULT_KEEP_GOING,
    DEFAULT_LOG_LEVEL,
    DEFAULT_NO_GROW,
    LOG_LEVEL_ENV_VAR,
    LOGGER_FORMAT,
    USER_CONFIG_PATH,
)
from .pipeline.batch import BatchPipeline


def configure_logger(level: Optional[str]) -> str:
    """
    Sends log records to stderr at the effective level and returns that level.

    The level is taken from `level` if given, then from $SHRINK_RAY_LOG, and
    defaults to WARNING so diagnostics do not interfere with the status line.
    """
    effective_level = (level or os.environ.get(LOG_LEVEL_ENV_VAR) or DEFAULT_LOG_LEVEL).upper()
    logger.remove()
    try:
        logger.add(sys.stderr, level=effective_level, format=LOGGER_FORMAT)
    except ValueError:
        logger.add(sys.stderr, level=DEFAULT_LOG_LEVEL, format=LOGGER_FORMAT)
        logger.warning(f"Unknown log level `{effective_level}`, using {DEFAULT_LOG_LEVEL}")
        effective_level = DEFAULT_LOG_LEVEL
    return effective_level


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = get_args(argv)
    configure_logger(args.log_level)

    logger.debug(f"Parsed arguments: {args}")
    if USER_CONFIG_PATH is not None:
        logger.debug(f"User config: {USER_CONFIG_PATH}")

    pipeline = BatchPipeline(
        args.inputs,
        args.output,
        no_grow=args.no_grow or DEFAULT_NO_GROW,
        keep_going=args.keep_going or DEFAULT_KEEP_GOING,
        dry_run=args.dry_run,
    )
    exit_code = pipeline.run()
    logger.debug(f"Exiting with status {exit_code}")
    return exit_code
