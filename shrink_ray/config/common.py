"""
Common configuration settings used throughout the application.

This module holds the constants shared by the supervisor, the transaction
and the pipeline. It also loads an optional user configuration file in YAML,
so the location of external tools and the default policies can be changed
without touching the code.
"""
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from loguru import logger

# --- User-Defined Configuration ---
# The first existing file wins. SHRINK_RAY_CONFIG points at an explicit file,
# otherwise the current directory and the user's config directory are tried.

CONFIG_ENV_VAR = "SHRINK_RAY_CONFIG"
USER_CONFIG_FILENAME = "config.user.yaml"
USER_CONFIG_HOME_PATH = Path.home() / ".config" / "shrink-ray" / "config.yaml"


def find_user_config() -> Optional[Path]:
    """
    Returns the user configuration file to load, or None if there is none.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)

    for candidate in (Path.cwd() / USER_CONFIG_FILENAME, USER_CONFIG_HOME_PATH):
        if candidate.is_file():
            return candidate
    return None


def load_user_config(path: Optional[Path]) -> dict[str, Any]:
    """
    Loads the user configuration from a YAML file.

    A missing file yields an empty mapping. A file that cannot be read or
    parsed is reported as a warning and ignored, so a broken config never
    stops a batch.

    Args:
        path: The YAML file to read, or None.

    Returns:
        The parsed mapping (possibly empty).
    """
    if path is None:
        return {}
    if not path.is_file():
        logger.debug(f"User config '{path}' not found. Using defaults.")
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load or parse '{path}': {e}")
        return {}

    if not isinstance(user_config, dict):
        logger.warning(f"Ignoring '{path}': top level must be a mapping.")
        return {}
    return user_config


USER_CONFIG_PATH = find_user_config()
USER_CONFIG: dict[str, Any] = load_user_config(USER_CONFIG_PATH)

_paths_config = USER_CONFIG.get("paths") or {}
_options_config = USER_CONFIG.get("options") or {}

# A directory holding the compressor executables (gm, ffmpeg, ffprobe). It is
# searched after the RAY_BIN_* environment overrides and before the system PATH.
TOOL_DIR: Optional[Path] = (
    Path(_paths_config["tool_dir"]) if _paths_config.get("tool_dir") else None
)

# Policy defaults; command-line flags can only switch them on.
DEFAULT_NO_GROW: bool = bool(_options_config.get("no_grow", False))
DEFAULT_KEEP_GOING: bool = bool(_options_config.get("keep_going", False))


# --- Logging Configuration ---

# Format string for the Loguru logger.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# Environment variable consulted when --log-level is not given.
LOG_LEVEL_ENV_VAR = "SHRINK_RAY_LOG"

# Diagnostics stay quiet by default; the terminal report is the primary output.
DEFAULT_LOG_LEVEL = "WARNING"


# --- Temp Names ---

TEMP_NAME_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
TEMP_NAME_LENGTH = 8


# --- Identification ---

# Only the head of a file is handed to libmagic.
IDENTIFY_READ_BYTES = 1024


# --- Process Supervision ---

# Interval between progress re-renders while a tool runs.
PROGRESS_TICK_SECONDS = 0.1

# Number of trailing stderr lines kept for diagnostics after a failed invocation.
STDERR_TAIL_LINES = 20


# --- Exit Codes ---

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130
