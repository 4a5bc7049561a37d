"""
Defines custom exception types for shrink-ray.

The batch pipeline decides what to do with a file by the exception class it
catches: skips are counted and reported without affecting the exit status,
per-file failures honour the keep-going policy, and cancellation stops the
whole batch. Any plain `OSError` that escapes a job is treated as fatal to the
run.

All custom exceptions inherit from the base `ShrinkRayException`.
"""
from pathlib import Path
from typing import Optional


class ShrinkRayException(Exception):
    """Base class for all custom exceptions in shrink-ray."""

    pass


# --- Skips ---
class SkippedFileException(ShrinkRayException):
    """
    Raised when a file is intentionally not converted.

    This is not an error but a control flow mechanism: the file is reported
    as skipped and the batch carries on.
    """

    def __init__(self, path: Path, reason: str):
        super().__init__(reason)
        self.path = path
        self.reason = reason


class UnsupportedInputException(SkippedFileException):
    """Raised when a file cannot be identified or has a type no tool handles."""

    def __init__(self, path: Path, mime: Optional[str] = None):
        reason = f"unsupported file type {mime}" if mime else "unidentified file type"
        super().__init__(path, reason)
        self.mime = mime


class AlreadyConvertedException(SkippedFileException):
    """
    Raised when a file already carries a shrink-ray marker.

    Converting it again would only lose quality, so it is skipped before any
    tool is invoked.
    """

    def __init__(self, path: Path, marker):
        super().__init__(path, f"already converted by {marker}")
        self.marker = marker


# --- Per-file failures ---
class ConversionFailedException(ShrinkRayException):
    """Base class for failures that are fatal to one file but not to the run."""

    pass


class InputNotFoundException(ConversionFailedException):
    """Raised when an input file is missing or is a symlink."""

    def __init__(self, path: Path, is_symlink: bool = False):
        what = "is a symlink" if is_symlink else "not found"
        super().__init__(f"input file `{path}` {what}")
        self.path = path
        self.is_symlink = is_symlink


class ToolNotFoundException(ConversionFailedException):
    """Raised when a compressor binary cannot be resolved."""

    def __init__(self, name: str, path: Optional[Path] = None):
        shown = path if path is not None else name
        super().__init__(f"binary `{shown}` not found")
        self.name = name
        self.path = path


class InvocationFailedException(ConversionFailedException):
    """
    Raised when an external tool exits with a non-zero status.

    Attributes:
        tool: The name of the tool that failed (e.g. 'gm', 'ffmpeg').
        status: The exit status; negative values mean the child died from a signal.
                None when the tool only reported failure (e.g. through ffmpeg-python).
        stderr_tail: The last lines the tool wrote to stderr, for diagnostics.
    """

    def __init__(self, tool: str, status: Optional[int], stderr_tail: tuple[str, ...] = ()):
        if status is None:
            description = "unsuccessful exit"
        elif status < 0:
            description = f"terminated by signal {-status}"
        else:
            description = f"exit status {status}"
        super().__init__(f"{tool} invocation failed, {description}")
        self.tool = tool
        self.status = status
        self.stderr_tail = stderr_tail


class DestinationExistsException(ConversionFailedException):
    """Raised when replacing an input would overwrite an unrelated existing file."""

    def __init__(self, path: Path):
        super().__init__(f"output file `{path}` already exists")
        self.path = path


# --- Cancellation ---
class CancelledException(ShrinkRayException):
    """Raised when the operator interrupted a running conversion."""

    def __init__(self, message: str = "cancelled"):
        super().__init__(message)


# --- Marker parsing ---
class MarkerParseException(ShrinkRayException):
    """Base class for marker text that cannot be trusted."""

    pass


class NotMarkerException(MarkerParseException):
    """Raised when a comment does not start with the expected product prefix."""

    pass


class NotVersionException(MarkerParseException):
    """Raised when a comment has the product prefix but an invalid version."""

    pass
