"""
This module contains helper functions for formatting data into human-readable strings.
They are used by the terminal report and in log messages to present file sizes,
ratios and commands in a clear and consistent way.
"""
import os
import shlex
import subprocess
from typing import Sequence

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def formatted_size(size_bytes: int) -> str:
    """
    Renders a byte count in binary units for the report, e.g. 1536 -> "1.50 KB".

    Whole values drop their decimals ("2 MB"). Negative counts render as "0 B";
    deltas are shown with an explicit sign by the caller.
    """
    size = float(max(size_bytes, 0))
    if size < 1024:
        return f"{int(size)} B"

    for unit in SIZE_UNITS[1:]:
        size /= 1024.0
        if size < 1024:
            return f"{size:.2f} {unit}".replace(".00 ", " ")
    return f"{size:.2f} {SIZE_UNITS[-1]}".replace(".00 ", " ")


def formatted_ratio(ratio: float) -> str:
    """Formats a ratio as a percentage with two decimals, e.g. 0.4 -> "40.00 %"."""
    if ratio == float("inf"):
        return "inf %"
    return f"{100.0 * ratio:.2f} %"


def display_command(cmd_list: Sequence[str]) -> str:
    """
    Joins an argv list into a single string that can be pasted into a shell.
    """
    if os.name == "nt":
        return subprocess.list2cmdline(list(cmd_list))
    return shlex.join(cmd_list)
