"""
Swapping a converted file into the place of its original.

The swap is three renames in one directory: the original is moved aside to a
claimed temporary name, the output takes the destination name, and only then
is the moved-aside original deleted. At no point is the original destroyed
before the output is in place.
"""
import os
from pathlib import Path

from loguru import logger

from ..domain.exceptions import DestinationExistsException
from ..utils.temp_names import allocate


def replace_file(input_path: Path, output_path: Path) -> Path:
    """
    Replaces `input_path` with `output_path`.

    The destination is the input path with the output's extension, so a
    `photo.png` converted to `photo-x1y2z3w4.jpg` ends up as `photo.jpg`.

    Args:
        input_path: The original file.
        output_path: The converted file, in any directory on the same filesystem.

    Returns:
        The destination path.

    Raises:
        DestinationExistsException: The destination differs from the input and
                                    already exists. Nothing has been touched.
        OSError: A rename failed. If the output could not be moved, the original
                 is left at the logged temporary path.
    """
    destination = input_path.with_suffix(output_path.suffix)
    if destination != input_path and destination.exists():
        raise DestinationExistsException(destination)

    moved_aside = allocate(input_path, input_path.suffix, claim=True)
    logger.trace(f"Moving `{input_path}` aside to `{moved_aside}`")
    try:
        os.replace(input_path, moved_aside)
    except OSError:
        _discard(moved_aside)
        raise

    logger.trace(f"Renaming `{output_path}` to `{destination}`")
    try:
        os.rename(output_path, destination)
    except OSError as e:
        logger.error(
            f"Could not move `{output_path}` to `{destination}`: {e}. "
            f"The original file was left at `{moved_aside}`."
        )
        raise

    try:
        moved_aside.unlink()
    except OSError as e:
        logger.warning(f"Could not remove the original file at `{moved_aside}`: {e}")

    logger.debug(f"Replaced `{input_path}` with `{destination}`")
    return destination


def _discard(path: Path):
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Could not remove temporary file `{path}`: {e}")
