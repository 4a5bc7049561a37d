"""
Selection of the compressor for a MIME type and resolution of its binary.

Binaries are looked up in this order:
1. The environment variable `RAY_BIN_<NAME>` (e.g. `RAY_BIN_FFMPEG`).
2. The `paths.tool_dir` directory from the user configuration file.
3. The system PATH.

Results are cached on a `BinaryCache` instance owned by the batch pipeline.
"""
import os
import shutil
import sys
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from ..config.common import TOOL_DIR
from ..config.tools import (
    BINARY_ENV_PREFIX,
    IMAGE_TOOL,
    UNSUPPORTED_IMAGE_TYPES,
    VIDEO_TOOL,
)
from ..domain.exceptions import ToolNotFoundException
from ..domain.tools import ImageTool, Tool, VideoTool


class BinaryCache:
    """
    Resolves and remembers the paths of external executables.

    Args:
        tool_dir: A directory searched after the environment overrides.
                  Defaults to the one from the user configuration.
        environ: The environment to read overrides from (defaults to `os.environ`).
    """

    def __init__(self, tool_dir: Optional[Path] = TOOL_DIR, environ=None):
        self.tool_dir = tool_dir
        self.environ = os.environ if environ is None else environ
        self._binaries: Dict[str, Path] = {}

    def resolve(self, name: str) -> Path:
        """
        Returns the path of the executable `name`.

        Raises:
            ToolNotFoundException: The binary could not be found, or the
                                   environment override points to a missing file.
        """
        cached = self._binaries.get(name)
        if cached is not None:
            return cached

        path = self._probe_env(name)
        if path is None:
            path = self._probe_tool_dir(name)
        if path is None:
            path = self._probe_system(name)

        self._binaries[name] = path
        return path

    def _probe_env(self, name: str) -> Optional[Path]:
        var_name = f"{BINARY_ENV_PREFIX}{name.upper()}"
        logger.trace(f"Checking for binary `{name}` in environment (`{var_name}`)")
        value = self.environ.get(var_name)
        if not value:
            return None

        path = Path(value)
        if not path.exists():
            raise ToolNotFoundException(name, path)
        logger.debug(f"Using `{name}` from {var_name}: '{path}'")
        return path

    def _probe_tool_dir(self, name: str) -> Optional[Path]:
        if not self.tool_dir or not self.tool_dir.is_dir():
            return None

        exe_name = f"{name}.exe" if sys.platform == "win32" else name
        configured = self.tool_dir / exe_name
        if configured.is_file():
            logger.debug(f"Using `{name}` from configured path: '{configured}'")
            return configured

        logger.warning(
            f"`tool_dir` is configured, but '{exe_name}' was not found there. Falling back to system PATH."
        )
        return None

    def _probe_system(self, name: str) -> Path:
        logger.trace(f"Probing for `{name}` binary")
        found = shutil.which(name)
        if found is None:
            raise ToolNotFoundException(name)
        logger.debug(f"Found binary `{found}`")
        return Path(found)


def select_tool(mime: str, binaries: BinaryCache) -> Optional[Tool]:
    """
    Chooses the compressor for a MIME type.

    Returns:
        The tool, or None when the type is not supported (a skip, not an error).

    Raises:
        ToolNotFoundException: The type is supported but its binary is missing.
    """
    if mime in UNSUPPORTED_IMAGE_TYPES:
        # TODO: accept single-frame GIFs (frame count from `gm identify`)
        logger.warning(f"{mime} files are currently not supported")
        return None
    if mime.startswith("image/"):
        return ImageTool(binaries.resolve(IMAGE_TOOL))
    if mime.startswith("video/"):
        return VideoTool(binaries.resolve(VIDEO_TOOL))

    logger.info(f"Unsupported file format: {mime}")
    return None
