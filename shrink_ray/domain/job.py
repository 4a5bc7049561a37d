"""
A single conversion job and the policy deciding where its output goes.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from ..utils.temp_names import allocate
from .tools import Tool


@dataclass
class ConversionJob:
    """
    Everything needed to convert one input.

    Attributes:
        input_path: The file being converted.
        tool: The compressor chosen for it.
        output_path: Where the tool writes its result.
        replace: Whether the result is swapped into the input's place afterwards.
    """

    input_path: Path
    tool: Tool
    output_path: Path
    replace: bool


@dataclass(frozen=True)
class OutputOptions:
    """
    Where converted files are written. At most one attribute is set.

    Attributes:
        file: An explicit output file (single input only).
        prefix: An output path without extension; the tool's extension is appended.
        directory: A directory receiving `<input name><tool extension>`.
    """

    file: Optional[Path] = None
    prefix: Optional[Path] = None
    directory: Optional[Path] = None

    def should_replace(self) -> bool:
        return self.file is None and self.prefix is None and self.directory is None

    def resolve(self, input_path: Path, extension: str, claim: bool = True) -> Path:
        """
        Returns the output path for `input_path`.

        Without any option the output is a temporary name next to the input,
        claimed on disk unless `claim` is False (e.g. for a dry run).
        """
        if self.file is not None:
            return self.file
        if self.prefix is not None:
            return Path(f"{self.prefix}{extension}")
        if self.directory is not None:
            return (self.directory / input_path.name).with_suffix(extension)

        output = allocate(input_path, extension, claim=claim)
        logger.debug(f"Chose temporary output file `{output}` for `{input_path}`")
        return output
