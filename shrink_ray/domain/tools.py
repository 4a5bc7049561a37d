"""
The compressor tools shrink-ray knows how to drive.

A `Tool` is one of two variants, each carrying the resolved path of its
binary. Code that needs tool-specific behaviour dispatches on the variant
with `isinstance` and ends with a `TypeError` for anything unexpected.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from ..config.tools import (
    IMAGE_EXTENSION,
    IMAGE_OUTPUT_FORMAT,
    IMAGE_TOOL,
    VIDEO_CODEC_ARGS,
    VIDEO_COMMENT_TAG,
    VIDEO_COMMON_ARGS,
    VIDEO_EXTENSION,
    VIDEO_FIRST_PASS_ARGS,
    VIDEO_OUTPUT_FORMAT,
    VIDEO_PASS_LOG_SUFFIX,
    VIDEO_SECOND_PASS_ARGS,
    VIDEO_TOOL,
)
from ..utils.temp_names import allocate


@dataclass(frozen=True)
class ImageTool:
    """GraphicsMagick, converting any still image to a stripped JPEG."""

    binary: Path
    name: str = IMAGE_TOOL
    extension: str = IMAGE_EXTENSION

    def convert_args(self, input_path: Path, output_path: Path, marker: str) -> List[str]:
        return [
            str(self.binary),
            "convert",
            str(input_path),
            "-strip",
            "-comment",
            marker,
            f"{IMAGE_OUTPUT_FORMAT}:{output_path}",
        ]

    def identify_args(self, path: Path) -> List[str]:
        return [str(self.binary), "identify", "-verbose", str(path)]


@dataclass(frozen=True)
class VideoTool:
    """FFmpeg, encoding VP9/Opus WebM in two passes."""

    binary: Path
    name: str = VIDEO_TOOL
    extension: str = VIDEO_EXTENSION

    @staticmethod
    def allocate_pass_log(input_path: Path, claim: bool = False) -> Path:
        """
        Picks the pass-log file for one job, next to the input. FFmpeg is
        given the name without its `-0.log` suffix and appends it itself.
        """
        return allocate(input_path, VIDEO_PASS_LOG_SUFFIX, claim=claim)

    @staticmethod
    def pass_log_prefix(pass_log: Path) -> Path:
        return pass_log.with_name(pass_log.name[: -len(VIDEO_PASS_LOG_SUFFIX)])

    def first_pass_args(self, input_path: Path, pass_log: Path) -> List[str]:
        return [
            str(self.binary),
            *VIDEO_COMMON_ARGS,
            "-i",
            str(input_path),
            *VIDEO_CODEC_ARGS,
            *VIDEO_FIRST_PASS_ARGS,
            "-pass",
            "1",
            "-passlogfile",
            str(self.pass_log_prefix(pass_log)),
            "-f",
            "null",
            "-",
        ]

    def second_pass_args(
        self, input_path: Path, output_path: Path, marker: str, pass_log: Path
    ) -> List[str]:
        return [
            str(self.binary),
            *VIDEO_COMMON_ARGS,
            "-i",
            str(input_path),
            *VIDEO_CODEC_ARGS,
            *VIDEO_SECOND_PASS_ARGS,
            "-map_metadata",
            "-1",
            "-metadata",
            f"{VIDEO_COMMENT_TAG}={marker}",
            "-pass",
            "2",
            "-passlogfile",
            str(self.pass_log_prefix(pass_log)),
            "-f",
            VIDEO_OUTPUT_FORMAT,
            str(output_path),
        ]


Tool = Union[ImageTool, VideoTool]
