"""
The conversion transaction for one input file.

`ConversionTransaction.prepare` turns an input path into a `ConversionJob`:
the file is identified by content, a compressor is chosen and the output path
is resolved. `ConversionTransaction.convert` then runs the job:

1. The input's embedded marker is read. A file that already carries one is
   skipped before any tool runs.
2. The compressor is run under the `ProcessSupervisor`, once for images and
   in two passes for videos. Any partial output is removed on failure.
3. The sizes are compared, the input's modification time is copied onto the
   output, and the result is either discarded (no-grow), left where it is,
   or swapped into the input's place.
"""
import asyncio
import os
from pathlib import Path
from typing import Any, List, Optional

import ffmpeg
from loguru import logger

from ..config.tools import (
    IMAGE_COMMENT_LABEL,
    VIDEO_COMMENT_TAG,
    VIDEO_PROBE_TOOL,
)
from ..domain.exceptions import (
    AlreadyConvertedException,
    DestinationExistsException,
    InputNotFoundException,
    InvocationFailedException,
    NotMarkerException,
    NotVersionException,
    ToolNotFoundException,
    UnsupportedInputException,
)
from ..domain.job import ConversionJob, OutputOptions
from ..domain.marker import Marker, current_marker, parse_marker
from ..domain.statistics import Delta
from ..domain.tools import ImageTool, Tool, VideoTool
from ..utils.temp_names import allocate
from .identification import Identifier
from .replace import replace_file
from .supervisor import ProcessSupervisor
from .tool_selector import BinaryCache, select_tool


class ConversionTransaction:
    """
    Converts single files, one at a time.

    Args:
        supervisor: Runs the compressor invocations.
        identifier: Identifies inputs by content.
        binaries: Resolves compressor and probe binaries.
        options: Where outputs are written.
        no_grow: Discard outputs that are larger than their input.
    """

    def __init__(
        self,
        supervisor: ProcessSupervisor,
        identifier: Identifier,
        binaries: BinaryCache,
        options: OutputOptions,
        no_grow: bool = False,
    ):
        self.supervisor = supervisor
        self.identifier = identifier
        self.binaries = binaries
        self.options = options
        self.no_grow = no_grow

    def prepare(self, input_path: Path) -> ConversionJob:
        """
        Builds the job for `input_path`. Nothing is created on disk.

        Raises:
            InputNotFoundException: The input is missing or is a symlink.
            UnsupportedInputException: No tool handles the input's type.
            ToolNotFoundException: A tool handles the type but its binary is missing.
            DestinationExistsException: The output would overwrite the input.
            OSError: The input could not be read.
        """
        if input_path.is_symlink():
            raise InputNotFoundException(input_path, is_symlink=True)
        if not input_path.is_file():
            raise InputNotFoundException(input_path)

        mime = self.identifier.identify(input_path)
        if mime is None:
            raise UnsupportedInputException(input_path)

        tool = select_tool(mime, self.binaries)
        if tool is None:
            raise UnsupportedInputException(input_path, mime)

        output_path = self.options.resolve(input_path, tool.extension, claim=False)
        if output_path.resolve() == input_path.resolve():
            raise DestinationExistsException(output_path)
        job = ConversionJob(input_path, tool, output_path, self.options.should_replace())
        logger.debug(f"Prepared {job}")
        return job

    def command_lines(self, job: ConversionJob) -> List[List[str]]:
        """Returns the argv of every invocation `convert` would run for `job`."""
        marker = str(current_marker())
        tool = job.tool
        if isinstance(tool, ImageTool):
            return [tool.convert_args(job.input_path, job.output_path, marker)]
        elif isinstance(tool, VideoTool):
            pass_log = tool.allocate_pass_log(job.input_path)
            return [
                tool.first_pass_args(job.input_path, pass_log),
                tool.second_pass_args(job.input_path, job.output_path, marker, pass_log),
            ]
        else:
            raise TypeError(f"Unknown tool {tool!r}")

    async def convert(self, job: ConversionJob) -> Delta:
        """
        Runs `job` to completion.

        Returns:
            The size delta. When no-grow discarded the output, the delta shows
            growth and nothing was changed on disk.

        Raises:
            AlreadyConvertedException: The input carries a marker.
            ConversionFailedException: A tool failed or the destination is taken.
            CancelledException: The operator interrupted a tool.
            OSError: A filesystem operation failed.
        """
        marker = await self.read_marker(job)
        if marker is not None:
            raise AlreadyConvertedException(job.input_path, marker)

        job.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._claim_output(job)

        succeeded = False
        try:
            await self._invoke(job)
            succeeded = True
        finally:
            if not succeeded:
                _remove_partial(job.output_path)

        input_stat = job.input_path.stat()
        os.utime(job.output_path, ns=(input_stat.st_atime_ns, input_stat.st_mtime_ns))
        delta = Delta(input_stat.st_size, job.output_path.stat().st_size)
        logger.debug(f"`{job.input_path}`: {delta}")

        if self.no_grow and not delta.is_smaller():
            logger.info(f"Discarding `{job.output_path}`, it is larger than its input")
            _remove_partial(job.output_path)
            return delta

        if job.replace:
            try:
                replace_file(job.input_path, job.output_path)
            except DestinationExistsException:
                _remove_partial(job.output_path)
                raise
        return delta

    def _claim_output(self, job: ConversionJob):
        """
        Creates the output file exclusively, so a failed run only ever removes
        a file it created. A taken temporary name is swapped for a fresh one;
        a taken explicit output is an error.
        """
        try:
            with job.output_path.open("x"):
                pass
        except FileExistsError:
            if not job.replace:
                raise DestinationExistsException(job.output_path) from None
            job.output_path = allocate(job.input_path, job.tool.extension, claim=True)
            logger.debug(f"Temporary name taken, using `{job.output_path}` instead")

    async def _invoke(self, job: ConversionJob):
        marker = str(current_marker())
        tool = job.tool
        if isinstance(tool, ImageTool):
            argv = tool.convert_args(job.input_path, job.output_path, marker)
            outcome = await self.supervisor.run(argv, job.input_path)
            outcome.raise_for_status(tool.name)
        elif isinstance(tool, VideoTool):
            pass_log = tool.allocate_pass_log(job.input_path, claim=True)
            try:
                argv = tool.first_pass_args(job.input_path, pass_log)
                outcome = await self.supervisor.run(argv, job.input_path)
                outcome.raise_for_status(tool.name)

                argv = tool.second_pass_args(job.input_path, job.output_path, marker, pass_log)
                outcome = await self.supervisor.run(argv, job.input_path)
                outcome.raise_for_status(tool.name)
            finally:
                _remove_partial(pass_log)
        else:
            raise TypeError(f"Unknown tool {tool!r}")

    # --- Idempotency check ---
    async def read_marker(self, job: ConversionJob) -> Optional[Marker]:
        """
        Returns the marker embedded in the job's input, or None.

        Comments that are not markers, or carry an invalid version, count as
        no marker.

        Raises:
            InvocationFailedException: The probe tool failed.
            ToolNotFoundException: The probe tool is missing.
        """
        text = await self._read_comment(job.input_path, job.tool)
        if text is None:
            return None

        try:
            return parse_marker(text)
        except NotMarkerException as e:
            logger.debug(f"`{job.input_path}`: {e}")
        except NotVersionException as e:
            logger.warning(f"`{job.input_path}`: {e}")
        return None

    async def _read_comment(self, path: Path, tool: Tool) -> Optional[str]:
        if isinstance(tool, ImageTool):
            return await self._read_image_comment(path, tool)
        elif isinstance(tool, VideoTool):
            return await self._read_video_comment(path)
        else:
            raise TypeError(f"Unknown tool {tool!r}")

    async def _read_image_comment(self, path: Path, tool: ImageTool) -> Optional[str]:
        argv = tool.identify_args(path)
        logger.trace(f"Probing image comment of `{path}`")
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundException(tool.name, tool.binary) from e

        try:
            stdout, stderr = await process.communicate()
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        if process.returncode != 0:
            raise InvocationFailedException(
                tool.name, process.returncode, _tail(stderr.decode("utf-8", errors="replace"))
            )
        return find_image_comment(stdout.decode("utf-8", errors="replace"))

    async def _read_video_comment(self, path: Path) -> Optional[str]:
        ffprobe = self.binaries.resolve(VIDEO_PROBE_TOOL)
        logger.trace(f"Probing container tags of `{path}`")
        try:
            probe = await asyncio.to_thread(ffmpeg.probe, str(path), cmd=str(ffprobe))
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if e.stderr else ""
            raise InvocationFailedException(VIDEO_PROBE_TOOL, None, _tail(stderr)) from e
        return find_video_comment(probe)


def find_image_comment(identify_output: str) -> Optional[str]:
    """Returns the value of the first `Comment:` line of `gm identify -verbose` output."""
    for line in identify_output.splitlines():
        if IMAGE_COMMENT_LABEL in line:
            return line.split(":", 1)[1].strip()
    return None


def find_video_comment(probe: dict[str, Any]) -> Optional[str]:
    """
    Returns the first `comment` tag of an ffprobe result, looking at the
    container tags before the stream tags. Tag names are matched
    case-insensitively.
    """
    tag_sets = [probe.get("format", {}).get("tags") or {}]
    tag_sets.extend(stream.get("tags") or {} for stream in probe.get("streams", []))
    for tags in tag_sets:
        for key, value in tags.items():
            if key.lower() == VIDEO_COMMENT_TAG:
                return str(value).strip()
    return None


def _tail(text: str, lines: int = 5) -> tuple[str, ...]:
    return tuple(text.splitlines()[-lines:])


def _remove_partial(path: Path):
    try:
        path.unlink()
        logger.trace(f"Removed `{path}`")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Could not remove `{path}`: {e}")
