"""
Supervision of one external tool invocation.

A `ProcessSupervisor` runs a child process and, until the child exits, waits
at the same time on five sources:

1. the child's exit, which always ends the loop;
2. a progress timer, re-rendering the status line;
3. a line on the child's stderr;
4. a line on the child's stdout;
5. an operator interrupt from the `InterruptChannel`.

Lines are forwarded to the report in the order they are read. The first
interrupt is forwarded to the child as SIGINT and the supervisor keeps
servicing every source until the child actually exits. A cancelled
invocation is reported as cancelled whatever its exit status.
"""
import asyncio
import collections
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from ..config.common import PROGRESS_TICK_SECONDS, STDERR_TAIL_LINES
from ..domain.exceptions import (
    CancelledException,
    InvocationFailedException,
    ToolNotFoundException,
)
from ..utils.format_utils import display_command
from .report import ReportSink

# Line length limit for the stdout/stderr readers.
_STREAM_LIMIT = 1 << 20


@dataclass(frozen=True)
class SupervisorOutcome:
    """
    How one invocation ended.

    Attributes:
        exit_status: The child's return code; negative when killed by a signal.
        cancelled: Whether an interrupt was received before the child exited.
        stderr_tail: The last lines the child wrote to stderr.
    """

    exit_status: int
    cancelled: bool
    stderr_tail: tuple[str, ...] = ()

    def raise_for_status(self, tool: str):
        """
        Raises if the invocation did not succeed. Cancellation takes precedence
        over the exit status.
        """
        if self.cancelled:
            raise CancelledException()
        if self.exit_status != 0:
            raise InvocationFailedException(tool, self.exit_status, self.stderr_tail)


class InterruptChannel:
    """
    Delivers operator interrupts (SIGINT) to the event loop as queued events.

    While installed, Ctrl-C no longer raises `KeyboardInterrupt`; each one is
    queued instead and picked up by the running supervisor or by the batch
    pipeline between jobs. `trigger()` queues an interrupt programmatically.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def install(self):
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, self.trigger)
        except (NotImplementedError, RuntimeError) as e:
            logger.warning(f"Interrupts cannot be forwarded on this platform: {e}")
            return
        self._loop = loop
        logger.trace("Installed SIGINT handler")

    def uninstall(self):
        if self._loop is not None:
            self._loop.remove_signal_handler(signal.SIGINT)
            self._loop = None
            logger.trace("Removed SIGINT handler")

    def __enter__(self):
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.uninstall()

    def trigger(self):
        self._queue.put_nowait(signal.SIGINT)

    def pending(self) -> bool:
        return not self._queue.empty()

    def drain(self) -> int:
        """Discards queued interrupts and returns how many there were."""
        count = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            count += 1
        return count

    async def receive(self) -> int:
        return await self._queue.get()


def _decode(line: bytes) -> str:
    return line.decode("utf-8", errors="replace").rstrip("\r\n")


class ProcessSupervisor:
    """
    Runs child processes one at a time, reporting progress while they run.

    Args:
        report: Receives status renders and the child's output lines.
        interrupts: The source of operator interrupts.
        tick_interval: Seconds between progress re-renders.
    """

    def __init__(
        self,
        report: ReportSink,
        interrupts: InterruptChannel,
        tick_interval: float = PROGRESS_TICK_SECONDS,
    ):
        self.report = report
        self.interrupts = interrupts
        self.tick_interval = tick_interval

    async def run(self, argv: Sequence[str], label: Path) -> SupervisorOutcome:
        """
        Runs `argv` to completion.

        Args:
            argv: The command; argv[0] is the executable.
            label: The file being processed, shown on the status line.

        Returns:
            The outcome. A non-zero exit status is not raised here; see
            `SupervisorOutcome.raise_for_status`.

        Raises:
            ToolNotFoundException: The executable does not exist.
            OSError: The child could not be spawned or the interrupt could not
                     be forwarded. The child is killed before this propagates.
        """
        logger.debug(f"Spawning {display_command(argv)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=_STREAM_LIMIT,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundException(Path(argv[0]).name, Path(argv[0])) from e
        logger.debug(f"Spawned child process {process.pid}")

        stderr_tail: collections.deque = collections.deque(maxlen=STDERR_TAIL_LINES)
        progress = 0
        cancelled = False

        exit_task = asyncio.ensure_future(process.wait())
        tick_task = asyncio.ensure_future(asyncio.sleep(self.tick_interval))
        stderr_task: Optional[asyncio.Future] = asyncio.ensure_future(process.stderr.readline())
        stdout_task: Optional[asyncio.Future] = asyncio.ensure_future(process.stdout.readline())
        cancel_task = asyncio.ensure_future(self.interrupts.receive())

        self.report.processing_started(label)
        try:
            while True:
                waiting = {
                    task
                    for task in (exit_task, tick_task, stderr_task, stdout_task, cancel_task)
                    if task is not None
                }
                done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

                if stderr_task in done:
                    line = stderr_task.result()
                    if line:
                        text = _decode(line)
                        stderr_tail.append(text)
                        self.report.processing_output(label, progress, cancelled, text)
                        stderr_task = asyncio.ensure_future(process.stderr.readline())
                    else:
                        stderr_task = None

                if stdout_task in done:
                    line = stdout_task.result()
                    if line:
                        self.report.processing_output(label, progress, cancelled, _decode(line))
                        stdout_task = asyncio.ensure_future(process.stdout.readline())
                    else:
                        stdout_task = None

                if tick_task in done:
                    progress += 1
                    self.report.processing_tick(label, progress, cancelled)
                    tick_task = asyncio.ensure_future(asyncio.sleep(self.tick_interval))

                if cancel_task in done:
                    cancel_task.result()
                    cancel_task = asyncio.ensure_future(self.interrupts.receive())
                    if cancelled:
                        logger.debug("Cancellation already requested, ignoring interrupt")
                    else:
                        cancelled = True
                        self._forward_interrupt(process)

                if exit_task in done:
                    exit_status = exit_task.result()
                    break

            await self._drain(stderr_task, process.stderr, label, progress, cancelled, stderr_tail)
            await self._drain(stdout_task, process.stdout, label, progress, cancelled, None)
            stderr_task = stdout_task = None
        finally:
            for task in (tick_task, stderr_task, stdout_task, cancel_task):
                if task is not None and not task.done():
                    task.cancel()
            if process.returncode is None:
                logger.warning(f"Killing child process {process.pid}")
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
            if not exit_task.done():
                exit_task.cancel()
            self.report.processing_finished()

        logger.debug(f"Child process {process.pid} exited with status {exit_status}")
        return SupervisorOutcome(exit_status, cancelled, tuple(stderr_tail))

    @staticmethod
    def _forward_interrupt(process: asyncio.subprocess.Process):
        logger.trace(f"Forwarding SIGINT to child process {process.pid}")
        try:
            process.send_signal(signal.SIGINT)
        except ProcessLookupError:
            logger.debug(f"Child process {process.pid} already exited")

    async def _drain(self, task, stream, label, progress, cancelled, tail):
        """
        Forwards output still buffered after the child exited. Waits at most
        one tick for each line, so a grandchild holding the pipe open cannot
        block the batch.
        """
        while task is not None:
            try:
                line = await asyncio.wait_for(task, timeout=self.tick_interval)
            except asyncio.TimeoutError:
                return
            if not line:
                return
            text = _decode(line)
            if tail is not None:
                tail.append(text)
            self.report.processing_output(label, progress, cancelled, text)
            task = asyncio.ensure_future(stream.readline())
