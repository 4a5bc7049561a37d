import asyncio
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from ..config.common import (
    DEFAULT_KEEP_GOING,
    DEFAULT_NO_GROW,
    EXIT_CANCELLED,
    EXIT_FAILED,
    EXIT_OK,
)
from ..domain.exceptions import (
    CancelledException,
    ConversionFailedException,
    InvocationFailedException,
    SkippedFileException,
)
from ..domain.job import OutputOptions
from ..domain.statistics import Delta, Statistics
from ..services.conversion import ConversionTransaction
from ..services.identification import Identifier
from ..services.report import ReportSink, TerminalReport
from ..services.supervisor import InterruptChannel, ProcessSupervisor
from ..services.tool_selector import BinaryCache


class BatchPipeline:
    """
    Converts a list of inputs strictly one at a time.

    Skips never affect the exit status. A failed file stops the batch unless
    `keep_going` is set; an interrupt or an unexpected filesystem error
    always stops it.
    """

    def __init__(
        self,
        inputs: Sequence[Path],
        options: OutputOptions,
        report: Optional[ReportSink] = None,
        no_grow: bool = DEFAULT_NO_GROW,
        keep_going: bool = DEFAULT_KEEP_GOING,
        dry_run: bool = False,
        binaries: Optional[BinaryCache] = None,
        identifier: Optional[Identifier] = None,
    ):
        self.inputs = list(inputs)
        self.options = options
        self.report = report or TerminalReport()
        self.no_grow = no_grow
        self.keep_going = keep_going
        self.dry_run = dry_run
        self.binaries = binaries or BinaryCache()
        self.identifier = identifier or Identifier()
        self.statistics = Statistics()
        self.interrupts = InterruptChannel()
        self.transaction = ConversionTransaction(
            ProcessSupervisor(self.report, self.interrupts),
            self.identifier,
            self.binaries,
            self.options,
            no_grow=self.no_grow,
        )

    def run(self) -> int:
        """Runs the batch on a fresh event loop and returns the exit code."""
        return asyncio.run(self.run_async())

    async def run_async(self) -> int:
        with self.interrupts:
            cancelled = await self._process_all()

        if len(self.inputs) > 1 and not self.dry_run:
            self.report.statistics(self.statistics)

        if cancelled:
            return EXIT_CANCELLED
        if self.statistics.failed:
            return EXIT_FAILED
        return EXIT_OK

    async def _process_all(self) -> bool:
        """Returns True if the batch was cancelled."""
        logger.info(f"Processing {len(self.inputs)} file(s)")
        for input_path in self.inputs:
            if self.interrupts.pending():
                self.interrupts.drain()
                logger.info("Interrupted between files, stopping")
                self.report.cancelled(input_path)
                return True

            try:
                job = self.transaction.prepare(input_path)
                if self.dry_run:
                    for argv in self.transaction.command_lines(job):
                        self.report.command(argv)
                    continue
                delta = await self.transaction.convert(job)
            except SkippedFileException as e:
                logger.info(f"Skipping `{input_path}`: {e.reason}")
                self.statistics.skip()
                self.report.skipped(input_path, e.reason)
            except ConversionFailedException as e:
                logger.error(f"Failed to convert `{input_path}`: {e}")
                if isinstance(e, InvocationFailedException):
                    for line in e.stderr_tail:
                        logger.debug(f"{e.tool}: {line}")
                self.statistics.fail()
                self.report.failed(input_path, str(e))
                if not self.keep_going:
                    logger.info("Stopping after the first failure (use --keep-going to continue)")
                    return False
            except CancelledException:
                logger.info(f"Cancelled while converting `{input_path}`")
                self.report.cancelled(input_path)
                return True
            except OSError as e:
                logger.error(f"I/O error while converting `{input_path}`: {e}")
                self.statistics.fail()
                self.report.failed(input_path, str(e))
                return False
            else:
                self._record(input_path, delta)
        return False

    def _record(self, input_path: Path, delta: Delta):
        if delta.is_smaller():
            self.statistics.shrink(delta)
            self.report.shrunk(input_path, delta)
        elif self.no_grow:
            self.statistics.skip()
            self.report.skipped(input_path, "output was larger than the input")
        else:
            self.statistics.grow(delta)
            self.report.grew(input_path, delta)
