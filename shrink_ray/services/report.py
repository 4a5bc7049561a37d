"""
The event stream from the conversion core to whatever renders it.

`ReportSink` defines the events; its methods do nothing, so a sink only
overrides what it cares about. `TerminalReport` renders the events with rich:
a single status line rewritten in place while a tool runs, followed by one
line per finished file and a summary at the end of a batch.
"""
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.control import Control, ControlType
from rich.text import Text

from ..domain.statistics import Delta, Statistics
from ..utils.format_utils import display_command, formatted_ratio, formatted_size


class ReportSink:
    """Receives progress and outcome events. Every method is a no-op by default."""

    # --- While a tool runs ---
    def processing_started(self, path: Path):
        pass

    def processing_tick(self, path: Path, progress: int, cancelling: bool):
        pass

    def processing_output(self, path: Path, progress: int, cancelling: bool, line: str):
        pass

    def processing_finished(self):
        pass

    # --- Per-file outcomes ---
    def shrunk(self, path: Path, delta: Delta):
        pass

    def grew(self, path: Path, delta: Delta):
        pass

    def skipped(self, path: Path, reason: str):
        pass

    def failed(self, path: Path, reason: str):
        pass

    def cancelled(self, path: Path):
        pass

    # --- Batch level ---
    def command(self, argv: Sequence[str]):
        pass

    def statistics(self, stats: Statistics):
        pass


class TerminalReport(ReportSink):
    """Renders report events on a terminal."""

    ANIMATION = ("⠋", "⠙", "⠸", "⠴", "⠦", "⠇")
    VERB_WIDTH = 10

    def __init__(self, console: Console | None = None):
        self.console = console or Console(highlight=False)

    def _verb(self, verb: str, style: str) -> Text:
        return Text(verb.rjust(self.VERB_WIDTH), style=style)

    def _outcome(self, verb: str, style: str, path: Path, detail: str | None = None):
        line = Text.assemble(self._verb(verb, style), " ", str(path))
        if detail:
            line.append(f" ({detail})", style="dim")
        self.console.print(line)

    def _clear_line(self):
        self.console.control(
            Control(ControlType.CARRIAGE_RETURN, (ControlType.ERASE_IN_LINE, 2))
        )

    def _status(self, path: Path, progress: int, cancelling: bool):
        if cancelling:
            verb = self._verb("Cancelling", "bold red")
        else:
            verb = self._verb("Shrinking", "bold cyan")
        frame = self.ANIMATION[progress % len(self.ANIMATION)]
        self.console.print(Text.assemble(verb, f" {frame} {path}"), end="")

    def processing_started(self, path: Path):
        self._status(path, 0, False)

    def processing_tick(self, path: Path, progress: int, cancelling: bool):
        self._clear_line()
        self._status(path, progress, cancelling)

    def processing_output(self, path: Path, progress: int, cancelling: bool, line: str):
        self._clear_line()
        self.console.print(Text(" " * (self.VERB_WIDTH + 3) + line, style="dim"))
        self._status(path, progress, cancelling)

    def processing_finished(self):
        self._clear_line()

    def shrunk(self, path: Path, delta: Delta):
        detail = f"-{formatted_size(delta.difference())}, -{formatted_ratio(delta.ratio())}"
        self._outcome("Shrunk", "bold green", path, detail)

    def grew(self, path: Path, delta: Delta):
        detail = f"+{formatted_size(delta.difference())}, +{formatted_ratio(delta.ratio())}"
        self._outcome("Grew", "bold yellow", path, detail)

    def skipped(self, path: Path, reason: str):
        self._outcome("Skipped", "bold magenta", path, reason)

    def failed(self, path: Path, reason: str):
        self._outcome("Failed", "bold red", path, reason)

    def cancelled(self, path: Path):
        self._outcome("Cancelled", "bold red", path)

    def command(self, argv: Sequence[str]):
        self.console.print(display_command(argv), markup=False)

    def statistics(self, stats: Statistics):
        summary = Text.assemble(
            ("Shrunk", "bold green"),
            f" {stats.shrunk} ",
            (f"(-{formatted_size(stats.saved)})", "dim"),
            ", ",
            ("Grew", "bold yellow"),
            f" {stats.grew} ",
            (f"(+{formatted_size(stats.wasted)})", "dim"),
            ", ",
            ("Skipped", "bold magenta"),
            f" {stats.skipped}, ",
            ("Failed", "bold red"),
            f" {stats.failed}",
        )
        self.console.print(summary)

        delta = stats.delta()
        total = Text(f"Processed {formatted_size(delta.original)}, ")
        if delta.is_smaller():
            total.append("saving", style="bold green")
            total.append(f" -{formatted_size(delta.difference())} ")
            total.append(f"(-{formatted_ratio(delta.ratio())})", style="dim")
        else:
            total.append("wasting", style="bold yellow")
            total.append(f" +{formatted_size(delta.difference())} ")
            total.append(f"(+{formatted_ratio(delta.ratio())})", style="dim")
        self.console.print(total)
