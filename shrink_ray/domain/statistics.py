"""
Size deltas and the run-wide statistics built from them.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class Delta:
    """
    The size comparison between an original file and its converted version.

    Attributes:
        original: Size of the original file in bytes.
        new: Size of the converted file in bytes.
    """

    original: int
    new: int

    def is_smaller(self) -> bool:
        return self.original >= self.new

    def difference(self) -> int:
        return abs(self.original - self.new)

    def ratio(self) -> float:
        """
        The difference relative to the original size.

        An empty original has a ratio of 0.0 when nothing changed and
        infinity otherwise.
        """
        difference = self.difference()
        if self.original == 0:
            return 0.0 if difference == 0 else float("inf")
        return difference / self.original


@dataclass
class Statistics:
    """
    Totals for one batch run.

    Only the batch pipeline mutates an instance, after each job resolves.
    """

    processed: int = 0
    saved: int = 0
    wasted: int = 0
    shrunk: int = 0
    grew: int = 0
    skipped: int = 0
    failed: int = 0

    def shrink(self, delta: Delta):
        self.processed += delta.original
        self.saved += delta.difference()
        self.shrunk += 1

    def grow(self, delta: Delta):
        self.processed += delta.original
        self.wasted += delta.difference()
        self.grew += 1

    def skip(self):
        self.skipped += 1

    def fail(self):
        self.failed += 1

    def delta(self) -> Delta:
        """Returns a synthetic delta over every converted file of the run."""
        return Delta(self.processed, self.processed - self.saved + self.wasted)
