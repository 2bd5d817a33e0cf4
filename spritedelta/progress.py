"""Progress reporting for the export pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class ProgressEvent:
    stage: str
    percent: float                # 0 -- 100, non-decreasing within a run
    detail: Optional[str] = None


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressReporter:
    """Forward progress events to an optional callback.

    Percentages are clamped to [0, 100] and never move backwards within
    one reporter, so callers can drive a progress bar directly.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self.callback = callback
        self.percent = 0.0

    def report(self, stage: str, percent: float, detail: Optional[str] = None) -> None:
        self.percent = max(self.percent, min(100.0, max(0.0, float(percent))))
        if self.callback is not None:
            self.callback(ProgressEvent(stage, self.percent, detail))

    def span(self, stage: str, start: float, end: float, done: int, total: int,
             detail: Optional[str] = None) -> None:
        """Report *done* of *total* items mapped linearly onto [start, end]."""
        ratio = done / max(1, total)
        self.report(stage, start + ratio * (end - start), detail)


def should_report(i: int, total: int, every: int = 4) -> bool:
    """Throttle per-frame reports to every *every*-th item and the last one."""
    return i % every == 0 or i == total - 1
