"""
Progress Reporting
==================

Stage-by-stage progress telemetry for an analysis run. Reports are
advisory: they never change the result of the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class ProgressStage(Enum):
    """Pipeline stages, in the order a run passes through them."""

    FETCHING = "fetching"
    PARSING = "parsing"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    COMPLETE = "complete"


@dataclass(frozen=True)
class AnalysisProgress:
    """One progress report."""

    stage: str
    progress: float
    message: str
    current_file: str | None = None

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        data = {"stage": self.stage, "progress": self.progress, "message": self.message}
        if self.current_file is not None:
            data["currentFile"] = self.current_file
        return data


ProgressCallback = Callable[[AnalysisProgress], None]


class ProgressReporter:
    """
    Emits progress reports for one run.

    Percentages are clamped to 0-100 and never go backwards, so a late
    report from a slower stage cannot make the bar jump back.
    """

    def __init__(self, callback: ProgressCallback | None = None):
        self.callback = callback
        self.history: list[AnalysisProgress] = []
        self._last_progress = 0.0
        self._last_stage: str | None = None

    @property
    def last_progress(self) -> float:
        return self._last_progress

    def report(
        self,
        stage: ProgressStage,
        progress: float,
        message: str,
        current_file: str | None = None,
    ) -> AnalysisProgress:
        """
        Record and forward a progress report.

        Args:
            stage: Current pipeline stage
            progress: Requested percentage (0-100)
            message: Human-readable status
            current_file: File being processed, during parsing

        Returns:
            The report that was emitted
        """
        value = max(self._last_progress, min(100.0, max(0.0, float(progress))))
        self._last_progress = value

        update = AnalysisProgress(
            stage=stage.value,
            progress=round(value, 2),
            message=message,
            current_file=current_file,
        )

        if stage.value != self._last_stage:
            logger.info("%s (%d%%): %s", stage.value, value, message)
            self._last_stage = stage.value
        elif current_file:
            logger.debug("%s (%d%%): %s", stage.value, value, current_file)

        self.history.append(update)
        if self.callback is not None:
            self.callback(update)
        return update
