"""Run results and the cumulative results log."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import numpy as np

from ..utils.hardware import HardwareInfo

logger = logging.getLogger(__name__)

PLATFORM_TAG = "PYTHON"
BANNER_WIDTH = 100


@dataclass
class RunResult:
    """Outcome of one cell. Statistics are derived from timings on demand."""
    provider: str
    model_name: str
    optimization_level: str
    size: int
    success: bool = False
    error: Optional[str] = None
    load_time_s: float = 0.0  # Session creation
    first_run_time_s: float = 0.0  # Discovery run (includes optimization / engine build)
    timings: List[float] = field(default_factory=list)
    output_shape: List[int] = field(default_factory=list)

    @property
    def size_str(self) -> str:
        return f"{self.size}x{self.size}"

    @property
    def avg_time_s(self) -> float:
        return float(np.mean(self.timings)) if self.timings else 0.0

    @property
    def min_time_s(self) -> float:
        return float(np.min(self.timings)) if self.timings else 0.0

    @property
    def max_time_s(self) -> float:
        return float(np.max(self.timings)) if self.timings else 0.0

    @property
    def fps(self) -> float:
        avg = self.avg_time_s
        return 1.0 / avg if avg > 0 else 0.0


class ResultRecorder:
    """Renders fixed-width result lines and appends them to the results file.

    Writing the file is best effort: an unwritable results file never
    interrupts the sweep.
    """

    def __init__(self, results_file: str, hardware: HardwareInfo, platform_tag: str = PLATFORM_TAG):
        self.results_file = Path(results_file)
        self.hardware = hardware
        self.platform_tag = platform_tag
        self.lines: List[str] = []

    def format(self, result: RunResult) -> str:
        """One fixed-width line for a result."""
        hw_info = self.hardware.describe(result.provider)
        platform_str = f"{self.platform_tag} | {result.model_name}"
        prefix = (
            f"{hw_info:<48} | {platform_str:<55} | {result.provider:<10} | "
            f"{result.optimization_level:<8} | {result.size_str:<9} | "
        )

        if not result.success:
            return f"{prefix}ERROR: {result.error}"

        return (
            f"{prefix}load: {result.load_time_s:5.1f}s | 1st: {result.first_run_time_s:5.1f}s | "
            f"avg: {result.avg_time_s:6.3f}s | fps: {result.fps:6.2f} | "
            f"min: {result.min_time_s:6.3f}s | max: {result.max_time_s:6.3f}s"
        )

    def write_header(self, now: Optional[datetime] = None) -> None:
        """Append the timestamped block that opens a run."""
        now = now or datetime.now()
        rule = "=" * BANNER_WIDTH
        self._append(["", rule, f"Benchmark run: {now:%Y-%m-%d %H:%M:%S}", rule])

    def record(self, result: RunResult) -> str:
        """Format a result, keep it for the summary and append it to the file."""
        line = self.format(result)
        self.lines.append(line)
        self._append([line])
        return line

    def _append(self, lines: List[str]) -> None:
        try:
            with open(self.results_file, "a", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
        except OSError as e:
            # Results log is non-critical
            logger.debug(f"Could not write {self.results_file}: {e}")
