"""
Timed-run engine for one benchmark cell.

A cell runs strictly in sequence: configure, load, prepare input,
discovery run, allocate output, warmup, timed runs. Each stage returns a
StageOutcome; the first failure ends the cell as a failed RunResult and
the session is closed before run_cell() returns.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .cell import Cell, CellFailure, Stage, StageOutcome
from .config import SweepRequest
from .results import RunResult
from .session_factory import SessionFactory, SessionPlan
from ..backends.base import BaseBackend, BaseSession, output_shape_of

logger = logging.getLogger(__name__)

# Fixed seed so every cell benchmarks the same input data
INPUT_SEED = 42


def generate_input(size: int, dtype: np.dtype = np.float32, seed: int = INPUT_SEED) -> np.ndarray:
    """Deterministic [1, 3, size, size] noise image in [0, 1)."""
    rng = np.random.default_rng(seed)
    data = rng.random((1, 3, size, size), dtype=np.float32)
    return data.astype(dtype, copy=False)


def _error_message(e: Exception) -> str:
    return str(e) or e.__class__.__name__


class BenchmarkRunner:
    """
    Runs single cells against an inference backend.

    Input and output buffers are allocated once per cell and reused for
    every warmup and timed iteration, so timings measure inference only.
    """

    def __init__(
        self,
        backend: BaseBackend,
        factory: SessionFactory,
        request: SweepRequest,
        progress: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """
        Initialize the runner.

        Args:
            backend: Inference backend used to create sessions
            factory: Session factory for per-cell configuration
            request: Sweep request (warmup and run counts)
            progress: Optional sink for operator progress text
            clock: Monotonic clock in seconds
        """
        self.backend = backend
        self.factory = factory
        self.request = request
        self.clock = clock
        self._progress = progress or (lambda text: None)

    def run_cell(self, cell: Cell) -> RunResult:
        """Run one cell. Never raises for failures inside the cell."""
        result = RunResult(
            provider=cell.provider,
            model_name=cell.model.base_name,
            optimization_level=cell.optimization_level.value,
            size=cell.size,
        )

        configured = self.factory.build(cell)
        if not configured.ok:
            return self._fail(result, cell, configured.failure)
        plan = configured.value
        result.optimization_level = plan.optimization_label
        self._announce_artifacts(plan)

        loaded = self._load(plan)
        if not loaded.ok:
            return self._fail(result, cell, loaded.failure)
        session, result.load_time_s = loaded.value

        try:
            with session:
                measured = self._measure(session, cell.size, result)
        except Exception as e:
            # Only session release can raise here; every stage returns an outcome
            return self._fail(result, cell, CellFailure(Stage.RELEASE, _error_message(e)))

        if not measured.ok:
            return self._fail(result, cell, measured.failure)

        result.success = True
        return result

    def _announce_artifacts(self, plan: SessionPlan) -> None:
        if plan.config.import_path:
            self._progress(f"(loading {Path(plan.config.import_path).name}) ")
        if plan.config.export_path:
            self._progress(f"(saving to {Path(plan.config.export_path).name}) ")

    def _load(self, plan: SessionPlan) -> StageOutcome[Tuple[BaseSession, float]]:
        """Construct the session and time it."""
        self._progress("load")
        start = self.clock()
        try:
            session = self.backend.create_session(plan.artifact_path, plan.config)
        except Exception as e:
            return StageOutcome.fail(Stage.LOAD, _error_message(e))
        load_time = self.clock() - start
        self._progress(f" ({load_time:.3f}s) | ")
        return StageOutcome.success((session, load_time))

    def _measure(self, session: BaseSession, size: int, result: RunResult) -> StageOutcome[List[float]]:
        """Stages that need a live session. Fills result and returns the timings."""
        prepared = self._prepare_input(session, size)
        if not prepared.ok:
            return prepared
        inputs = prepared.value

        discovered = self._discover(session, inputs)
        if not discovered.ok:
            return discovered
        output, result.first_run_time_s = discovered.value
        result.output_shape = list(output.shape)

        try:
            outputs = {session.output_name: np.empty(output.shape, dtype=output.dtype)}
            session.bind(inputs, outputs)
        except Exception as e:
            return StageOutcome.fail(Stage.PREPARE, _error_message(e))

        warmed = self._warmup(session, self.request.warmup)
        if not warmed.ok:
            return warmed

        timed = self._timed(session, self.request.runs)
        if timed.ok:
            result.timings = timed.value
        return timed

    def _prepare_input(self, session: BaseSession, size: int) -> StageOutcome[Dict[str, np.ndarray]]:
        try:
            data = generate_input(size, session.input_dtype)
        except Exception as e:
            return StageOutcome.fail(Stage.PREPARE, _error_message(e))
        return StageOutcome.success({session.input_name: data})

    def _discover(
        self,
        session: BaseSession,
        inputs: Dict[str, np.ndarray],
    ) -> StageOutcome[Tuple[np.ndarray, float]]:
        """First inference: learns the output shape. Includes one-time optimization/compile cost."""
        self._progress("1st ")
        start = self.clock()
        try:
            outputs = session.run(inputs)
            output = np.asarray(outputs[session.output_name])
        except Exception as e:
            return StageOutcome.fail(Stage.DISCOVERY, _error_message(e))
        first_run = self.clock() - start
        self._progress(f" ({first_run:.3f}s) | ")
        logger.debug(f"Output shape: {output_shape_of(outputs, session.output_name)}")
        return StageOutcome.success((output, first_run))

    def _warmup(self, session: BaseSession, count: int) -> StageOutcome[int]:
        try:
            for _ in range(count):
                session.run_bound()
                self._progress("w")
        except Exception as e:
            return StageOutcome.fail(Stage.WARMUP, _error_message(e))
        return StageOutcome.success(count)

    def _timed(self, session: BaseSession, runs: int) -> StageOutcome[List[float]]:
        timings: List[float] = []
        try:
            for _ in range(runs):
                start = self.clock()
                session.run_bound()
                timings.append(self.clock() - start)
                self._progress(".")
        except Exception as e:
            return StageOutcome.fail(Stage.TIMED, _error_message(e))
        self._progress(" ")
        return StageOutcome.success(timings)

    def _fail(self, result: RunResult, cell: Cell, failure: CellFailure) -> RunResult:
        logger.debug(f"Cell {cell} failed in {failure.stage.value} stage: {failure.message}")
        result.success = False
        result.error = failure.message
        result.timings = []
        return result
