"""Sweep controller: enumerates cells and runs them one at a time."""

import logging
from typing import Iterator, List, Optional

from .benchmark_runner import BenchmarkRunner
from .catalog import ModelCatalog, ModelDescriptor
from .cell import Cell
from .config import CANONICAL_SIZES, OptimizationLevel, SMALLEST_SIZE, SweepRequest
from .results import ResultRecorder, RunResult
from ..backends.provider_catalog import CPU, SLOW_COMPILE_PROVIDERS, ProviderCatalog

logger = logging.getLogger(__name__)


class SweepListener:
    """Receives sweep progress events. Default implementation only logs."""

    def model_started(self, model: ModelDescriptor) -> None:
        logger.info(f"Testing model: {model.alias} ({model.artifact_path})")

    def size_started(self, size: int, providers: List[str], levels: List[OptimizationLevel]) -> None:
        logger.debug(f"Size {size}x{size}: providers={providers}")

    def slow_compile_warning(self, cell: Cell) -> None:
        logger.warning(
            f"{cell.provider} builds its engine during the first run; this can take several minutes"
        )

    def cell_started(self, cell: Cell) -> None:
        pass

    def cell_finished(self, cell: Cell, result: RunResult, line: str) -> None:
        pass


class SweepController:
    """
    Orders the cross product models x sizes x providers x levels.

    Models come first, then sizes valid for the model, then providers
    valid for the size, then optimization levels. Cells run sequentially;
    failures are contained by the runner.
    """

    def __init__(self, request: SweepRequest, models: List[ModelDescriptor], providers: List[str]):
        self.request = request
        self.models = list(models)
        self.providers = list(providers)
        self.levels = request.optimization_levels()

    @classmethod
    def plan(
        cls,
        request: SweepRequest,
        models: ModelCatalog,
        providers: ProviderCatalog,
    ) -> "SweepController":
        """
        Resolve the request against the catalogs.

        Raises:
            UnknownModelError: model alias not registered
            UnknownProviderError: provider alias not known
            MissingModelArtifactError: a selected model file is missing
        """
        selected = models.resolve(request.model)
        resolved_providers = providers.intersect(
            request.provider, include_slow_compile=request.include_tensorrt
        )
        ModelCatalog.require_artifacts(selected)
        return cls(request, selected, resolved_providers)

    def sizes_for(self, model: ModelDescriptor) -> List[int]:
        """Input sizes to test for a model."""
        if model.fixed_size is not None:
            return [model.fixed_size]
        if self.request.sweep_sizes:
            return list(CANONICAL_SIZES)
        return [self.request.size]

    def providers_for(self, size: int) -> List[str]:
        """Providers to test at a size. CPU only runs the smallest size of a size sweep."""
        if not self.request.sweep_sizes or size == SMALLEST_SIZE:
            return list(self.providers)

        kept = [p for p in self.providers if p != CPU]
        if len(kept) != len(self.providers):
            logger.debug(f"Skipping {CPU} at {size}x{size} (size sweep runs {CPU} at {SMALLEST_SIZE} only)")
        return kept

    def cells(self) -> Iterator[Cell]:
        for model in self.models:
            for size in self.sizes_for(model):
                for provider in self.providers_for(size):
                    for level in self.levels:
                        yield Cell(model, size, provider, level)

    def run(
        self,
        runner: BenchmarkRunner,
        recorder: ResultRecorder,
        listener: Optional[SweepListener] = None,
    ) -> List[RunResult]:
        """Run every cell in order and record each result as it completes."""
        listener = listener or SweepListener()
        results: List[RunResult] = []
        current_model = None
        current_size = None

        for cell in self.cells():
            if cell.model is not current_model:
                current_model, current_size = cell.model, None
                listener.model_started(cell.model)
            if cell.size != current_size:
                current_size = cell.size
                listener.size_started(cell.size, self.providers_for(cell.size), self.levels)

            if cell.provider in SLOW_COMPILE_PROVIDERS:
                listener.slow_compile_warning(cell)
            listener.cell_started(cell)

            result = runner.run_cell(cell)
            line = recorder.record(result)
            results.append(result)

            listener.cell_finished(cell, result, line)

        return results
