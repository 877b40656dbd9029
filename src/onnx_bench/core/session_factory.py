"""Builds the per-cell session configuration."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .catalog import ModelDescriptor
from .cell import Cell, Stage, StageOutcome
from .config import (
    OptimizationLevel,
    PRECOMPILED_MARKER,
    SessionConfig,
    SweepRequest,
)
from .errors import MissingOptimizedArtifactError, ProviderUnavailableError
from ..backends.provider_catalog import ProviderCatalog

logger = logging.getLogger(__name__)


def optimized_artifact_path(
    model: ModelDescriptor,
    provider: str,
    level: OptimizationLevel,
    models_dir: Optional[str] = None,
) -> str:
    """Path of the optimized artifact exported/imported for a model, provider and level.

    The file lives in models_dir; without one, next to the model artifact.
    """
    directory = Path(models_dir) if models_dir is not None else Path(model.artifact_path).parent
    return str(directory / f"{model.base_name}_optimized_{provider}_{level.value}.onnx")


@dataclass(frozen=True)
class SessionPlan:
    """What to load for a cell and how to label its result."""
    config: SessionConfig
    artifact_path: str
    optimization_label: str


class SessionFactory:
    """Materializes a SessionConfig for each cell of the sweep."""

    def __init__(
        self,
        request: SweepRequest,
        providers: ProviderCatalog,
        models_dir: Optional[str] = None,
    ):
        self.request = request
        self.providers = providers
        self.models_dir = models_dir

    def build(self, cell: Cell) -> StageOutcome[SessionPlan]:
        """
        Build the session plan for one cell.

        Invalid combinations (unknown or unavailable provider, missing
        optimized artifact) are returned as a CONFIGURE failure.

        Args:
            cell: Cell to configure

        Returns:
            Outcome holding the SessionPlan or the failure
        """
        is_valid, error = self.providers.validate_provider(cell.provider)
        if not is_valid:
            return StageOutcome.fail(Stage.CONFIGURE, str(ProviderUnavailableError(error)))

        descriptor = self.providers.get(cell.provider)
        level = cell.optimization_level
        request = self.request

        if request.load_optimized:
            import_path = optimized_artifact_path(cell.model, cell.provider, level, self.models_dir)
            if not Path(import_path).is_file():
                error = MissingOptimizedArtifactError(import_path, level.value)
                return StageOutcome.fail(Stage.CONFIGURE, str(error))
            artifact_path = import_path
            # The artifact already carries the optimized graph
            backend_level = OptimizationLevel.NONE
            label = f"{level.value}{PRECOMPILED_MARKER}"
        else:
            import_path = None
            artifact_path = cell.model.artifact_path
            backend_level = level
            label = level.value

        export_path = None
        if (request.save_optimized
                and not request.load_optimized
                and level != OptimizationLevel.NONE
                and not descriptor.is_slow_compile):
            # Compiled engine nodes cannot be serialized, hence the slow-compile exclusion
            export_path = optimized_artifact_path(cell.model, cell.provider, level, self.models_dir)

        profile_prefix = None
        if request.profile:
            profile_prefix = f"{cell.model.base_name}_{cell.provider}_{level.value}"

        config = SessionConfig(
            provider=cell.provider,
            optimization_level=backend_level,
            execution_provider=descriptor.capability_id,
            device_id=request.gpu_id,
            export_path=export_path,
            import_path=import_path,
            verbose=request.verbose,
            profile=request.profile,
            profile_prefix=profile_prefix,
        )
        logger.debug(f"Session plan for {cell}: {config}")

        return StageOutcome.success(SessionPlan(config, artifact_path, label))
