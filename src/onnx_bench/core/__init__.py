"""Core components for the ONNX Runtime sweep benchmark."""

from .config import (
    BenchmarkConfig,
    OptimizationLevel,
    SessionConfig,
    SweepRequest,
)
from .errors import (
    BenchmarkError,
    CellError,
    ConfigurationError,
    MissingModelArtifactError,
    MissingOptimizedArtifactError,
    ProviderUnavailableError,
    UnknownModelError,
    UnknownProviderError,
)
from .catalog import ModelCatalog, ModelDescriptor
from .cell import Cell, Stage, StageOutcome
from .results import ResultRecorder, RunResult
from .session_factory import SessionFactory, SessionPlan
from .benchmark_runner import BenchmarkRunner
from .sweep import SweepController, SweepListener

__all__ = [
    "BenchmarkConfig",
    "OptimizationLevel",
    "SessionConfig",
    "SweepRequest",
    "BenchmarkError",
    "CellError",
    "ConfigurationError",
    "MissingModelArtifactError",
    "MissingOptimizedArtifactError",
    "ProviderUnavailableError",
    "UnknownModelError",
    "UnknownProviderError",
    "ModelCatalog",
    "ModelDescriptor",
    "Cell",
    "Stage",
    "StageOutcome",
    "ResultRecorder",
    "RunResult",
    "SessionFactory",
    "SessionPlan",
    "BenchmarkRunner",
    "SweepController",
    "SweepListener",
]
