"""Exceptions for the ONNX Runtime sweep benchmark."""

from pathlib import Path
from typing import Iterable


class BenchmarkError(Exception):
    """Base class for all benchmark errors."""


class ConfigurationError(BenchmarkError):
    """Invalid invocation. Aborts the whole run before any cell executes."""


class UnknownModelError(ConfigurationError):
    """Requested model alias is not registered."""

    def __init__(self, alias: str, available: Iterable[str]):
        self.alias = alias
        self.available = list(available)
        super().__init__(
            f"Unknown model: {alias}\nAvailable: {', '.join(self.available)}"
        )


class UnknownProviderError(ConfigurationError):
    """Requested provider alias is not a known provider or provider group."""

    def __init__(self, alias: str, available: Iterable[str]):
        self.alias = alias
        self.available = list(available)
        super().__init__(
            f"Unknown provider: {alias}\nAvailable: {', '.join(self.available)}"
        )


class MissingModelArtifactError(ConfigurationError):
    """A model selected for the sweep has no artifact on disk."""

    def __init__(self, alias: str, path: str):
        self.alias = alias
        self.path = path
        super().__init__(f"Model '{alias}' not found: {path}")


class CellError(BenchmarkError):
    """Failure local to one cell of the sweep. Never aborts the sweep."""


class ProviderUnavailableError(CellError):
    """Provider is known but the backend did not report it as available."""


class MissingOptimizedArtifactError(CellError):
    """Load mode requested but the pre-optimized artifact does not exist."""

    def __init__(self, path: str, optimization_level: str):
        self.path = path
        self.optimization_level = optimization_level
        super().__init__(
            f"Optimized model not found: {Path(path).name}. "
            f"Run with -s -o {optimization_level} first."
        )
