"""Configuration for the ONNX Runtime sweep benchmark."""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


class OptimizationLevel(Enum):
    """Graph optimization levels exposed on the command line."""
    NONE = "none"
    BASIC = "basic"
    EXTENDED = "extended"
    FULL = "full"

    @classmethod
    def parse(cls, value: "str | OptimizationLevel") -> "OptimizationLevel":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            names = ", ".join(level.value for level in cls)
            raise ValueError(f"Unknown optimization level: {value}. Expected one of: {names}")


# Order used by --compare-optimizations
COMPARE_LEVELS: List[OptimizationLevel] = [
    OptimizationLevel.NONE,
    OptimizationLevel.BASIC,
    OptimizationLevel.EXTENDED,
    OptimizationLevel.FULL,
]

# Sizes used when --size 0 asks for an automatic size sweep
CANONICAL_SIZES: List[int] = [256, 512, 1024]
SMALLEST_SIZE = CANONICAL_SIZES[0]
SWEEP_ALL_SIZES = 0

# Appended to the optimization level of a result loaded from a pre-optimized artifact
PRECOMPILED_MARKER = "*"

DEFAULT_MODELS_DIR = "./models"
DEFAULT_RESULTS_FILE = "./benchmark_results.txt"


@dataclass
class SweepRequest:
    """User-supplied sweep axes and run flags."""
    model: str = "esrgan2x"
    size: int = 512  # 0 = sweep CANONICAL_SIZES
    provider: str = "cpu"
    optimization: OptimizationLevel = OptimizationLevel.NONE
    compare_optimizations: bool = False
    warmup: int = 5
    runs: int = 5
    gpu_id: int = 0
    verbose: bool = False
    profile: bool = False
    save_optimized: bool = False
    load_optimized: bool = False
    include_tensorrt: bool = False

    def __post_init__(self):
        self.optimization = OptimizationLevel.parse(self.optimization)
        self.model = self.model.lower()
        self.provider = self.provider.lower()

    @property
    def sweep_sizes(self) -> bool:
        """True when the size axis is the automatic canonical sweep."""
        return self.size == SWEEP_ALL_SIZES

    def optimization_levels(self) -> List[OptimizationLevel]:
        """Optimization levels to benchmark, in order."""
        if self.compare_optimizations:
            return list(COMPARE_LEVELS)
        return [self.optimization]

    def validate(self) -> List[str]:
        """Validate numeric arguments and return list of errors."""
        errors = []

        if self.size < 0:
            errors.append(f"Size must be positive or 0 (sweep sizes), got {self.size}")
        if self.warmup < 0:
            errors.append(f"Warmup count must not be negative, got {self.warmup}")
        if self.runs < 1:
            errors.append(f"Run count must be at least 1, got {self.runs}")
        if self.gpu_id < 0:
            errors.append(f"GPU index must not be negative, got {self.gpu_id}")

        return errors


@dataclass(frozen=True)
class SessionConfig:
    """Per-cell session configuration. Built fresh for every cell."""
    provider: str
    optimization_level: OptimizationLevel  # level applied by the backend
    execution_provider: str = "CPUExecutionProvider"
    device_id: int = 0
    export_path: Optional[str] = None
    import_path: Optional[str] = None
    verbose: bool = False
    profile: bool = False
    profile_prefix: Optional[str] = None

    @property
    def loads_precompiled(self) -> bool:
        return self.import_path is not None


@dataclass
class BenchmarkConfig:
    """Top-level configuration: file locations, extra models and sweep defaults."""
    models_dir: str = DEFAULT_MODELS_DIR
    results_file: str = DEFAULT_RESULTS_FILE
    # alias -> {"file": ..., "fixed_size": ...}; relative files resolve against models_dir
    models: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    sweep: SweepRequest = field(default_factory=SweepRequest)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "BenchmarkConfig":
        """Load configuration from YAML file."""
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}

        sweep_data = data.get("sweep", {}) or {}
        known = {f.name for f in fields(SweepRequest)}
        unknown = sorted(set(sweep_data) - known)
        if unknown:
            raise ValueError(f"Unknown sweep settings in {yaml_path}: {', '.join(unknown)}")

        models = {}
        for alias, entry in (data.get("models", {}) or {}).items():
            if isinstance(entry, str):
                entry = {"file": entry}
            if "file" not in entry:
                raise ValueError(f"Model '{alias}' in {yaml_path} has no 'file' entry")
            models[str(alias).lower()] = {
                "file": entry["file"],
                "fixed_size": entry.get("fixed_size"),
            }

        return cls(
            models_dir=data.get("models_dir", DEFAULT_MODELS_DIR),
            results_file=data.get("results_file", DEFAULT_RESULTS_FILE),
            models=models,
            sweep=SweepRequest(**sweep_data),
        )

    def with_overrides(self, **overrides: Any) -> "BenchmarkConfig":
        """Return a copy with sweep settings replaced by the non-None overrides."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, sweep=replace(self.sweep, **values))

    @property
    def models_path(self) -> Path:
        return Path(self.models_dir)
