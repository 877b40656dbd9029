"""
ONNX Runtime Sweep Benchmark
============================

Latency/throughput benchmark for image-to-image ONNX models
(super-resolution and face restoration) on ONNX Runtime.

Sweeps every combination of model, input size, execution provider and
graph optimization level, and reports per combination:
- Session load time
- First inference time (includes graph optimization / engine build)
- Steady-state average, min, max and FPS over the timed runs

Supported Execution Providers:
- CPU
- DirectML
- CUDA
- TensorRT (opt-in for provider groups)
"""

__version__ = "0.1.0"

from .core.config import BenchmarkConfig, SweepRequest
from .core.benchmark_runner import BenchmarkRunner
from .core.sweep import SweepController

__all__ = [
    "BenchmarkConfig",
    "BenchmarkRunner",
    "SweepController",
    "SweepRequest",
    "__version__",
]
