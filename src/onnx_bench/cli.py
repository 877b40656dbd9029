"""
Command Line Interface for the ONNX Runtime sweep benchmark.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import click

from . import __version__
from .backends.base import BaseBackend
from .backends.onnxruntime_backend import OnnxRuntimeBackend
from .backends.provider_catalog import ProviderCatalog
from .core.benchmark_runner import BenchmarkRunner
from .core.catalog import ModelCatalog
from .core.cell import Cell
from .core.config import BenchmarkConfig, OptimizationLevel
from .core.errors import ConfigurationError
from .core.results import ResultRecorder, RunResult
from .core.session_factory import SessionFactory
from .core.sweep import SweepController, SweepListener
from .utils.hardware import HardwareInfo, HardwareProbe

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

RULE = "=" * 100
THIN_RULE = "-" * 100


def create_backend() -> BaseBackend:
    """Inference backend used by the CLI."""
    return OnnxRuntimeBackend()


@click.group()
@click.version_option(version=__version__, prog_name="onnx-bench")
def main():
    """
    ONNX Runtime Sweep Benchmark

    Measures load time, first-inference time and steady-state latency of
    image models across execution providers, input sizes and graph
    optimization levels.
    """
    pass


class ConsoleListener(SweepListener):
    """Echoes sweep progress to the terminal."""

    def model_started(self, model):
        click.echo(f"\n{RULE}")
        click.echo(f"Testing Model: {model.alias}")
        click.echo(f"Path: {model.artifact_path}")
        click.echo(f"Size: {model.size_mb():.1f} MB")
        click.echo(THIN_RULE)

    def size_started(self, size, providers, levels):
        click.echo(
            f"\n--- {size}x{size} | providers: {', '.join(providers)} | "
            f"optimization: {', '.join(level.value for level in levels)} ---"
        )

    def slow_compile_warning(self, cell: Cell):
        click.echo(
            "  [TensorRT] First run and first warmup compiles the engine - "
            "this can take several minutes..."
        )

    def cell_started(self, cell: Cell):
        click.echo(f"  {cell.provider} | {cell.optimization_level.value} | ", nl=False)

    def cell_finished(self, cell: Cell, result: RunResult, line: str):
        if result.success:
            click.echo(f"avg={result.avg_time_s:.3f}s")
        else:
            click.echo(f"FAILED: {result.error}")
        click.echo(f" {line}")


def _print_gpus(probe: HardwareProbe) -> None:
    gpus = probe.list_gpus()

    click.echo("Available GPUs:")
    click.echo("-" * 60)
    if not gpus:
        click.echo("  No GPUs detected")
        return

    for gpu in gpus:
        click.echo(f"  [{gpu.id}] {gpu}")
    click.echo("-" * 60)
    click.echo("Use --gpu <id> or -g <id> to select a specific GPU")


def _flag(value: bool) -> Optional[bool]:
    """Only an explicitly set flag overrides the config file."""
    return True if value else None


@main.command()
@click.option('--size', type=int, default=None,
              help='Input size in pixels (0 = sweep 256, 512, 1024) [default: 512]')
@click.option('--provider', type=str, default=None,
              help='cpu, directml, cuda, tensorrt, gpu or all [default: cpu]')
@click.option('--model', '-m', type=str, default=None,
              help='Model alias or "all" [default: esrgan2x]')
@click.option('--warmup', type=int, default=None,
              help='Number of warmup iterations [default: 5]')
@click.option('--runs', type=int, default=None,
              help='Number of timed iterations [default: 5]')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--profile', '-p', is_flag=True, help='Write ONNX Runtime profile traces')
@click.option('--optimization', '-o', type=click.Choice([level.value for level in OptimizationLevel]),
              default=None, help='Graph optimization level [default: none]')
@click.option('--compare-optimizations', '-c', is_flag=True,
              help='Benchmark every optimization level (none, basic, extended, full)')
@click.option('--save-optimized', '-s', is_flag=True,
              help='Export the optimized model next to the original')
@click.option('--load-optimized', '-l', is_flag=True,
              help='Load a previously exported optimized model')
@click.option('--gpu', '-g', 'gpu_id', type=int, default=None,
              help='GPU device index [default: 0]')
@click.option('--include-tensorrt', is_flag=True,
              help='Include TensorRT when --provider is gpu or all')
@click.option('--config', type=click.Path(exists=True), default=None,
              help='Path to YAML configuration file')
@click.option('--models-dir', type=click.Path(), default=None,
              help='Directory containing the model files [default: ./models]')
@click.option('--results-file', type=click.Path(), default=None,
              help='Results log to append to [default: ./benchmark_results.txt]')
def run(size: Optional[int], provider: Optional[str], model: Optional[str],
        warmup: Optional[int], runs: Optional[int], verbose: bool, profile: bool,
        optimization: Optional[str], compare_optimizations: bool, save_optimized: bool,
        load_optimized: bool, gpu_id: Optional[int], include_tensorrt: bool,
        config: Optional[str], models_dir: Optional[str], results_file: Optional[str]):
    """
    Run the benchmark sweep.

    Examples:

        # Single model on CPU
        onnx-bench run --model compact2x --size 512 --provider cpu

        # All GPU providers, all sizes, all optimization levels
        onnx-bench run --model all --size 0 --provider gpu -c

        # Export optimized models, then benchmark the exported files
        onnx-bench run --provider cuda -o full -s
        onnx-bench run --provider cuda -o full -l
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    click.echo(RULE)
    click.echo("ONNX Runtime Benchmark (Python)")
    click.echo(RULE)

    if config:
        click.echo(f"Loading configuration from: {config}")
        try:
            benchmark_config = BenchmarkConfig.from_yaml(config)
        except (OSError, ValueError, TypeError) as e:
            click.echo(f"ERROR: Invalid configuration file: {e}")
            sys.exit(1)
    else:
        benchmark_config = BenchmarkConfig()

    if models_dir:
        benchmark_config.models_dir = models_dir
    if results_file:
        benchmark_config.results_file = results_file

    benchmark_config = benchmark_config.with_overrides(
        size=size,
        provider=provider,
        model=model,
        warmup=warmup,
        runs=runs,
        verbose=_flag(verbose),
        profile=_flag(profile),
        optimization=optimization,
        compare_optimizations=_flag(compare_optimizations),
        save_optimized=_flag(save_optimized),
        load_optimized=_flag(load_optimized),
        gpu_id=gpu_id,
        include_tensorrt=_flag(include_tensorrt),
    )
    request = benchmark_config.sweep

    errors = request.validate()
    if errors:
        for error in errors:
            click.echo(f"ERROR: {error}")
        sys.exit(1)

    probe = HardwareProbe()
    _print_gpus(probe)
    click.echo(RULE)

    hardware = HardwareInfo.detect(probe, request.gpu_id)
    click.echo(f"CPU: {hardware.cpu}")
    click.echo(f"GPU [{request.gpu_id}]: {hardware.gpu}")

    try:
        backend = create_backend()
        provider_catalog = ProviderCatalog.from_backend(backend)
    except Exception as e:
        click.echo(f"ERROR: Failed to get providers: {e}")
        sys.exit(1)
    click.echo(f"Available providers: [{', '.join(provider_catalog.available_capabilities)}]")
    click.echo(RULE)

    click.echo(f"Optimizations to test: {', '.join(l.value for l in request.optimization_levels())}")

    model_catalog = ModelCatalog.default(benchmark_config.models_dir, benchmark_config.models)
    try:
        controller = SweepController.plan(request, model_catalog, provider_catalog)
    except ConfigurationError as e:
        click.echo(f"ERROR: {e}")
        sys.exit(1)

    click.echo(f"Models to test: {', '.join(m.alias for m in controller.models)}")
    click.echo(f"Providers to test: {', '.join(controller.providers)}")
    click.echo(RULE)

    recorder = ResultRecorder(benchmark_config.results_file, hardware)
    recorder.write_header()

    runner = BenchmarkRunner(
        backend=backend,
        factory=SessionFactory(request, provider_catalog, benchmark_config.models_dir),
        request=request,
        progress=lambda text: click.echo(text, nl=False),
    )
    controller.run(runner, recorder, ConsoleListener())

    _print_summary(recorder.lines, benchmark_config.results_file, request.profile)


def _print_summary(lines: List[str], results_file: str, profile: bool) -> None:
    click.echo("\n" + RULE)
    click.echo("RESULTS:")
    click.echo(RULE)

    for line in lines:
        click.echo(line)

    click.echo(f"\nResults saved to: {Path(results_file).resolve()}")
    if profile:
        click.echo(f"Profile files saved to: {Path.cwd()}")
        click.echo("  View with: chrome://tracing or https://ui.perfetto.dev/")


@main.command('list-gpus')
def list_gpus():
    """List detected GPUs and their device indices."""
    _print_gpus(HardwareProbe())


@main.command('check-providers')
@click.option('--provider', type=click.Choice(['cpu', 'directml', 'cuda', 'tensorrt']),
              default='cuda', help='Provider to run the smoke test on')
@click.option('--gpu', '-g', 'gpu_id', type=int, default=0, help='GPU device index')
def check_providers(provider: str, gpu_id: int):
    """
    Check provider availability and run a minimal Identity model.

    Example:

        onnx-bench check-providers --provider cuda
    """
    click.echo("=" * 60)
    click.echo("ONNX Runtime GPU Test (Python)")
    click.echo("=" * 60)

    click.echo("\n[INFO] Checking available execution providers...")
    try:
        backend = create_backend()
        catalog = ProviderCatalog.from_backend(backend)
    except Exception as e:
        click.echo(f"\n[FAIL] Failed to get providers: {e}")
        sys.exit(1)

    click.echo(f"\n[OK] Available Providers: [{', '.join(catalog.available_capabilities)}]\n")
    for name, label in (("cuda", "CUDA"), ("tensorrt", "TensorRT"), ("directml", "DirectML")):
        marker = "[OK]" if catalog.is_available(name) else "[--]"
        click.echo(f"   {label + ':':<9} {marker}")

    if not catalog.is_available(provider):
        click.echo(f"\n[WARN] {catalog.get(provider).capability_id} not available!")

    click.echo("\n" + "-" * 60)
    click.echo(f"Running Identity model on {catalog.get(provider).capability_id}...")

    try:
        report = backend.self_test(catalog.get(provider).capability_id, gpu_id)
    except Exception as e:
        click.echo(f"\n[FAIL] Session/inference failed: {e}")
        sys.exit(1)

    click.echo("[OK] Inference successful!")
    click.echo(f"   Active providers: {report['active_providers']}")
    click.echo(f"   Input shape:  {report['input_shape']}")
    click.echo(f"   Output shape: {report['output_shape']}")
    click.echo(f"   Output matches input: {'[OK]' if report['matches_input'] else '[MISMATCH]'}")

    if not report["matches_input"]:
        sys.exit(1)

    click.echo("\n" + "=" * 60)
    click.echo("[OK] ALL TESTS PASSED")
    click.echo("=" * 60)


@main.command()
def info():
    """Show system and library information."""
    import platform

    click.echo("\nSystem Information:")
    click.echo(f"  Platform: {platform.platform()}")
    click.echo(f"  Python: {platform.python_version()}")

    probe = HardwareProbe()
    click.echo(f"  CPU: {probe.cpu_descriptor()}")

    import psutil
    click.echo(f"  Physical cores: {psutil.cpu_count(logical=False)}")
    click.echo(f"  Logical cores: {psutil.cpu_count(logical=True)}")

    for gpu in probe.list_gpus():
        click.echo(f"  GPU [{gpu.id}]: {gpu}")

    click.echo("\nLibrary Versions:")

    try:
        import onnxruntime as ort
        click.echo(f"  ONNX Runtime: {ort.__version__} ({ort.get_device()})")
        click.echo(f"  Providers: {', '.join(ort.get_available_providers())}")
    except ImportError:
        click.echo("  ONNX Runtime: Not installed")

    import numpy as np
    click.echo(f"  NumPy: {np.__version__}")

    try:
        import onnx
        click.echo(f"  ONNX: {onnx.__version__}")
    except ImportError:
        click.echo("  ONNX: Not installed")


@main.command('list-models')
@click.option('--models-dir', type=click.Path(), default='./models',
              help='Directory containing the model files')
@click.option('--config', type=click.Path(exists=True), default=None,
              help='Path to YAML configuration file')
def list_models(models_dir: str, config: Optional[str]):
    """List registered models, their fixed sizes and whether the files exist."""
    extra = {}
    if config:
        try:
            benchmark_config = BenchmarkConfig.from_yaml(config)
        except (OSError, ValueError, TypeError) as e:
            click.echo(f"ERROR: Invalid configuration file: {e}")
            sys.exit(1)
        models_dir = benchmark_config.models_dir
        extra = benchmark_config.models

    catalog = ModelCatalog.default(models_dir, extra)

    click.echo("\n" + "=" * 70)
    click.echo("Registered Models")
    click.echo("=" * 70 + "\n")

    for model in catalog:
        size = f"{model.fixed_size}x{model.fixed_size}" if model.fixed_size else "any"
        status = "found" if model.exists else "missing"
        click.echo(f"{model.alias}")
        click.echo(f"  File:  {model.artifact_path} ({status})")
        click.echo(f"  Size:  {size}")
        click.echo("")


if __name__ == "__main__":
    main()
