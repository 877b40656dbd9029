"""
Tests for configuration module.
"""

import pytest

from onnx_bench.core.config import (
    BenchmarkConfig,
    CANONICAL_SIZES,
    COMPARE_LEVELS,
    OptimizationLevel,
    SessionConfig,
    SweepRequest,
)


class TestOptimizationLevel:
    """Tests for OptimizationLevel enum."""

    def test_values(self):
        """Test level names match the command line values."""
        assert [level.value for level in OptimizationLevel] == ["none", "basic", "extended", "full"]

    def test_parse_case_insensitive(self):
        """Test parsing from strings."""
        assert OptimizationLevel.parse("FULL") == OptimizationLevel.FULL
        assert OptimizationLevel.parse(OptimizationLevel.BASIC) == OptimizationLevel.BASIC

    def test_parse_invalid(self):
        """Test unknown levels are rejected."""
        with pytest.raises(ValueError, match="Unknown optimization level"):
            OptimizationLevel.parse("turbo")


class TestSweepRequest:
    """Tests for SweepRequest."""

    def test_default_values(self):
        """Test default sweep request."""
        request = SweepRequest()

        assert request.model == "esrgan2x"
        assert request.size == 512
        assert request.provider == "cpu"
        assert request.optimization == OptimizationLevel.NONE
        assert request.warmup == 5
        assert request.runs == 5
        assert request.gpu_id == 0
        assert not request.include_tensorrt

    def test_string_optimization_is_parsed(self):
        """Test optimization given as a string becomes an enum."""
        request = SweepRequest(optimization="extended")
        assert request.optimization == OptimizationLevel.EXTENDED

    def test_aliases_lowercased(self):
        """Test model and provider aliases are normalized."""
        request = SweepRequest(model="Compact2x", provider="CUDA")
        assert request.model == "compact2x"
        assert request.provider == "cuda"

    def test_size_zero_means_sweep(self):
        """Test size 0 requests the automatic size sweep."""
        assert SweepRequest(size=0).sweep_sizes
        assert not SweepRequest(size=256).sweep_sizes
        assert CANONICAL_SIZES == [256, 512, 1024]

    def test_single_optimization_level(self):
        """Test a single requested level."""
        request = SweepRequest(optimization="basic")
        assert request.optimization_levels() == [OptimizationLevel.BASIC]

    def test_compare_optimizations(self):
        """Test compare mode overrides the requested level."""
        request = SweepRequest(optimization="basic", compare_optimizations=True)
        assert request.optimization_levels() == COMPARE_LEVELS
        assert [l.value for l in request.optimization_levels()] == ["none", "basic", "extended", "full"]

    def test_validate_ok(self):
        """Test default request is valid."""
        assert SweepRequest().validate() == []

    def test_validate_errors(self):
        """Test invalid numeric arguments are reported."""
        request = SweepRequest(size=-1, warmup=-1, runs=0, gpu_id=-2)
        errors = request.validate()

        assert len(errors) == 4
        assert any("Run count" in e for e in errors)

    def test_validate_save_and_load(self):
        """Test export and import flags may be combined; load mode wins per cell."""
        request = SweepRequest(save_optimized=True, load_optimized=True)
        assert request.validate() == []


class TestSessionConfig:
    """Tests for SessionConfig."""

    def test_defaults(self):
        """Test session config defaults to CPU."""
        config = SessionConfig(provider="cpu", optimization_level=OptimizationLevel.NONE)

        assert config.execution_provider == "CPUExecutionProvider"
        assert config.export_path is None
        assert not config.loads_precompiled

    def test_frozen(self):
        """Test session configs cannot be mutated between cells."""
        config = SessionConfig(provider="cpu", optimization_level=OptimizationLevel.NONE)
        with pytest.raises(AttributeError):
            config.provider = "cuda"


class TestBenchmarkConfig:
    """Tests for BenchmarkConfig."""

    def test_defaults(self):
        """Test default file locations."""
        config = BenchmarkConfig()

        assert config.models_dir == "./models"
        assert config.results_file == "./benchmark_results.txt"
        assert config.models == {}

    def test_from_yaml(self, tmp_path):
        """Test loading config from YAML."""
        yaml_content = """
models_dir: /data/models
results_file: /data/results.txt

models:
  realesrgan:
    file: RealESRGAN_x4.onnx
  face:
    file: /abs/face.onnx
    fixed_size: 512
  short: short.onnx

sweep:
  provider: cuda
  size: 0
  optimization: full
  runs: 10
  include_tensorrt: true
"""
        yaml_path = tmp_path / "bench.yaml"
        yaml_path.write_text(yaml_content)

        config = BenchmarkConfig.from_yaml(str(yaml_path))

        assert config.models_dir == "/data/models"
        assert config.results_file == "/data/results.txt"
        assert config.models["realesrgan"] == {"file": "RealESRGAN_x4.onnx", "fixed_size": None}
        assert config.models["face"]["fixed_size"] == 512
        assert config.models["short"]["file"] == "short.onnx"
        assert config.sweep.provider == "cuda"
        assert config.sweep.sweep_sizes
        assert config.sweep.optimization == OptimizationLevel.FULL
        assert config.sweep.runs == 10
        assert config.sweep.include_tensorrt

    def test_from_yaml_empty(self, tmp_path):
        """Test an empty file gives defaults."""
        yaml_path = tmp_path / "empty.yaml"
        yaml_path.write_text("")

        config = BenchmarkConfig.from_yaml(str(yaml_path))
        assert config.sweep == SweepRequest()

    def test_from_yaml_unknown_sweep_key(self, tmp_path):
        """Test typos in sweep settings are rejected."""
        yaml_path = tmp_path / "bad.yaml"
        yaml_path.write_text("sweep:\n  runz: 3\n")

        with pytest.raises(ValueError, match="runz"):
            BenchmarkConfig.from_yaml(str(yaml_path))

    def test_from_yaml_model_without_file(self, tmp_path):
        """Test model entries need a file."""
        yaml_path = tmp_path / "bad.yaml"
        yaml_path.write_text("models:\n  broken:\n    fixed_size: 256\n")

        with pytest.raises(ValueError, match="broken"):
            BenchmarkConfig.from_yaml(str(yaml_path))

    def test_with_overrides(self):
        """Test only explicit overrides replace sweep values."""
        config = BenchmarkConfig(sweep=SweepRequest(provider="cuda", runs=10))

        updated = config.with_overrides(provider=None, runs=3, optimization="basic")

        assert updated.sweep.provider == "cuda"
        assert updated.sweep.runs == 3
        assert updated.sweep.optimization == OptimizationLevel.BASIC
        assert config.sweep.runs == 10
