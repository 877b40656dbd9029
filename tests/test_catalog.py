"""
Tests for the model catalog.
"""

from pathlib import Path

import pytest

from onnx_bench.core.catalog import BUILTIN_MODELS, ModelCatalog, ModelDescriptor
from onnx_bench.core.errors import MissingModelArtifactError, UnknownModelError


class TestModelDescriptor:
    """Tests for ModelDescriptor."""

    def test_base_name(self):
        """Test base name strips directory and extension."""
        model = ModelDescriptor("gpen256", "/models/GPEN-BFR-256.onnx", 256)
        assert model.base_name == "GPEN-BFR-256"

    def test_exists(self, tmp_path):
        """Test existence check."""
        path = tmp_path / "m.onnx"
        model = ModelDescriptor("m", str(path))
        assert not model.exists

        path.write_bytes(b"x" * 1024 * 1024)
        assert model.exists
        assert model.size_mb() == pytest.approx(1.0)


class TestModelCatalog:
    """Tests for ModelCatalog."""

    def test_builtin_fixed_sizes(self, model_catalog):
        """Test face restoration models carry their fixed size."""
        assert model_catalog.get("gpen256").fixed_size == 256
        assert model_catalog.get("gpen512_fp16").fixed_size == 512
        assert model_catalog.get("gfpgan").fixed_size == 512
        assert model_catalog.get("compact2x").fixed_size is None
        assert model_catalog.get("esrgan2x").fixed_size is None

    def test_paths_under_models_dir(self, model_catalog, models_dir):
        """Test artifact paths resolve against the models directory."""
        model = model_catalog.get("compact2x")
        assert Path(model.artifact_path) == models_dir / "2xNomosUni_compact_multijpg_ldl_fp32_opset17.onnx"

    def test_resolve_single(self, model_catalog):
        """Test resolving one alias."""
        models = model_catalog.resolve("compact2x")
        assert [m.alias for m in models] == ["compact2x"]

    def test_resolve_case_insensitive(self, model_catalog):
        """Test aliases are matched case-insensitively."""
        assert model_catalog.resolve("GFPGAN")[0].alias == "gfpgan"

    def test_resolve_all(self, model_catalog):
        """Test "all" expands to every registered model in order."""
        models = model_catalog.resolve("all")
        assert [m.alias for m in models] == list(BUILTIN_MODELS)

    def test_unknown_model(self, model_catalog):
        """Test unknown alias lists the valid ones."""
        with pytest.raises(UnknownModelError) as exc_info:
            model_catalog.resolve("foo")

        message = str(exc_info.value)
        assert "Unknown model: foo" in message
        assert "esrgan2x" in message
        assert exc_info.value.available == model_catalog.aliases

    def test_extra_models(self, tmp_path):
        """Test configured models add to and override the built-in table."""
        catalog = ModelCatalog.default(str(tmp_path), {
            "mine": {"file": "mine.onnx", "fixed_size": 384},
            "compact2x": {"file": "/elsewhere/compact.onnx", "fixed_size": None},
        })

        assert catalog.get("mine").artifact_path == str(tmp_path / "mine.onnx")
        assert catalog.get("mine").fixed_size == 384
        assert catalog.get("compact2x").artifact_path == "/elsewhere/compact.onnx"
        assert len(catalog) == len(BUILTIN_MODELS) + 1

    def test_read_only(self, model_catalog):
        """Test the tables cannot be mutated after construction."""
        with pytest.raises(TypeError):
            BUILTIN_MODELS["x"] = ("x.onnx", None)
        with pytest.raises(TypeError):
            model_catalog._models["x"] = None

    def test_require_artifacts(self, tmp_path, model_catalog):
        """Test missing artifacts fail fast."""
        ModelCatalog.require_artifacts(model_catalog.resolve("all"))

        missing = ModelDescriptor("ghost", str(tmp_path / "ghost.onnx"))
        with pytest.raises(MissingModelArtifactError, match="Model 'ghost' not found"):
            ModelCatalog.require_artifacts([missing])
