"""Static registry of benchmark models."""

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .errors import MissingModelArtifactError, UnknownModelError

logger = logging.getLogger(__name__)

ALL_MODELS = "all"

# alias -> (file name, fixed input size or None for any size)
BUILTIN_MODELS: Mapping[str, tuple] = MappingProxyType({
    # Super-resolution models (any size)
    "esrgan2x": ("2xNomosUni_esrgan_multijpg_fp32_opset17.onnx", None),
    "esrgan2x_fp16": ("2xNomosUni_esrgan_multijpg_fp16_opset17.onnx", None),
    "compact2x": ("2xNomosUni_compact_multijpg_ldl_fp32_opset17.onnx", None),
    # Face restoration models (fixed sizes)
    "gfpgan": ("GFPGANv1.4.onnx", 512),
    "gfpgan_fp16": ("GFPGANv1.4.fp16.onnx", 512),
    "gpen256": ("GPEN-BFR-256.onnx", 256),
    "gpen256_fp16": ("GPEN-BFR-256.fp16.onnx", 256),
    "gpen512_fp16": ("GPEN-BFR-512.fp16.onnx", 512),
})


@dataclass(frozen=True)
class ModelDescriptor:
    """A registered model: alias, artifact location and optional fixed size."""
    alias: str
    artifact_path: str
    fixed_size: Optional[int] = None

    @property
    def base_name(self) -> str:
        """Artifact file name without extension."""
        return Path(self.artifact_path).stem

    @property
    def exists(self) -> bool:
        return Path(self.artifact_path).is_file()

    def size_mb(self) -> float:
        return Path(self.artifact_path).stat().st_size / (1024.0 * 1024.0)


class ModelCatalog:
    """Read-only alias -> ModelDescriptor table, built once at startup."""

    def __init__(self, models: Iterable[ModelDescriptor]):
        table: Dict[str, ModelDescriptor] = {}
        for model in models:
            table[model.alias] = model
        self._models = MappingProxyType(table)

    @classmethod
    def default(
        cls,
        models_dir: str,
        extra: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> "ModelCatalog":
        """Build the catalog from the built-in table plus configured entries.

        Args:
            models_dir: Directory holding the model artifacts
            extra: alias -> {"file", "fixed_size"} entries that add to or
                override the built-in table

        Returns:
            Model catalog
        """
        base = Path(models_dir)
        models = [
            ModelDescriptor(alias, str(base / file_name), fixed_size)
            for alias, (file_name, fixed_size) in BUILTIN_MODELS.items()
        ]

        for alias, entry in (extra or {}).items():
            path = Path(entry["file"])
            if not path.is_absolute():
                path = base / path
            fixed_size = entry.get("fixed_size")
            models.append(ModelDescriptor(
                alias=alias,
                artifact_path=str(path),
                fixed_size=int(fixed_size) if fixed_size is not None else None,
            ))
            logger.debug(f"Registered model from config: {alias} -> {path}")

        return cls(models)

    @property
    def aliases(self) -> List[str]:
        return list(self._models)

    def __contains__(self, alias: str) -> bool:
        return alias in self._models

    def __iter__(self):
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)

    def get(self, alias: str) -> ModelDescriptor:
        try:
            return self._models[alias]
        except KeyError:
            raise UnknownModelError(alias, self.aliases) from None

    def resolve(self, alias: str) -> List[ModelDescriptor]:
        """Resolve a model alias, or "all", to the models to benchmark."""
        alias = alias.lower()
        if alias == ALL_MODELS:
            return list(self._models.values())
        return [self.get(alias)]

    @staticmethod
    def require_artifacts(models: Iterable[ModelDescriptor]) -> None:
        """Fail fast if any selected model artifact is missing."""
        for model in models:
            if not model.exists:
                raise MissingModelArtifactError(model.alias, model.artifact_path)
