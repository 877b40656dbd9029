"""
Shared fixtures: an in-memory inference backend and hardware probe.
"""

from typing import Dict, Iterable, List, Optional, Set

import numpy as np
import pytest

from onnx_bench.backends.base import BaseBackend, BaseSession
from onnx_bench.backends.provider_catalog import ProviderCatalog
from onnx_bench.core.catalog import BUILTIN_MODELS, ModelCatalog
from onnx_bench.core.config import SessionConfig, SweepRequest
from onnx_bench.utils.hardware import HardwareInfo

ALL_CAPABILITIES = (
    "CPUExecutionProvider",
    "DmlExecutionProvider",
    "CUDAExecutionProvider",
    "TensorrtExecutionProvider",
)


class FakeSession(BaseSession):
    """Upscales by `scale`: output shape is [1, 3, H*scale, W*scale]."""

    def __init__(self, backend: "FakeBackend", model_path: str, config: SessionConfig):
        super().__init__(model_path, config)
        self.backend = backend
        self.run_calls = 0
        self.run_bound_calls = 0
        self.bound_inputs: Dict[str, np.ndarray] = {}
        self.bound_outputs: Dict[str, np.ndarray] = {}
        self.seen_inputs: List[np.ndarray] = []

    @property
    def input_name(self) -> str:
        return "input"

    @property
    def output_name(self) -> str:
        return "output"

    @property
    def input_dtype(self) -> np.dtype:
        return np.dtype(self.backend.input_dtype)

    @property
    def output_dtype(self) -> np.dtype:
        return np.dtype(self.backend.input_dtype)

    def run(self, inputs):
        self.run_calls += 1
        if self.backend.fail_discovery:
            raise RuntimeError("discovery exploded")
        data = inputs[self.input_name]
        self.seen_inputs.append(data.copy())
        n, c, h, w = data.shape
        scale = self.backend.scale
        return {self.output_name: np.zeros((n, c, h * scale, w * scale), dtype=data.dtype)}

    def bind(self, inputs, outputs):
        self.bound_inputs = dict(inputs)
        self.bound_outputs = dict(outputs)

    def run_bound(self):
        self.run_bound_calls += 1
        fail_at = self.backend.fail_run_bound_at
        if fail_at is not None and self.run_bound_calls >= fail_at:
            raise RuntimeError("device lost")
        self.bound_outputs[self.output_name][...] = 1

    def _release(self):
        self.backend.open_sessions -= 1
        if self.backend.fail_release:
            raise RuntimeError("profiler flush failed")


class FakeBackend(BaseBackend):
    """Backend double that records every session it creates."""

    def __init__(
        self,
        available: Iterable[str] = ALL_CAPABILITIES,
        fail_load: Iterable[str] = (),
        input_dtype=np.float32,
        scale: int = 2,
    ):
        self.available = set(available)
        self.fail_load = set(fail_load)
        self.input_dtype = input_dtype
        self.scale = scale
        self.fail_discovery = False
        self.fail_run_bound_at: Optional[int] = None
        self.fail_release = False
        self.sessions: List[FakeSession] = []
        self.load_attempts: List[SessionConfig] = []
        self.list_calls = 0
        self.open_sessions = 0
        self.max_open_sessions = 0

    def list_available_providers(self) -> Set[str]:
        self.list_calls += 1
        return set(self.available)

    def create_session(self, model_path, config):
        self.load_attempts.append(config)
        if config.provider in self.fail_load:
            raise RuntimeError(f"{config.execution_provider} failed to initialize")
        session = FakeSession(self, model_path, config)
        self.sessions.append(session)
        self.open_sessions += 1
        self.max_open_sessions = max(self.max_open_sessions, self.open_sessions)
        return session


class FakeClock:
    """Advances by `step` seconds on every call."""

    def __init__(self, step: float = 0.5):
        self.step = step
        self.now = 0.0

    def __call__(self) -> float:
        self.now += self.step
        return self.now


class FakeProbe:
    def cpu_descriptor(self) -> str:
        return "Test CPU (32GB)"

    def gpu_descriptor(self, device_index: int = 0) -> str:
        return "Test GPU (24GB)"

    def list_gpus(self):
        return []


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def models_dir(tmp_path):
    """Models directory with a placeholder file for every built-in model."""
    directory = tmp_path / "models"
    directory.mkdir()
    for file_name, _ in BUILTIN_MODELS.values():
        (directory / file_name).write_bytes(b"onnx")
    return directory


@pytest.fixture
def model_catalog(models_dir):
    return ModelCatalog.default(str(models_dir))


@pytest.fixture
def provider_catalog(backend):
    return ProviderCatalog.from_backend(backend)


@pytest.fixture
def hardware():
    return HardwareInfo.detect(FakeProbe())


@pytest.fixture
def request_factory():
    def make(**kwargs) -> SweepRequest:
        kwargs.setdefault("warmup", 2)
        kwargs.setdefault("runs", 3)
        return SweepRequest(**kwargs)
    return make
