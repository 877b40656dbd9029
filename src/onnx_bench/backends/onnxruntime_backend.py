"""
ONNX Runtime backend implementation for the sweep benchmark.
"""

import logging
from typing import Any, Dict, List, Optional, Set, Tuple, Union

import numpy as np

try:
    import onnxruntime as ort
    ORT_AVAILABLE = True
except ImportError:
    ORT_AVAILABLE = False
    ort = None

from .base import BaseBackend, BaseSession
from ..core.config import OptimizationLevel, SessionConfig

logger = logging.getLogger(__name__)

CPU_EXECUTION_PROVIDER = "CPUExecutionProvider"

# ONNX Runtime log severities
LOG_SEVERITY_VERBOSE = 0
LOG_SEVERITY_ERROR = 3

_GRAPH_LEVEL_NAMES = {
    OptimizationLevel.NONE: "ORT_DISABLE_ALL",
    OptimizationLevel.BASIC: "ORT_ENABLE_BASIC",
    OptimizationLevel.EXTENDED: "ORT_ENABLE_EXTENDED",
    OptimizationLevel.FULL: "ORT_ENABLE_ALL",
}

_ELEMENT_TYPES = {
    "tensor(float)": np.float32,
    "tensor(float16)": np.float16,
    "tensor(double)": np.float64,
}


def element_dtype(type_str: str) -> np.dtype:
    """Map an ONNX Runtime type string to a numpy dtype (float32 for unknown types)."""
    return np.dtype(_ELEMENT_TYPES.get(type_str, np.float32))


def graph_optimization_level(level: OptimizationLevel) -> "ort.GraphOptimizationLevel":
    """Translate a benchmark optimization level to the ONNX Runtime setting."""
    return getattr(ort.GraphOptimizationLevel, _GRAPH_LEVEL_NAMES[level])


class OnnxRuntimeSession(BaseSession):
    """Wraps an ort.InferenceSession for one benchmark cell."""

    def __init__(self, model_path: str, config: SessionConfig, session: "ort.InferenceSession"):
        super().__init__(model_path, config)
        self._session = session
        self._inputs = session.get_inputs()
        self._outputs = session.get_outputs()
        self._binding = None
        # Keeps bound arrays alive while the binding points at their memory
        self._bound: Dict[str, np.ndarray] = {}

    @property
    def input_name(self) -> str:
        return self._inputs[0].name

    @property
    def output_name(self) -> str:
        return self._outputs[0].name

    @property
    def input_dtype(self) -> np.dtype:
        return element_dtype(self._inputs[0].type)

    @property
    def output_dtype(self) -> np.dtype:
        return element_dtype(self._outputs[0].type)

    @property
    def active_providers(self) -> List[str]:
        return self._session.get_providers()

    def run(self, inputs: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        names = [o.name for o in self._outputs]
        results = self._session.run(names, inputs)
        return dict(zip(names, results))

    def bind(self, inputs: Dict[str, np.ndarray], outputs: Dict[str, np.ndarray]) -> None:
        binding = self._session.io_binding()

        for name, data in inputs.items():
            data = np.ascontiguousarray(data)
            binding.bind_cpu_input(name, data)
            self._bound[name] = data

        for name, buffer in outputs.items():
            if not buffer.flags["C_CONTIGUOUS"]:
                raise ValueError(f"Output buffer '{name}' must be C-contiguous")
            binding.bind_output(
                name=name,
                device_type="cpu",
                device_id=0,
                element_type=buffer.dtype.type,
                shape=buffer.shape,
                buffer_ptr=buffer.ctypes.data,
            )
            self._bound[name] = buffer

        self._binding = binding

    def run_bound(self) -> None:
        if self._binding is None:
            raise RuntimeError("run_bound() called before bind()")
        self._session.run_with_iobinding(self._binding)

    def _release(self) -> None:
        if self.config.profile and self._session is not None:
            profile_file = self._session.end_profiling()
            logger.info(f"Profile written to {profile_file}")

        if self._binding is not None:
            self._binding.clear_binding_inputs()
            self._binding.clear_binding_outputs()
        self._binding = None
        self._bound = {}
        self._session = None

    def get_info(self) -> Dict[str, Any]:
        info = super().get_info()
        if self._session is not None:
            info["active_providers"] = self.active_providers
        return info


class OnnxRuntimeBackend(BaseBackend):
    """
    ONNX Runtime backend.

    Each session runs on a single execution provider (CPU, DirectML, CUDA
    or TensorRT) selected by the session configuration.
    """

    def __init__(self):
        if not ORT_AVAILABLE:
            raise ImportError(
                "ONNX Runtime is not installed. Please install it with: "
                "pip install onnxruntime (or onnxruntime-gpu / onnxruntime-directml)"
            )
        self._available: Optional[Set[str]] = None

    def version(self) -> str:
        return ort.__version__

    def list_available_providers(self) -> Set[str]:
        if self._available is None:
            self._available = set(ort.get_available_providers())
            logger.debug(f"Available providers: {sorted(self._available)}")
        return set(self._available)

    def create_session(
        self,
        model_path: Union[str, bytes],
        config: SessionConfig,
    ) -> OnnxRuntimeSession:
        options = self._build_session_options(config)
        providers = self._build_providers(config)

        logger.debug(f"Creating session with providers={providers}")
        session = ort.InferenceSession(model_path, sess_options=options, providers=providers)

        label = model_path if isinstance(model_path, str) else "<in-memory model>"
        return OnnxRuntimeSession(label, config, session)

    def _build_session_options(self, config: SessionConfig) -> "ort.SessionOptions":
        """Build session options from config."""
        options = ort.SessionOptions()
        options.graph_optimization_level = graph_optimization_level(config.optimization_level)

        if config.verbose:
            options.log_severity_level = LOG_SEVERITY_VERBOSE
            options.log_verbosity_level = 1
        else:
            # Hide warnings unless verbose
            options.log_severity_level = LOG_SEVERITY_ERROR

        if config.profile:
            options.enable_profiling = True
            if config.profile_prefix:
                options.profile_file_prefix = config.profile_prefix

        if config.export_path:
            options.optimized_model_filepath = config.export_path

        return options

    def _build_providers(self, config: SessionConfig) -> List[Union[str, Tuple[str, Dict[str, Any]]]]:
        """Execution provider list for the session (single provider per cell)."""
        if config.execution_provider == CPU_EXECUTION_PROVIDER:
            return [CPU_EXECUTION_PROVIDER]
        return [(config.execution_provider, {"device_id": config.device_id})]

    def self_test(self, execution_provider: str, device_id: int = 0) -> Dict[str, Any]:
        """Run an Identity model on one provider and check the output matches the input.

        Returns:
            Dictionary with input/output shapes, active providers and a match flag
        """
        config = SessionConfig(
            provider=execution_provider,
            optimization_level=OptimizationLevel.NONE,
            execution_provider=execution_provider,
            device_id=device_id,
        )
        shape = [1, 3, 224, 224]
        rng = np.random.default_rng(42)
        data = (rng.random(shape, dtype=np.float32) * 2 - 1).astype(np.float32)

        with self.create_session(build_identity_model(shape), config) as session:
            outputs = session.run({session.input_name: data})
            output = outputs[session.output_name]
            return {
                "input_shape": list(data.shape),
                "output_shape": list(output.shape),
                "active_providers": session.active_providers,
                "matches_input": bool(np.allclose(output, data, atol=1e-6)),
            }


def build_identity_model(shape: List[int], opset: int = 13) -> bytes:
    """Serialized float32 Identity model: input -> Identity -> output."""
    import onnx
    from onnx import TensorProto, helper

    x = helper.make_tensor_value_info("input", TensorProto.FLOAT, shape)
    y = helper.make_tensor_value_info("output", TensorProto.FLOAT, shape)
    node = helper.make_node("Identity", inputs=["input"], outputs=["output"])
    graph = helper.make_graph([node], "identity", [x], [y])
    model = helper.make_model(
        graph, opset_imports=[helper.make_opsetid("", opset)], ir_version=8
    )
    onnx.checker.check_model(model)
    return model.SerializeToString()
