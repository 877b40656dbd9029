"""
Base backend interface for the ONNX Runtime sweep benchmark.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Set, Tuple

import numpy as np

from ..core.config import SessionConfig


class BaseSession(ABC):
    """Abstract base class for a loaded inference session.

    A session is scoped to exactly one benchmark cell and must be closed
    before the next cell loads. Use it as a context manager.
    """

    def __init__(self, model_path: str, config: SessionConfig):
        """
        Initialize the session.

        Args:
            model_path: Path to the artifact the session was built from
            config: Session configuration for this cell
        """
        self.model_path = model_path
        self.config = config
        self._closed = False

    @property
    @abstractmethod
    def input_name(self) -> str:
        """Name of the first model input."""
        pass

    @property
    @abstractmethod
    def output_name(self) -> str:
        """Name of the first model output."""
        pass

    @property
    @abstractmethod
    def input_dtype(self) -> np.dtype:
        """Element type declared for the first input."""
        pass

    @property
    @abstractmethod
    def output_dtype(self) -> np.dtype:
        """Element type declared for the first output."""
        pass

    @abstractmethod
    def run(self, inputs: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        """
        Run inference, letting the backend allocate the outputs.

        Args:
            inputs: Dictionary mapping input names to numpy arrays

        Returns:
            Dictionary mapping output names to numpy arrays
        """
        pass

    @abstractmethod
    def bind(self, inputs: Dict[str, np.ndarray], outputs: Dict[str, np.ndarray]) -> None:
        """
        Bind pre-allocated buffers for repeated execution with run_bound().

        Output arrays are written in place by every run_bound() call.
        """
        pass

    @abstractmethod
    def run_bound(self) -> None:
        """Run inference on the bound buffers without allocating."""
        pass

    @abstractmethod
    def _release(self) -> None:
        """Free backend resources."""
        pass

    @property
    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the session. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._release()

    def get_info(self) -> Dict[str, Any]:
        """Get information about the session."""
        return {
            "session": self.__class__.__name__,
            "model_path": self.model_path,
            "provider": self.config.provider,
            "optimization_level": self.config.optimization_level.value,
            "input_name": self.input_name,
            "output_name": self.output_name,
            "closed": self._closed,
        }

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class BaseBackend(ABC):
    """Abstract base class for inference backends."""

    @abstractmethod
    def list_available_providers(self) -> Set[str]:
        """Capability identifiers of the execution providers usable in this process."""
        pass

    @abstractmethod
    def create_session(self, model_path: str, config: SessionConfig) -> BaseSession:
        """
        Construct a session for one cell.

        Raises whatever the engine raises when the artifact or provider
        cannot be loaded.
        """
        pass

    def version(self) -> str:
        return "unknown"

    def get_info(self) -> Dict[str, Any]:
        """Get information about the backend."""
        return {
            "backend": self.__class__.__name__,
            "version": self.version(),
            "available_providers": sorted(self.list_available_providers()),
        }


def output_shape_of(outputs: Dict[str, np.ndarray], name: str) -> Tuple[int, ...]:
    """Shape of a named output from a run() result."""
    return tuple(int(d) for d in np.asarray(outputs[name]).shape)
