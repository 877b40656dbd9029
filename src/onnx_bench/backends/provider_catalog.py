"""
Execution provider discovery and selection.

Logical provider names (cpu, directml, cuda, tensorrt) map to the
capability identifiers ONNX Runtime reports from get_available_providers().
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Tuple

from ..core.errors import UnknownProviderError

logger = logging.getLogger(__name__)

GROUP_ALL = "all"
GROUP_GPU = "gpu"
CPU = "cpu"

# Providers that compile an engine ahead of the first inference (minutes, no timeout)
SLOW_COMPILE_PROVIDERS: FrozenSet[str] = frozenset({"tensorrt"})


@dataclass(frozen=True)
class ProviderDescriptor:
    """Logical provider name and the backend's capability identifier."""
    name: str
    capability_id: str

    @property
    def is_gpu(self) -> bool:
        return self.name != CPU

    @property
    def is_slow_compile(self) -> bool:
        return self.name in SLOW_COMPILE_PROVIDERS


KNOWN_PROVIDERS: Tuple[ProviderDescriptor, ...] = (
    ProviderDescriptor("cpu", "CPUExecutionProvider"),
    ProviderDescriptor("directml", "DmlExecutionProvider"),
    ProviderDescriptor("cuda", "CUDAExecutionProvider"),
    ProviderDescriptor("tensorrt", "TensorrtExecutionProvider"),
)


class ProviderCatalog:
    """Known providers plus the availability reported once at process start."""

    def __init__(
        self,
        available: Iterable[str],
        providers: Iterable[ProviderDescriptor] = KNOWN_PROVIDERS,
    ):
        self._providers = tuple(providers)
        self._by_name = {p.name: p for p in self._providers}
        self._available: FrozenSet[str] = frozenset(available)

    @classmethod
    def from_backend(cls, backend) -> "ProviderCatalog":
        """Query the backend for available providers (once) and build the catalog."""
        return cls(backend.list_available_providers())

    @property
    def names(self) -> List[str]:
        return [p.name for p in self._providers]

    @property
    def aliases(self) -> List[str]:
        """Every value accepted by --provider."""
        return self.names + [GROUP_GPU, GROUP_ALL]

    @property
    def available_capabilities(self) -> List[str]:
        return sorted(self._available)

    def get(self, name: str) -> ProviderDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownProviderError(name, self.aliases) from None

    def is_available(self, name: str) -> bool:
        descriptor = self._by_name.get(name)
        return descriptor is not None and descriptor.capability_id in self._available

    def is_group(self, requested: str) -> bool:
        return requested in (GROUP_ALL, GROUP_GPU)

    def expand(self, requested: str) -> List[str]:
        """Expand a provider request to the ordered candidate list."""
        requested = requested.lower()
        if requested == GROUP_ALL:
            return self.names
        if requested == GROUP_GPU:
            return [p.name for p in self._providers if p.is_gpu]
        return [self.get(requested).name]

    def intersect(self, requested: str, include_slow_compile: bool = False) -> List[str]:
        """Requested providers that are known and available, in catalog order.

        Slow-compiling providers are dropped from group requests unless
        include_slow_compile is set. An explicit single request keeps them.
        """
        candidates = self.expand(requested)
        group = self.is_group(requested.lower())

        selected = []
        for name in candidates:
            if not self.is_available(name):
                logger.debug(f"Provider '{name}' not available, skipping")
                continue
            if group and self._by_name[name].is_slow_compile and not include_slow_compile:
                logger.debug(f"Provider '{name}' excluded from '{requested}' (use --include-tensorrt)")
                continue
            selected.append(name)

        return selected

    def validate_provider(self, name: str) -> Tuple[bool, str]:
        """Validate that a provider can be used. Returns (is_valid, error_message)."""
        descriptor = self._by_name.get(name)
        if descriptor is None:
            return False, f"Unknown provider: {name}"
        if descriptor.capability_id not in self._available:
            return False, f"{descriptor.capability_id} not available"
        return True, ""
