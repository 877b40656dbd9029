"""Inference backends for the ONNX Runtime sweep benchmark."""

from .base import BaseBackend, BaseSession
from .onnxruntime_backend import ORT_AVAILABLE, OnnxRuntimeBackend, OnnxRuntimeSession
from .provider_catalog import (
    KNOWN_PROVIDERS,
    ProviderCatalog,
    ProviderDescriptor,
)

__all__ = [
    "BaseBackend",
    "BaseSession",
    "ORT_AVAILABLE",
    "OnnxRuntimeBackend",
    "OnnxRuntimeSession",
    "KNOWN_PROVIDERS",
    "ProviderCatalog",
    "ProviderDescriptor",
]
