"""Utility functions for the ONNX Runtime sweep benchmark."""

from .hardware import GpuInfo, HardwareInfo, HardwareProbe

__all__ = [
    "GpuInfo",
    "HardwareInfo",
    "HardwareProbe",
]
