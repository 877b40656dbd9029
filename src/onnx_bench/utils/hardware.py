"""
Hardware identification for result lines.

CPU and GPU identity are immutable for the duration of a run: the probe
queries each lazily once, and HardwareInfo snapshots the descriptors
used by the sweep.
"""

import json
import logging
import platform
import subprocess
from dataclasses import dataclass
from typing import List, Optional

import cpuinfo
import psutil

logger = logging.getLogger(__name__)

UNKNOWN_CPU = "Unknown CPU"
UNKNOWN_GPU = "Unknown GPU"
UNKNOWN_RAM = "?GB"

_QUERY_TIMEOUT_S = 10


@dataclass(frozen=True)
class GpuInfo:
    """One detected GPU."""
    id: int
    name: str
    ram: str = UNKNOWN_RAM

    def __str__(self) -> str:
        return f"{self.name} ({self.ram})"


def _format_gb(num_bytes: float) -> str:
    return f"{round(num_bytes / (1024.0 ** 3))}GB"


def _run(cmd: List[str]) -> Optional[str]:
    """Run a query command, returning stdout or None if it is unavailable or fails."""
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, timeout=_QUERY_TIMEOUT_S, check=True
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Hardware query {cmd[0]} failed: {e}")
        return None
    return result.stdout


class HardwareProbe:
    """Detects CPU and GPU descriptors. Each query runs at most once per probe."""

    def __init__(self):
        self._cpu_name: Optional[str] = None
        self._system_ram: Optional[str] = None
        self._gpus: Optional[List[GpuInfo]] = None

    def cpu_descriptor(self) -> str:
        """CPU name and total system memory, e.g. 'AMD Ryzen 9 7950X (64GB)'."""
        if self._cpu_name is None:
            self._cpu_name = self._detect_cpu_name() or UNKNOWN_CPU
            try:
                self._system_ram = _format_gb(psutil.virtual_memory().total)
            except (OSError, RuntimeError) as e:
                logger.debug(f"Failed to read system memory: {e}")
                self._system_ram = UNKNOWN_RAM
        return f"{self._cpu_name} ({self._system_ram})"

    def gpu_descriptor(self, device_index: int = 0) -> str:
        """Name and memory of the GPU at device_index, e.g. 'NVIDIA GeForce RTX 4090 (24GB)'."""
        gpus = self.list_gpus()
        if 0 <= device_index < len(gpus):
            return str(gpus[device_index])
        return f"{UNKNOWN_GPU} ({UNKNOWN_RAM})"

    def list_gpus(self) -> List[GpuInfo]:
        """All detected GPUs, in device index order."""
        if self._gpus is None:
            self._gpus = self._detect_gpus()
        return list(self._gpus)

    def _detect_cpu_name(self) -> Optional[str]:
        try:
            brand = cpuinfo.get_cpu_info().get("brand_raw")
        except Exception as e:
            logger.debug(f"CPU detection via py-cpuinfo failed: {e}")
            brand = None

        if brand and brand.strip():
            return brand.strip()
        return platform.processor() or None

    def _detect_gpus(self) -> List[GpuInfo]:
        gpus = self._query_nvidia_smi()
        if not gpus and platform.system() == "Windows":
            gpus = self._query_windows_video_controllers()
        logger.debug(f"Detected GPUs: {gpus}")
        return gpus

    def _query_nvidia_smi(self) -> List[GpuInfo]:
        out = _run([
            "nvidia-smi",
            "--query-gpu=index,name,memory.total",
            "--format=csv,noheader,nounits",
        ])
        if not out:
            return []

        gpus = []
        for line in out.strip().splitlines():
            parts = [p.strip() for p in line.split(",")]
            if len(parts) < 3:
                continue
            try:
                index = int(parts[0])
                ram = _format_gb(float(parts[2]) * 1024 * 1024)
            except ValueError:
                continue
            gpus.append(GpuInfo(id=index, name=parts[1], ram=ram))
        return gpus

    def _query_windows_video_controllers(self) -> List[GpuInfo]:
        out = _run([
            "powershell", "-NoProfile", "-Command",
            "Get-CimInstance Win32_VideoController | Select-Object Name,AdapterRAM | ConvertTo-Json",
        ])
        if not out or not out.strip():
            return []

        try:
            entries = json.loads(out)
        except json.JSONDecodeError as e:
            logger.debug(f"Unparseable video controller list: {e}")
            return []
        if isinstance(entries, dict):
            entries = [entries]

        gpus = []
        for entry in entries:
            name = entry.get("Name")
            if not name or "Basic Display" in name:
                continue
            adapter_ram = entry.get("AdapterRAM")
            ram = _format_gb(adapter_ram) if adapter_ram else UNKNOWN_RAM
            gpus.append(GpuInfo(id=len(gpus), name=name, ram=ram))
        return gpus


@dataclass(frozen=True)
class HardwareInfo:
    """Hardware descriptors captured once at startup and passed into the sweep."""
    cpu: str
    gpu: str
    gpu_id: int = 0

    @classmethod
    def detect(cls, probe: HardwareProbe, gpu_id: int = 0) -> "HardwareInfo":
        return cls(cpu=probe.cpu_descriptor(), gpu=probe.gpu_descriptor(gpu_id), gpu_id=gpu_id)

    def describe(self, provider: str) -> str:
        """Descriptor of the hardware a provider runs on."""
        return self.cpu if provider == "cpu" else self.gpu
