"""Benchmark cells and per-stage outcomes."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from .catalog import ModelDescriptor
from .config import OptimizationLevel

T = TypeVar("T")


@dataclass(frozen=True)
class Cell:
    """One combination of model, input size, provider and optimization level."""
    model: ModelDescriptor
    size: int
    provider: str
    optimization_level: OptimizationLevel

    @property
    def size_str(self) -> str:
        return f"{self.size}x{self.size}"

    def __str__(self) -> str:
        return f"{self.model.alias} | {self.size_str} | {self.provider} | {self.optimization_level.value}"


class Stage(Enum):
    """Stages of a cell run, in execution order."""
    CONFIGURE = "configure"
    LOAD = "load"
    PREPARE = "prepare"
    DISCOVERY = "discovery"
    WARMUP = "warmup"
    TIMED = "timed"
    RELEASE = "release"


@dataclass(frozen=True)
class CellFailure:
    """Why a cell failed and in which stage."""
    stage: Stage
    message: str


@dataclass(frozen=True)
class StageOutcome(Generic[T]):
    """Either the value produced by a stage or the failure that stopped it."""
    value: Optional[T] = None
    failure: Optional[CellFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "StageOutcome[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, stage: Stage, message: str) -> "StageOutcome[T]":
        return cls(failure=CellFailure(stage, message or "unknown error"))
