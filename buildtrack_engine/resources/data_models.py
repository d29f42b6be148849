"""
Data models for resource sampling.

This module contains the dataclasses used throughout the resources package.
It has no internal dependencies to serve as a stable foundation layer.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ResourceSample:
    """One instantaneous reading taken by the sampler."""

    timestamp: float
    heap_used_bytes: int
    cpu_fraction: float  # 0.0 - 1.0


@dataclass(frozen=True)
class ResourceAggregate:
    """Aggregate of all samples taken during one run.

    An all-zero aggregate means "no data" (sampling disabled or no tick
    happened), not "zero usage".
    """

    avg_memory_bytes: int = 0
    peak_memory_bytes: int = 0
    avg_cpu_fraction: float = 0.0
    peak_cpu_fraction: float = 0.0
    gc_count: int = 0
    gc_millis: int = 0
    sample_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.avg_memory_bytes,
                self.peak_memory_bytes,
                self.avg_cpu_fraction,
                self.peak_cpu_fraction,
                self.gc_count,
                self.gc_millis,
                self.sample_count,
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ResourceAlert:
    """Resource warning raised after a run (high memory, CPU or GC time)."""

    kind: str  # "memory", "cpu", "gc"
    message: str
    value: float
    threshold: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
