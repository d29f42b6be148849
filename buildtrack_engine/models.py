"""Run summary: the immutable record of one tracked run."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping

from .resources.data_models import ResourceAggregate

TOTAL_STAGE = "total"


@dataclass(frozen=True, eq=False)
class RunSummary:
    """
    Timing and resource totals for one run.

    Instances compare by identity: two runs that happen to share a total
    time are still different runs.
    """

    timestamp: datetime
    total_millis: int
    stage_durations: Mapping[str, int] = field(default_factory=dict)
    resource_aggregate: ResourceAggregate = field(default_factory=ResourceAggregate)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "stage_durations", MappingProxyType(dict(self.stage_durations))
        )
        object.__setattr__(self, "total_millis", max(0, int(self.total_millis)))

    def stage_times(self) -> Dict[str, int]:
        """Stage durations without the reserved whole-run entry."""
        return {k: v for k, v in self.stage_durations.items() if k != TOTAL_STAGE}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "total_millis": self.total_millis,
            "stage_durations": dict(self.stage_durations),
            "resource_aggregate": self.resource_aggregate.to_dict(),
        }
