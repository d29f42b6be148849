"""
Post-run resource warnings.

These flag heavy resource use and are tuned separately from the efficiency
score, which rewards high CPU utilisation. A run can score well on CPU and
still raise a high-CPU alert.
"""

from __future__ import annotations

from typing import List

from ..config.settings import ResourceAlertThresholds
from .data_models import ResourceAggregate, ResourceAlert

_MB = 1024 * 1024


def evaluate_resource_alerts(
    aggregate: ResourceAggregate,
    thresholds: ResourceAlertThresholds,
) -> List[ResourceAlert]:
    """Return alerts for high memory, CPU and GC time, in that order."""
    alerts: List[ResourceAlert] = []

    if aggregate.is_empty:
        return alerts

    if aggregate.peak_memory_bytes > thresholds.peak_memory_bytes:
        alerts.append(
            ResourceAlert(
                kind="memory",
                message=(
                    f"High memory usage detected ({aggregate.peak_memory_bytes / _MB:.1f} MB peak)"
                    " - consider raising memory limits or splitting the build"
                ),
                value=float(aggregate.peak_memory_bytes),
                threshold=float(thresholds.peak_memory_bytes),
            )
        )

    if aggregate.avg_cpu_fraction > thresholds.avg_cpu_fraction:
        alerts.append(
            ResourceAlert(
                kind="cpu",
                message=(
                    f"High CPU utilization ({aggregate.avg_cpu_fraction * 100:.1f}% average)"
                    " - the machine may be saturated by parallel work"
                ),
                value=aggregate.avg_cpu_fraction,
                threshold=thresholds.avg_cpu_fraction,
            )
        )

    if aggregate.gc_millis > thresholds.gc_millis:
        alerts.append(
            ResourceAlert(
                kind="gc",
                message=(
                    f"Excessive GC time ({aggregate.gc_millis / 1000:.1f}s over "
                    f"{aggregate.gc_count} collections) - consider tuning GC settings"
                ),
                value=float(aggregate.gc_millis),
                threshold=float(thresholds.gc_millis),
            )
        )

    return alerts
