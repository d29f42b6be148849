"""
Resource sampling for tracked runs.

Provides the background memory/CPU sampler, its aggregate, and the
post-run resource alerts.
"""

from .data_models import ResourceAggregate, ResourceAlert, ResourceSample
from .sampler import GCActivityTracker, ResourceSampler
from .alerts import evaluate_resource_alerts

__all__ = [
    # Data models
    "ResourceSample",
    "ResourceAggregate",
    "ResourceAlert",
    # Sampling
    "ResourceSampler",
    "GCActivityTracker",
    "evaluate_resource_alerts",
]
