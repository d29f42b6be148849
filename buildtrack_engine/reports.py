"""
Report set handed to formatters after a run, and its JSON export.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .analytics.data_models import (
    BottleneckReport,
    EfficiencyReport,
    RegressionReport,
    StageFailure,
)
from .models import RunSummary
from .resources.data_models import ResourceAlert

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportSet:
    """Everything produced for one run; a disabled or failed analyzer leaves None."""

    run_summary: RunSummary
    bottleneck: Optional[BottleneckReport] = None
    regression: Optional[RegressionReport] = None
    efficiency: Optional[EfficiencyReport] = None
    resource_alerts: Tuple[ResourceAlert, ...] = ()
    failures: Tuple[StageFailure, ...] = ()

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_summary": self.run_summary.to_dict(),
            "bottleneck": self.bottleneck.to_dict() if self.bottleneck else None,
            "regression": self.regression.to_dict() if self.regression else None,
            "efficiency": self.efficiency.to_dict() if self.efficiency else None,
            "resource_alerts": [a.to_dict() for a in self.resource_alerts],
            "failures": [f.to_dict() for f in self.failures],
        }


def write_report_json(report_set: ReportSet, path: Path | str) -> Path:
    """Atomically write the report set as JSON and return the final path."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    tmp_fd, tmp_path = tempfile.mkstemp(dir=p.parent, suffix=".json.tmp")
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as fh:
            json.dump(report_set.to_dict(), fh, indent=2, default=str)
        os.replace(tmp_path, p)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote report set to %s", p)
    return p
