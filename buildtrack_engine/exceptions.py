"""
Structured exception hierarchy for the build-time analytics engine.

The engine never lets these escape into the build it observes: they are
raised by low-level readers and parsers, then caught, logged and turned into
"no signal" values by the components that own them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(str, Enum):
    """Error severity levels for triage"""
    ERROR = "error"              # Operation abandoned, report degraded
    RECOVERABLE = "recoverable"  # Transient failure, next attempt may succeed
    WARNING = "warning"          # Non-blocking issue


class ErrorCategory(str, Enum):
    """Error categories for diagnostics"""
    CONFIGURATION = "configuration"  # Invalid or missing tracker settings
    HISTORY = "history"              # Unreadable or malformed history file
    SAMPLING = "sampling"            # Failed memory/CPU read
    ANALYSIS = "analysis"            # Analyzer failure


@dataclass
class TrackingContext:
    """Where in a run an error happened"""

    run_id: Optional[str] = None
    stage_name: Optional[str] = None
    path: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v not in (None, {})}


class BuildTrackError(Exception):
    """
    Base exception for the analytics engine with structured context.

    All engine exceptions inherit from this class so callers can catch
    a single type and log a consistent diagnostic payload.
    """

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.ANALYSIS,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[TrackingContext] = None,
        original_exception: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or TrackingContext()
        self.original_exception = original_exception

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for structured logging"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.context.to_dict(),
            "original_exception": (
                f"{type(self.original_exception).__name__}: {self.original_exception}"
                if self.original_exception
                else None
            ),
        }


class ConfigurationError(BuildTrackError):
    """Invalid tracker configuration"""
    def __init__(self, message: str, config_path: Optional[str] = None, **kwargs):
        if config_path:
            message = f"{message} (config_path: {config_path})"
            kwargs.setdefault("context", TrackingContext(path=config_path))
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)


class HistoryFormatError(BuildTrackError):
    """History file or record could not be parsed"""
    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        kwargs.setdefault("context", TrackingContext(path=path))
        super().__init__(
            message,
            category=ErrorCategory.HISTORY,
            severity=ErrorSeverity.WARNING,
            **kwargs,
        )


class SamplingError(BuildTrackError):
    """A single resource reading failed; the sample is dropped"""
    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.SAMPLING,
            severity=ErrorSeverity.RECOVERABLE,
            **kwargs,
        )
