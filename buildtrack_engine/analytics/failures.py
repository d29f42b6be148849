"""
Stage failure analysis.

Turns an exception reported for a failed stage into a StageFailure with
suggested fixes chosen by keyword rules over the error type, the error
message and the stage name.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .data_models import StageFailure
from .rules import Rule, name_matches

TEST_STAGE_KEYWORDS = ("test", "verify")


@dataclass(frozen=True)
class FailureContext:
    stage: str
    error_type: str  # lower-cased
    message: str  # lower-cased


def _mentions(*needles: str):
    return lambda c: any(n in c.message or n in c.error_type for n in needles)


def _fixes(rule_name: str, condition, *messages: str) -> Tuple[Rule[FailureContext], ...]:
    return tuple(Rule(f"{rule_name}-{i}", condition, m) for i, m in enumerate(messages, 1))


_compilation = _mentions("compilationerror", "compile error", "cannot find symbol", "syntaxerror")
_dependency = _mentions("could not resolve dependencies", "artifact not found", "no matching distribution", "modulenotfounderror")
_memory = _mentions("outofmemoryerror", "memoryerror", "heap space", "out of memory")
_plugin = _mentions("plugin", "mojo")


def _test_failure(c: FailureContext) -> bool:
    return name_matches(c.stage, TEST_STAGE_KEYWORDS) and (
        "test" in c.error_type or "assert" in c.error_type or "fail" in c.message
    )


DEFAULT_FIX_RULES: Tuple[Rule[FailureContext], ...] = (
    *_fixes(
        "compilation",
        _compilation,
        "Check that all required dependencies are declared",
        "Verify import statements and class names",
    ),
    *_fixes(
        "dependency",
        _dependency,
        "Check repository/index availability",
        "Verify dependency coordinates and versions",
        "Clear the local dependency cache and retry",
    ),
    *_fixes(
        "test",
        _test_failure,
        "Run the failing tests individually to isolate the issue",
        "Check test data, fixtures and mock configuration",
    ),
    *_fixes(
        "memory",
        _memory,
        "Increase the memory available to the build",
        "Enable garbage collection logging to find allocation hot spots",
    ),
    *_fixes(
        "plugin",
        _plugin,
        "Update the failing plugin to its latest version",
        "Check the plugin configuration and re-run with debug output",
    ),
)


def format_traceback(error: BaseException) -> str:
    """Full traceback text including chained causes."""
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


class FailureAnalyzer:
    """Builds StageFailure records with suggested fixes."""

    def __init__(self, rules: Optional[Sequence[Rule[FailureContext]]] = None):
        self.rules = tuple(rules) if rules is not None else DEFAULT_FIX_RULES

    def analyze(self, stage: str, error: BaseException) -> StageFailure:
        error_type = type(error).__name__
        message = str(error) or "Unknown error"
        context = FailureContext(
            stage=stage, error_type=error_type.lower(), message=message.lower()
        )
        fixes = tuple(rule.render(context) for rule in self.rules if rule.applies(context))
        return StageFailure(
            stage=stage,
            error_type=error_type,
            error_message=message,
            traceback=format_traceback(error),
            suggested_fixes=fixes,
        )
