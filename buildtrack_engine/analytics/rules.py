"""Tagged heuristic rules: a condition and the message it emits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Sequence, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Rule(Generic[T]):
    """One recommendation rule, evaluated against a context object."""

    name: str
    condition: Callable[[T], bool]
    message: Union[str, Callable[[T], str]]

    def applies(self, context: T) -> bool:
        return bool(self.condition(context))

    def render(self, context: T) -> str:
        if callable(self.message):
            return self.message(context)
        return self.message


def evaluate_rules(
    rules: Sequence[Rule[T]],
    context: T,
    fallback: Optional[str] = None,
) -> List[str]:
    """Messages of every rule that applies, in rule order.

    When no rule applies and a fallback is given, it is the only message.
    """
    messages = [rule.render(context) for rule in rules if rule.applies(context)]
    if not messages and fallback:
        messages.append(fallback)
    return messages


def name_matches(name: str, keywords: Sequence[str]) -> bool:
    """Case-insensitive substring match of a stage name against a category."""
    lowered = name.lower()
    return any(keyword in lowered for keyword in keywords)
