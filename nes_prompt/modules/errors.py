"""
Error and result types for the prompt budgeting engine.

Three categories:
- OutOfBudget: expected outcome, returned as a value and never raised
- InvariantViolationError: a defect in the caller's snapshot, always raised
- ConfigurationError: invalid prompt options (YAML, JSON or field values)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NoReturn


class PromptBudgetError(Exception):
    """Base class for errors raised by nes_prompt."""


class InvariantViolationError(PromptBudgetError, AssertionError):
    """Raised when an input breaks an invariant the engine relies on.

    Examples: a line range outside the document, a reversed offset range,
    or a query against lint output that was never formatted.
    """


class ConfigurationError(PromptBudgetError, ValueError):
    """Raised when prompt options cannot be parsed or validated."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        super().__init__(message)


@dataclass(frozen=True)
class OutOfBudget:
    """Tag returned when a unit of content cannot fit its token budget.

    Callers omit the unit or fall back to minimal context.
    """
    reason: str = "outOfBudget"
    required_tokens: int = 0
    max_tokens: int = 0


def is_out_of_budget(value: Any) -> bool:
    return isinstance(value, OutOfBudget)


def assert_never(value: Any) -> NoReturn:
    """Fail loudly on an enum member that a dispatch does not handle."""
    raise InvariantViolationError(f"Unhandled value: {value!r}")
