"""Non-raising view of a permission check.

:func:`granted.can` raises on every refusal. Code that would rather branch
on a value (CLIs, audit hooks, templates) can use :func:`granted.decide`,
which returns a :class:`Decision` instead.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass

from granted.errors import Denied, InvalidTarget, NotDefined, NotGranted


class Outcome(str, enum.Enum):
    """The terminal state a permission check reached."""

    PASSED = "passed"
    DENIED = "denied"
    NOT_GRANTED = "not_granted"
    NOT_DEFINED = "not_defined"
    INVALID_TARGET = "invalid_target"


@dataclass(frozen=True)
class Decision:
    """Immutable result of a permission check.

    Attributes
    ----------
    allowed:
        Whether the subject may perform the action.
    outcome:
        Which terminal state was reached.
    action:
        The action that was checked.
    error:
        The :class:`~granted.errors.NotGranted` that ``can`` raised, or
        ``None`` when allowed.
    """

    allowed: bool
    outcome: Outcome
    action: str
    error: NotGranted | None = None

    def __bool__(self) -> bool:
        return self.allowed

    @property
    def reason(self) -> str:
        """Human-readable explanation of the decision."""
        if self.error is None:
            return f"'{self.action}' granted"
        return str(self.error)

    @classmethod
    def passed(cls, action: str) -> Decision:
        return cls(allowed=True, outcome=Outcome.PASSED, action=action)

    @classmethod
    def from_error(cls, action: str, error: NotGranted) -> Decision:
        """Build a refusal from the error ``can`` raised."""
        # Subclasses before the root.
        if isinstance(error, Denied):
            outcome = Outcome.DENIED
        elif isinstance(error, NotDefined):
            outcome = Outcome.NOT_DEFINED
        elif isinstance(error, InvalidTarget):
            outcome = Outcome.INVALID_TARGET
        else:
            outcome = Outcome.NOT_GRANTED
        return cls(allowed=False, outcome=outcome, action=action, error=error)
