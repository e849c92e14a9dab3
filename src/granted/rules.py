"""Rule model: one registered grant or deny clause.

A :class:`Rule` ties an action name to a *check* and an optional *guard*.

- The check is either a literal ``bool`` or a callable invoked as
  ``check(subject, options)``. Callables may be coroutine functions or
  return any awaitable.
- The guard scopes the rule to some subjects. It may be a class (or tuple
  of classes) tested with ``isinstance``, a :class:`Capability` tag, or any
  predicate ``subject -> bool``. A rule without a guard applies to every
  subject.

Example
-------
::

    rule = Rule(action="edit", check=True, guard=User, polarity=Polarity.ALLOW, owner=doc)
    assert rule.applies_to(User())
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

CheckFunction = Callable[[Any, Any], Union[bool, Awaitable[bool]]]
Check = Union[bool, CheckFunction]
GuardPredicate = Callable[[Any], bool]
Guard = Union[type, tuple, GuardPredicate]


class Polarity(str, enum.Enum):
    """Whether a rule grants or denies its action."""

    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class Capability:
    """Guard matching subjects that advertise a capability tag.

    A subject satisfies the guard when ``tag`` is in its ``capabilities``
    attribute; a plain string counts as a single tag. Two capabilities
    are equal when their tags are equal, so a rule guarded by
    ``Capability("admin")`` can be removed with a fresh ``Capability("admin")``.
    """

    tag: str

    def __call__(self, subject: object) -> bool:
        capabilities = getattr(subject, "capabilities", None) or ()
        if isinstance(capabilities, str):
            capabilities = (capabilities,)
        return self.tag in capabilities

    def __str__(self) -> str:
        return f"capability:{self.tag}"


def guard_accepts(guard: Guard | None, subject: object) -> bool:
    """Return True if ``subject`` satisfies ``guard``.

    ``None`` accepts everything; classes and tuples of classes use
    ``isinstance``; any other callable is treated as a predicate whose
    result is tested for truthiness.
    """
    if guard is None:
        return True
    if isinstance(guard, (type, tuple)):
        return isinstance(subject, guard)
    return bool(guard(subject))


def describe(value: object) -> str:
    """Short human-readable name for a check or guard, for logs and tables."""
    if value is None:
        return "-"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, tuple):
        return " | ".join(describe(item) for item in value)
    name = getattr(value, "__qualname__", None) or getattr(value, "__name__", None)
    return name if isinstance(name, str) else str(value)


@dataclass(frozen=True)
class Rule:
    """A single grant or deny clause attached to a target.

    Attributes
    ----------
    action:
        The permission name the rule applies to.
    check:
        Literal ``bool`` or callable ``(subject, options)``.
    polarity:
        :attr:`Polarity.ALLOW` for grants, :attr:`Polarity.DENY` for denials.
    owner:
        The target the rule was registered on.
    guard:
        Optional scoping guard; ``None`` applies to any subject.
    """

    action: str
    check: Check
    polarity: Polarity
    owner: object
    guard: Guard | None = None

    @property
    def is_deny(self) -> bool:
        return self.polarity is Polarity.DENY

    def applies_to(self, subject: object) -> bool:
        return guard_accepts(self.guard, subject)

    def __str__(self) -> str:
        return (
            f"{self.polarity.value} {self.action!r} "
            f"guard={describe(self.guard)} check={describe(self.check)}"
        )
