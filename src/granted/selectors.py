"""Selectors used by ``ungrant`` / ``undeny`` to pick rules for removal.

Each variant adds one component to the match:

=========================  ===============================================
``AllRules()``             every rule of the requested polarity
``ByName(names)``          ... restricted to the given action name(s)
``ByNameAndGuard``         ... whose guard equals the given guard
``ByNameGuardAndCheck``    ... whose check *is* the given check
=========================  ===============================================

Components left as ``None`` are wildcards, so ``ByName(None)`` behaves like
``AllRules()``. A rule stored without a guard never matches a selector with
a non-None guard.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Iterable

from granted.rules import Check, Guard, Rule


def normalize_names(names: str | Iterable[str] | None) -> tuple[str, ...]:
    """Turn one name, an iterable of names, or nothing into a tuple."""
    if not names:
        return ()
    if isinstance(names, str):
        return (names,)
    return tuple(names)


def same_check(stored: Check, wanted: Check) -> bool:
    """Identity for functions and literals; bound methods match on self and function."""
    if stored is wanted:
        return True
    return inspect.ismethod(stored) and inspect.ismethod(wanted) and stored == wanted


@dataclass(frozen=True)
class RuleSelector:
    """Base selector. Subclasses only differ in which components they carry."""

    @property
    def names(self) -> tuple[str, ...]:
        return ()

    @property
    def guard(self) -> Guard | None:
        return None

    @property
    def check(self) -> Check | None:
        return None

    def selects_action(self, action: str) -> bool:
        return not self.names or action in self.names

    def matches(self, rule: Rule) -> bool:
        """Return True if every supplied component matches ``rule``."""
        if not self.selects_action(rule.action):
            return False
        if self.guard is not None and (rule.guard is None or rule.guard != self.guard):
            return False
        if self.check is not None and not same_check(rule.check, self.check):
            return False
        return True

    @staticmethod
    def build(
        names: str | Iterable[str] | None = None,
        guard: Guard | None = None,
        check: Check | None = None,
    ) -> RuleSelector:
        """Return the narrowest tagged selector for the given components."""
        if check is not None:
            return ByNameGuardAndCheck(names, guard, check)
        if guard is not None:
            return ByNameAndGuard(names, guard)
        if names:
            return ByName(names)
        return ALL_RULES


@dataclass(frozen=True)
class AllRules(RuleSelector):
    """Select every rule."""


@dataclass(frozen=True, init=False)
class ByName(RuleSelector):
    """Select rules for one or more action names."""

    action_names: tuple[str, ...]

    def __init__(self, names: str | Iterable[str] | None) -> None:
        object.__setattr__(self, "action_names", normalize_names(names))

    @property
    def names(self) -> tuple[str, ...]:
        return self.action_names


@dataclass(frozen=True, init=False)
class ByNameAndGuard(ByName):
    """Select rules by action name(s) and guard equality."""

    rule_guard: Guard | None

    def __init__(self, names: str | Iterable[str] | None, guard: Guard | None) -> None:
        super().__init__(names)
        object.__setattr__(self, "rule_guard", guard)

    @property
    def guard(self) -> Guard | None:
        return self.rule_guard


@dataclass(frozen=True, init=False)
class ByNameGuardAndCheck(ByNameAndGuard):
    """Select rules by action name(s), guard equality and check identity."""

    rule_check: Check | None

    def __init__(
        self,
        names: str | Iterable[str] | None,
        guard: Guard | None,
        check: Check | None,
    ) -> None:
        super().__init__(names, guard)
        object.__setattr__(self, "rule_check", check)

    @property
    def check(self) -> Check | None:
        return self.rule_check


ALL_RULES = AllRules()
