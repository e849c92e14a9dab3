"""The Grantable interface: objects that carry permission rules.

Subclass :class:`Grantable` to make a type both a *target* (rules can be
granted and denied on its instances) and a *subject* (its instances can
ask whether they ``can`` do something on another target).

Example
-------
::

    class Document(Grantable):
        def __init__(self, owner_id: int) -> None:
            self.owner_id = owner_id

    class User(Grantable):
        def __init__(self, user_id: int) -> None:
            self.id = user_id

    doc = Document(owner_id=7)
    doc.grant("edit", lambda user, options: user.id == doc.owner_id, guard=User)
    await User(7).can("edit", doc)
"""
from __future__ import annotations

import copy
from typing import Any, Iterable, TypeVar

from granted.registry import RuleRegistry
from granted.rules import Check, Guard, Polarity
from granted.selectors import RuleSelector

_REGISTRY_ATTR = "_granted_registry"

GrantableT = TypeVar("GrantableT", bound="Grantable")


class Grantable:
    """Base class giving instances their own :class:`RuleRegistry`.

    The registry is created on the first ``grant`` or ``deny`` and stored on
    the instance itself, so subclasses do not need to call
    ``super().__init__()``.
    """

    @property
    def rule_registry(self) -> RuleRegistry | None:
        """This instance's registry, or ``None`` if nothing was ever granted."""
        return self.__dict__.get(_REGISTRY_ATTR)

    def _ensure_registry(self) -> RuleRegistry:
        registry = self.__dict__.get(_REGISTRY_ATTR)
        if registry is None:
            registry = RuleRegistry(owner=self)
            self.__dict__[_REGISTRY_ATTR] = registry
        return registry

    def __copy__(self: GrantableT) -> GrantableT:
        return self._clone(dict(self.__dict__))

    def __deepcopy__(self: GrantableT, memo: dict[int, Any]) -> GrantableT:
        clone = self.__class__.__new__(self.__class__)
        memo[id(self)] = clone
        state = {
            key: copy.deepcopy(value, memo)
            for key, value in self.__dict__.items()
            if key != _REGISTRY_ATTR
        }
        state[_REGISTRY_ATTR] = self.__dict__.get(_REGISTRY_ATTR)
        return self._clone(state, clone)

    def _clone(
        self: GrantableT,
        state: dict[str, Any],
        clone: GrantableT | None = None,
    ) -> GrantableT:
        """Copy with the same rules in a registry owned by the copy."""
        if clone is None:
            clone = self.__class__.__new__(self.__class__)
        registry = state.pop(_REGISTRY_ATTR, None)
        clone.__dict__.update(state)
        if registry is not None:
            clone.__dict__[_REGISTRY_ATTR] = registry.clone(owner=clone)
        return clone

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def grant(
        self: GrantableT,
        names: str | Iterable[str],
        check: Check,
        *,
        guard: Guard | None = None,
    ) -> GrantableT:
        """Allow ``names`` when ``check`` passes for a subject matching ``guard``."""
        self._ensure_registry().insert(names, check, Polarity.ALLOW, guard=guard)
        return self

    def deny(
        self: GrantableT,
        names: str | Iterable[str],
        check: Check,
        *,
        guard: Guard | None = None,
    ) -> GrantableT:
        """Deny ``names`` when ``check`` passes (or fails) for a matching subject."""
        self._ensure_registry().insert(names, check, Polarity.DENY, guard=guard)
        return self

    def ungrant(
        self: GrantableT,
        selector: RuleSelector | str | Iterable[str] | None = None,
        guard: Guard | None = None,
        check: Check | None = None,
    ) -> GrantableT:
        """Remove grant rules.

        Accepts either a :class:`~granted.selectors.RuleSelector` or the
        ``(names, guard, check)`` components, where ``None`` matches
        anything.
        """
        return self._remove(Polarity.ALLOW, selector, guard, check)

    def undeny(
        self: GrantableT,
        selector: RuleSelector | str | Iterable[str] | None = None,
        guard: Guard | None = None,
        check: Check | None = None,
    ) -> GrantableT:
        """Remove deny rules. Same arguments as :meth:`ungrant`."""
        return self._remove(Polarity.DENY, selector, guard, check)

    def _remove(
        self: GrantableT,
        polarity: Polarity,
        selector: RuleSelector | str | Iterable[str] | None,
        guard: Guard | None,
        check: Check | None,
    ) -> GrantableT:
        registry = self.rule_registry
        if registry is None:
            return self
        if not isinstance(selector, RuleSelector):
            selector = RuleSelector.build(selector, guard, check)
        elif guard is not None or check is not None:
            raise TypeError("Pass either a RuleSelector or guard/check components, not both")
        registry.remove(polarity, selector)
        return self

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def can(
        self: GrantableT,
        action: str,
        target: object,
        options: Any = None,
    ) -> GrantableT:
        """Check whether this object may perform ``action`` on ``target``.

        Returns ``self`` when permitted; raises a
        :class:`~granted.errors.NotGranted` subclass otherwise.
        """
        from granted.evaluator import get_default_evaluator

        return await get_default_evaluator().can(self, action, target, options)
