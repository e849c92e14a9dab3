"""Per-target rule storage.

A :class:`RuleRegistry` maps action names to the ordered list of rules
registered for them. Grants and denials share the lists; the rule's
:class:`~granted.rules.Polarity` tells them apart.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Iterator

from granted.rules import Check, Guard, Polarity, Rule
from granted.selectors import ALL_RULES, RuleSelector, normalize_names

logger = logging.getLogger(__name__)


class RuleRegistry:
    """Ordered rule lists keyed by action name, owned by one target.

    Parameters
    ----------
    owner:
        The target the rules are attached to. Stored on every rule.
    """

    def __init__(self, owner: object) -> None:
        self._owner = owner
        self._rules: dict[str, list[Rule]] = {}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(
        self,
        names: str | Iterable[str],
        check: Check,
        polarity: Polarity,
        guard: Guard | None = None,
    ) -> list[Rule]:
        """Append one rule per action name and return the new rules."""
        added: list[Rule] = []
        for name in normalize_names(names):
            rule = Rule(
                action=name,
                check=check,
                polarity=polarity,
                owner=self._owner,
                guard=guard,
            )
            self._rules.setdefault(name, []).append(rule)
            added.append(rule)
            logger.debug("Registered rule: %s", rule)
        return added

    def remove(self, polarity: Polarity, selector: RuleSelector = ALL_RULES) -> int:
        """Remove rules of ``polarity`` matched by ``selector``.

        Rules of the other polarity are always kept. Action keys whose
        lists become empty are kept as empty lists.

        Returns
        -------
        int
            The number of rules removed.
        """
        removed = 0
        for action, rules in self._rules.items():
            if not selector.selects_action(action):
                continue
            kept = [
                rule
                for rule in rules
                if rule.polarity is not polarity or not selector.matches(rule)
            ]
            removed += len(rules) - len(kept)
            rules[:] = kept
        if removed:
            logger.debug(
                "Removed %d %s rule(s) with %r", removed, polarity.value, selector
            )
        return removed

    def clone(self, owner: object) -> RuleRegistry:
        """Return an independent registry with the same rules, owned by ``owner``."""
        registry = RuleRegistry(owner=owner)
        for action, rules in self._rules.items():
            registry._rules[action] = [replace(rule, owner=owner) for rule in rules]
        return registry

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def rules_for(self, action: str) -> list[Rule]:
        """Return a copy of the rules registered for ``action``, in order."""
        return list(self._rules.get(action, ()))

    def has_action(self, action: str) -> bool:
        """Return True if at least one rule is registered for ``action``."""
        return bool(self._rules.get(action))

    @property
    def actions(self) -> list[str]:
        """Action names that have ever had a rule, in first-use order."""
        return list(self._rules)

    @property
    def owner(self) -> object:
        return self._owner

    def __iter__(self) -> Iterator[Rule]:
        for rules in self._rules.values():
            yield from rules

    def __len__(self) -> int:
        return sum(len(rules) for rules in self._rules.values())

    def __repr__(self) -> str:
        return f"RuleRegistry(actions={self.actions!r}, rules={len(self)})"
