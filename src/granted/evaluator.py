"""Rule evaluation: deny-overrides with existential allow.

Given a subject, an action and a target, the evaluator

1. checks that the target is :class:`~granted.grantable.Grantable`
   (:class:`~granted.errors.InvalidTarget` otherwise),
2. looks up the target's rules for the action
   (:class:`~granted.errors.NotDefined` when there are none),
3. keeps the rules whose guard accepts the subject and splits them into
   deniers and allowers (:class:`~granted.errors.NotDefined` when none
   apply),
4. runs the checks, deniers first.

Only a check result that ``is True`` is a hit. A deny hit, or a deny check
that raises, latches *denied*; nothing can undo it. An allow hit latches
*passed*, which a later deny hit still overrides. With nothing latched the
subject is refused with :class:`~granted.errors.NotGranted`.

Two scheduling strategies are available (see
:class:`~granted.config.EvaluationConfig`): ``concurrent`` runs every check
as its own task, ``sequential`` awaits them one at a time. Both reach the
same decision for the same check outcomes.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any

from granted.config import EvaluationConfig
from granted.decision import Decision
from granted.errors import DENIED_MARKER, Denied, InvalidTarget, NotDefined, NotGranted
from granted.grantable import Grantable
from granted.rules import Rule

logger = logging.getLogger(__name__)


@dataclass
class EvaluationContext:
    """State of a single ``can`` call."""

    subject: Any
    action: str
    options: Any
    deniers: list[Rule] = field(default_factory=list)
    allowers: list[Rule] = field(default_factory=list)
    failed: BaseException | str | None = None
    passed: bool = False

    @property
    def rules(self) -> list[Rule]:
        """Applicable rules in evaluation order: deniers, then allowers."""
        return self.deniers + self.allowers

    @property
    def settled(self) -> bool:
        return self.failed is not None or self.passed


class RuleEvaluator:
    """Runs the rules of a target against a subject.

    Parameters
    ----------
    config:
        Scheduling options. Defaults to concurrent checks without a
        timeout.
    """

    def __init__(self, config: EvaluationConfig | None = None) -> None:
        self._config = config or EvaluationConfig()

    @property
    def config(self) -> EvaluationConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def can(
        self,
        subject: Any,
        action: str,
        target: object,
        options: Any = None,
    ) -> Any:
        """Return ``subject`` if it may perform ``action`` on ``target``.

        Raises
        ------
        InvalidTarget
            ``target`` is not Grantable.
        NotDefined
            No rule for ``action``, or none applies to ``subject``.
        Denied
            A deny rule hit, or a deny check raised.
        NotGranted
            Rules applied but none granted the action.
        """
        context = self.prepare(subject, action, target, options)
        if self._config.strategy == "sequential":
            await self._run_sequential(context)
        else:
            await self._run_concurrent(context)
        return self._finish(context)

    async def decide(
        self,
        subject: Any,
        action: str,
        target: object,
        options: Any = None,
    ) -> Decision:
        """Like :meth:`can`, but return a :class:`Decision` instead of raising."""
        try:
            await self.can(subject, action, target, options)
        except NotGranted as exc:
            return Decision.from_error(action, exc)
        return Decision.passed(action)

    def prepare(
        self,
        subject: Any,
        action: str,
        target: object,
        options: Any = None,
    ) -> EvaluationContext:
        """Validate the target and partition its applicable rules."""
        if not isinstance(target, Grantable):
            raise InvalidTarget(target, action)
        registry = target.rule_registry
        if registry is None or not registry.has_action(action):
            raise NotDefined(action)

        context = EvaluationContext(subject=subject, action=action, options=options)
        for rule in registry.rules_for(action):
            if not rule.applies_to(subject):
                continue
            if rule.is_deny:
                context.deniers.append(rule)
            else:
                context.allowers.append(rule)

        if not context.deniers and not context.allowers:
            raise NotDefined(action)
        return context

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _run_sequential(self, context: EvaluationContext) -> None:
        for rule in context.rules:
            if context.settled:
                break
            hit, error = await self._evaluate(rule, context)
            self._record(context, rule, hit, error)

    async def _run_concurrent(self, context: EvaluationContext) -> None:
        tasks: dict[asyncio.Task, Rule] = {
            asyncio.ensure_future(self._evaluate(rule, context)): rule
            for rule in context.rules
        }
        pending: set[asyncio.Task] = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED
                )
                for task in tasks:
                    if task in done:
                        hit, error = task.result()
                        self._record(context, tasks[task], hit, error)
                if context.failed is not None:
                    break
                if context.passed:
                    # Allowers can no longer change the outcome; deniers still can.
                    stale = {task for task in pending if not tasks[task].is_deny}
                    _abandon(stale)
                    pending -= stale
        finally:
            _abandon(pending)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _evaluate(
        self, rule: Rule, context: EvaluationContext
    ) -> tuple[bool, Exception | None]:
        """Run one check; return ``(hit, error)`` instead of raising."""
        try:
            return await self._run_check(rule, context), None
        except Exception as exc:
            return False, exc

    async def _run_check(self, rule: Rule, context: EvaluationContext) -> bool:
        check = rule.check
        if not callable(check):
            return check is True
        result = check(context.subject, context.options)
        if inspect.isawaitable(result):
            timeout = self._config.check_timeout_seconds
            if timeout is not None:
                result = await asyncio.wait_for(result, timeout)
            else:
                result = await result
        return result is True

    def _record(
        self,
        context: EvaluationContext,
        rule: Rule,
        hit: bool,
        error: Exception | None,
    ) -> None:
        logger.debug(
            "Check %s -> hit=%s error=%r", rule, hit, error
        )
        if rule.is_deny:
            if context.failed is not None:
                return
            if error is not None:
                logger.warning(
                    "Deny check for '%s' raised %s; treating as denial",
                    context.action,
                    type(error).__name__,
                )
                context.failed = error
            elif hit:
                context.failed = DENIED_MARKER
        elif hit:
            context.passed = True

    def _finish(self, context: EvaluationContext) -> Any:
        if context.failed is not None:
            logger.debug("DENIED '%s' for %r", context.action, context.subject)
            error = Denied(context.action, context.failed)
            if isinstance(context.failed, BaseException):
                raise error from context.failed
            raise error
        if context.passed:
            logger.debug("PASSED '%s' for %r", context.action, context.subject)
            return context.subject
        logger.debug("NOT GRANTED '%s' for %r", context.action, context.subject)
        raise NotGranted(context.action)


def _discard_result(task: asyncio.Task) -> None:
    if not task.cancelled():
        task.exception()


def _abandon(tasks: set[asyncio.Task]) -> None:
    """Cancel tasks without awaiting them; their outcome is dropped."""
    for task in tasks:
        task.cancel()
        task.add_done_callback(_discard_result)


# ---------------------------------------------------------------------------
# Module-level default evaluator
# ---------------------------------------------------------------------------

_default_evaluator = RuleEvaluator()


def get_default_evaluator() -> RuleEvaluator:
    """Return the evaluator used by :func:`can` and ``Grantable.can``."""
    return _default_evaluator


def set_default_evaluator(evaluator: RuleEvaluator) -> RuleEvaluator:
    """Replace the default evaluator and return the previous one."""
    global _default_evaluator
    previous = _default_evaluator
    _default_evaluator = evaluator
    return previous


async def can(subject: Any, action: str, target: object, options: Any = None) -> Any:
    """Module-level shortcut for ``get_default_evaluator().can(...)``."""
    return await _default_evaluator.can(subject, action, target, options)


async def decide(
    subject: Any, action: str, target: object, options: Any = None
) -> Decision:
    """Module-level shortcut for ``get_default_evaluator().decide(...)``."""
    return await _default_evaluator.decide(subject, action, target, options)
