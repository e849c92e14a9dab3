"""Adapters from the asyncio ``can`` contract to other calling styles.

- :func:`can_blocking` for synchronous code with no running event loop.
- :func:`can_with_callback` for callback-style callers inside a loop.
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable

from granted.errors import NotGranted
from granted.evaluator import RuleEvaluator, get_default_evaluator

Callback = Callable[[NotGranted | None, Any], None]


def can_blocking(
    subject: Any,
    action: str,
    target: object,
    options: Any = None,
    evaluator: RuleEvaluator | None = None,
) -> Any:
    """Run ``can`` to completion and return the subject, or raise.

    Must not be called from inside a running event loop.
    """
    evaluator = evaluator or get_default_evaluator()
    return asyncio.run(evaluator.can(subject, action, target, options))


def can_with_callback(
    subject: Any,
    action: str,
    target: object,
    callback: Callback,
    options: Any = None,
    evaluator: RuleEvaluator | None = None,
) -> asyncio.Task:
    """Schedule ``can`` on the running loop and report through ``callback``.

    ``callback(error, result)`` receives ``(None, subject)`` when permitted
    and ``(error, None)`` for any :class:`~granted.errors.NotGranted`.
    Other exceptions are left on the returned task.
    """
    evaluator = evaluator or get_default_evaluator()

    async def _run() -> Any:
        try:
            result = await evaluator.can(subject, action, target, options)
        except NotGranted as exc:
            callback(exc, None)
            return None
        callback(None, result)
        return result

    return asyncio.get_running_loop().create_task(_run())
