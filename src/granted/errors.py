"""Failure taxonomy for permission checks.

Every failure reported by :func:`granted.can` is a :class:`NotGranted`,
so callers that only care about "allowed or not" can catch the root:

>>> try:
...     await user.can("publish", post)
... except NotGranted:
...     ...

The subclasses say *why* the permission was not granted.
"""
from __future__ import annotations

#: Reason carried by :class:`Denied` when a deny check returned ``True``.
DENIED_MARKER: str = "Granted:Denied"


class NotGranted(Exception):
    """Raised when rules applied to the subject but none of them passed.

    Also the root of every other permission failure.

    Attributes
    ----------
    action:
        The action that was checked, when known.
    """

    default_message = "Permission not granted"

    def __init__(self, action: str | None = None, message: str | None = None) -> None:
        self.action = action
        self._message = message
        text = message or self.default_message
        if action is not None:
            text = f"{text}: '{action}'"
        super().__init__(text)

    def _reduce_args(self) -> tuple[object, ...]:
        return (self.action, self._message)

    def __reduce__(self) -> tuple[object, ...]:
        return (self.__class__, self._reduce_args(), self.__dict__)


class InvalidTarget(NotGranted):
    """Raised when the queried target does not carry a rule registry."""

    default_message = "Target does not accept permission rules"

    def __init__(self, target: object, action: str | None = None) -> None:
        self.target = target
        super().__init__(
            action,
            f"{type(target).__name__} is not Grantable",
        )

    def _reduce_args(self) -> tuple[object, ...]:
        return (self.target, self.action)


class NotDefined(NotGranted):
    """Raised when no rule exists for the action, or none applies to the subject."""

    default_message = "No permission rule defined"


class Denied(NotGranted):
    """Raised when a deny rule matched.

    Attributes
    ----------
    reason:
        :data:`DENIED_MARKER` when a deny check returned ``True``, or the
        exception a deny check raised while being evaluated.
    """

    default_message = "Permission denied"

    def __init__(
        self,
        action: str | None = None,
        reason: BaseException | str = DENIED_MARKER,
    ) -> None:
        self.reason = reason
        message = self.default_message
        if isinstance(reason, BaseException):
            message = f"{message} ({type(reason).__name__}: {reason})"
        super().__init__(action, message)

    def _reduce_args(self) -> tuple[object, ...]:
        return (self.action, self.reason)


class RuleConfigError(ValueError):
    """Raised when a rule or evaluator configuration is malformed.

    Attributes
    ----------
    config_path:
        The file (or other source) the configuration came from, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        self._message = message
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")

    def __reduce__(self) -> tuple[object, ...]:
        return (self.__class__, (self._message, self.config_path), self.__dict__)
