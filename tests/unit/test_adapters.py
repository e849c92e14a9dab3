"""Tests for the blocking and callback adapters."""
from __future__ import annotations

import pytest

from granted.adapters import can_blocking, can_with_callback
from granted.errors import Denied, NotGranted
from granted.grantable import Grantable


class User(Grantable):
    def __init__(self, user_id: int = 0) -> None:
        self.id = user_id


class Target(Grantable):
    pass


@pytest.fixture()
def target() -> Target:
    obj = Target()
    obj.grant("access", True, guard=User)
    obj.deny("access", lambda user, options: user.id == 1, guard=User)
    return obj


class TestBlocking:
    def test_returns_subject(self, target: Target) -> None:
        user = User(2)
        assert can_blocking(user, "access", target) is user

    def test_raises_refusals(self, target: Target) -> None:
        with pytest.raises(Denied):
            can_blocking(User(1), "access", target)


class TestCallback:
    @pytest.mark.asyncio
    async def test_success(self, target: Target) -> None:
        seen: list[tuple[object, object]] = []
        user = User(2)
        result = await can_with_callback(user, "access", target, lambda e, r: seen.append((e, r)))
        assert result is user
        assert seen == [(None, user)]

    @pytest.mark.asyncio
    async def test_failure(self, target: Target) -> None:
        seen: list[tuple[object, object]] = []
        await can_with_callback(User(1), "access", target, lambda e, r: seen.append((e, r)))
        error, result = seen[0]
        assert isinstance(error, Denied)
        assert isinstance(error, NotGranted)
        assert result is None
