#!/usr/bin/env python3
"""Example: Quickstart — granted

Minimal working example: attach rules to a document, then ask whether
different users may act on it.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install granted
"""
from __future__ import annotations

import asyncio

import granted


class User(granted.Grantable):
    def __init__(self, user_id: int, name: str, capabilities: tuple[str, ...] = ()) -> None:
        self.id = user_id
        self.name = name
        self.capabilities = set(capabilities)


class Document(granted.Grantable):
    def __init__(self, owner_id: int) -> None:
        self.owner_id = owner_id

    async def is_owner(self, user: User, options: object) -> bool:
        await asyncio.sleep(0)  # stands in for a database lookup
        return user.id == self.owner_id


async def main() -> None:
    print(f"granted version: {granted.__version__}")

    # Step 1: Attach rules to a target
    doc = Document(owner_id=1)
    doc.grant("read", True, guard=User)
    doc.grant(["edit", "delete"], doc.is_owner, guard=User)
    doc.deny("delete", True, guard=granted.Capability("read-only"))

    # Step 2: Ask
    users = [
        User(1, "owner"),
        User(1, "owner (read-only)", capabilities=("read-only",)),
        User(2, "guest"),
    ]
    print("\nPermission checks:")
    for user in users:
        for action in ("read", "edit", "delete", "share"):
            decision = await granted.decide(user, action, doc)
            icon = "ALLOW" if decision.allowed else "DENY "
            print(f"  [{icon}] {user.name:<20} {action:<7} {decision.outcome.value}")

    # Step 3: Revoke
    doc.ungrant("edit")
    decision = await granted.decide(users[0], "edit", doc)
    print(f"\nAfter ungrant('edit'): owner edit -> {decision.outcome.value}")


if __name__ == "__main__":
    asyncio.run(main())
