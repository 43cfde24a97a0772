"""
Actor Context — Who is performing a stock operation.

Produced by the authentication system; Stockledger only consumes it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ActorContext:
    """Authenticated actor, referenced by id only."""

    id: str
    name: str = ""
    role: str = ""

    @classmethod
    def from_user(cls, user) -> ActorContext:
        """Build from a Django user (or anything with pk/username)."""
        name = user.get_full_name() if hasattr(user, "get_full_name") else ""
        return cls(
            id=str(user.pk),
            name=name or getattr(user, "username", ""),
            role=getattr(user, "role", "") or ("admin" if getattr(user, "is_staff", False) else ""),
        )

    @classmethod
    def system(cls) -> ActorContext:
        """Actor for automated processes (management commands, jobs)."""
        return cls(id="system", name="Sistema", role="system")
