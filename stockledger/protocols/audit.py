"""
Audit Sink Protocol — Interface for audit-log systems.

Stockledger defines this protocol, the audit subsystem implements it.
Notifications are best-effort: a failing sink never affects the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from stockledger.protocols.actor import ActorContext


@dataclass(frozen=True)
class AuditEvent:
    """Structured description of a committed change."""

    action: str  # "UPDATE", ...
    entity: str  # "INVENTORY", ...
    entity_id: int
    entity_name: str
    description: str
    actor: ActorContext
    timestamp: datetime
    details: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class AuditSink(Protocol):
    """
    Protocol for audit notification.

    Implementations may raise; callers log and swallow the error.
    """

    def notify(self, event: AuditEvent) -> None:
        """
        Record an audit event.

        Args:
            event: The committed change
        """
        ...
