"""
Noop Audit Sink — Stub adapter for development and testing.

Usage in settings.py:
    STOCKLEDGER = {
        "AUDIT_SINK": "stockledger.adapters.noop.NoopAuditSink",
    }

WARNING: Do NOT use in production. Movements still land in the ledger,
but nothing reaches the audit log.
"""

from __future__ import annotations

from stockledger.protocols.audit import AuditEvent


class NoopAuditSink:
    """
    No-operation audit sink.

    Implements the ``AuditSink`` protocol and discards every event,
    making it suitable for:

    - Local development without an audit service
    - Unit/integration tests that don't assert on audit output
    """

    def notify(self, event: AuditEvent) -> None:
        """Discard the event."""
        return None
