"""
Logger Audit Sink — writes audit events to a Python logger.

Default sink. Route the ``stockledger.audit`` logger to your audit
storage (file handler, log shipper, ...) in LOGGING.
"""

from __future__ import annotations

import logging

from stockledger.protocols.audit import AuditEvent

audit_logger = logging.getLogger('stockledger.audit')


class LoggerAuditSink:
    """AuditSink that emits one INFO record per event."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or audit_logger

    def notify(self, event: AuditEvent) -> None:
        self.logger.info(
            event.description,
            extra={
                "audit_action": event.action,
                "audit_entity": event.entity,
                "audit_entity_id": event.entity_id,
                "audit_entity_name": event.entity_name,
                "actor_id": event.actor.id,
                "actor_name": event.actor.name,
                "actor_role": event.actor.role,
                "timestamp": event.timestamp.isoformat(),
                "details": event.details,
            },
        )
