"""
Stockledger Protocols.

Defines interfaces for external system integration.
"""

from stockledger.protocols.actor import ActorContext
from stockledger.protocols.audit import AuditEvent, AuditSink
from stockledger.protocols.repositories import (
    MovementFilters,
    MovementRepository,
    ProductRepository,
)

__all__ = [
    "ActorContext",
    "AuditEvent",
    "AuditSink",
    "MovementFilters",
    "MovementRepository",
    "ProductRepository",
]
