"""
Stockledger Adapters.

Implementations of protocols for persistence and audit.
"""

from stockledger.adapters.audit import get_audit_sink, reset_audit_sink
from stockledger.adapters.django_orm import (
    DjangoMovementRepository,
    DjangoProductRepository,
)
from stockledger.adapters.logger import LoggerAuditSink
from stockledger.adapters.noop import NoopAuditSink

__all__ = [
    "DjangoMovementRepository",
    "DjangoProductRepository",
    "LoggerAuditSink",
    "NoopAuditSink",
    "get_audit_sink",
    "reset_audit_sink",
]
