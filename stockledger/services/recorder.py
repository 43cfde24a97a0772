"""
Movement recorder — one movement, end to end.

Ledger first, audit after commit. The audit notification is a side channel:
it never blocks the ledger lock and never undoes a committed movement, and
the caller waits for it at most AUDIT_TIMEOUT seconds.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError

from django.db import transaction

from stockledger.conf import stockledger_settings
from stockledger.exceptions import StockError
from stockledger.models.enums import Direction
from stockledger.models.movement import Movement
from stockledger.protocols.actor import ActorContext
from stockledger.protocols.audit import AuditEvent, AuditSink
from stockledger.results import MovementResult
from stockledger.services.ledger import StockLedger

logger = logging.getLogger('stockledger')

AUDIT_WORKERS = 4

_audit_executor: ThreadPoolExecutor | None = None
_audit_executor_lock = threading.Lock()


def _get_audit_executor() -> ThreadPoolExecutor:
    """Shared pool for audit deliveries, created on first use."""
    global _audit_executor
    if _audit_executor is None:
        with _audit_executor_lock:
            if _audit_executor is None:
                _audit_executor = ThreadPoolExecutor(
                    max_workers=AUDIT_WORKERS,
                    thread_name_prefix='stockledger-audit',
                )
    return _audit_executor


def build_audit_event(movement: Movement, actor: ActorContext) -> AuditEvent:
    """Describe a committed movement for the audit log."""
    product = movement.product
    kind = 'entrada' if movement.direction == Direction.ENTRY else 'saída'
    return AuditEvent(
        action='UPDATE',
        entity='INVENTORY',
        entity_id=movement.pk,
        entity_name=f"{product.name} ({product.code})" if product.name else product.code,
        description=(
            f"Movimento de {kind}: {movement.quantity} unidades por {movement.reason}"
        ),
        actor=actor,
        timestamp=movement.created_at,
        details={
            'product_id': product.pk,
            'product_code': product.code,
            'product_name': product.name,
            'direction': str(movement.direction),
            'quantity': movement.quantity,
            'reason': str(movement.reason),
            'old_stock': movement.old_stock,
            'new_stock': movement.new_stock,
            'source_code': movement.source_code,
            'notes': movement.notes,
        },
    )


class MovementRecorder:
    """Request-facing orchestration around StockLedger."""

    def __init__(self, ledger: StockLedger, audit_sink: AuditSink):
        self.ledger = ledger
        self.audit_sink = audit_sink

    def record(self, product_id: int, direction: str, quantity: int, reason: str,
               actor: ActorContext, notes: str | None = None,
               source_code: str | None = None) -> MovementResult:
        """
        Apply a movement and schedule its audit notification.

        Raises:
            StockError: Ledger failures, unchanged
            StockError('UNEXPECTED'): Anything else (details only in logs)
        """
        try:
            movement = self.ledger.apply_movement(
                product_id, direction, quantity, reason, actor,
                source_code=source_code, notes=notes,
            )
        except StockError as exc:
            logger.info(
                "stock.movement.rejected",
                extra={
                    "product_id": product_id,
                    "direction": str(direction),
                    "qty": quantity,
                    "reason": str(reason),
                    "code": exc.code,
                },
            )
            raise
        except Exception as exc:
            logger.exception(
                "stock.movement.failed",
                extra={"product_id": product_id, "direction": str(direction)},
            )
            raise StockError('UNEXPECTED', product_id=product_id) from exc

        event = build_audit_event(movement, actor)
        # Runs after the outermost atomic block commits (immediately in autocommit)
        transaction.on_commit(lambda: self._notify(event))

        return MovementResult(movement=movement, stock=movement.new_stock)

    def _notify(self, event: AuditEvent) -> None:
        """
        Deliver one event, waiting at most AUDIT_TIMEOUT seconds.

        A sink that overruns keeps running in the audit pool; the caller
        moves on and the overrun is logged.
        """
        timeout = stockledger_settings.AUDIT_TIMEOUT
        sink_name = type(self.audit_sink).__name__
        try:
            if timeout is None:
                self.audit_sink.notify(event)
            else:
                future = _get_audit_executor().submit(self.audit_sink.notify, event)
                future.result(timeout=timeout)
        except FuturesTimeoutError:
            logger.error(
                "stock.audit.failed",
                extra={
                    "movement_id": event.entity_id,
                    "sink": sink_name,
                    "timeout": timeout,
                },
            )
        except Exception:
            logger.exception(
                "stock.audit.failed",
                extra={"movement_id": event.entity_id, "sink": sink_name},
            )
