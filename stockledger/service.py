"""
Movement Service — The single public interface for all stock operations.

Usage:
    from stockledger import MovementService, StockError
    from stockledger.protocols import ActorContext

    service = MovementService()
    actor = ActorContext.from_user(request.user)

    service.register_movement(product.pk, 'entry', 5, 'new_stock', actor)
    service.get_stock('P1').stock  # 5

Collaborators are explicit constructor arguments; omitted ones fall back to
the Django ORM repositories and the configured audit sink.
"""

from stockledger.adapters.audit import get_audit_sink
from stockledger.adapters.django_orm import DjangoMovementRepository, DjangoProductRepository
from stockledger.exceptions import StockError
from stockledger.models.movement import Movement
from stockledger.protocols.actor import ActorContext
from stockledger.protocols.audit import AuditSink
from stockledger.protocols.repositories import (
    MovementFilters,
    MovementRepository,
    ProductRepository,
)
from stockledger.results import LedgerDiscrepancy, MovementPage, MovementResult, StockSnapshot
from stockledger.services.ledger import StockLedger
from stockledger.services.queries import MovementQuery
from stockledger.services.recorder import MovementRecorder


class MovementService:
    """
    Single interface for all stock operations.

    Parameter convention: (product, direction, quantity, reason, actor, ...)

    IMPORTANT: State-changing methods go through StockLedger, which runs
    each movement in an atomic transaction with per-product locking.
    """

    def __init__(self, products: ProductRepository | None = None,
                 movements: MovementRepository | None = None,
                 audit_sink: AuditSink | None = None,
                 max_retries: int | None = None):
        self.products = products or DjangoProductRepository()
        self.movements = movements or DjangoMovementRepository()
        self.audit_sink = audit_sink or get_audit_sink()

        self.ledger = StockLedger(self.products, self.movements, max_retries=max_retries)
        self.recorder = MovementRecorder(self.ledger, self.audit_sink)
        self.query = MovementQuery(self.products, self.movements)

    # ══════════════════════════════════════════════════════════════
    # MOVEMENTS
    # ══════════════════════════════════════════════════════════════

    def register_movement(self, product_id: int, direction: str, quantity: int,
                          reason: str, actor: ActorContext, notes: str | None = None,
                          source_code: str | None = None) -> MovementResult:
        """
        Register a stock entry or exit.

        Raises:
            StockError: PRODUCT_NOT_FOUND, INVALID_REASON, INSUFFICIENT_STOCK,
                INVALID_QUANTITY, CONCURRENCY_CONFLICT, UNEXPECTED
        """
        return self.recorder.record(
            product_id, direction, quantity, reason, actor,
            notes=notes, source_code=source_code,
        )

    def register_movement_by_code(self, product_code: str, direction: str, quantity: int,
                                  reason: str, actor: ActorContext, notes: str | None = None,
                                  source_code: str | None = None) -> MovementResult:
        """Same as register_movement(), addressing the product by its code."""
        product = self.products.find_by_code(product_code)
        if product is None:
            raise StockError('PRODUCT_NOT_FOUND', product_code=product_code)
        return self.register_movement(
            product.pk, direction, quantity, reason, actor,
            notes=notes, source_code=source_code,
        )

    def remove_movement(self, movement_id) -> None:
        """Always raises StockError('AUDIT_IMMUTABLE')."""
        self.query.remove(movement_id)

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    def get_stock(self, product_code: str) -> StockSnapshot:
        return self.query.stock(product_code)

    def get_movement(self, movement_id: int) -> Movement:
        return self.query.get(movement_id)

    def list_movements_by_product(self, product_code: str, page: int = 1,
                                  page_size: int | None = None) -> MovementPage:
        product = self.products.find_by_code(product_code)
        if product is None:
            raise StockError('PRODUCT_NOT_FOUND', product_code=product_code)
        return self.query.list_by_product(product.pk, page=page, page_size=page_size)

    def list_movements(self, filters: MovementFilters | None = None, page: int = 1,
                       page_size: int | None = None) -> MovementPage:
        return self.query.list_all(filters, page=page, page_size=page_size)

    def low_stock(self, threshold: int | None = None) -> list[StockSnapshot]:
        return self.query.low_stock(threshold)

    # ══════════════════════════════════════════════════════════════
    # AUDIT
    # ══════════════════════════════════════════════════════════════

    def verify_ledger(self, product_code: str | None = None) -> list[LedgerDiscrepancy]:
        """Products whose stock disagrees with their movement history."""
        product_id = None
        if product_code is not None:
            product = self.products.find_by_code(product_code)
            if product is None:
                raise StockError('PRODUCT_NOT_FOUND', product_code=product_code)
            product_id = product.pk
        return self.ledger.verify(product_id)
