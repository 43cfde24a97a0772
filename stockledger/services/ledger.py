"""
Stock ledger — the only code that changes Product.stock or creates Movements.

Every write happens inside transaction.atomic() with the product row locked
(select_for_update) and the stock update conditioned on Product.version.
The version check closes the lost-update race on backends without row locks;
a conflicting attempt is rolled back and retried from a fresh read.

SQLite has no row locks. Configure it with OPTIONS={"transaction_mode":
"IMMEDIATE"} so writers queue on BEGIN instead of failing mid-transaction;
a writer that still times out waiting is retried like a version conflict.
"""

import logging

from django.db import OperationalError, transaction

from stockledger.conf import stockledger_settings
from stockledger.exceptions import StockError
from stockledger.models.enums import Direction
from stockledger.models.movement import Movement
from stockledger.protocols.actor import ActorContext
from stockledger.protocols.repositories import MovementRepository, ProductRepository
from stockledger.results import LedgerDiscrepancy
from stockledger.services.reasons import ReasonPolicy

logger = logging.getLogger('stockledger')


def validate_quantity(quantity) -> None:
    """
    Raises:
        StockError('INVALID_QUANTITY'): Unless quantity is an int > 0
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise StockError('INVALID_QUANTITY', requested=quantity)


class StockLedger:
    """
    Authoritative holder of current stock.

    Concurrency:
        - One product row is locked per attempt; different products never
          wait on each other
        - Movement insert and stock update commit together or not at all
        - CONCURRENCY_CONFLICT and lock timeouts (OperationalError) are
          retried up to MAX_CONFLICT_RETRIES times
    """

    def __init__(self, products: ProductRepository, movements: MovementRepository,
                 max_retries: int | None = None):
        self.products = products
        self.movements = movements
        self._max_retries = max_retries

    @property
    def max_retries(self) -> int:
        if self._max_retries is not None:
            return self._max_retries
        return stockledger_settings.MAX_CONFLICT_RETRIES

    def apply_movement(self, product_id: int, direction: str, quantity: int, reason: str,
                       actor: ActorContext, source_code: str | None = None,
                       notes: str | None = None) -> Movement:
        """
        Validate and atomically apply one movement.

        Raises:
            StockError('INVALID_QUANTITY'): If quantity is not a positive int
            StockError('PRODUCT_NOT_FOUND'): If product_id does not exist
            StockError('INVALID_REASON'): If reason is not legal for direction
            StockError('INSUFFICIENT_STOCK'): If an exit would go below zero
                on a product that does not allow negative stock
            StockError('CONCURRENCY_CONFLICT'): If retries are exhausted

        Returns:
            The committed Movement
        """
        validate_quantity(quantity)

        attempt = 0
        while True:
            try:
                return self._apply_once(
                    product_id, direction, quantity, reason, actor, source_code, notes,
                )
            except StockError as exc:
                if exc.code != 'CONCURRENCY_CONFLICT' or attempt >= self.max_retries:
                    raise
                cause = exc.code
            except OperationalError as exc:
                # Lock wait timed out / deadlock victim: the attempt was rolled back
                if attempt >= self.max_retries:
                    raise StockError(
                        'CONCURRENCY_CONFLICT', product_id=product_id,
                    ) from exc
                cause = type(exc).__name__

            attempt += 1
            logger.warning(
                "stock.conflict.retry",
                extra={
                    "product_id": product_id,
                    "attempt": attempt,
                    "max_retries": self.max_retries,
                    "cause": cause,
                },
            )

    def _apply_once(self, product_id, direction, quantity, reason, actor,
                    source_code, notes) -> Movement:
        with transaction.atomic():
            product = self.products.find_by_id(product_id, lock=True)
            if product is None:
                raise StockError('PRODUCT_NOT_FOUND', product_id=product_id)

            ReasonPolicy.validate(direction, reason)

            old_stock = product.stock
            if direction == Direction.ENTRY:
                new_stock = old_stock + quantity
            else:
                new_stock = old_stock - quantity

            if (direction == Direction.EXIT and new_stock < 0
                    and not product.allow_negative_stock):
                raise StockError(
                    'INSUFFICIENT_STOCK',
                    f"Estoque insuficiente. Estoque atual: {old_stock}, "
                    f"quantidade solicitada: {quantity}",
                    product_id=product.pk,
                    available=old_stock,
                    requested=quantity,
                )

            if not self.products.update_stock(product, new_stock):
                raise StockError(
                    'CONCURRENCY_CONFLICT',
                    product_id=product.pk,
                    version=product.version,
                )

            movement = self.movements.insert(
                product=product,
                direction=direction,
                quantity=quantity,
                reason=reason,
                old_stock=old_stock,
                new_stock=new_stock,
                notes=notes or '',
                source_code=source_code or '',
                actor_id=actor.id,
                actor_name=actor.name,
            )

            logger.info(
                "stock.movement",
                extra={
                    "product_id": product.pk,
                    "product_code": product.code,
                    "direction": str(direction),
                    "qty": quantity,
                    "reason": str(reason),
                    "old_stock": old_stock,
                    "new_stock": new_stock,
                    "movement_id": movement.pk,
                    "actor_id": actor.id,
                },
            )
            return movement

    # ══════════════════════════════════════════════════════════════
    # AUDIT / CORRECTION
    # ══════════════════════════════════════════════════════════════

    def verify(self, product_id: int | None = None) -> list[LedgerDiscrepancy]:
        """
        Compare each product's stock with initial_stock + signed movements.

        Args:
            product_id: Check only this product (None = all)

        Returns:
            One LedgerDiscrepancy per mismatching product
        """
        discrepancies = []
        for product, balance in self.products.movement_balances(product_id):
            expected = product.initial_stock + balance
            if expected != product.stock:
                discrepancies.append(LedgerDiscrepancy(
                    product_id=product.pk,
                    code=product.code,
                    recorded=product.stock,
                    expected=expected,
                ))
        return discrepancies

    def recalculate(self, product_id: int) -> int:
        """
        Reset a product's stock to the value its movements imply.

        Use for:
        - Correction after a detected inconsistency (see verify())

        Returns:
            The recalculated stock
        """
        with transaction.atomic():
            product = self.products.find_by_id(product_id, lock=True)
            if product is None:
                raise StockError('PRODUCT_NOT_FOUND', product_id=product_id)

            [(_, balance)] = self.products.movement_balances(product_id)
            expected = product.initial_stock + balance
            old_stock = product.stock

            if expected != old_stock:
                if not self.products.update_stock(product, expected):
                    raise StockError(
                        'CONCURRENCY_CONFLICT',
                        product_id=product.pk,
                        version=product.version,
                    )
                logger.warning(
                    "stock.recalculated",
                    extra={
                        "product_id": product.pk,
                        "product_code": product.code,
                        "old_stock": old_stock,
                        "new_stock": expected,
                    },
                )
            return expected
