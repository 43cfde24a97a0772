"""
Tests for StockLedger: atomic apply, invariants and concurrency.
"""

import copy
import logging
import threading

import pytest
from django.db import DatabaseError, OperationalError, connection

from stockledger import StockError
from stockledger.adapters import DjangoMovementRepository, DjangoProductRepository, NoopAuditSink
from stockledger.models import Movement, Product
from stockledger.service import MovementService
from stockledger.services.ledger import StockLedger


pytestmark = pytest.mark.django_db


@pytest.fixture
def ledger():
    return StockLedger(DjangoProductRepository(), DjangoMovementRepository())


def ledger_total(product):
    """initial_stock + signed sum of all movements."""
    return product.initial_stock + sum(m.signed_quantity for m in product.movements.all())


class TestApplyMovement:
    """Tests for StockLedger.apply_movement()."""

    def test_entry_increases_stock(self, ledger, product, actor):
        movement = ledger.apply_movement(product.pk, 'entry', 5, 'new_stock', actor)

        product.refresh_from_db()
        assert product.stock == 5
        assert (movement.old_stock, movement.new_stock) == (0, 5)
        assert movement.actor_id == '42'
        assert movement.actor_name == 'Ana Souza'

    def test_exit_decreases_stock(self, ledger, stocked_product, actor):
        movement = ledger.apply_movement(stocked_product.pk, 'exit', 3, 'damaged', actor)

        stocked_product.refresh_from_db()
        assert stocked_product.stock == 7
        assert (movement.old_stock, movement.new_stock) == (10, 7)

    def test_exit_to_exactly_zero_allowed(self, ledger, stocked_product, actor):
        ledger.apply_movement(stocked_product.pk, 'exit', 10, 'sale', actor)

        stocked_product.refresh_from_db()
        assert stocked_product.stock == 0

    def test_optional_fields_stored(self, ledger, product, actor):
        movement = ledger.apply_movement(
            product.pk, 'entry', 1, 'returned_product', actor,
            source_code='7891234567890', notes='Cliente devolveu',
        )

        movement = Movement.objects.get(pk=movement.pk)
        assert movement.source_code == '7891234567890'
        assert movement.notes == 'Cliente devolveu'

    def test_version_bumped_per_movement(self, ledger, product, actor):
        ledger.apply_movement(product.pk, 'entry', 1, 'new_stock', actor)
        ledger.apply_movement(product.pk, 'entry', 1, 'new_stock', actor)

        product.refresh_from_db()
        assert product.version == 2


class TestRejections:
    """Failed movements leave stock and history untouched."""

    def test_insufficient_stock(self, ledger, stocked_product, actor):
        """EXIT beyond stock is rejected with actual vs requested."""
        with pytest.raises(StockError) as exc:
            ledger.apply_movement(stocked_product.pk, 'exit', 11, 'sale', actor)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == 10
        assert exc.value.requested == 11
        assert exc.value.data['product_id'] == stocked_product.pk
        assert exc.value.is_client_error

        stocked_product.refresh_from_db()
        assert stocked_product.stock == 10
        assert stocked_product.movements.count() == 0

    def test_negative_allowed_when_flagged(self, ledger, overdraft_product, actor):
        movement = ledger.apply_movement(overdraft_product.pk, 'exit', 5, 'lost', actor)

        overdraft_product.refresh_from_db()
        assert overdraft_product.stock == -3
        assert movement.new_stock == -3

    @pytest.mark.parametrize('quantity', [0, -1, 1.5, '3', None, True])
    def test_invalid_quantity(self, ledger, stocked_product, actor, quantity):
        with pytest.raises(StockError) as exc:
            ledger.apply_movement(stocked_product.pk, 'exit', quantity, 'sale', actor)

        assert exc.value.code == 'INVALID_QUANTITY'
        stocked_product.refresh_from_db()
        assert stocked_product.stock == 10
        assert stocked_product.movements.count() == 0

    def test_quantity_checked_before_product(self, ledger, actor):
        with pytest.raises(StockError) as exc:
            ledger.apply_movement(999999, 'entry', 0, 'new_stock', actor)

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_product_not_found(self, ledger, actor):
        with pytest.raises(StockError) as exc:
            ledger.apply_movement(999999, 'entry', 1, 'new_stock', actor)

        assert exc.value.code == 'PRODUCT_NOT_FOUND'
        assert exc.value.data['product_id'] == 999999

    def test_invalid_reason(self, ledger, stocked_product, actor):
        with pytest.raises(StockError) as exc:
            ledger.apply_movement(stocked_product.pk, 'entry', 1, 'sale', actor)

        assert exc.value.code == 'INVALID_REASON'
        stocked_product.refresh_from_db()
        assert stocked_product.stock == 10
        assert stocked_product.version == 0

    def test_failed_insert_rolls_back_stock(self, stocked_product, actor):
        """A failure between the stock update and the insert leaves nothing behind."""
        class ExplodingMovementRepository(DjangoMovementRepository):
            def insert(self, **fields):
                raise DatabaseError('disk full')

        ledger = StockLedger(DjangoProductRepository(), ExplodingMovementRepository())

        with pytest.raises(DatabaseError):
            ledger.apply_movement(stocked_product.pk, 'exit', 4, 'sale', actor)

        stocked_product.refresh_from_db()
        assert stocked_product.stock == 10
        assert stocked_product.version == 0
        assert stocked_product.movements.count() == 0


class TestLedgerInvariants:
    """Stock always equals initial stock plus the signed movement sum."""

    def test_stock_matches_history(self, ledger, make_product, actor):
        product = make_product('INV-1', stock=7)
        steps = [
            ('entry', 5, 'new_stock'),
            ('exit', 3, 'sale'),
            ('exit', 9, 'sale'),       # down to zero
            ('entry', 2, 'returned_product'),
            ('exit', 4, 'transfer'),   # rejected, only 2 left
            ('entry', 1, 'inventory_adjustment'),
        ]
        for direction, qty, reason in steps:
            try:
                ledger.apply_movement(product.pk, direction, qty, reason, actor)
            except StockError as e:
                assert e.code == 'INSUFFICIENT_STOCK'

            product.refresh_from_db()
            assert product.stock == ledger_total(product)
            assert product.stock >= 0

        assert product.stock == 3
        assert product.movements.count() == 5

    def test_snapshots_chain(self, ledger, stocked_product, actor):
        """old_stock of movement N equals new_stock of movement N-1."""
        for direction, qty, reason in [('exit', 2, 'sale'), ('entry', 4, 'new_stock'),
                                       ('exit', 1, 'lost'), ('exit', 6, 'sale')]:
            ledger.apply_movement(stocked_product.pk, direction, qty, reason, actor)

        history = list(stocked_product.movements.order_by('id'))
        assert history[0].old_stock == 10
        for previous, current in zip(history, history[1:]):
            assert current.old_stock == previous.new_stock
        assert history[-1].new_stock == 5


class TestConcurrency:
    """Lost-update protection for concurrent writers on one product."""

    def test_stale_read_is_retried(self, stocked_product, actor):
        """
        Two EXIT 6 on stock 10: the writer that read before the other
        committed must fail with INSUFFICIENT_STOCK, never drive stock to -2.
        """
        stale = Product.objects.get(pk=stocked_product.pk)

        class StaleOnceProductRepository(DjangoProductRepository):
            def __init__(self):
                self.calls = 0

            def find_by_id(self, product_id, lock=False):
                self.calls += 1
                if self.calls == 1:
                    return stale
                return super().find_by_id(product_id, lock)

        first = MovementService(audit_sink=NoopAuditSink())
        first.register_movement(stocked_product.pk, 'exit', 6, 'sale', actor)

        products = StaleOnceProductRepository()
        racing = MovementService(products=products, audit_sink=NoopAuditSink())
        with pytest.raises(StockError) as exc:
            racing.register_movement(stocked_product.pk, 'exit', 6, 'sale', actor)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == 4
        assert products.calls == 2

        stocked_product.refresh_from_db()
        assert stocked_product.stock == 4
        assert stocked_product.movements.count() == 1

    def test_conflict_surfaces_after_retries(self, stocked_product, actor):
        stale = Product.objects.get(pk=stocked_product.pk)
        MovementService(audit_sink=NoopAuditSink()).register_movement(
            stocked_product.pk, 'exit', 1, 'sale', actor,
        )

        class AlwaysStaleProductRepository(DjangoProductRepository):
            calls = 0

            def find_by_id(self, product_id, lock=False):
                self.calls += 1
                return copy.copy(stale)

        products = AlwaysStaleProductRepository()
        service = MovementService(products=products, audit_sink=NoopAuditSink(), max_retries=2)

        with pytest.raises(StockError) as exc:
            service.register_movement(stocked_product.pk, 'exit', 1, 'sale', actor)

        assert exc.value.code == 'CONCURRENCY_CONFLICT'
        assert exc.value.is_transient
        assert not exc.value.is_client_error
        assert products.calls == 3

        stocked_product.refresh_from_db()
        assert stocked_product.stock == 9
        assert stocked_product.movements.count() == 1

    def test_lock_timeout_is_retried(self, stocked_product, actor):
        """A writer that timed out waiting for the lock starts over."""
        class BusyOnceProductRepository(DjangoProductRepository):
            calls = 0

            def find_by_id(self, product_id, lock=False):
                self.calls += 1
                if self.calls == 1:
                    raise OperationalError('database is locked')
                return super().find_by_id(product_id, lock)

        products = BusyOnceProductRepository()
        ledger = StockLedger(products, DjangoMovementRepository())

        movement = ledger.apply_movement(stocked_product.pk, 'exit', 6, 'sale', actor)

        assert movement.new_stock == 4
        assert products.calls == 2
        stocked_product.refresh_from_db()
        assert stocked_product.stock == 4

    def test_lock_timeouts_surface_as_conflict(self, stocked_product, actor, caplog):
        class AlwaysBusyProductRepository(DjangoProductRepository):
            def find_by_id(self, product_id, lock=False):
                raise OperationalError('database is locked')

        service = MovementService(
            products=AlwaysBusyProductRepository(), audit_sink=NoopAuditSink(), max_retries=2,
        )

        with caplog.at_level(logging.WARNING, logger='stockledger'):
            with pytest.raises(StockError) as exc:
                service.register_movement(stocked_product.pk, 'exit', 6, 'sale', actor)

        assert exc.value.code == 'CONCURRENCY_CONFLICT'
        assert isinstance(exc.value.__cause__, OperationalError)
        retries = [r for r in caplog.records if r.getMessage() == 'stock.conflict.retry']
        assert [r.attempt for r in retries] == [1, 2]
        assert stocked_product.movements.count() == 0

    @pytest.mark.parametrize('run', range(3))
    @pytest.mark.django_db(transaction=True)
    def test_parallel_exits(self, actor, run):
        """Two threads withdraw 6 from stock 10 at the same time."""
        product = Product.objects.create(code='RACE', stock=10)
        barrier = threading.Barrier(2)
        results = []

        def worker():
            service = MovementService(audit_sink=NoopAuditSink())
            barrier.wait()
            try:
                service.register_movement(product.pk, 'exit', 6, 'sale', actor)
                results.append('ok')
            except StockError as e:
                results.append(e.code)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == ['INSUFFICIENT_STOCK', 'ok']
        product.refresh_from_db()
        assert product.stock == 4
        assert product.movements.count() == 1


class TestVerifyAndRecalculate:
    """Tests for StockLedger.verify() / recalculate()."""

    def test_consistent_ledger_has_no_discrepancies(self, ledger, stocked_product, actor):
        ledger.apply_movement(stocked_product.pk, 'exit', 4, 'sale', actor)
        ledger.apply_movement(stocked_product.pk, 'entry', 1, 'new_stock', actor)

        assert ledger.verify() == []

    def test_detects_and_repairs_drift(self, ledger, stocked_product, actor):
        ledger.apply_movement(stocked_product.pk, 'exit', 4, 'sale', actor)
        Product.objects.filter(pk=stocked_product.pk).update(stock=50)

        [discrepancy] = ledger.verify()
        assert discrepancy.code == stocked_product.code
        assert discrepancy.recorded == 50
        assert discrepancy.expected == 6
        assert discrepancy.difference == 44

        assert ledger.recalculate(stocked_product.pk) == 6
        stocked_product.refresh_from_db()
        assert stocked_product.stock == 6
        assert ledger.verify(stocked_product.pk) == []

    def test_recalculate_unknown_product(self, ledger):
        with pytest.raises(StockError) as exc:
            ledger.recalculate(999999)

        assert exc.value.code == 'PRODUCT_NOT_FOUND'

    def test_recalculate_goes_through_versioned_write(self, ledger, stocked_product, actor,
                                                      caplog):
        ledger.apply_movement(stocked_product.pk, 'exit', 4, 'sale', actor)
        Product.objects.filter(pk=stocked_product.pk).update(stock=1)

        with caplog.at_level(logging.WARNING, logger='stockledger'):
            ledger.recalculate(stocked_product.pk)

        stocked_product.refresh_from_db()
        assert stocked_product.stock == 6
        assert stocked_product.version == 2

        [record] = [r for r in caplog.records if r.getMessage() == 'stock.recalculated']
        assert (record.old_stock, record.new_stock) == (1, 6)
        assert record.product_code == stocked_product.code

    def test_recalculate_consistent_product_is_untouched(self, ledger, stocked_product):
        assert ledger.recalculate(stocked_product.pk) == 10

        stocked_product.refresh_from_db()
        assert stocked_product.version == 0
