"""
Django ORM repositories — default persistence for the ledger.

Usage:
    from stockledger.adapters.django_orm import (
        DjangoMovementRepository,
        DjangoProductRepository,
    )
"""

from __future__ import annotations

from django.db import models
from django.db.models import F, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from stockledger.models import Direction, Movement, Product
from stockledger.protocols.repositories import MovementFilters


class DjangoProductRepository:
    """ProductRepository backed by the Product model."""

    def find_by_id(self, product_id: int, lock: bool = False) -> Product | None:
        qs = Product.objects.all()
        if lock:
            # Row lock on backends that support it (no-op on SQLite)
            qs = qs.select_for_update()
        return qs.filter(pk=product_id).first()

    def find_by_code(self, code: str) -> Product | None:
        return Product.objects.filter(code=code).first()

    def update_stock(self, product: Product, new_stock: int) -> bool:
        """
        Conditional write: only succeeds if nobody else bumped the version
        since `product` was read.
        """
        updated = Product.objects.filter(
            pk=product.pk,
            version=product.version,
        ).update(
            stock=new_stock,
            version=F('version') + 1,
            updated_at=timezone.now(),
        )
        if updated != 1:
            return False

        product.stock = new_stock
        product.version += 1
        product._remember_ledger_values()
        return True

    def movement_balances(self, product_id: int | None = None) -> list[tuple[Product, int]]:
        """
        Products paired with the signed sum of their movements.

        One aggregate query; products without movements get 0.
        """
        zero = models.Value(0)
        qs = Product.objects.all()
        if product_id is not None:
            qs = qs.filter(pk=product_id)

        qs = qs.annotate(
            entries_total=Coalesce(
                Sum('movements__quantity', filter=Q(movements__direction=Direction.ENTRY)),
                zero,
                output_field=models.IntegerField(),
            ),
            exits_total=Coalesce(
                Sum('movements__quantity', filter=Q(movements__direction=Direction.EXIT)),
                zero,
                output_field=models.IntegerField(),
            ),
        ).order_by('pk')

        return [(p, p.entries_total - p.exits_total) for p in qs]


class DjangoMovementRepository:
    """MovementRepository backed by the Movement model."""

    def insert(self, **fields) -> Movement:
        return Movement.objects.create(**fields)

    def get(self, movement_id: int) -> Movement | None:
        return Movement.objects.select_related('product').filter(pk=movement_id).first()

    def query(
        self,
        filters: MovementFilters,
        offset: int,
        limit: int,
        product_id: int | None = None,
    ) -> tuple[list[Movement], int]:
        qs = Movement.objects.select_related('product')

        if product_id is not None:
            qs = qs.filter(product_id=product_id)
        if filters.product_code_contains:
            qs = qs.filter(product__code__contains=filters.product_code_contains)
        if filters.direction:
            qs = qs.filter(direction=filters.direction)
        if filters.reason:
            qs = qs.filter(reason=filters.reason)
        if filters.actor_id:
            qs = qs.filter(actor_id=filters.actor_id)
        if filters.created_from:
            qs = qs.filter(created_at__gte=filters.created_from)
        if filters.created_to:
            qs = qs.filter(created_at__lte=filters.created_to)

        qs = qs.order_by('-created_at', '-id')
        total = qs.count()
        return list(qs[offset:offset + limit]), total
