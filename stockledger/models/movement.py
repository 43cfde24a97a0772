"""
Movement model — Immutable ledger of stock changes.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stockledger.exceptions import StockError
from stockledger.models.enums import Direction, MovementReason


class MovementQuerySet(models.QuerySet):
    """QuerySet for Movement. Bulk writes are refused."""

    def for_product(self, product):
        return self.filter(product=product)

    def entries(self):
        return self.filter(direction=Direction.ENTRY)

    def exits(self):
        return self.filter(direction=Direction.EXIT)

    def update(self, **kwargs):
        raise StockError('AUDIT_IMMUTABLE')

    def delete(self):
        raise StockError('AUDIT_IMMUTABLE')


class Movement(models.Model):
    """
    Immutable record of a stock change.

    Rules:
    - NEVER update() or delete()
    - Corrections are new Movements in the opposite direction
    - Created only by StockLedger, together with the product stock update

    new_stock == old_stock + quantity (entry) or old_stock - quantity (exit).
    """

    product = models.ForeignKey(
        'stockledger.Product',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Produto'),
    )
    direction = models.CharField(
        max_length=10,
        choices=Direction.choices,
        verbose_name=_('Tipo'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantidade'))
    reason = models.CharField(
        max_length=32,
        choices=MovementReason.choices,
        verbose_name=_('Motivo'),
    )

    # Stock snapshot around this movement
    old_stock = models.IntegerField(verbose_name=_('Estoque anterior'))
    new_stock = models.IntegerField(verbose_name=_('Estoque novo'))

    notes = models.TextField(blank=True, default='', verbose_name=_('Observações'))
    source_code = models.CharField(
        max_length=128,
        blank=True,
        default='',
        verbose_name=_('Código lido'),
        help_text=_('Código escaneado que originou o movimento, se houver'),
    )

    # Weak reference to the actor (owned by the auth system)
    actor_id = models.CharField(max_length=64, db_index=True, verbose_name=_('ID do Usuário'))
    actor_name = models.CharField(max_length=150, blank=True, default='', verbose_name=_('Usuário'))

    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Data/Hora'))

    objects = MovementQuerySet.as_manager()

    class Meta:
        verbose_name = _('Movimento')
        verbose_name_plural = _('Movimentos')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['product', 'created_at'], name='movement_product_created_idx'),
            models.Index(fields=['direction', 'reason'], name='movement_direction_reason_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name='movement_quantity_positive',
            ),
        ]

    @property
    def signed_quantity(self) -> int:
        """Quantity with sign: positive for entry, negative for exit."""
        return self.quantity if self.direction == Direction.ENTRY else -self.quantity

    def save(self, *args, **kwargs):
        """Insert the movement. Existing movements can never be saved again."""
        if not self._state.adding:
            raise StockError('AUDIT_IMMUTABLE', movement_id=self.pk)

        if not self.reason:
            raise ValueError("Motivo é obrigatório")
        if self.quantity is None or self.quantity <= 0:
            raise ValueError("Quantidade deve ser positiva")
        if self.new_stock != self.old_stock + self.signed_quantity:
            raise ValueError(
                f"Snapshot inconsistente: {self.old_stock} "
                f"{'+' if self.direction == Direction.ENTRY else '-'} "
                f"{self.quantity} != {self.new_stock}"
            )

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion — movements are immutable."""
        raise StockError('AUDIT_IMMUTABLE', movement_id=self.pk)

    def __str__(self) -> str:
        sign = '+' if self.direction == Direction.ENTRY else '-'
        return f"{sign}{self.quantity} | {self.reason} | {self.old_stock} → {self.new_stock}"
