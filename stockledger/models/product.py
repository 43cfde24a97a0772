"""
Product model — Current stock per item.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ProductQuerySet(models.QuerySet):
    """QuerySet with helper filters for Product."""

    def below_minimum(self):
        """Products with a min_stock configured and stock at or below it."""
        return self.filter(
            min_stock__isnull=False,
            stock__lte=models.F('min_stock'),
        )

    def at_or_below(self, threshold: int):
        """Products whose stock is at or below a fixed threshold."""
        return self.filter(stock__lte=threshold)


class Product(models.Model):
    """
    Stock-bearing item.

    Performance:
    - stock is a running total maintained by the ledger
    - Read is O(1), not O(N)
    - Use StockLedger.verify() for audit/correction

    Rules:
    - stock, initial_stock and version are set on creation and
      afterwards changed ONLY by StockLedger (conditional queryset update)
    - save() on an existing row writes every field except those three
    """

    LEDGER_FIELDS = ('stock', 'initial_stock', 'version')

    code = models.CharField(
        max_length=64,
        unique=True,
        verbose_name=_('Código'),
        help_text=_('Identificador único legível (ex: código de barras, SKU)'),
    )
    name = models.CharField(max_length=200, blank=True, default='', verbose_name=_('Nome'))

    stock = models.IntegerField(default=0, verbose_name=_('Estoque'))
    initial_stock = models.IntegerField(
        default=0,
        editable=False,
        verbose_name=_('Estoque inicial'),
        help_text=_('Estoque no momento do cadastro. Base do livro de movimentos.'),
    )
    allow_negative_stock = models.BooleanField(
        default=False,
        verbose_name=_('Permite estoque negativo'),
    )
    min_stock = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Estoque mínimo'))
    max_stock = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Estoque máximo'))

    # Optimistic concurrency counter
    version = models.PositiveIntegerField(default=0, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        verbose_name = _('Produto')
        verbose_name_plural = _('Produtos')
        ordering = ['code']

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._remember_ledger_values()
        return instance

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self._remember_ledger_values()

    def _remember_ledger_values(self):
        """Snapshot of ledger fields as last read from / written to the database."""
        self._ledger_values = {
            f: self.__dict__[f] for f in self.LEDGER_FIELDS if f in self.__dict__
        }

    def save(self, *args, **kwargs):
        """
        Save product.

        On creation, stock becomes initial_stock. Afterwards the ledger
        fields are never written by save(): a stale instance keeps the
        stock committed by concurrent movements, and an in-memory edit
        of a ledger field is refused.
        """
        if self._state.adding:
            self.initial_stock = self.stock
            self.version = 0
        else:
            loaded = getattr(self, '_ledger_values', {})
            changed = [
                f for f, value in loaded.items()
                if f in self.__dict__ and self.__dict__[f] != value
            ]
            if changed:
                raise ValueError(
                    "Estoque só pode ser alterado por movimentos. "
                    f"Campos alterados: {', '.join(changed)}"
                )

            update_fields = kwargs.get('update_fields')
            if update_fields is None:
                update_fields = [
                    f.name for f in self._meta.concrete_fields if not f.primary_key
                ]
            kwargs['update_fields'] = [
                f for f in update_fields if f not in self.LEDGER_FIELDS
            ]

        super().save(*args, **kwargs)
        self._remember_ledger_values()

    @property
    def is_below_minimum(self) -> bool:
        """Is stock at or below the configured minimum?"""
        return self.min_stock is not None and self.stock <= self.min_stock

    def __str__(self) -> str:
        label = f"{self.name} ({self.code})" if self.name else self.code
        return f"{label}: {self.stock}"
