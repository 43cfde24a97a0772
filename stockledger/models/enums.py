"""
Enums for Stockledger models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Direction(models.TextChoices):
    """
    Direction of a stock movement.

    ENTRY: Stock goes up by the movement quantity.
    EXIT:  Stock goes down by the movement quantity.
    """
    ENTRY = 'entry', _('Entrada')
    EXIT = 'exit', _('Saída')


class MovementReason(models.TextChoices):
    """
    Controlled vocabulary explaining why a movement happened.

    Which reasons are legal depends on the direction,
    see stockledger.services.reasons.ReasonPolicy.
    """
    # Entry reasons
    INVENTORY_ADJUSTMENT = 'inventory_adjustment', _('Ajuste de inventário')
    NEW_STOCK = 'new_stock', _('Estoque novo')
    RETURNED_PRODUCT = 'returned_product', _('Produto devolvido')
    # Exit reasons
    SALE = 'sale', _('Venda')
    DAMAGED = 'damaged', _('Avariado')
    LOST = 'lost', _('Extraviado')
    TRANSFER = 'transfer', _('Transferência')
