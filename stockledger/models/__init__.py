"""
Stockledger Models.

Core models for stock tracking:
- Product: Current stock (running total) per item
- Movement: Immutable ledger of changes
"""

from stockledger.models.enums import Direction, MovementReason
from stockledger.models.movement import Movement
from stockledger.models.product import Product

__all__ = [
    'Direction',
    'MovementReason',
    'Product',
    'Movement',
]
