"""
Django Stockledger — Livro de movimentos de estoque.

Uso:
    from stockledger import MovementService, StockError

    service = MovementService()
    service.register_movement(product.pk, 'entry', 5, 'new_stock', actor)
    service.register_movement(product.pk, 'exit', 3, 'sale', actor)
    service.get_stock('P1').stock  # 2
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'MovementService':
        from stockledger.service import MovementService
        return MovementService
    elif name == 'StockError':
        from stockledger.exceptions import StockError
        return StockError
    elif name == 'Product':
        from stockledger.models.product import Product
        return Product
    elif name == 'Movement':
        from stockledger.models.movement import Movement
        return Movement
    elif name == 'Direction':
        from stockledger.models.enums import Direction
        return Direction
    elif name == 'MovementReason':
        from stockledger.models.enums import MovementReason
        return MovementReason
    elif name == 'ActorContext':
        from stockledger.protocols.actor import ActorContext
        return ActorContext
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'MovementService',
    'StockError',
    'Product',
    'Movement',
    'Direction',
    'MovementReason',
    'ActorContext',
]

__version__ = '0.1.0'
