"""
Reason policy — which reason codes are legal for each direction.
"""

from stockledger.exceptions import StockError
from stockledger.models.enums import Direction, MovementReason

REASONS_BY_DIRECTION: dict[str, frozenset[str]] = {
    Direction.ENTRY: frozenset({
        MovementReason.INVENTORY_ADJUSTMENT,
        MovementReason.NEW_STOCK,
        MovementReason.RETURNED_PRODUCT,
    }),
    Direction.EXIT: frozenset({
        MovementReason.SALE,
        MovementReason.DAMAGED,
        MovementReason.LOST,
        MovementReason.TRANSFER,
    }),
}


class ReasonPolicy:
    """Pure validation of (direction, reason) pairs."""

    @classmethod
    def allowed(cls, direction: str) -> frozenset[str]:
        """Reason codes accepted for a direction (empty for unknown directions)."""
        return REASONS_BY_DIRECTION.get(direction, frozenset())

    @classmethod
    def validate(cls, direction: str, reason: str) -> None:
        """
        Raises:
            StockError('INVALID_REASON'): If reason is not legal for direction
        """
        if reason not in cls.allowed(direction):
            raise StockError(
                'INVALID_REASON',
                f"Motivo inválido para {direction}: {reason}",
                direction=direction,
                reason=reason,
            )
