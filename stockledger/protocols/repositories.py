"""
Repository Protocols — Persistence seams for the ledger.

The ledger runs its writes inside django.db.transaction.atomic(), so
implementations must use the default database connection.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from stockledger.models import Movement, Product


@dataclass(frozen=True)
class MovementFilters:
    """Filters for the global movement history."""

    product_code_contains: str | None = None
    direction: str | None = None
    reason: str | None = None
    actor_id: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


@runtime_checkable
class ProductRepository(Protocol):
    """Protocol for product lookup and the ledger's stock write."""

    def find_by_id(self, product_id: int, lock: bool = False) -> Product | None:
        """
        Load a product.

        Args:
            product_id: Product PK
            lock: Take a row lock until the surrounding transaction ends

        Returns:
            Product or None if not found
        """
        ...

    def find_by_code(self, code: str) -> Product | None:
        """Load a product by its unique code."""
        ...

    def update_stock(self, product: Product, new_stock: int) -> bool:
        """
        Write new_stock, conditioned on product.version being unchanged.

        Returns:
            True if written, False if the version moved (concurrent writer)
        """
        ...

    def movement_balances(self, product_id: int | None = None) -> list[tuple[Product, int]]:
        """
        Products with the signed sum of their movements (entries - exits).

        Args:
            product_id: Only this product (None = all, ordered by PK)
        """
        ...


@runtime_checkable
class MovementRepository(Protocol):
    """Protocol for the append-only movement store."""

    def insert(self, **fields) -> Movement:
        """Create a movement row and return it."""
        ...

    def get(self, movement_id: int) -> Movement | None:
        """Load a movement by PK."""
        ...

    def query(
        self,
        filters: MovementFilters,
        offset: int,
        limit: int,
        product_id: int | None = None,
    ) -> tuple[list[Movement], int]:
        """
        Newest-first slice of movements plus total count.

        Returns:
            (movements, total)
        """
        ...
