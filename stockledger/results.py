"""
Value objects returned by Stockledger services.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stockledger.models import Movement, Product


@dataclass(frozen=True)
class MovementResult:
    """A committed movement plus the product's stock after it."""

    movement: Movement
    stock: int


@dataclass(frozen=True)
class StockSnapshot:
    """Current stock of one product."""

    product_id: int
    code: str
    name: str
    stock: int
    allow_negative_stock: bool
    min_stock: int | None = None
    max_stock: int | None = None

    @classmethod
    def from_product(cls, product: Product) -> StockSnapshot:
        return cls(
            product_id=product.pk,
            code=product.code,
            name=product.name,
            stock=product.stock,
            allow_negative_stock=product.allow_negative_stock,
            min_stock=product.min_stock,
            max_stock=product.max_stock,
        )


@dataclass(frozen=True)
class Pagination:
    """Pagination metadata. total_pages is 0 for an empty result."""

    current_page: int
    page_size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.page_size)

    def as_dict(self) -> dict[str, int]:
        return {
            'currentPage': self.current_page,
            'totalPages': self.total_pages,
            'totalItems': self.total_items,
            'pageSize': self.page_size,
        }


@dataclass(frozen=True)
class MovementPage:
    """One page of movement history, newest first."""

    items: list[Movement] = field(default_factory=list)
    pagination: Pagination | None = None

    @property
    def total(self) -> int:
        return self.pagination.total_items if self.pagination else len(self.items)


@dataclass(frozen=True)
class LedgerDiscrepancy:
    """Product whose stock does not match its movement history."""

    product_id: int
    code: str
    recorded: int
    expected: int

    @property
    def difference(self) -> int:
        return self.recorded - self.expected
