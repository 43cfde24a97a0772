"""
Movement queries — read-only operations.

Nothing here takes locks; results reflect committed state only.
"""

from stockledger.conf import stockledger_settings
from stockledger.exceptions import StockError
from stockledger.models.movement import Movement
from stockledger.models.product import Product
from stockledger.protocols.repositories import (
    MovementFilters,
    MovementRepository,
    ProductRepository,
)
from stockledger.results import MovementPage, Pagination, StockSnapshot


class MovementQuery:
    """Read-only movement and stock queries."""

    def __init__(self, products: ProductRepository, movements: MovementRepository):
        self.products = products
        self.movements = movements

    # ══════════════════════════════════════════════════════════════
    # HISTORY
    # ══════════════════════════════════════════════════════════════

    def list_by_product(self, product_id: int, page: int = 1,
                        page_size: int | None = None) -> MovementPage:
        """
        Movement history of one product, newest first.

        Raises:
            StockError('PRODUCT_NOT_FOUND'): If product_id does not exist
            StockError('INVALID_PAGINATION'): If page or page_size < 1
        """
        page, page_size = self._paging(page, page_size)
        if self.products.find_by_id(product_id) is None:
            raise StockError('PRODUCT_NOT_FOUND', product_id=product_id)

        items, total = self.movements.query(
            MovementFilters(),
            offset=(page - 1) * page_size,
            limit=page_size,
            product_id=product_id,
        )
        return MovementPage(items=items, pagination=Pagination(page, page_size, total))

    def list_all(self, filters: MovementFilters | None = None, page: int = 1,
                 page_size: int | None = None) -> MovementPage:
        """
        Global movement history, newest first. An empty page is valid.

        Raises:
            StockError('INVALID_PAGINATION'): If page or page_size < 1
        """
        page, page_size = self._paging(page, page_size)
        items, total = self.movements.query(
            filters or MovementFilters(),
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return MovementPage(items=items, pagination=Pagination(page, page_size, total))

    def get(self, movement_id: int) -> Movement:
        """
        Raises:
            StockError('MOVEMENT_NOT_FOUND'): If movement_id does not exist
        """
        movement = self.movements.get(movement_id)
        if movement is None:
            raise StockError('MOVEMENT_NOT_FOUND', movement_id=movement_id)
        return movement

    def remove(self, movement_id) -> None:
        """Movements are the permanent audit trail. Always fails."""
        raise StockError('AUDIT_IMMUTABLE', movement_id=movement_id)

    # ══════════════════════════════════════════════════════════════
    # STOCK
    # ══════════════════════════════════════════════════════════════

    def stock(self, product_code: str) -> StockSnapshot:
        """
        Raises:
            StockError('PRODUCT_NOT_FOUND'): If no product has this code
        """
        product = self.products.find_by_code(product_code)
        if product is None:
            raise StockError('PRODUCT_NOT_FOUND', product_code=product_code)
        return StockSnapshot.from_product(product)

    def low_stock(self, threshold: int | None = None) -> list[StockSnapshot]:
        """
        Products running low, lowest stock first.

        Args:
            threshold: Fixed limit (stock <= threshold). None falls back to
                LOW_STOCK_THRESHOLD, then to each product's own min_stock.
        """
        if threshold is None:
            threshold = stockledger_settings.LOW_STOCK_THRESHOLD

        if threshold is None:
            qs = Product.objects.below_minimum()
        else:
            qs = Product.objects.at_or_below(threshold)

        return [StockSnapshot.from_product(p) for p in qs.order_by('stock', 'code')]

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    @staticmethod
    def _paging(page, page_size) -> tuple[int, int]:
        if page_size is None:
            page_size = stockledger_settings.DEFAULT_PAGE_SIZE
        if (isinstance(page, bool) or not isinstance(page, int) or page < 1
                or isinstance(page_size, bool) or not isinstance(page_size, int)
                or page_size < 1):
            raise StockError('INVALID_PAGINATION', page=page, page_size=page_size)
        return page, min(page_size, stockledger_settings.MAX_PAGE_SIZE)
