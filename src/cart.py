"""Shopping cart holding product handles and requested quantities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple

from catalog import Catalog, Product
from errors import StockExceededError, ValidationError


@dataclass(frozen=True)
class CartItem:
    """A line in the cart: a catalog handle and the quantity requested."""
    product_id: int
    quantity: int


class Cart:
    """
    Ordered list of cart lines against one catalog. Line order is the order
    of the receipt. Adding the same product twice yields two lines.
    """

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog
        self._items: List[CartItem] = []

    def add(self, product_id: int, quantity: int) -> CartItem:
        """Append a line for ``quantity`` units of the product.

        The stock check uses the product's quantity at call time only;
        checkout validates again against live stock.

        Raises:
            ValidationError: If quantity is not a positive integer.
            ProductNotFoundError: If the id is not in the catalog.
            StockExceededError: If quantity exceeds current stock.  The cart
                is left unchanged.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer.")
        product = self.catalog.require_product(product_id)
        if quantity > product.quantity:
            raise StockExceededError(product.name, quantity, product.quantity)
        item = CartItem(product_id=product_id, quantity=quantity)
        self._items.append(item)
        return item

    def remove(self, product_id: int) -> None:
        self._items = [it for it in self._items if it.product_id != product_id]

    def clear(self) -> None:
        self._items.clear()

    def items(self) -> List[CartItem]:
        return list(self._items)

    def lines(self) -> Iterator[Tuple[CartItem, Product]]:
        """Yield each cart line with its live catalog product."""
        for item in self._items:
            yield item, self.catalog.require_product(item.product_id)

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)
