"""Product capability model and the in-memory catalog.

Products come in a closed set of kinds.  The kind decides the two
capability predicates checkout relies on (``is_expired`` and
``requires_shipping``) and whether the product carries a weight.  Every
kind that requires shipping must carry a weight; this is checked when the
product is constructed.

Carts never hold products directly.  They hold integer handles issued by
:class:`Catalog`, which is the single store whose quantities checkout
decrements.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from errors import ProductNotFoundError, ValidationError


class ProductKind(Enum):
    NON_EXPIRING = "non_expiring"
    EXPIRING = "expiring"
    SHIPPABLE = "shippable"


# Kinds whose units go into a shipment manifest.
_SHIPPING_KINDS = frozenset({ProductKind.EXPIRING, ProductKind.SHIPPABLE})


@dataclass
class Product:
    name: str
    price: float
    quantity: int
    kind: ProductKind
    # Weight in kilograms; only set for kinds that require shipping.
    weight: float | None = None
    # Fixed when the product is created, never derived from a clock.
    expired: bool = False

    def __post_init__(self) -> None:
        if not self.name or not str(self.name).strip():
            raise ValidationError("Product name must not be empty.")
        if self.price < 0:
            raise ValidationError(f"Price of {self.name} must not be negative.")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValidationError(f"Quantity of {self.name} must be an integer.")
        if self.quantity < 0:
            raise ValidationError(f"Quantity of {self.name} must not be negative.")
        if self.kind in _SHIPPING_KINDS:
            if self.weight is None:
                raise ValidationError(f"{self.name} requires shipping and must have a weight.")
            if self.weight < 0:
                raise ValidationError(f"Weight of {self.name} must not be negative.")
        elif self.weight is not None:
            raise ValidationError(f"{self.name} does not ship and cannot have a weight.")
        if self.expired and self.kind is not ProductKind.EXPIRING:
            raise ValidationError(f"Only expiring products can be flagged expired ({self.name}).")

    def is_expired(self) -> bool:
        if self.kind is ProductKind.EXPIRING:
            return self.expired
        return False

    def requires_shipping(self) -> bool:
        return self.kind in _SHIPPING_KINDS

    def get_weight(self) -> float:
        """Return the unit weight in kilograms.

        Raises:
            TypeError: If the product does not require shipping.  Checkout
                only asks for weights after ``requires_shipping()`` is true.
        """
        if not self.requires_shipping() or self.weight is None:
            raise TypeError(f"{self.name} is not shippable and has no weight")
        return self.weight

    def reduce_quantity(self, amount: int) -> None:
        # No bound check; checkout validates stock before settling.
        self.quantity -= amount


def non_expiring(name: str, price: float, quantity: int) -> Product:
    """Digital or durable goods: never expire, never ship."""
    return Product(name=name, price=price, quantity=quantity, kind=ProductKind.NON_EXPIRING)


def expiring(name: str, price: float, quantity: int, weight: float, expired: bool = False) -> Product:
    """Perishable goods: always ship, expired flag captured at creation."""
    return Product(
        name=name,
        price=price,
        quantity=quantity,
        kind=ProductKind.EXPIRING,
        weight=weight,
        expired=expired,
    )


def shippable(name: str, price: float, quantity: int, weight: float) -> Product:
    """Physical goods that never expire."""
    return Product(name=name, price=price, quantity=quantity, kind=ProductKind.SHIPPABLE, weight=weight)


class Catalog:
    """Canonical product store keyed by integer id.

    Ids are issued sequentially from 1 in insertion order.  ``lock`` is a
    re-entrant lock that checkout holds across its validate-then-commit
    sequence so two checkouts against the same stock cannot oversell.
    """

    def __init__(self) -> None:
        self._products: Dict[int, Product] = {}
        self._next_id = 1
        self.lock = threading.RLock()

    def add_product(self, product: Product) -> int:
        with self.lock:
            product_id = self._next_id
            self._products[product_id] = product
            self._next_id += 1
        return product_id

    def get_product(self, product_id: int) -> Optional[Product]:
        return self._products.get(product_id)

    def require_product(self, product_id: int) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def list_products(self) -> List[tuple[int, Product]]:
        return list(self._products.items())

    def snapshot(self) -> Dict[int, int]:
        """Map each product id to its current quantity."""
        return {pid: p.quantity for pid, p in self._products.items()}

    def __len__(self) -> int:
        return len(self._products)
