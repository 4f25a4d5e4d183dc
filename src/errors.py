"""Exception types raised by the checkout application.

Two families live here.  ``ValidationError`` and its subclasses signal
caller mistakes (bad product data, adding more than is in stock) and are
allowed to propagate.  ``CheckoutError`` subclasses are business outcomes
of a checkout attempt; :func:`checkout.checkout` catches them and reports
an ``Error: ...`` notice instead.
"""

from __future__ import annotations


class ValidationError(ValueError):
    """Invalid input supplied to a domain object."""


class StockExceededError(ValidationError):
    """Requested quantity exceeds the product's stock when adding to a cart."""

    def __init__(self, name: str, requested: int, available: int) -> None:
        super().__init__("Quantity exceeds available stock.")
        self.name = name
        self.requested = requested
        self.available = available


class ProductNotFoundError(LookupError):
    """No product is registered under the given id."""

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found.")
        self.product_id = product_id


class CheckoutError(Exception):
    """Base class for failures that abort a checkout without side effects.

    ``error_type`` is the label recorded in the checkout error counter.
    """

    error_type = "checkout_error"


class EmptyCartError(CheckoutError):
    error_type = "empty_cart"

    def __init__(self) -> None:
        super().__init__("Cart is empty")


class ExpiredProductError(CheckoutError):
    error_type = "product_expired"

    def __init__(self, name: str) -> None:
        super().__init__(f"Product {name} is expired")
        self.name = name


class InsufficientStockError(CheckoutError):
    error_type = "stock_insufficient"

    def __init__(self, name: str) -> None:
        super().__init__(f"Insufficient stock for product {name}")
        self.name = name


class InsufficientFundsError(CheckoutError):
    error_type = "insufficient_funds"

    def __init__(self, balance: float, total: float) -> None:
        super().__init__("Insufficient customer balance")
        self.balance = balance
        self.total = total
