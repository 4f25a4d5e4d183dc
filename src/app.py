# src/app.py
from __future__ import annotations

from typing import List, Tuple

from cart import Cart
from catalog import Catalog, Product, expiring, non_expiring
from checkout import checkout as run_checkout
from customer import Customer
from errors import ProductNotFoundError, ValidationError
from shipping_service import ShippingService, shipping_service

import logging
logger = logging.getLogger(__name__)


class StoreApp:
    """
    Session facade for one customer shopping against a catalog. Exposes
    catalogue listing, cart management and checkout for the CLI, turning
    cart validation errors into (ok, message) results.
    """

    def __init__(self, catalog: Catalog, customer: Customer, shipping: ShippingService | None = None) -> None:
        self.catalog = catalog
        self.customer = customer
        self.shipping = shipping or shipping_service
        self.cart = Cart(catalog)

    # ---- Product catalogue ----

    def list_products(self) -> List[Tuple[int, Product]]:
        return self.catalog.list_products()

    def add_product(self, product: Product) -> int:
        product_id = self.catalog.add_product(product)
        logger.info(
            "Product added",
            extra={"extra": {"product_id": product_id, "name": product.name, "kind": product.kind.value}},
        )
        return product_id

    # ---- Cart operations ----

    def add_to_cart(self, product_id: int, qty: int) -> Tuple[bool, str]:
        try:
            self.cart.add(product_id, qty)
        except ProductNotFoundError:
            return False, "Product not found."
        except ValidationError as ex:
            return False, str(ex)
        product = self.catalog.require_product(product_id)
        return True, f"Added {qty} x {product.name} to cart"

    def remove_from_cart(self, product_id: int) -> None:
        self.cart.remove(product_id)

    def clear_cart(self) -> None:
        self.cart.clear()

    def view_cart(self) -> List[Tuple[Product, int, float]]:
        return [(p, item.quantity, p.price * item.quantity) for item, p in self.cart.lines()]

    # ---- Checkout ----

    def checkout(self) -> Tuple[bool, str]:
        """Check out the current cart; the cart is emptied only on success."""
        ok, result = run_checkout(self.customer, self.cart, self.shipping)
        if ok:
            self.clear_cart()
        return ok, result


def seed_sample_store() -> StoreApp:
    """Build the sample store: three products and a customer with 1000."""
    app = StoreApp(Catalog(), Customer("John Doe", 1000))
    app.add_product(expiring("Cheese", 100, 5, weight=0.2))
    app.add_product(expiring("Biscuits", 150, 2, weight=0.7))
    app.add_product(non_expiring("Scratch Card", 50, 10))
    return app
