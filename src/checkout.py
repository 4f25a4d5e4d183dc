"""
Checkout: validate a cart against live stock and the customer's balance,
then settle the sale and print a receipt.

The procedure runs in two phases.  :func:`plan_checkout` and
:func:`verify_funds` only read state and raise a :class:`CheckoutError`
on the first failure.  :func:`commit` is the only step that mutates the
customer balance or product quantities, so a failed checkout leaves
everything untouched.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from cart import Cart
from catalog import Product
from customer import Customer
from errors import (
    CheckoutError,
    EmptyCartError,
    ExpiredProductError,
    InsufficientFundsError,
    InsufficientStockError,
)
from metrics import (
    CHECKOUT_DURATION_SECONDS,
    CHECKOUT_ERROR_TOTAL,
    CHECKOUT_TOTAL,
    PRODUCT_STOCK_UNITS,
)
from shipping_service import ShippingService, shipping_service as default_shipping_service

logger = logging.getLogger(__name__)

# Charged once per checkout when any unit needs shipping, regardless of weight or count
FLAT_SHIPPING_FEE = 30

RECEIPT_SEPARATOR = "-" * 22


@dataclass
class PlannedLine:
    product_id: int
    product: Product
    quantity: int

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity


@dataclass
class CheckoutPlan:
    """Everything settlement needs, computed without touching any state."""
    customer: Customer
    lines: List[PlannedLine] = field(default_factory=list)
    subtotal: float = 0
    # One entry per physical unit, so a line of 3 contributes 3 entries
    shippables: List[Product] = field(default_factory=list)
    shipping_fee: float = 0

    @property
    def total(self) -> float:
        return self.subtotal + self.shipping_fee


def plan_checkout(customer: Customer, cart: Cart) -> CheckoutPlan:
    """Validate the cart line by line and price it.

    Lines are checked in cart order; for each line expiry is checked
    before stock. Stock is compared against the product's current
    quantity, not its quantity when the line was added, and lines for the
    same product count against that quantity together.

    Raises:
        EmptyCartError: The cart has no lines.
        ExpiredProductError: A line's product is expired.
        InsufficientStockError: A line asks for more than is in stock now.
    """
    if cart.is_empty():
        raise EmptyCartError()

    plan = CheckoutPlan(customer=customer)
    # Units requested so far per product, across duplicate lines
    requested: Dict[int, int] = defaultdict(int)
    for item, product in cart.lines():
        if product.is_expired():
            raise ExpiredProductError(product.name)
        requested[item.product_id] += item.quantity
        if requested[item.product_id] > product.quantity:
            raise InsufficientStockError(product.name)
        line = PlannedLine(product_id=item.product_id, product=product, quantity=item.quantity)
        plan.lines.append(line)
        plan.subtotal += line.line_total
        if product.requires_shipping():
            plan.shippables.extend([product] * item.quantity)

    if plan.shippables:
        plan.shipping_fee = FLAT_SHIPPING_FEE
    return plan


def verify_funds(plan: CheckoutPlan) -> None:
    """Raise InsufficientFundsError if the balance cannot cover the total."""
    balance = plan.customer.balance
    if balance < plan.total:
        raise InsufficientFundsError(balance, plan.total)


def commit(plan: CheckoutPlan) -> None:
    """Settle a validated plan: charge the customer, then draw down stock."""
    plan.customer.deduct(plan.total)
    for line in plan.lines:
        line.product.reduce_quantity(line.quantity)


def format_receipt(plan: CheckoutPlan, balance: float) -> str:
    lines = ["** Checkout receipt **"]
    for line in plan.lines:
        lines.append(f"{line.quantity}x {line.product.name}\t{line.line_total:.0f}")
    lines.append(RECEIPT_SEPARATOR)
    lines.append(f"Subtotal\t{plan.subtotal:.0f}")
    lines.append(f"Shipping\t{plan.shipping_fee:.0f}")
    lines.append(f"Amount\t{plan.total:.0f}")
    lines.append(f"Balance\t{balance:.0f}")
    return "\n".join(lines)


def checkout(
    customer: Customer,
    cart: Cart,
    shipping: Optional[ShippingService] = None,
) -> Tuple[bool, str]:
    """Run a complete checkout and print its outcome to stdout.

    On success the shipment notice (when anything ships) and the receipt
    are printed and ``(True, receipt)`` is returned.  On any validation
    failure a single ``Error: <message>.`` line is printed and
    ``(False, message)`` is returned; the manifest may already have been
    printed if the failure is insufficient funds.  The catalog lock is
    held throughout so concurrent checkouts cannot oversell.
    """
    shipping = shipping or default_shipping_service
    start_time = time.perf_counter()
    error_type: str | None = None
    outcome = "failed"
    try:
        with cart.catalog.lock:
            try:
                plan = plan_checkout(customer, cart)
                if plan.shippables:
                    shipping.ship(plan.shippables)
                verify_funds(plan)
            except CheckoutError as ex:
                error_type = ex.error_type
                logger.warning(
                    "Checkout rejected",
                    extra={"customer": customer.name, "extra": {"reason": str(ex), "type": error_type}},
                )
                print(f"Error: {ex}.")
                return False, str(ex)

            commit(plan)
            for line in plan.lines:
                PRODUCT_STOCK_UNITS.set(line.product.quantity, product=line.product.name)

        receipt = format_receipt(plan, customer.balance)
        print(receipt)
        logger.info(
            "Checkout completed",
            extra={
                "customer": customer.name,
                "extra": {
                    "lines": len(plan.lines),
                    "subtotal": plan.subtotal,
                    "shipping_fee": plan.shipping_fee,
                    "total": plan.total,
                    "balance": customer.balance,
                },
            },
        )
        outcome = "completed"
        return True, receipt
    finally:
        CHECKOUT_DURATION_SECONDS.observe(time.perf_counter() - start_time)
        CHECKOUT_TOTAL.inc(outcome=outcome)
        if error_type:
            CHECKOUT_ERROR_TOTAL.inc(type=error_type)
