# --- path/bootstrap (keep this at the very top) ---
from pathlib import Path
import sys

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
# --- end path/bootstrap ---

import io
import threading
import unittest
from contextlib import redirect_stdout

from cart import Cart
from catalog import Catalog, expiring, non_expiring, shippable
from checkout import FLAT_SHIPPING_FEE, checkout, plan_checkout, verify_funds
from customer import Customer
from errors import (
    EmptyCartError,
    ExpiredProductError,
    InsufficientFundsError,
    InsufficientStockError,
)
from metrics import CHECKOUT_ERROR_TOTAL, CHECKOUT_TOTAL, PRODUCT_STOCK_UNITS, reset_metrics


EXPECTED_SAMPLE_OUTPUT = (
    "** Shipment notice **\n"
    "Cheese  200g\n"
    "Cheese  200g\n"
    "Biscuits  700g\n"
    "Total package weight 1.1kg\n"
    "\n"
    "** Checkout receipt **\n"
    "2x Cheese\t200\n"
    "1x Biscuits\t150\n"
    "1x Scratch Card\t50\n"
    "----------------------\n"
    "Subtotal\t450\n"
    "Shipping\t30\n"
    "Amount\t480\n"
    "Balance\t520\n"
)


class RecordingShipping:
    """Stand-in shipping service that remembers what it was asked to ship."""

    def __init__(self):
        self.calls = []

    def ship(self, items):
        self.calls.append(list(items))
        return sum(item.get_weight() for item in items)


def run_quietly(customer, cart, shipping=None):
    buf = io.StringIO()
    with redirect_stdout(buf):
        result = checkout(customer, cart, shipping)
    return result, buf.getvalue()


class CheckoutTestCase(unittest.TestCase):

    def setUp(self):
        reset_metrics()
        self.catalog = Catalog()
        self.cheese = self.catalog.add_product(expiring("Cheese", 100, 5, weight=0.2))
        self.biscuits = self.catalog.add_product(expiring("Biscuits", 150, 2, weight=0.7))
        self.card = self.catalog.add_product(non_expiring("Scratch Card", 50, 10))
        self.customer = Customer("John Doe", 1000)
        self.cart = Cart(self.catalog)

    def assertStateUnchanged(self, before_balance, before_stock):
        self.assertEqual(self.customer.balance, before_balance)
        self.assertEqual(self.catalog.snapshot(), before_stock)


class TestSampleScenario(CheckoutTestCase):

    def test_sample_checkout_output_and_settlement(self):
        self.cart.add(self.cheese, 2)
        self.cart.add(self.biscuits, 1)
        self.cart.add(self.card, 1)

        (ok, receipt), out = run_quietly(self.customer, self.cart)

        self.assertTrue(ok, receipt)
        self.assertEqual(out, EXPECTED_SAMPLE_OUTPUT)
        self.assertTrue(receipt.startswith("** Checkout receipt **"))
        self.assertEqual(self.customer.balance, 520)
        self.assertEqual(self.catalog.snapshot(), {self.cheese: 3, self.biscuits: 1, self.card: 9})

    def test_metrics_recorded_on_success(self):
        self.cart.add(self.cheese, 1)
        run_quietly(self.customer, self.cart)
        self.assertEqual(CHECKOUT_TOTAL.value(outcome="completed"), 1)
        self.assertEqual(PRODUCT_STOCK_UNITS.value(product="Cheese"), 4.0)


class TestPlan(CheckoutTestCase):

    def test_shippables_duplicated_per_unit(self):
        self.cart.add(self.cheese, 3)
        self.cart.add(self.card, 2)
        self.cart.add(self.biscuits, 1)
        plan = plan_checkout(self.customer, self.cart)
        self.assertEqual(len(plan.shippables), 4)
        self.assertEqual([p.name for p in plan.shippables], ["Cheese"] * 3 + ["Biscuits"])
        self.assertEqual(plan.subtotal, 3 * 100 + 2 * 50 + 150)
        self.assertEqual(plan.shipping_fee, FLAT_SHIPPING_FEE)
        self.assertEqual(plan.total, plan.subtotal + 30)

    def test_no_shipping_fee_without_physical_goods(self):
        self.cart.add(self.card, 4)
        plan = plan_checkout(self.customer, self.cart)
        self.assertEqual(plan.shippables, [])
        self.assertEqual(plan.shipping_fee, 0)

    def test_fee_is_flat_regardless_of_weight(self):
        piano = self.catalog.add_product(shippable("Piano", 500, 1, weight=250.0))
        self.cart.add(piano, 1)
        self.cart.add(self.cheese, 5)
        self.assertEqual(plan_checkout(self.customer, self.cart).shipping_fee, 30)

    def test_plan_does_not_mutate(self):
        self.cart.add(self.cheese, 2)
        plan_checkout(self.customer, self.cart)
        self.assertStateUnchanged(1000, {self.cheese: 5, self.biscuits: 2, self.card: 10})

    def test_verify_funds_boundary(self):
        self.cart.add(self.cheese, 2)  # 200 + 30 shipping
        plan = plan_checkout(Customer("Exact", 230), self.cart)
        verify_funds(plan)
        short = plan_checkout(Customer("Short", 229.99), self.cart)
        with self.assertRaises(InsufficientFundsError):
            verify_funds(short)


class TestCheckoutFailures(CheckoutTestCase):

    def test_empty_cart_prints_only_error(self):
        (ok, msg), out = run_quietly(self.customer, self.cart)
        self.assertFalse(ok)
        self.assertEqual(msg, "Cart is empty")
        self.assertEqual(out, "Error: Cart is empty.\n")
        self.assertEqual(CHECKOUT_ERROR_TOTAL.value(type="empty_cart"), 1)
        self.assertEqual(CHECKOUT_TOTAL.value(outcome="failed"), 1)

    def test_expired_product_fails_regardless_of_balance(self):
        milk = self.catalog.add_product(expiring("Milk", 10, 3, weight=1.0, expired=True))
        self.cart.add(self.cheese, 1)
        self.cart.add(milk, 1)
        rich = Customer("Rich", 1_000_000)
        shipping = RecordingShipping()
        before = self.catalog.snapshot()

        (ok, msg), out = run_quietly(rich, self.cart, shipping)

        self.assertFalse(ok)
        self.assertEqual(out, "Error: Product Milk is expired.\n")
        self.assertEqual(shipping.calls, [])
        self.assertEqual(rich.balance, 1_000_000)
        self.assertEqual(self.catalog.snapshot(), before)

    def test_expiry_checked_before_stock(self):
        milk = self.catalog.add_product(expiring("Milk", 10, 3, weight=1.0, expired=True))
        self.cart.add(milk, 3)
        self.catalog.require_product(milk).reduce_quantity(3)
        with self.assertRaises(ExpiredProductError):
            plan_checkout(self.customer, self.cart)

    def test_stock_revalidated_at_checkout(self):
        self.cart.add(self.biscuits, 2)
        other = Cart(self.catalog)
        other.add(self.biscuits, 1)
        run_quietly(Customer("Other", 500), other)
        self.assertEqual(self.catalog.require_product(self.biscuits).quantity, 1)

        (ok, msg), out = run_quietly(self.customer, self.cart)

        self.assertFalse(ok)
        self.assertEqual(out, "Error: Insufficient stock for product Biscuits.\n")
        self.assertStateUnchanged(1000, {self.cheese: 5, self.biscuits: 1, self.card: 10})
        with self.assertRaises(InsufficientStockError):
            plan_checkout(self.customer, self.cart)

    def test_first_failing_line_wins(self):
        self.cart.add(self.cheese, 1)
        self.cart.add(self.card, 1)
        self.catalog.require_product(self.cheese).reduce_quantity(5)
        self.catalog.require_product(self.card).reduce_quantity(10)
        (ok, msg), _ = run_quietly(self.customer, self.cart)
        self.assertEqual(msg, "Insufficient stock for product Cheese")

    def test_insufficient_funds_prints_manifest_then_error(self):
        self.cart.add(self.cheese, 2)
        poor = Customer("Poor", 229.99)

        (ok, msg), out = run_quietly(poor, self.cart)

        self.assertFalse(ok)
        self.assertTrue(out.startswith("** Shipment notice **\n"))
        self.assertTrue(out.endswith("Error: Insufficient customer balance.\n"))
        self.assertNotIn("Checkout receipt", out)
        self.assertEqual(poor.balance, 229.99)
        self.assertEqual(self.catalog.require_product(self.cheese).quantity, 5)

    def test_duplicate_lines_count_against_stock_together(self):
        self.cart.add(self.biscuits, 2)
        self.cart.add(self.biscuits, 2)
        rich = Customer("Rich", 10_000)
        before = self.catalog.snapshot()

        (ok, msg), out = run_quietly(rich, self.cart)

        self.assertFalse(ok)
        self.assertEqual(out, "Error: Insufficient stock for product Biscuits.\n")
        self.assertEqual(rich.balance, 10_000)
        self.assertEqual(self.catalog.snapshot(), before)

    def test_duplicate_lines_within_stock_settle(self):
        self.cart.add(self.cheese, 2)
        self.cart.add(self.cheese, 3)
        (ok, receipt), _ = run_quietly(self.customer, self.cart)
        self.assertTrue(ok, receipt)
        self.assertEqual(self.catalog.require_product(self.cheese).quantity, 0)

    def test_rejection_is_logged(self):
        with self.assertLogs("checkout", level="WARNING") as logs:
            run_quietly(self.customer, self.cart)
        self.assertIn("Checkout rejected", logs.output[0])

    def test_empty_cart_is_reported_before_anything_else(self):
        with self.assertRaises(EmptyCartError):
            plan_checkout(self.customer, self.cart)


class TestSettlement(CheckoutTestCase):

    def test_exact_balance_succeeds(self):
        self.cart.add(self.cheese, 2)
        exact = Customer("Exact", 230)
        (ok, receipt), _ = run_quietly(exact, self.cart)
        self.assertTrue(ok, receipt)
        self.assertEqual(exact.balance, 0)
        self.assertIn("Balance\t0", receipt)

    def test_balance_and_stock_deltas(self):
        self.cart.add(self.card, 3)
        self.cart.add(self.biscuits, 2)
        shipping = RecordingShipping()
        (ok, receipt), _ = run_quietly(self.customer, self.cart, shipping)
        self.assertTrue(ok, receipt)
        self.assertEqual(self.customer.balance, 1000 - (150 + 300) - 30)
        self.assertEqual(self.catalog.snapshot(), {self.cheese: 5, self.biscuits: 0, self.card: 7})
        self.assertEqual(len(shipping.calls), 1)
        self.assertEqual([p.name for p in shipping.calls[0]], ["Biscuits", "Biscuits"])

    def test_digital_only_checkout_has_no_manifest(self):
        self.cart.add(self.card, 2)
        (ok, receipt), out = run_quietly(self.customer, self.cart)
        self.assertTrue(ok)
        self.assertNotIn("Shipment notice", out)
        self.assertIn("Shipping\t0", receipt)
        self.assertEqual(self.customer.balance, 900)

    def test_second_checkout_sees_reduced_stock(self):
        self.cart.add(self.biscuits, 2)
        run_quietly(self.customer, self.cart)
        (ok, msg), _ = run_quietly(self.customer, self.cart)
        self.assertFalse(ok)
        self.assertEqual(msg, "Insufficient stock for product Biscuits")
        self.assertEqual(self.customer.balance, 1000 - 300 - 30)


class TestConcurrentCheckout(CheckoutTestCase):
    """Two carts racing for the last unit: the catalog lock allows one sale."""

    def test_last_unit_is_sold_once(self):
        lamp = self.catalog.add_product(shippable("Lamp", 40, 1, weight=1.5))
        carts = []
        for _ in range(2):
            cart = Cart(self.catalog)
            cart.add(lamp, 1)
            carts.append(cart)
        results = []
        results_lock = threading.Lock()
        start = threading.Barrier(2)

        def worker(cart):
            start.wait()
            result = checkout(Customer("Buyer", 500), cart)
            with results_lock:
                results.append(result)

        threads = [threading.Thread(target=worker, args=(cart,)) for cart in carts]
        with redirect_stdout(io.StringIO()):
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=10)

        self.assertEqual(len(results), 2)
        self.assertEqual(sum(1 for ok, _ in results if ok), 1)
        self.assertIn((False, "Insufficient stock for product Lamp"), results)
        self.assertEqual(self.catalog.require_product(lamp).quantity, 0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
