"""
Command-line entry point for the checkout application.

``--demo`` runs the fixed sample checkout (Cheese x2, Biscuits x1,
Scratch Card x1 for John Doe).  Without it an interactive menu is started
over the same sample store.  Logging goes to stderr and a rotating log
file; stdout carries only the shipment notice, receipt and menu text.
"""

import argparse
import logging
import os
import sys

import logging_config  # custom logging configuration module
from app import StoreApp, seed_sample_store
from metrics import generate_metrics_text

DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_LEVEL = "WARNING"


def _resolve_log_dir() -> str:
    return os.environ.get("CHECKOUT_LOG_DIR", DEFAULT_LOG_DIR)


def _resolve_log_level() -> str:
    return os.environ.get("CHECKOUT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()


def run_demo() -> StoreApp:
    """Run the sample checkout and return the store for inspection."""
    app = seed_sample_store()
    cheese, biscuits, scratch_card = (pid for pid, _ in app.list_products())
    app.cart.add(cheese, 2)
    app.cart.add(biscuits, 1)
    app.cart.add(scratch_card, 1)
    app.checkout()
    return app


def interactive_cli(app: StoreApp | None = None) -> None:
    """Provide a simple command-line interface to shop and check out."""
    app = app or seed_sample_store()

    def print_menu() -> None:
        print("\n-- Checkout --")
        print("1. List Products")
        print("2. Add Product to Cart")
        print("3. View Cart")
        print("4. Checkout")
        print("5. Show Balance")
        print("6. Remove Product from Cart")
        print("0. Exit")

    while True:
        print_menu()
        choice = input("Select an option: ").strip()
        if choice == "1":
            for pid, p in app.list_products():
                flags = []
                if p.requires_shipping():
                    flags.append(f"ships, {p.get_weight() * 1000:.0f}g")
                if p.is_expired():
                    flags.append("expired")
                suffix = f" [{'; '.join(flags)}]" if flags else ""
                print(f"{pid}. {p.name} - {p.price:.0f} (Stock: {p.quantity}){suffix}")
        elif choice == "2":
            try:
                pid = int(input("Enter Product ID: "))
                qty = int(input("Enter quantity: "))
            except ValueError:
                print("Please enter valid numeric values.")
                continue
            success, msg = app.add_to_cart(pid, qty)
            print(msg)
        elif choice == "3":
            cart_items = app.view_cart()
            if not cart_items:
                print("Cart is empty.")
            else:
                print("\nCart Contents:")
                for product, qty, line_total in cart_items:
                    print(f"{qty}x {product.name}\t{line_total:.0f}")
        elif choice == "4":
            print()
            app.checkout()
        elif choice == "5":
            print(f"{app.customer.name}: {app.customer.balance:.0f}")
        elif choice == "6":
            try:
                pid = int(input("Enter Product ID: "))
            except ValueError:
                print("Please enter a valid product ID.")
                continue
            app.remove_from_cart(pid)
            print("Removed from cart.")
        elif choice == "0":
            print("Exiting application.")
            break
        else:
            print("Invalid option. Please try again.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Minimal retail checkout")
    parser.add_argument("--demo", action="store_true", help="run the sample checkout and exit")
    parser.add_argument("--metrics", action="store_true", help="print metrics in Prometheus format on exit")
    parser.add_argument("--log-dir", default=None, help="directory for checkout.log (env CHECKOUT_LOG_DIR)")
    parser.add_argument("--log-level", default=None, help="logging level (env CHECKOUT_LOG_LEVEL)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    level_name = (args.log_level or _resolve_log_level()).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        print(f"Unknown log level: {level_name}", file=sys.stderr)
        return 2
    logging_config.configure_logging(args.log_dir or _resolve_log_dir(), level)

    if args.demo:
        run_demo()
    else:
        interactive_cli()
    if args.metrics:
        print(generate_metrics_text().decode("utf-8"), file=sys.stderr)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted by user. Exiting.")
        sys.exit(0)
