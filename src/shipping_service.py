"""
Shipping/carrier integration for physical goods.

Checkout hands the service one entry per physical unit that has to be
shipped.  The service prints a shipment notice listing each unit with its
weight in grams and the package total in kilograms.  It does not price
the shipment; the flat fee belongs to checkout.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)


class Shippable(Protocol):
    """Anything with a name and a unit weight in kilograms."""

    name: str

    def get_weight(self) -> float: ...


class ShippingService:
    """Print shipment manifests to stdout.

    In a real deployment this would call a carrier API to book the
    shipment.  Here the manifest is the visible side effect; the total
    package weight is returned so callers can log or test it.
    """

    def ship(self, items: Sequence[Shippable]) -> float:
        print("** Shipment notice **")
        total_weight = 0.0
        for item in items:
            weight = item.get_weight()
            print(f"{item.name}  {weight * 1000:.0f}g")
            total_weight += weight
        print(f"Total package weight {total_weight:.1f}kg\n")
        logger.info(
            "Shipment manifest issued",
            extra={"extra": {"units": len(items), "total_weight_kg": round(total_weight, 3)}},
        )
        return total_weight


# Default instance used by checkout when no service is injected
shipping_service = ShippingService()
