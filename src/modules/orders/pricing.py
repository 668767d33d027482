"""Order pricing: flat-rate tax and threshold-based shipping.

All amounts are ``Decimal`` rounded half-up to cents.  The policy is read
from Django settings so deployments can tune it without code changes:

- ``ORDER_TAX_RATE`` (default ``0.10``)
- ``ORDER_FREE_SHIPPING_THRESHOLD`` (default ``100.00``): shipping is free
  when the subtotal is strictly greater than this value.
- ``ORDER_FLAT_SHIPPING_FEE`` (default ``10.00``)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

CENTS = Decimal("0.01")

DEFAULT_TAX_RATE = Decimal("0.10")
DEFAULT_FREE_SHIPPING_THRESHOLD = Decimal("100.00")
DEFAULT_FLAT_SHIPPING_FEE = Decimal("10.00")


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = DEFAULT_TAX_RATE
    free_shipping_threshold: Decimal = DEFAULT_FREE_SHIPPING_THRESHOLD
    flat_shipping_fee: Decimal = DEFAULT_FLAT_SHIPPING_FEE

    @classmethod
    def from_settings(cls) -> PricingPolicy:
        return cls(
            tax_rate=Decimal(str(getattr(settings, "ORDER_TAX_RATE", DEFAULT_TAX_RATE))),
            free_shipping_threshold=Decimal(
                str(
                    getattr(
                        settings,
                        "ORDER_FREE_SHIPPING_THRESHOLD",
                        DEFAULT_FREE_SHIPPING_THRESHOLD,
                    )
                )
            ),
            flat_shipping_fee=Decimal(
                str(getattr(settings, "ORDER_FLAT_SHIPPING_FEE", DEFAULT_FLAT_SHIPPING_FEE))
            ),
        )

    def shipping_cost(self, subtotal: Decimal) -> Decimal:
        if subtotal > self.free_shipping_threshold:
            return to_money(0)
        return to_money(self.flat_shipping_fee)

    def price(self, subtotal: Decimal) -> PriceBreakdown:
        subtotal = to_money(subtotal)
        tax_amount = to_money(subtotal * self.tax_rate)
        shipping_cost = self.shipping_cost(subtotal)
        return PriceBreakdown(
            subtotal=subtotal,
            tax_amount=tax_amount,
            shipping_cost=shipping_cost,
            total_amount=subtotal + tax_amount + shipping_cost,
        )
