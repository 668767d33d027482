"""Unit tests for order pricing."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.pricing import PricingPolicy, to_money

pytestmark = pytest.mark.unit


@pytest.fixture()
def policy():
    return PricingPolicy()


class TestPricingPolicy:
    def test_free_shipping_above_threshold(self, policy):
        prices = policy.price(Decimal("120.00"))

        assert prices.subtotal == Decimal("120.00")
        assert prices.tax_amount == Decimal("12.00")
        assert prices.shipping_cost == Decimal("0.00")
        assert prices.total_amount == Decimal("132.00")

    def test_flat_fee_below_threshold(self, policy):
        prices = policy.price(Decimal("50.00"))

        assert prices.tax_amount == Decimal("5.00")
        assert prices.shipping_cost == Decimal("10.00")
        assert prices.total_amount == Decimal("65.00")

    def test_threshold_itself_pays_shipping(self, policy):
        assert policy.price(Decimal("100.00")).shipping_cost == Decimal("10.00")

    def test_tax_rounds_half_up_to_cents(self, policy):
        prices = policy.price(Decimal("0.05"))
        assert prices.tax_amount == Decimal("0.01")

    def test_total_is_sum_of_parts(self, policy):
        prices = policy.price(Decimal("33.33"))
        assert prices.total_amount == (
            prices.subtotal + prices.tax_amount + prices.shipping_cost
        )

    def test_from_settings(self, settings):
        settings.ORDER_TAX_RATE = "0.20"
        settings.ORDER_FREE_SHIPPING_THRESHOLD = "50"
        settings.ORDER_FLAT_SHIPPING_FEE = "7.50"

        policy = PricingPolicy.from_settings()

        assert policy.tax_rate == Decimal("0.20")
        assert policy.price(Decimal("40.00")).shipping_cost == Decimal("7.50")
        assert policy.price(Decimal("60.00")).shipping_cost == Decimal("0.00")
        assert policy.price(Decimal("60.00")).tax_amount == Decimal("12.00")


def test_to_money_quantizes():
    assert to_money("2.345") == Decimal("2.35")
    assert to_money(3) == Decimal("3.00")
