"""
Integration tests for the order catalog.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from rules_engine.catalog import load_builtin_rule_set
from rules_engine.domain import Order
from rules_engine.engine import RuleEngine


def make_order(order_id, amount, zone, **kwargs):
    """Create order with test defaults."""
    values = {
        "order_id": order_id,
        "customer_id": order_id.replace("ORD", "CUST"),
        "order_amount": Decimal(amount),
        "delivery_zone": zone,
        "order_date": datetime.now(),
        "item_count": 2,
        "is_peak_hour": False,
    }
    values.update(kwargs)
    return Order(**values)


class TestOrderRules:
    """End-to-end evaluations of the order catalog."""

    @pytest.fixture(scope="class")
    def rule_set(self):
        """Load order catalog once."""
        return load_builtin_rule_set("order")

    @pytest.fixture
    def engine(self):
        """Create RuleEngine instance."""
        return RuleEngine()

    def test_free_shipping(self, engine, rule_set):
        """Orders of 1000 or more ship free."""
        order = make_order("ORD-001", "1200", "REGIONAL", item_count=3)

        engine.evaluate(order, rule_set)

        assert order.free_shipping_eligible is True
        assert order.shipping_charge == Decimal("0")

    def test_local_shipping(self, engine, rule_set):
        """Local shipping costs 50."""
        order = make_order("ORD-002", "500", "LOCAL")

        engine.evaluate(order, rule_set)

        assert order.free_shipping_eligible is False
        assert order.shipping_charge == Decimal("50")

    @pytest.mark.parametrize("zone,amount,expected", [
        ("REGIONAL", "800", "100"),
        ("NATIONAL", "600", "200"),
        ("INTERNATIONAL", "900", "500"),
        ("INTERNATIONAL", "4000", "500"),
    ])
    def test_zone_shipping(self, engine, rule_set, zone, amount, expected):
        """Each zone has a flat charge; international never ships free."""
        order = make_order("ORD-003", amount, zone)

        engine.evaluate(order, rule_set)

        assert order.shipping_charge == Decimal(expected)

    def test_peak_hour_processing_fee(self, engine, rule_set):
        """Peak hour orders pay a processing fee."""
        order = make_order("ORD-006", "700", "LOCAL", item_count=3, is_peak_hour=True)

        engine.evaluate(order, rule_set)

        assert order.processing_fee == Decimal("25")

    def test_high_value_order_requires_approval(self, engine, rule_set):
        """Orders above 10000 need approval."""
        order = make_order("ORD-007", "15000", "NATIONAL", item_count=5)

        engine.evaluate(order, rule_set)

        assert order.requires_approval is True
        assert order.order_priority == "HIGH"

    def test_electronics_high_priority(self, engine, rule_set):
        """Large electronics orders are high priority."""
        order = make_order("ORD-008", "6000", "REGIONAL", product_type="ELECTRONICS")

        engine.evaluate(order, rule_set)

        assert order.order_priority == "HIGH"

    def test_bulk_order_medium_priority(self, engine, rule_set):
        """Bulk orders are medium priority."""
        order = make_order("ORD-009", "800", "LOCAL", item_count=15)

        engine.evaluate(order, rule_set)

        assert order.order_priority == "MEDIUM"

    def test_standard_priority(self, engine, rule_set):
        """Everything else is low priority."""
        order = make_order("ORD-012", "800", "LOCAL")

        engine.evaluate(order, rule_set)

        assert order.order_priority == "LOW"

    def test_total_amount_with_preset_charges(self, engine, rule_set):
        """Caller-supplied charges feed the total."""
        order = make_order(
            "ORD-010", "500", "LOCAL",
            is_peak_hour=True,
            shipping_charge=Decimal("50"),
            processing_fee=Decimal("25")
        )

        result = engine.evaluate(order, rule_set)

        # 500 + 50 (local shipping) + 25 (peak hour fee)
        assert order.total_amount == Decimal("575")
        assert not result.has_fired("Local Shipping")
        assert not result.has_fired("Peak Hour Processing Fee")

    def test_total_amount_waits_for_derived_charges(self, engine, rule_set):
        """The total fires after the shipping and fee rules it depends on."""
        order = make_order("ORD-013", "500", "LOCAL", is_peak_hour=True)

        result = engine.evaluate(order, rule_set)

        assert order.total_amount == Decimal("575")
        names = result.fired_rule_names
        assert names.index("Total Amount") > names.index("Local Shipping")
        assert names.index("Total Amount") > names.index("Peak Hour Processing Fee")

    def test_below_minimum_order(self, engine, rule_set):
        """Orders under 50 get a validation message."""
        order = make_order("ORD-011", "30", "LOCAL", item_count=1)

        engine.evaluate(order, rule_set)

        assert order.validation_message == "Order amount must be at least 50"
