"""
Order fact: shipping, fees, totals and priority.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from rules_engine.facts import FactModel, output_field


class Order(FactModel):
    """Order evaluated by the order catalog."""
    order_id: Optional[str] = None
    customer_id: Optional[str] = None
    order_amount: Optional[Decimal] = None
    delivery_zone: Optional[str] = None  # LOCAL, REGIONAL, NATIONAL, INTERNATIONAL
    order_date: Optional[datetime] = None
    item_count: Optional[int] = None
    is_peak_hour: bool = False
    product_type: Optional[str] = None  # ELECTRONICS, GROCERIES, FASHION, BOOKS, OTHER

    # Set by rules
    shipping_charge: Optional[Decimal] = output_field()
    processing_fee: Optional[Decimal] = output_field()
    total_amount: Optional[Decimal] = output_field()
    order_priority: Optional[str] = output_field()  # HIGH, MEDIUM, LOW
    requires_approval: bool = output_field(False)
    free_shipping_eligible: bool = output_field(False)
    validation_message: Optional[str] = output_field()
