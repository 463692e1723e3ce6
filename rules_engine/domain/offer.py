"""
Offer fact: discount eligibility for a customer order.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from rules_engine.facts import FactModel, output_field


class Offer(FactModel):
    """Offer evaluated by the offer catalog."""
    offer_id: Optional[str] = None
    offer_code: Optional[str] = None
    customer_id: Optional[str] = None
    customer_segment: Optional[str] = None  # PREMIUM, GOLD, SILVER, REGULAR
    order_amount: Optional[Decimal] = None
    offer_valid_until: Optional[date] = None
    product_category: Optional[str] = None
    is_first_time_customer: bool = False

    # Set by rules
    discount_percentage: Optional[Decimal] = output_field()
    discount_amount: Optional[Decimal] = output_field()
    applied_offer_type: Optional[str] = output_field()
    offer_applicable: bool = output_field(False)
    rejection_reason: Optional[str] = output_field()
