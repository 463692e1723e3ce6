"""
Payment fact: fees, cashback and risk scoring.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from rules_engine.facts import FactModel, output_field


class Payment(FactModel):
    """Payment evaluated by the payment catalog."""
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
    customer_id: Optional[str] = None
    amount: Optional[Decimal] = None
    payment_method: Optional[str] = None  # CREDIT_CARD, DEBIT_CARD, UPI, NET_BANKING, WALLET, COD
    customer_type: Optional[str] = None  # NEW, REGULAR, VIP
    transaction_count: Optional[int] = None  # successful transactions, last 30 days
    payment_date: Optional[datetime] = None
    currency: Optional[str] = None
    credit_limit: Optional[Decimal] = None

    # Set by rules
    payment_approved: bool = output_field(False)
    payment_status: Optional[str] = output_field()  # APPROVED, PENDING, REJECTED, REQUIRES_VERIFICATION
    transaction_fee: Optional[Decimal] = output_field()
    cashback_amount: Optional[Decimal] = output_field()
    cashback_percentage: Optional[str] = output_field()
    requires_manual_review: bool = output_field(False)
    rejection_reason: Optional[str] = output_field()
    risk_score: Optional[int] = output_field()  # 0-100, higher is riskier
