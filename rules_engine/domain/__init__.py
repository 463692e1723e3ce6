"""
Fact models for the built-in catalogs.
"""

from typing import Dict, Type

from rules_engine.facts import FactModel
from .offer import Offer
from .order import Order
from .payment import Payment

# Catalog "fact" key -> model
FACT_MODELS: Dict[str, Type[FactModel]] = {
    "offer": Offer,
    "order": Order,
    "payment": Payment,
}

__all__ = ["Offer", "Order", "Payment", "FACT_MODELS"]
