# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS

Purpose:
- Central export surface for sales app models.
"""

from .document_sequence import DocumentSequence
from .payment import Payment
from .return_item import ReturnItem
from .sale import Sale
from .sale_item import SaleItem
from .sale_return import SaleReturn

__all__ = [
    "DocumentSequence",
    "Payment",
    "ReturnItem",
    "Sale",
    "SaleItem",
    "SaleReturn",
]
