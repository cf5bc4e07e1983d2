# core/exceptions.py

"""
ENGINE ERRORS

Centralized domain errors for the sale / stock / debt services.

Every error carries:
- code: stable machine code surfaced in the API envelope
- message: human readable text
- context: ids and offending quantities/amounts for a precise UI message

None of these are retried automatically except StockContentionError,
which is raised only after the bounded lock retry gave up.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base exception for all engine failures."""

    code = "ENGINE_ERROR"
    retryable = False

    def __init__(self, message: str = "", **context):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(EngineError):
    """Sale, product, debt or return id could not be resolved."""

    code = "NOT_FOUND"


class InvalidStateError(EngineError):
    """Operation is not legal in the entity's current status."""

    code = "INVALID_STATE"


class InvalidInputError(EngineError):
    """Request is malformed (empty item list, missing debtor, bad method...)."""

    code = "INVALID_INPUT"


class InvalidAmountError(EngineError):
    """Zero or negative tender / payment."""

    code = "INVALID_AMOUNT"


class InsufficientStockError(EngineError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, *, product_id, product_name: str, requested, available):
        super().__init__(
            f"Insufficient stock for '{product_name}'. "
            f"Requested: {requested}, available: {available}",
            product_id=str(product_id),
            product_name=product_name,
            requested=str(requested),
            available=str(available),
        )
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class StockContentionError(EngineError):
    """Stock rows stayed locked through every retry; the caller may retry."""

    code = "STOCK_CONTENTION"
    retryable = True


class UnbalancedPaymentError(EngineError):
    code = "UNBALANCED_PAYMENT"

    def __init__(self, *, expected, tendered):
        super().__init__(
            f"Tenders sum to {tendered} but the sale total is {expected}. "
            "Any shortfall must be tendered explicitly as DEBT.",
            expected=str(expected),
            tendered=str(tendered),
        )
        self.expected = expected
        self.tendered = tendered


class OverPaymentError(EngineError):
    code = "OVER_PAYMENT"


class OverReturnError(EngineError):
    code = "OVER_RETURN"


class DuplicateDebtError(EngineError):
    code = "DUPLICATE_DEBT"


class AlreadySettledError(EngineError):
    code = "ALREADY_SETTLED"
