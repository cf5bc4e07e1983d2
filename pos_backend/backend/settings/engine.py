# backend/settings/engine.py
"""
Fail-closed checks for the sale engine knobs.

Called from prod.py with the final settings namespace; dev keeps whatever
the environment provides.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from django.core.exceptions import ImproperlyConfigured


def validate_engine_settings(ns: dict) -> None:
    attempts = ns.get("STOCK_LOCK_MAX_ATTEMPTS")
    if not isinstance(attempts, int) or attempts < 1:
        raise ImproperlyConfigured("STOCK_LOCK_MAX_ATTEMPTS must be an integer >= 1.")

    backoff = ns.get("STOCK_LOCK_RETRY_BACKOFF")
    if backoff is None or float(backoff) < 0:
        raise ImproperlyConfigured("STOCK_LOCK_RETRY_BACKOFF cannot be negative.")

    try:
        ratio = Decimal(str(ns.get("CUSTOM_PRICE_FLOOR_RATIO")))
    except InvalidOperation as exc:
        raise ImproperlyConfigured("CUSTOM_PRICE_FLOOR_RATIO must be a decimal.") from exc
    if not Decimal("0") <= ratio <= Decimal("1"):
        raise ImproperlyConfigured("CUSTOM_PRICE_FLOOR_RATIO must be between 0 and 1.")

    sale_prefix = (ns.get("SALE_NUMBER_PREFIX") or "").strip()
    return_prefix = (ns.get("RETURN_NUMBER_PREFIX") or "").strip()
    if not sale_prefix or not return_prefix:
        raise ImproperlyConfigured("Sale and return number prefixes must be set.")
    if sale_prefix == return_prefix:
        # Both share the DocumentSequence table, keyed by prefix.
        raise ImproperlyConfigured(
            "SALE_NUMBER_PREFIX and RETURN_NUMBER_PREFIX must differ."
        )

    if not ns.get("AUDIT_LOG_ENABLED"):
        raise ImproperlyConfigured("AUDIT_LOG_ENABLED cannot be turned off in production.")
