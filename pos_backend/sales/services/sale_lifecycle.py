"""
SALE LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Sale entities.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth
"""

from core.exceptions import InvalidStateError
from sales.models import Sale

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Sale.Status.CANCELLED,
}

ALLOWED_TRANSITIONS = {
    Sale.Status.DRAFT: {
        Sale.Status.COMPLETED,
        Sale.Status.CANCELLED,
    },
    Sale.Status.COMPLETED: {
        Sale.Status.RETURNED,
    },
}

# RETURNED is a flag over a completed sale; further returns stay legal.
RETURNABLE_STATES = {
    Sale.Status.COMPLETED,
    Sale.Status.RETURNED,
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, sale: Sale, target_status: str):
    if not can_transition(
        from_status=sale.status,
        to_status=target_status,
    ):
        raise InvalidStateError(
            f"Sale {sale.sale_number} cannot transition from "
            f"'{sale.status}' to '{target_status}'",
            entity="Sale",
            entity_id=str(sale.id),
            status=sale.status,
            target_status=target_status,
        )


def validate_returnable(*, sale: Sale):
    if sale.status not in RETURNABLE_STATES:
        raise InvalidStateError(
            f"Sale {sale.sale_number} is {sale.status}; only completed sales accept returns",
            entity="Sale",
            entity_id=str(sale.id),
            status=sale.status,
        )
