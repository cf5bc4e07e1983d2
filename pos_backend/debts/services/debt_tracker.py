# debts/services/debt_tracker.py

"""
DEBT TRACKER

Owns a customer obligation from the moment a sale is completed with a DEBT
tender until it is paid off or written off.

Rules:
- one debt per sale (DuplicateDebtError)
- payments: 0 < amount <= remaining (OverPaymentError), open debts only
  (AlreadySettledError), CASH / CARD only; each writes a Payment row on the
  debt's sale
- status follows remaining_amount (Debt.derive_status), never set by callers
- cancel is a write-off: remaining_amount is kept as the forgiven amount and
  no stock moves
- a return against the debt's sale reduces it only through
  apply_return_credit(), called explicitly
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from audit.services.audit_log import Action, emit
from core.exceptions import (
    AlreadySettledError,
    DuplicateDebtError,
    InvalidAmountError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    OverPaymentError,
)
from core.money import ZERO, money
from debts.models import Debt
from sales.models import Payment, SaleReturn

logger = logging.getLogger("debts")

COLLECTION_METHODS = {Payment.Method.CASH, Payment.Method.CARD}


def _snapshot(debt: Debt) -> dict:
    return {
        "status": debt.status,
        "original_amount": debt.original_amount,
        "remaining_amount": debt.remaining_amount,
    }


def _lock_debt(debt_id) -> Debt:
    debt = Debt.objects.select_for_update().filter(pk=debt_id).first()
    if debt is None:
        raise NotFoundError(f"Debt {debt_id} not found", entity="Debt", entity_id=str(debt_id))
    return debt


def _ensure_open(debt: Debt):
    if not debt.is_open:
        raise AlreadySettledError(
            f"Debt {debt.pk} is already {debt.status}",
            entity="Debt",
            entity_id=str(debt.pk),
            status=debt.status,
        )


def _append_note(existing: str, note: str) -> str:
    note = (note or "").strip()
    if not note:
        return existing
    return f"{existing}\n{note}" if existing else note


@transaction.atomic
def open_debt(*, sale, amount, debtor, user=None) -> Debt:
    amount = money(amount)
    if amount <= ZERO:
        raise InvalidAmountError("Debt amount must be greater than zero", amount=str(amount))

    if Debt.objects.filter(sale_id=sale.pk).exists():
        raise DuplicateDebtError(
            f"Sale {sale.sale_number} already has a debt",
            entity="Sale",
            entity_id=str(sale.pk),
        )

    try:
        with transaction.atomic():
            debt = Debt.objects.create(
                sale=sale,
                debtor_name=debtor.name.strip(),
                debtor_phone=debtor.phone.strip(),
                original_amount=amount,
                remaining_amount=amount,
                status=Debt.Status.PENDING,
                due_date=getattr(debtor, "due_date", None),
                notes=getattr(debtor, "notes", "") or "",
                created_by=user,
            )
    except IntegrityError as exc:
        raise DuplicateDebtError(
            f"Sale {sale.sale_number} already has a debt",
            entity="Sale",
            entity_id=str(sale.pk),
        ) from exc

    logger.info(
        "Debt opened",
        extra={"debt_id": str(debt.pk), "sale_id": str(sale.pk), "amount": str(amount)},
    )
    return debt


@transaction.atomic
def record_payment(*, debt_id, amount, method, note: str = "", user=None) -> Debt:
    debt = _lock_debt(debt_id)
    _ensure_open(debt)

    amount = money(amount)
    if amount <= ZERO:
        raise InvalidAmountError("Payment amount must be greater than zero", amount=str(amount))

    method = str(method or "").strip().upper()
    if method not in COLLECTION_METHODS:
        raise InvalidInputError(
            f"Debt payments accept CASH or CARD, not {method or 'nothing'}",
            method=method,
        )

    if amount > debt.remaining_amount:
        raise OverPaymentError(
            f"Payment {amount} exceeds the remaining debt {debt.remaining_amount}",
            entity="Debt",
            entity_id=str(debt.pk),
            amount=str(amount),
            remaining_amount=str(debt.remaining_amount),
        )

    before = _snapshot(debt)

    payment = Payment.objects.create(
        sale_id=debt.sale_id,
        debt=debt,
        method=method,
        amount=amount,
        note=(note or "").strip()[:255],
        received_by=user,
    )

    debt.remaining_amount = debt.remaining_amount - amount
    debt.status = Debt.derive_status(
        original_amount=debt.original_amount,
        remaining_amount=debt.remaining_amount,
        current_status=debt.status,
    )
    debt.notes = _append_note(debt.notes, note)
    debt.save()

    emit(
        user=user,
        action=Action.DEBT_PAYMENT,
        entity="Debt",
        entity_id=debt.pk,
        before=before,
        after=_snapshot(debt),
        metadata={"payment_id": str(payment.pk), "method": method, "amount": amount},
    )
    logger.info(
        "Debt payment recorded",
        extra={"debt_id": str(debt.pk), "amount": str(amount), "status": debt.status},
    )
    return debt


@transaction.atomic
def cancel_debt(*, debt_id, reason: str = "", user=None) -> Debt:
    debt = _lock_debt(debt_id)
    _ensure_open(debt)

    before = _snapshot(debt)

    debt.status = Debt.Status.CANCELLED
    debt.cancelled_at = timezone.now()
    debt.cancellation_reason = (reason or "").strip()
    debt.save()

    emit(
        user=user,
        action=Action.DEBT_CANCELLED,
        entity="Debt",
        entity_id=debt.pk,
        before=before,
        after=_snapshot(debt),
        metadata={"reason": debt.cancellation_reason},
    )
    logger.info(
        "Debt cancelled",
        extra={"debt_id": str(debt.pk), "forgiven": str(debt.remaining_amount)},
    )
    return debt


@transaction.atomic
def apply_return_credit(*, debt_id, return_id, user=None) -> Debt:
    """
    Reduce a debt by an approved return's refund, capped at what is still owed.
    """
    debt = _lock_debt(debt_id)
    _ensure_open(debt)

    sale_return = SaleReturn.objects.select_for_update().filter(pk=return_id).first()
    if sale_return is None:
        raise NotFoundError(
            f"Return {return_id} not found", entity="SaleReturn", entity_id=str(return_id)
        )

    if sale_return.sale_id != debt.sale_id:
        raise InvalidInputError(
            f"Return {sale_return.return_number} does not belong to the debt's sale",
            return_id=str(sale_return.pk),
            debt_id=str(debt.pk),
        )

    if sale_return.status != SaleReturn.Status.APPROVED:
        raise InvalidStateError(
            f"Return {sale_return.return_number} is {sale_return.status}; only approved returns can be credited",
            entity="SaleReturn",
            entity_id=str(sale_return.pk),
            status=sale_return.status,
        )

    if sale_return.debt_credit_amount is not None:
        raise InvalidStateError(
            f"Return {sale_return.return_number} was already credited",
            entity="SaleReturn",
            entity_id=str(sale_return.pk),
        )

    before = _snapshot(debt)
    credit = min(money(sale_return.refund_amount), debt.remaining_amount)

    debt.remaining_amount = debt.remaining_amount - credit
    debt.status = Debt.derive_status(
        original_amount=debt.original_amount,
        remaining_amount=debt.remaining_amount,
        current_status=debt.status,
    )
    debt.save()

    sale_return.debt_credit_amount = credit
    sale_return.debt_credited_at = timezone.now()
    sale_return.save(update_fields=["debt_credit_amount", "debt_credited_at"])

    emit(
        user=user,
        action=Action.DEBT_REDUCED,
        entity="Debt",
        entity_id=debt.pk,
        before=before,
        after=_snapshot(debt),
        metadata={"return_id": str(sale_return.pk), "credit": credit},
    )
    logger.info(
        "Debt reduced by return",
        extra={"debt_id": str(debt.pk), "return_id": str(sale_return.pk), "credit": str(credit)},
    )
    return debt
