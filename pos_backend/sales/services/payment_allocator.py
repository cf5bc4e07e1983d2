# sales/services/payment_allocator.py

"""
PAYMENT ALLOCATOR

Splits a sale's grand total across tenders.

Rules:
- tenders must sum to grand_total exactly (2dp); an implicit shortfall is an
  UnbalancedPaymentError, never an auto-created debt
- zero / negative tenders are rejected (InvalidAmountError)
- CASH / CARD tenders -> one immutable Payment row each
- DEBT tenders are summed into a single Debt (debtor name + phone required)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from core.exceptions import InvalidAmountError, InvalidInputError, UnbalancedPaymentError
from core.money import ZERO, money
from debts.services.debt_tracker import open_debt
from sales.models import Payment

Method = Payment.Method

TENDER_METHODS = {Method.CASH, Method.CARD, Method.DEBT}


@dataclass(frozen=True)
class Tender:
    method: str
    amount: Decimal


@dataclass(frozen=True)
class DebtorInfo:
    name: str
    phone: str
    due_date: date | None = None
    notes: str = ""


@dataclass(frozen=True)
class PaymentPlan:
    tenders: tuple
    debt_amount: Decimal

    @property
    def immediate_tenders(self) -> tuple:
        return tuple(t for t in self.tenders if t.method != Method.DEBT)

    @property
    def paid_amount(self) -> Decimal:
        return sum((t.amount for t in self.immediate_tenders), ZERO)


@dataclass
class AllocationResult:
    plan: PaymentPlan
    payments: list = field(default_factory=list)
    debt: object = None


def _normalize_tenders(tenders) -> list:
    out = []
    for idx, t in enumerate(tenders or []):
        if isinstance(t, Tender):
            method, raw_amount = t.method, t.amount
        else:
            method, raw_amount = t.get("method"), t.get("amount")

        method = str(method or "").strip().upper()
        if method not in TENDER_METHODS:
            raise InvalidInputError(
                f"Invalid tender method at index {idx}: {method}",
                index=idx,
                method=method,
            )

        amount = money(raw_amount)
        if amount <= ZERO:
            raise InvalidAmountError(
                f"Invalid tender amount at index {idx}: {amount}",
                index=idx,
                amount=str(amount),
            )

        out.append(Tender(method=method, amount=amount))

    return out


def _coerce_debtor(debtor) -> DebtorInfo | None:
    if debtor is None or isinstance(debtor, DebtorInfo):
        return debtor

    return DebtorInfo(
        name=str(debtor.get("name") or "").strip(),
        phone=str(debtor.get("phone") or "").strip(),
        due_date=debtor.get("due_date"),
        notes=str(debtor.get("notes") or "").strip(),
    )


def build_payment_plan(*, tenders, grand_total, debtor=None) -> PaymentPlan:
    """
    Validate tenders against the total. Pure: writes nothing.
    """
    normalized = _normalize_tenders(tenders)
    expected = money(grand_total)
    tendered = sum((t.amount for t in normalized), ZERO)

    if tendered != expected:
        raise UnbalancedPaymentError(expected=expected, tendered=tendered)

    debt_amount = sum((t.amount for t in normalized if t.method == Method.DEBT), ZERO)

    if debt_amount > ZERO:
        info = _coerce_debtor(debtor)
        if info is None or not info.name.strip() or not info.phone.strip():
            raise InvalidInputError(
                "Debtor name and phone are required for a DEBT tender",
                debt_amount=str(debt_amount),
            )

    return PaymentPlan(tenders=tuple(normalized), debt_amount=debt_amount)


def allocate_payments(*, sale, grand_total, tenders, debtor=None, user=None) -> AllocationResult:
    """
    Validate and persist the payment plan for a sale being completed.
    Must run inside the completion transaction.
    """
    plan = build_payment_plan(tenders=tenders, grand_total=grand_total, debtor=debtor)
    result = AllocationResult(plan=plan)

    for tender in plan.immediate_tenders:
        result.payments.append(
            Payment.objects.create(
                sale=sale,
                method=tender.method,
                amount=tender.amount,
                received_by=user,
            )
        )

    if plan.debt_amount > ZERO:
        result.debt = open_debt(
            sale=sale,
            amount=plan.debt_amount,
            debtor=_coerce_debtor(debtor),
            user=user,
        )

    return result
