# sales/services/return_service.py

"""
RETURN / REFUND PROCESSOR

Reverses part of a completed sale.

Flow:
- create_return: validates quantities against what was already returned
  (APPROVED returns only) and prices the refund from the frozen
  SaleItem.custom_unit_price. Nothing moves yet (PENDING).
- approve_return: re-checks the ceiling (two pending returns may overlap),
  restores stock through the inventory ledger, flags the sale RETURNED.
- reject_return: PENDING -> REJECTED, no side effects.

An open debt on the sale is NOT reduced here; that is
debts.services.debt_tracker.apply_return_credit().
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from audit.services.audit_log import Action, emit
from core.exceptions import InvalidInputError, InvalidStateError, NotFoundError, OverReturnError
from core.money import ZERO, money, quantity as to_quantity
from products.models import InventoryTransaction
from products.services.stock_ledger import increment, lock_products, retry_on_lock_contention
from sales.models import ReturnItem, Sale, SaleItem, SaleReturn
from sales.services.numbering import next_number
from sales.services.sale_lifecycle import validate_returnable

logger = logging.getLogger("sales.returns")


# ============================================================
# HELPERS
# ============================================================


def _lock_sale(sale_id) -> Sale:
    sale = Sale.objects.select_for_update().filter(pk=sale_id).first()
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found", entity="Sale", entity_id=str(sale_id))
    return sale


def _lock_return(return_id) -> SaleReturn:
    sale_return = SaleReturn.objects.select_for_update().filter(pk=return_id).first()
    if sale_return is None:
        raise NotFoundError(
            f"Return {return_id} not found", entity="SaleReturn", entity_id=str(return_id)
        )
    return sale_return


def _ensure_pending(sale_return: SaleReturn):
    if sale_return.status != SaleReturn.Status.PENDING:
        raise InvalidStateError(
            f"Return {sale_return.return_number} is already {sale_return.status}",
            entity="SaleReturn",
            entity_id=str(sale_return.pk),
            status=sale_return.status,
        )


def _normalize_items(*, sale: Sale, items) -> list[dict]:
    """
    Merge duplicate sale_item_id entries and resolve them against the sale.
    """
    if not items:
        raise InvalidInputError("A return needs at least one item")

    sale_items = {str(si.pk): si for si in sale.items.all()}
    merged: dict[str, dict] = {}

    for idx, raw in enumerate(items):
        key = str(raw.get("sale_item_id") or "")
        sale_item = sale_items.get(key)
        if sale_item is None:
            raise NotFoundError(
                f"Sale item {key or '(missing)'} not found on sale {sale.sale_number}",
                entity="SaleItem",
                entity_id=key,
            )

        qty = to_quantity(raw.get("quantity"))
        if qty <= ZERO:
            raise InvalidInputError(
                f"Return quantity at index {idx} must be greater than zero",
                index=idx,
                quantity=str(qty),
            )

        entry = merged.setdefault(
            key, {"sale_item": sale_item, "quantity": ZERO, "reason": ""}
        )
        entry["quantity"] += qty
        entry["reason"] = entry["reason"] or str(raw.get("reason") or "").strip()

    return list(merged.values())


def returned_quantity(*, sale_item: SaleItem) -> Decimal:
    return (
        ReturnItem.objects.filter(
            sale_item=sale_item,
            sale_return__status=SaleReturn.Status.APPROVED,
        )
        .aggregate(total=Sum("quantity"))
        .get("total")
        or ZERO
    )


def _ensure_return_ceiling(*, sale_item: SaleItem, requested: Decimal):
    already = returned_quantity(sale_item=sale_item)
    returnable = Decimal(sale_item.quantity) - already

    if requested > returnable:
        raise OverReturnError(
            f"Cannot return {requested} of '{sale_item.product_name_snapshot}'. "
            f"Sold: {sale_item.quantity}, already returned: {already}",
            sale_item_id=str(sale_item.pk),
            requested=str(requested),
            returnable=str(returnable),
        )


def _sync_returned_status(sale: Sale):
    """
    RETURNED is derived: a completed sale with at least one approved return.
    """
    has_approved = sale.returns.filter(status=SaleReturn.Status.APPROVED).exists()
    if has_approved and sale.status == Sale.Status.COMPLETED:
        sale.status = Sale.Status.RETURNED
        sale.save(update_fields=["status", "updated_at"])


def is_fully_returned(sale: Sale) -> bool:
    return all(
        returned_quantity(sale_item=item) >= Decimal(item.quantity)
        for item in sale.items.all()
    )


# ============================================================
# CREATE
# ============================================================


@transaction.atomic
def create_return(*, sale_id, items, reason: str = "", notes: str = "", user=None) -> SaleReturn:
    sale = _lock_sale(sale_id)
    validate_returnable(sale=sale)

    normalized = _normalize_items(sale=sale, items=items)

    for entry in normalized:
        _ensure_return_ceiling(sale_item=entry["sale_item"], requested=entry["quantity"])

    refund_amount = money(
        sum(
            (money(e["sale_item"].custom_unit_price * e["quantity"]) for e in normalized),
            ZERO,
        )
    )

    sale_return = SaleReturn.objects.create(
        return_number=next_number(prefix=settings.RETURN_NUMBER_PREFIX),
        sale=sale,
        status=SaleReturn.Status.PENDING,
        refund_amount=refund_amount,
        reason=(reason or "").strip(),
        notes=(notes or "").strip(),
        created_by=user,
    )

    for entry in normalized:
        ReturnItem.objects.create(
            sale_return=sale_return,
            sale_item=entry["sale_item"],
            quantity=entry["quantity"],
            refund_unit_price=entry["sale_item"].custom_unit_price,
            reason=entry["reason"],
        )

    emit(
        user=user,
        action=Action.RETURN_CREATED,
        entity="SaleReturn",
        entity_id=sale_return.pk,
        after={"status": sale_return.status, "refund_amount": refund_amount},
        metadata={"sale_id": str(sale.pk), "return_number": sale_return.return_number},
    )
    logger.info(
        "Return created",
        extra={
            "return_id": str(sale_return.pk),
            "sale_id": str(sale.pk),
            "refund_amount": str(refund_amount),
        },
    )
    return sale_return


# ============================================================
# APPROVE / REJECT
# ============================================================


@retry_on_lock_contention
def approve_return(*, return_id, user=None) -> SaleReturn:
    sale_return = _lock_return(return_id)
    _ensure_pending(sale_return)

    sale = _lock_sale(sale_return.sale_id)
    sale_status_before = sale.status

    return_items = list(sale_return.items.select_related("sale_item"))

    for ri in return_items:
        _ensure_return_ceiling(sale_item=ri.sale_item, requested=ri.quantity)

    lock_products(ri.sale_item.product_id for ri in return_items if ri.sale_item.product_id)

    for ri in return_items:
        if ri.sale_item.product_id is None:
            logger.warning(
                "Returned item has no product; stock not restored",
                extra={"return_id": str(sale_return.pk), "sale_item_id": str(ri.sale_item_id)},
            )
            continue

        increment(
            product_id=ri.sale_item.product_id,
            quantity=ri.quantity,
            tx_type=InventoryTransaction.Type.RETURN,
            reference_type=InventoryTransaction.ReferenceType.RETURN,
            reference_id=sale_return.pk,
            user=user,
        )

    sale_return.status = SaleReturn.Status.APPROVED
    sale_return.decided_by = user
    sale_return.decided_at = timezone.now()
    sale_return.save()

    _sync_returned_status(sale)

    emit(
        user=user,
        action=Action.RETURN_APPROVED,
        entity="SaleReturn",
        entity_id=sale_return.pk,
        before={"status": SaleReturn.Status.PENDING, "sale_status": sale_status_before},
        after={
            "status": sale_return.status,
            "sale_status": sale.status,
            "refund_amount": sale_return.refund_amount,
        },
        metadata={"sale_id": str(sale.pk)},
    )
    logger.info(
        "Return approved",
        extra={"return_id": str(sale_return.pk), "sale_id": str(sale.pk)},
    )
    return sale_return


@transaction.atomic
def reject_return(*, return_id, note: str = "", user=None) -> SaleReturn:
    sale_return = _lock_return(return_id)
    _ensure_pending(sale_return)

    sale_return.status = SaleReturn.Status.REJECTED
    sale_return.decided_by = user
    sale_return.decided_at = timezone.now()
    sale_return.decision_note = (note or "").strip()
    sale_return.save()

    emit(
        user=user,
        action=Action.RETURN_REJECTED,
        entity="SaleReturn",
        entity_id=sale_return.pk,
        before={"status": SaleReturn.Status.PENDING},
        after={"status": sale_return.status},
        metadata={"note": sale_return.decision_note},
    )
    logger.info("Return rejected", extra={"return_id": str(sale_return.pk)})
    return sale_return
