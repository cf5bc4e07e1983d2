# sales/services/sale_service.py

"""
SALE SERVICE (APPLICATION SERVICE)

Purpose:
- Draft a sale from catalog products (snapshots only, no side effects)
- Complete it: stock check + decrement, tender allocation, optional debt
- Cancel a draft

Hard rules:
- Money values are computed server-side from frozen snapshot fields.
- Completion is one transaction: stock rows, payments, debt and the sale
  status commit together or not at all.
- Product rows are locked in pk order for the whole item list, so two
  completions fighting over the last unit are serialized.
- Audit entries are emitted after commit.
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from audit.services.audit_log import Action, emit
from core.exceptions import InsufficientStockError, InvalidInputError, InvalidStateError, NotFoundError
from core.money import ZERO, money, quantity as to_quantity
from products.models import InventoryTransaction
from products.services.catalog import as_product_id, get_sellable_products
from products.services.stock_ledger import decrement, lock_products, retry_on_lock_contention
from sales.models import Sale, SaleItem
from sales.services.numbering import next_number
from sales.services.payment_allocator import allocate_payments
from sales.services.pricing import compute_totals, snapshot_line, validate_line_pricing
from sales.services.sale_lifecycle import validate_transition

logger = logging.getLogger("sales")


# ============================================================
# HELPERS
# ============================================================


def _lock_sale(sale_id) -> Sale:
    sale = Sale.objects.select_for_update().filter(pk=sale_id).first()
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found", entity="Sale", entity_id=str(sale_id))
    return sale


def _normalize_items(items) -> list[dict]:
    if not items:
        raise InvalidInputError("A sale needs at least one item")

    out = []
    for idx, item in enumerate(items):
        if item.get("product_id") in (None, ""):
            raise InvalidInputError(f"product_id is required at index {idx}", index=idx)

        out.append(
            {
                "product_id": as_product_id(item["product_id"]),
                "quantity": to_quantity(item.get("quantity")),
                "custom_unit_price": item.get("custom_unit_price"),
                "discount_amount": item.get("discount_amount"),
            }
        )
    return out


def _apply_totals(sale: Sale, totals, *, include_profit: bool):
    sale.subtotal = totals.subtotal
    sale.total_discount = totals.total_discount
    sale.grand_total = totals.grand_total
    if include_profit:
        sale.gross_profit = totals.gross_profit
        sale.net_profit = totals.net_profit


def _sale_snapshot(sale: Sale) -> dict:
    return {
        "status": sale.status,
        "subtotal": sale.subtotal,
        "total_discount": sale.total_discount,
        "grand_total": sale.grand_total,
    }


# ============================================================
# DRAFT
# ============================================================


@transaction.atomic
def create_draft_sale(*, user, items, notes: str = "") -> Sale:
    normalized = _normalize_items(items)
    products = get_sellable_products(i["product_id"] for i in normalized)

    lines = [
        snapshot_line(
            product=products[i["product_id"]],
            quantity=i["quantity"],
            custom_unit_price=i["custom_unit_price"],
            discount_amount=i["discount_amount"],
            user=user,
        )
        for i in normalized
    ]

    totals = compute_totals(lines)

    sale = Sale(
        sale_number=next_number(prefix=settings.SALE_NUMBER_PREFIX),
        status=Sale.Status.DRAFT,
        created_by=user,
        notes=(notes or "").strip(),
    )
    _apply_totals(sale, totals, include_profit=False)
    sale.save()

    for position, line in enumerate(lines, start=1):
        SaleItem.objects.create(
            sale=sale,
            product_id=line.product_id,
            position=position,
            product_name_snapshot=line.product_name,
            category_snapshot=line.category_name,
            unit_snapshot=line.unit,
            base_unit_price=line.base_unit_price,
            custom_unit_price=line.custom_unit_price,
            purchase_price_snapshot=line.purchase_price,
            quantity=line.quantity,
            discount_amount=line.discount_amount,
        )

    emit(
        user=user,
        action=Action.CREATED,
        entity="Sale",
        entity_id=sale.pk,
        after=_sale_snapshot(sale),
        metadata={"sale_number": sale.sale_number, "items": len(lines)},
    )
    logger.info(
        "Draft sale created",
        extra={"sale_id": str(sale.pk), "sale_number": sale.sale_number},
    )
    return sale


@transaction.atomic
def update_draft_sale(*, sale_id, lines=None, notes=None, user=None) -> Sale:
    """
    Re-price draft lines. Only custom_unit_price / discount_amount move;
    every other snapshot field stays as drafted.
    """
    sale = _lock_sale(sale_id)
    if not sale.is_draft:
        raise InvalidStateError(
            f"Sale {sale.sale_number} is {sale.status}; only drafts can be edited",
            entity="Sale",
            entity_id=str(sale.pk),
            status=sale.status,
        )

    before = _sale_snapshot(sale)
    items = {str(item.pk): item for item in sale.items.all()}

    for change in lines or []:
        item = items.get(str(change.get("item_id")))
        if item is None:
            raise NotFoundError(
                f"Sale item {change.get('item_id')} not found on sale {sale.sale_number}",
                entity="SaleItem",
                entity_id=str(change.get("item_id")),
            )

        custom_price = item.custom_unit_price
        if change.get("custom_unit_price") is not None:
            custom_price = money(change["custom_unit_price"], field="custom_unit_price")

        discount = item.discount_amount
        if change.get("discount_amount") is not None:
            discount = money(change["discount_amount"], field="discount_amount")

        validate_line_pricing(
            base_unit_price=item.base_unit_price,
            custom_unit_price=custom_price,
            quantity=item.quantity,
            discount_amount=discount,
            user=user,
            product_name=item.product_name_snapshot,
        )

        item.custom_unit_price = custom_price
        item.discount_amount = discount
        item.save()

    if notes is not None:
        sale.notes = notes.strip()

    _apply_totals(sale, compute_totals(items.values()), include_profit=False)
    sale.save()

    emit(
        user=user,
        action=Action.SALE_UPDATED,
        entity="Sale",
        entity_id=sale.pk,
        before=before,
        after=_sale_snapshot(sale),
    )
    logger.info("Draft sale updated", extra={"sale_id": str(sale.pk)})
    return sale


# ============================================================
# COMPLETE
# ============================================================


@retry_on_lock_contention
def complete_sale(*, sale_id, tenders, debtor=None, user=None) -> Sale:
    sale = _lock_sale(sale_id)
    validate_transition(sale=sale, target_status=Sale.Status.COMPLETED)

    items = list(sale.items.all())
    if not items:
        raise InvalidInputError(f"Sale {sale.sale_number} has no items")

    for item in items:
        if item.product_id is None:
            raise NotFoundError(
                f"Product for '{item.product_name_snapshot}' no longer exists",
                entity="SaleItem",
                entity_id=str(item.pk),
            )

    # Lock every product in pk order, then check the whole item list.
    products = lock_products(item.product_id for item in items)

    required = OrderedDict()
    for item in items:
        required[item.product_id] = required.get(item.product_id, ZERO) + item.quantity

    for product_id in sorted(required, key=str):
        product = products[product_id]
        if product.is_deleted or not product.is_active:
            raise NotFoundError(
                f"Product '{product.name}' is no longer sellable",
                entity="Product",
                entity_id=str(product_id),
            )
        if required[product_id] > product.stock_quantity:
            raise InsufficientStockError(
                product_id=product_id,
                product_name=product.name,
                requested=required[product_id],
                available=product.stock_quantity,
            )

    totals = compute_totals(items)

    allocation = allocate_payments(
        sale=sale,
        grand_total=totals.grand_total,
        tenders=tenders,
        debtor=debtor,
        user=user,
    )

    for item in items:
        decrement(
            product_id=item.product_id,
            quantity=item.quantity,
            reference_type=InventoryTransaction.ReferenceType.SALE,
            reference_id=sale.pk,
            user=user,
        )

    before = _sale_snapshot(sale)

    _apply_totals(sale, totals, include_profit=True)
    sale.status = Sale.Status.COMPLETED
    sale.completed_at = timezone.now()
    sale.save()

    after = _sale_snapshot(sale)
    after["tenders"] = [
        {"method": t.method, "amount": t.amount} for t in allocation.plan.tenders
    ]
    after["debt_id"] = str(allocation.debt.pk) if allocation.debt else None

    emit(
        user=user,
        action=Action.SALE_COMPLETED,
        entity="Sale",
        entity_id=sale.pk,
        before=before,
        after=after,
    )
    logger.info(
        "Sale completed",
        extra={
            "sale_id": str(sale.pk),
            "sale_number": sale.sale_number,
            "grand_total": str(sale.grand_total),
            "debt_amount": str(allocation.plan.debt_amount),
        },
    )
    return sale


# ============================================================
# CANCEL
# ============================================================


@transaction.atomic
def cancel_sale(*, sale_id, reason: str = "", user=None) -> Sale:
    sale = _lock_sale(sale_id)

    if sale.status in (Sale.Status.COMPLETED, Sale.Status.RETURNED):
        raise InvalidStateError(
            f"Sale {sale.sale_number} is {sale.status}; use a return instead of cancelling",
            entity="Sale",
            entity_id=str(sale.pk),
            status=sale.status,
        )
    validate_transition(sale=sale, target_status=Sale.Status.CANCELLED)

    sale.status = Sale.Status.CANCELLED
    sale.cancelled_at = timezone.now()
    sale.cancellation_reason = (reason or "").strip()
    sale.save()

    emit(
        user=user,
        action=Action.SALE_CANCELLED,
        entity="Sale",
        entity_id=sale.pk,
        before={"status": Sale.Status.DRAFT},
        after={"status": sale.status, "reason": sale.cancellation_reason},
    )
    logger.info("Sale cancelled", extra={"sale_id": str(sale.pk)})
    return sale
