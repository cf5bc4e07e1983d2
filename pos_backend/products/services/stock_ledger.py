# products/services/stock_ledger.py

"""
STOCK LEDGER SERVICE

The ONLY writer of Product.stock_quantity.

Every call appends exactly one immutable InventoryTransaction row and moves
the product's denormalized stock to that row's stock_after, under a row lock
on the product (SELECT ... FOR UPDATE) held until the surrounding transaction
ends.

Rules:
- decrement never drives stock below zero (InsufficientStockError)
- increment has no upper bound
- adjust accepts a signed, non-zero delta; result must stay >= 0
- multi-product callers lock via lock_products(), which always locks in
  primary-key order so two sales sharing products cannot deadlock
- replaying a product's rows from opening_stock reproduces stock_quantity
"""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import OperationalError, transaction
from django.db.models import Max
from django.utils import timezone

from audit.services.audit_log import Action, emit
from core.exceptions import (
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
    StockContentionError,
)
from core.money import ZERO, quantity as to_quantity
from products.models import InventoryTransaction, Product
from products.services.catalog import as_product_id

logger = logging.getLogger("products.stock_ledger")

TxType = InventoryTransaction.Type


@dataclass(frozen=True)
class LedgerCheck:
    product_id: object
    opening_stock: Decimal
    replayed_stock: Decimal
    live_stock: Decimal
    row_count: int
    broken_at_position: int | None

    @property
    def is_consistent(self) -> bool:
        return self.broken_at_position is None and self.replayed_stock == self.live_stock


# ============================================================
# LOCKING / RETRY
# ============================================================


def retry_on_lock_contention(func):
    """
    Run func in its own atomic block, retrying on lock / serialization
    failures (deadlock, "database is locked").

    Business-rule errors propagate untouched on the first attempt.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        attempts = max(1, int(getattr(settings, "STOCK_LOCK_MAX_ATTEMPTS", 3)))
        backoff = float(getattr(settings, "STOCK_LOCK_RETRY_BACKOFF", 0.05))

        for attempt in range(1, attempts + 1):
            try:
                with transaction.atomic():
                    return func(*args, **kwargs)
            except OperationalError as exc:
                if attempt >= attempts:
                    logger.error(
                        "Stock lock contention: giving up",
                        extra={"operation": func.__name__, "attempts": attempts},
                    )
                    raise StockContentionError(
                        "Stock is busy with another transaction. Please retry.",
                        operation=func.__name__,
                        attempts=attempts,
                    ) from exc

                logger.warning(
                    "Stock lock contention: retrying",
                    extra={
                        "operation": func.__name__,
                        "attempt": attempt,
                        "error": str(exc),
                    },
                )
                time.sleep(backoff * attempt)

    return wrapper


def lock_products(product_ids) -> dict:
    """
    Lock product rows in deterministic (pk) order and return {pk: Product}.
    Must run inside a transaction.
    """
    ids = sorted({as_product_id(pk) for pk in product_ids}, key=str)
    if not ids:
        return {}

    locked = {
        p.pk: p
        for p in Product.objects.select_for_update().filter(pk__in=ids).order_by("pk")
    }

    missing = [pk for pk in ids if pk not in locked]
    if missing:
        raise NotFoundError(
            f"Product {missing[0]} not found",
            entity="Product",
            entity_id=str(missing[0]),
        )

    return locked


def _lock_product(product_id) -> Product:
    product_id = as_product_id(product_id)
    product = Product.objects.select_for_update().filter(pk=product_id).first()
    if product is None:
        raise NotFoundError(
            f"Product {product_id} not found",
            entity="Product",
            entity_id=str(product_id),
        )
    return product


def _positive_quantity(value) -> Decimal:
    qty = to_quantity(value)
    if qty <= ZERO:
        raise InvalidInputError("quantity must be greater than zero", quantity=str(qty))
    return qty


# ============================================================
# APPEND (single write path)
# ============================================================


def _append(
    *,
    product: Product,
    delta: Decimal,
    tx_type: str,
    reference_type: str = "",
    reference_id=None,
    note: str = "",
    user=None,
) -> InventoryTransaction:
    stock_before = Decimal(product.stock_quantity)
    stock_after = stock_before + delta

    if stock_after < ZERO:
        raise InsufficientStockError(
            product_id=product.pk,
            product_name=product.name,
            requested=abs(delta),
            available=stock_before,
        )

    last_position = (
        InventoryTransaction.objects.filter(product=product)
        .aggregate(last=Max("position"))
        .get("last")
        or 0
    )

    row = InventoryTransaction.objects.create(
        product=product,
        type=tx_type,
        position=last_position + 1,
        quantity=delta,
        stock_before=stock_before,
        stock_after=stock_after,
        reference_type=reference_type or "",
        reference_id=reference_id,
        notes=note or "",
        performed_by=user,
    )

    Product.objects.filter(pk=product.pk).update(
        stock_quantity=stock_after,
        updated_at=timezone.now(),
    )
    product.refresh_from_db(fields=["stock_quantity", "updated_at"])

    return row


# ============================================================
# PUBLIC API
# ============================================================


@transaction.atomic
def decrement(
    *,
    product_id,
    quantity,
    reference_type: str = "",
    reference_id=None,
    tx_type: str = TxType.SALE,
    user=None,
    note: str = "",
) -> InventoryTransaction:
    product = _lock_product(product_id)
    qty = _positive_quantity(quantity)

    return _append(
        product=product,
        delta=-qty,
        tx_type=tx_type,
        reference_type=reference_type,
        reference_id=reference_id,
        note=note,
        user=user,
    )


@transaction.atomic
def increment(
    *,
    product_id,
    quantity,
    reference_type: str = "",
    reference_id=None,
    tx_type: str = TxType.RETURN,
    user=None,
    note: str = "",
) -> InventoryTransaction:
    if tx_type == TxType.SALE:
        raise InvalidInputError("SALE movements cannot add stock")

    product = _lock_product(product_id)
    qty = _positive_quantity(quantity)

    return _append(
        product=product,
        delta=qty,
        tx_type=tx_type,
        reference_type=reference_type,
        reference_id=reference_id,
        note=note,
        user=user,
    )


@retry_on_lock_contention
def adjust(*, product_id, delta, note: str = "", user=None) -> InventoryTransaction:
    """
    Manual correction. delta may be positive or negative, never zero.
    """
    signed = to_quantity(delta, field="delta")
    if signed == ZERO:
        raise InvalidInputError("delta cannot be 0")

    product = _lock_product(product_id)
    before = {"stock_quantity": Decimal(product.stock_quantity)}

    row = _append(
        product=product,
        delta=signed,
        tx_type=TxType.ADJUSTMENT,
        note=note,
        user=user,
    )

    emit(
        user=user,
        action=Action.INVENTORY_ADJUSTED,
        entity="Product",
        entity_id=product.pk,
        before=before,
        after={"stock_quantity": row.stock_after},
        metadata={"transaction_id": str(row.pk), "delta": signed, "note": note},
    )
    logger.info(
        "Stock adjusted",
        extra={"product_id": str(product.pk), "delta": str(signed)},
    )
    return row


@retry_on_lock_contention
def restock(*, product_id, quantity, note: str = "", user=None) -> InventoryTransaction:
    row = increment(
        product_id=product_id,
        quantity=quantity,
        tx_type=TxType.RESTOCK,
        note=note,
        user=user,
    )

    emit(
        user=user,
        action=Action.STOCK_RESTOCKED,
        entity="Product",
        entity_id=product_id,
        before={"stock_quantity": row.stock_before},
        after={"stock_quantity": row.stock_after},
        metadata={"transaction_id": str(row.pk), "quantity": row.quantity, "note": note},
    )
    logger.info(
        "Product restocked",
        extra={"product_id": str(product_id), "quantity": str(row.quantity)},
    )
    return row


# ============================================================
# REPLAY / VERIFICATION
# ============================================================


def replay_stock(product: Product) -> Decimal:
    stock = Decimal(product.opening_stock)
    for delta in (
        InventoryTransaction.objects.filter(product=product)
        .order_by("position")
        .values_list("quantity", flat=True)
    ):
        stock += delta
    return stock


def verify_ledger(product: Product) -> LedgerCheck:
    product = Product.objects.get(pk=product.pk)

    expected_before = Decimal(product.opening_stock)
    broken_at = None
    count = 0

    for row in InventoryTransaction.objects.filter(product=product).order_by("position"):
        count += 1
        if broken_at is None and (
            row.position != count
            or row.stock_before != expected_before
            or row.stock_after != row.stock_before + row.quantity
        ):
            broken_at = row.position
        expected_before = row.stock_after

    return LedgerCheck(
        product_id=product.pk,
        opening_stock=Decimal(product.opening_stock),
        replayed_stock=replay_stock(product),
        live_stock=Decimal(product.stock_quantity),
        row_count=count,
        broken_at_position=broken_at,
    )
