# sales/models/sale_item.py

"""
SALE ITEM (IMMUTABLE SNAPSHOT)

Catalog values copied at the moment the line was drafted. Nothing here is
ever re-read from the live product: the product FK is kept for traceability
only and may become NULL when the product is removed.

Notes:
- While the sale is DRAFT, only the negotiated price and discount may change
- Once the sale leaves DRAFT the row is frozen
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from core.money import money
from products.models import Product

from .sale import Sale


class SaleItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(
        Sale,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sale_items",
    )

    position = models.PositiveIntegerField(default=1)

    product_name_snapshot = models.CharField(max_length=255)
    category_snapshot = models.CharField(max_length=255, blank=True, default="")
    unit_snapshot = models.CharField(max_length=16)

    base_unit_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Catalog sale price at the time of sale.",
    )
    custom_unit_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Price actually charged per unit (may be negotiated).",
    )
    purchase_price_snapshot = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Unit cost at the time of sale.",
    )

    quantity = models.DecimalField(max_digits=12, decimal_places=2)

    base_total = models.DecimalField(max_digits=14, decimal_places=2, editable=False)
    custom_total = models.DecimalField(max_digits=14, decimal_places=2, editable=False)
    discount_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["position", "created_at"]
        indexes = [
            models.Index(fields=["sale", "position"], name="sales_salei_sale_id_3f8a2c_idx"),
            models.Index(fields=["product", "created_at"], name="sales_salei_product_9d4e1b_idx"),
        ]

    _SNAPSHOT_FIELDS = (
        "sale_id",
        "product_id",
        "position",
        "product_name_snapshot",
        "category_snapshot",
        "unit_snapshot",
        "base_unit_price",
        "purchase_price_snapshot",
        "quantity",
        "base_total",
        "created_at",
    )

    # ------------------------------------------------------
    # Derived line values
    # ------------------------------------------------------

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.custom_total) - Decimal(self.discount_amount)

    @property
    def cost_total(self) -> Decimal:
        return Decimal(self.purchase_price_snapshot) * Decimal(self.quantity)

    # ------------------------------------------------------
    # Guards
    # ------------------------------------------------------

    def clean(self):
        if self.quantity is None or Decimal(self.quantity) <= 0:
            raise ValidationError("quantity must be greater than zero")

        if Decimal(self.custom_unit_price) < 0:
            raise ValidationError("custom_unit_price cannot be negative")

        discount = Decimal(self.discount_amount or 0)
        if discount < 0 or discount > Decimal(self.custom_total):
            raise ValidationError("discount_amount must be between 0 and the line total")

    def _allow_draft_pricing_only(self, previous: "SaleItem"):
        if Sale.objects.filter(pk=self.sale_id).values_list("status", flat=True).first() != Sale.Status.DRAFT:
            raise ValidationError("SaleItem records are immutable once sale is not draft")

        for field in self._SNAPSHOT_FIELDS:
            if getattr(self, field) != getattr(previous, field):
                raise ValidationError(f"SaleItem field '{field}' is immutable")

    def save(self, *args, **kwargs):
        # Always keep totals consistent with the snapshot
        self.base_total = money(Decimal(self.base_unit_price) * Decimal(self.quantity))
        self.custom_total = money(Decimal(self.custom_unit_price) * Decimal(self.quantity))

        if not self._state.adding:
            previous = SaleItem.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._allow_draft_pricing_only(previous)

        self.clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.sale.status != Sale.Status.DRAFT:
            raise ValidationError("SaleItem records are immutable once sale is not draft")
        return super().delete(*args, **kwargs)

    def __str__(self):
        return f"{self.product_name_snapshot} x {self.quantity}"
