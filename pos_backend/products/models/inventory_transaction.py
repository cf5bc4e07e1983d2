# products/models/inventory_transaction.py

"""
CANONICAL INVENTORY LEDGER

Immutable inventory ledger entry.

GUARANTEES:
- Append-only (no updates, no deletes)
- stock_after == stock_before + quantity (signed delta)
- stock_after never negative
- position is a gap-free, per-product counter assigned under the product
  row lock; the chain is ordered by it, so for consecutive rows
  row[n].stock_before == row[n-1].stock_after
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .product import Product


class InventoryTransaction(models.Model):
    class Type(models.TextChoices):
        SALE = "SALE", "Sale"
        RETURN = "RETURN", "Return"
        ADJUSTMENT = "ADJUSTMENT", "Manual Adjustment"
        RESTOCK = "RESTOCK", "Restock"

    class ReferenceType(models.TextChoices):
        SALE = "SALE", "Sale"
        RETURN = "RETURN", "Return"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="inventory_transactions"
    )

    type = models.CharField(max_length=16, choices=Type.choices)
    position = models.PositiveIntegerField()

    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Signed delta: negative removes stock, positive adds.",
    )
    stock_before = models.DecimalField(max_digits=12, decimal_places=2)
    stock_after = models.DecimalField(max_digits=12, decimal_places=2)

    reference_type = models.CharField(
        max_length=16, choices=ReferenceType.choices, blank=True, default=""
    )
    reference_id = models.UUIDField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_transactions",
    )

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["product", "position"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "position"],
                name="uniq_inventory_tx_product_position",
            ),
        ]
        indexes = [
            models.Index(fields=["product", "created_at"], name="products_in_product_2e9d4b_idx"),
            models.Index(fields=["reference_type", "reference_id"], name="products_in_referen_6a0c8f_idx"),
            models.Index(fields=["type"], name="products_in_type_3b5e7d_idx"),
        ]

    def clean(self):
        if self.quantity is None or self.quantity == 0:
            raise ValidationError("quantity must be a non-zero delta")

        if self.stock_after != self.stock_before + self.quantity:
            raise ValidationError("stock_after must equal stock_before + quantity")

        if self.stock_after < 0:
            raise ValidationError("stock_after cannot be negative")

        if self.type == self.Type.SALE and self.quantity > 0:
            raise ValidationError("SALE rows must remove stock")

        if self.type in {self.Type.RETURN, self.Type.RESTOCK} and self.quantity < 0:
            raise ValidationError(f"{self.type} rows must add stock")

        if self.reference_type and not self.reference_id:
            raise ValidationError("reference_type requires reference_id")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("InventoryTransaction records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "InventoryTransaction records are immutable and cannot be deleted"
        )

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.type} | {self.quantity}"
