# sales/models/return_item.py

"""
RETURN ITEM

Immutable line of a SaleReturn. refund_unit_price is copied from the
original SaleItem.custom_unit_price, never from the current catalog.
"""

from __future__ import annotations

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from core.money import money

from .sale_item import SaleItem
from .sale_return import SaleReturn


class ReturnItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale_return = models.ForeignKey(
        SaleReturn,
        on_delete=models.CASCADE,
        related_name="items",
    )

    sale_item = models.ForeignKey(
        SaleItem,
        on_delete=models.PROTECT,
        related_name="return_items",
    )

    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    refund_unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    refund_total = models.DecimalField(max_digits=14, decimal_places=2, editable=False)

    reason = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["sale_item"], name="sales_retur_sale_it_8a3c5d_idx"),
        ]

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError("quantity must be greater than zero")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("ReturnItem records are immutable")

        self.refund_total = money(self.refund_unit_price * self.quantity)
        self.clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("ReturnItem records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.sale_item_id} x {self.quantity}"
