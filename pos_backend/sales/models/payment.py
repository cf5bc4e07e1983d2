# sales/models/payment.py

"""
PAYMENT (IMMUTABLE MONEY MOVEMENT)

RULES:
- At completion: one row per CASH / CARD tender; the DEBT portion of a sale
  is represented by its Debt, not by a Payment row.
  sum(completion payments) + debt.original_amount == sale.grand_total
- Later debt collections are rows with debt set (method CASH / CARD),
  attached to the debt's sale.
- Write-once: no updates, no deletes.
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class Payment(models.Model):
    class Method(models.TextChoices):
        CASH = "CASH", "Cash"
        CARD = "CARD", "Card"
        DEBT = "DEBT", "Debt"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(
        "sales.Sale",
        on_delete=models.PROTECT,
        related_name="payments",
    )

    debt = models.ForeignKey(
        "debts.Debt",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payments",
        help_text="Set when this payment collects on a debt.",
    )

    method = models.CharField(max_length=8, choices=Method.choices)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    note = models.CharField(max_length=255, blank=True, default="")

    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments_received",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["sale", "created_at"], name="sales_payme_sale_id_7b1d3e_idx"),
            models.Index(fields=["method"], name="sales_payme_method_2c6f8a_idx"),
        ]

    def clean(self):
        if self.amount is None or self.amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Payment records are immutable")

        self.clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Payment records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.sale_id} | {self.method} | {self.amount}"
