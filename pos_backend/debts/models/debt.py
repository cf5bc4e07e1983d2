# debts/models/debt.py

"""
CUSTOMER DEBT (ONE PER SALE)

Opened only as a side effect of completing a sale with a DEBT tender.

GUARANTEES:
- 0 <= remaining_amount <= original_amount
- original_amount never changes
- remaining_amount never increases
- status is derived from the amounts, never chosen by callers
  (CANCELLED is the only explicit status)
- PAID / CANCELLED debts are frozen
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class Debt(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PARTIALLY_PAID = "PARTIALLY_PAID", "Partially Paid"
        PAID = "PAID", "Paid"
        CANCELLED = "CANCELLED", "Cancelled"

    OPEN_STATUSES = {Status.PENDING, Status.PARTIALLY_PAID}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.OneToOneField(
        "sales.Sale",
        on_delete=models.PROTECT,
        related_name="debt",
    )

    debtor_name = models.CharField(max_length=255)
    debtor_phone = models.CharField(max_length=32, db_index=True)

    original_amount = models.DecimalField(max_digits=14, decimal_places=2)
    remaining_amount = models.DecimalField(max_digits=14, decimal_places=2)

    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.PENDING
    )

    due_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="debts_opened",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="debts_debt_status_5e1c9a_idx"),
        ]

    @classmethod
    def derive_status(cls, *, original_amount, remaining_amount, current_status) -> str:
        if current_status == cls.Status.CANCELLED:
            return current_status

        remaining = Decimal(remaining_amount)
        original = Decimal(original_amount)

        if remaining == 0:
            return cls.Status.PAID
        if 0 < remaining < original:
            return cls.Status.PARTIALLY_PAID
        return current_status

    @property
    def is_open(self) -> bool:
        return self.status in self.OPEN_STATUSES

    @property
    def paid_amount(self) -> Decimal:
        return Decimal(self.original_amount) - Decimal(self.remaining_amount)

    def clean(self):
        if self.original_amount is None or Decimal(self.original_amount) <= 0:
            raise ValidationError("original_amount must be greater than zero")

        if self.remaining_amount is None:
            raise ValidationError("remaining_amount is required")

        if not (Decimal("0") <= Decimal(self.remaining_amount) <= Decimal(self.original_amount)):
            raise ValidationError("remaining_amount must be between 0 and original_amount")

        if not (self.debtor_name or "").strip() or not (self.debtor_phone or "").strip():
            raise ValidationError("debtor name and phone are required")

    def _validate_transition(self, previous: "Debt"):
        if previous.status not in self.OPEN_STATUSES:
            raise ValidationError(f"Debt is frozen once {previous.status}")

        if Decimal(self.original_amount) != Decimal(previous.original_amount):
            raise ValidationError("Debt.original_amount is immutable")

        if Decimal(self.remaining_amount) > Decimal(previous.remaining_amount):
            raise ValidationError("Debt.remaining_amount cannot increase")

        if self.status != self.Status.CANCELLED:
            expected = self.derive_status(
                original_amount=self.original_amount,
                remaining_amount=self.remaining_amount,
                current_status=previous.status,
            )
            if self.status != expected:
                raise ValidationError(
                    f"Debt status must be {expected} for remaining {self.remaining_amount}"
                )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            previous = Debt.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_transition(previous)

        self.clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.debtor_name} | {self.remaining_amount}/{self.original_amount} | {self.status}"
