# sales/models/sale_return.py

"""
SALE RETURN

A request to reverse part of a completed sale.

LIFECYCLE:
- PENDING on creation: no stock or money has moved
- APPROVED: stock restored via the inventory ledger, sale flagged RETURNED
- REJECTED: no side effects

Design guarantees:
- refund_amount is the sum of its items' refund_total, fixed at creation
- decided returns are frozen, except the one-time debt credit stamp
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .sale import Sale

User = settings.AUTH_USER_MODEL


class SaleReturn(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    return_number = models.CharField(max_length=64, unique=True)

    sale = models.ForeignKey(
        Sale,
        on_delete=models.PROTECT,
        related_name="returns",
    )

    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.PENDING
    )

    refund_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    reason = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="returns_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    decided_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="returns_decided",
    )
    decided_at = models.DateTimeField(null=True, blank=True)
    decision_note = models.TextField(blank=True, default="")

    # Set once, by the debt tracker, when this refund is credited to the sale's debt.
    debt_credit_amount = models.DecimalField(
        max_digits=14, decimal_places=2, null=True, blank=True
    )
    debt_credited_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sale", "status"], name="sales_saler_sale_id_4e2a9f_idx"),
        ]

    _FROZEN_FIELDS_AFTER_DECISION = (
        "return_number",
        "sale_id",
        "status",
        "refund_amount",
        "reason",
        "notes",
        "decided_by_id",
        "decided_at",
        "decision_note",
    )

    def _validate_immutable(self, previous: "SaleReturn"):
        if previous.status == self.Status.PENDING:
            if self.refund_amount != previous.refund_amount:
                raise ValidationError("SaleReturn.refund_amount is fixed at creation")
            return

        for field in self._FROZEN_FIELDS_AFTER_DECISION:
            if getattr(self, field) != getattr(previous, field):
                raise ValidationError(
                    f"SaleReturn is immutable once {previous.status}. "
                    f"Field '{field}' cannot be changed."
                )

        credit_changed = (
            self.debt_credit_amount != previous.debt_credit_amount
            or self.debt_credited_at != previous.debt_credited_at
        )
        if credit_changed and (
            previous.status != self.Status.APPROVED
            or previous.debt_credit_amount is not None
        ):
            raise ValidationError("Return refund can be credited to a debt only once")

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = SaleReturn.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.return_number} | {self.status} | {self.refund_amount}"
