# sales/models/sale.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

User = settings.AUTH_USER_MODEL


class Sale(models.Model):
    """
    Represents a POS transaction.

    LIFECYCLE:
    - DRAFT: line items only, no stock or money has moved; totals provisional
    - COMPLETED: stock decremented, tenders recorded, financials frozen
    - CANCELLED: only reachable from DRAFT
    - RETURNED: derived, set once at least one return against it is approved

    GUARANTEES:
    - grand_total = subtotal - total_discount
    - net_profit = gross_profit - total_discount
    - Financial fields are immutable once the sale leaves DRAFT
    - Status moves only along sales.services.sale_lifecycle transitions
    """

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"
        RETURNED = "RETURNED", "Returned"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale_number = models.CharField(
        max_length=64,
        unique=True,
        help_text="Sequential per day, e.g. SALE-20250101-0001",
    )

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.DRAFT,
    )

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    grand_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    gross_profit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Sum of (custom_unit_price - purchase_price) * quantity. Set at completion.",
    )
    net_profit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="gross_profit - total_discount. Set at completion.",
    )

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name="sales",
        help_text="Cashier who opened the sale",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="sales_sale_created_0a4f6e_idx"),
            models.Index(fields=["status"], name="sales_sale_status_8c2d1b_idx"),
        ]

    _IMMUTABLE_FIELDS_AFTER_DRAFT = (
        "sale_number",
        "created_by_id",
        "subtotal",
        "total_discount",
        "grand_total",
        "gross_profit",
        "net_profit",
        "completed_at",
        "notes",
    )

    def _validate_immutable(self, previous: "Sale"):
        if self.status != previous.status:
            # local import: lifecycle rules import this model
            from sales.services.sale_lifecycle import can_transition

            if not can_transition(from_status=previous.status, to_status=self.status):
                raise ValidationError(
                    f"Sale status change {previous.status} -> {self.status} is not allowed."
                )

            if (
                self.status == self.Status.RETURNED
                and not self.returns.filter(status="APPROVED").exists()
            ):
                raise ValidationError("Sale is RETURNED only once a return is approved.")

        if previous.status == self.Status.DRAFT:
            return

        for field in self._IMMUTABLE_FIELDS_AFTER_DRAFT:
            if getattr(self, field) != getattr(previous, field):
                raise ValidationError(
                    f"Sale is immutable once {previous.status}. "
                    f"Field '{field}' cannot be changed."
                )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Sale.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        super().save(*args, **kwargs)

    @property
    def is_draft(self) -> bool:
        return self.status == self.Status.DRAFT

    def __str__(self):
        return f"{self.sale_number} | {self.status} | {self.grand_total}"
