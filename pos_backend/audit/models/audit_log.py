# audit/models/audit_log.py

"""
AUDIT LOG ENTRY

Append-only record of a committed state transition.

GUARANTEES:
- Created ONCE, never edited, never deleted
- Snapshots are plain JSON (Decimals/UUIDs/datetimes serialized as strings)
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class AuditLog(models.Model):
    class Action(models.TextChoices):
        CREATED = "CREATED", "Created"
        SALE_UPDATED = "SALE_UPDATED", "Sale Updated"
        SALE_COMPLETED = "SALE_COMPLETED", "Sale Completed"
        SALE_CANCELLED = "SALE_CANCELLED", "Sale Cancelled"
        RETURN_CREATED = "RETURN_CREATED", "Return Created"
        RETURN_APPROVED = "RETURN_APPROVED", "Return Approved"
        RETURN_REJECTED = "RETURN_REJECTED", "Return Rejected"
        DEBT_PAYMENT = "DEBT_PAYMENT", "Debt Payment"
        DEBT_CANCELLED = "DEBT_CANCELLED", "Debt Cancelled"
        DEBT_REDUCED = "DEBT_REDUCED", "Debt Reduced"
        INVENTORY_ADJUSTED = "INVENTORY_ADJUSTED", "Inventory Adjusted"
        STOCK_RESTOCKED = "STOCK_RESTOCKED", "Stock Restocked"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
    )

    action = models.CharField(max_length=32, choices=Action.choices)
    entity = models.CharField(max_length=64)
    entity_id = models.CharField(max_length=64)

    before_snapshot = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    after_snapshot = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["entity", "entity_id"], name="audit_audit_entity_8d1f2a_idx"),
            models.Index(fields=["action", "created_at"], name="audit_audit_action_4c7e9b_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("AuditLog records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("AuditLog records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.action} | {self.entity}:{self.entity_id}"
