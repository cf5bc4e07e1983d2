# audit/migrations/0001_initial.py

from __future__ import annotations

import uuid

import django.core.serializers.json
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                (
                    "action",
                    models.CharField(
                        max_length=32,
                        choices=[
                            ("CREATED", "Created"),
                            ("SALE_UPDATED", "Sale Updated"),
                            ("SALE_COMPLETED", "Sale Completed"),
                            ("SALE_CANCELLED", "Sale Cancelled"),
                            ("RETURN_CREATED", "Return Created"),
                            ("RETURN_APPROVED", "Return Approved"),
                            ("RETURN_REJECTED", "Return Rejected"),
                            ("DEBT_PAYMENT", "Debt Payment"),
                            ("DEBT_CANCELLED", "Debt Cancelled"),
                            ("DEBT_REDUCED", "Debt Reduced"),
                            ("INVENTORY_ADJUSTED", "Inventory Adjusted"),
                            ("STOCK_RESTOCKED", "Stock Restocked"),
                        ],
                    ),
                ),
                ("entity", models.CharField(max_length=64)),
                ("entity_id", models.CharField(max_length=64)),
                (
                    "before_snapshot",
                    models.JSONField(
                        null=True,
                        blank=True,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                    ),
                ),
                (
                    "after_snapshot",
                    models.JSONField(
                        null=True,
                        blank=True,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        default=dict,
                        blank=True,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, db_index=True
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_logs",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["entity", "entity_id"], name="audit_audit_entity_8d1f2a_idx"),
                    models.Index(fields=["action", "created_at"], name="audit_audit_action_4c7e9b_idx"),
                ],
            },
        ),
    ]
