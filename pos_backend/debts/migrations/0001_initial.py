# debts/migrations/0001_initial.py

from __future__ import annotations

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("sales", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Debt",
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
                ("debtor_name", models.CharField(max_length=255)),
                ("debtor_phone", models.CharField(max_length=32, db_index=True)),
                ("original_amount", models.DecimalField(max_digits=14, decimal_places=2)),
                ("remaining_amount", models.DecimalField(max_digits=14, decimal_places=2)),
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("PENDING", "Pending"),
                            ("PARTIALLY_PAID", "Partially Paid"),
                            ("PAID", "Paid"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="PENDING",
                    ),
                ),
                ("due_date", models.DateField(null=True, blank=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("cancelled_at", models.DateTimeField(null=True, blank=True)),
                ("cancellation_reason", models.TextField(blank=True, default="")),
                (
                    "created_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="debts_opened",
                    ),
                ),
                (
                    "sale",
                    models.OneToOneField(
                        to="sales.sale",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="debt",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="debts_debt_status_5e1c9a_idx"),
                ],
            },
        ),
    ]
