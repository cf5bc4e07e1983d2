# products/migrations/0001_initial.py

from __future__ import annotations

import uuid
from decimal import Decimal

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
            name="Category",
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
                ("name", models.CharField(max_length=255, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "categories",
            },
        ),
        migrations.CreateModel(
            name="Product",
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
                ("name", models.CharField(max_length=255, db_index=True)),
                (
                    "unit",
                    models.CharField(
                        max_length=16,
                        choices=[("piece", "Piece"), ("meter", "Meter"), ("pack", "Pack")],
                        default="piece",
                    ),
                ),
                ("sale_price", models.DecimalField(max_digits=14, decimal_places=2)),
                (
                    "purchase_price",
                    models.DecimalField(
                        max_digits=14, decimal_places=2, default=Decimal("0.00")
                    ),
                ),
                (
                    "stock_quantity",
                    models.DecimalField(
                        max_digits=12,
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Ledger-managed. Equals the latest InventoryTransaction.stock_after.",
                    ),
                ),
                (
                    "opening_stock",
                    models.DecimalField(
                        max_digits=12,
                        decimal_places=2,
                        default=Decimal("0.00"),
                        editable=False,
                        help_text="Stock at creation time; origin for ledger replay.",
                    ),
                ),
                (
                    "min_stock_limit",
                    models.DecimalField(
                        max_digits=12, decimal_places=2, default=Decimal("0.00")
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("deleted_at", models.DateTimeField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "category",
                    models.ForeignKey(
                        to="products.category",
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["name"], name="products_pr_name_1b6c0e_idx"),
                    models.Index(fields=["deleted_at"], name="products_pr_deleted_7f3a21_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryTransaction",
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
                    "type",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("SALE", "Sale"),
                            ("RETURN", "Return"),
                            ("ADJUSTMENT", "Manual Adjustment"),
                            ("RESTOCK", "Restock"),
                        ],
                    ),
                ),
                ("position", models.PositiveIntegerField()),
                (
                    "quantity",
                    models.DecimalField(
                        max_digits=12,
                        decimal_places=2,
                        help_text="Signed delta: negative removes stock, positive adds.",
                    ),
                ),
                ("stock_before", models.DecimalField(max_digits=12, decimal_places=2)),
                ("stock_after", models.DecimalField(max_digits=12, decimal_places=2)),
                (
                    "reference_type",
                    models.CharField(
                        max_length=16,
                        choices=[("SALE", "Sale"), ("RETURN", "Return")],
                        blank=True,
                        default="",
                    ),
                ),
                ("reference_id", models.UUIDField(null=True, blank=True)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "created_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_transactions",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        to="products.product",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="inventory_transactions",
                    ),
                ),
            ],
            options={
                "ordering": ["product", "position"],
                "indexes": [
                    models.Index(fields=["product", "created_at"], name="products_in_product_2e9d4b_idx"),
                    models.Index(fields=["reference_type", "reference_id"], name="products_in_referen_6a0c8f_idx"),
                    models.Index(fields=["type"], name="products_in_type_3b5e7d_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["product", "position"],
                        name="uniq_inventory_tx_product_position",
                    ),
                ],
            },
        ),
    ]
