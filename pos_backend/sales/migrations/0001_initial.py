# sales/migrations/0001_initial.py

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
        ("products", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DocumentSequence",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("key", models.CharField(max_length=64, unique=True)),
                ("last_value", models.PositiveIntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name="Sale",
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
                    "sale_number",
                    models.CharField(
                        max_length=64,
                        unique=True,
                        help_text="Sequential per day, e.g. SALE-20250101-0001",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("DRAFT", "Draft"),
                            ("COMPLETED", "Completed"),
                            ("CANCELLED", "Cancelled"),
                            ("RETURNED", "Returned"),
                        ],
                        default="DRAFT",
                    ),
                ),
                (
                    "subtotal",
                    models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00")),
                ),
                (
                    "total_discount",
                    models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00")),
                ),
                (
                    "grand_total",
                    models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00")),
                ),
                (
                    "gross_profit",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Sum of (custom_unit_price - purchase_price) * quantity. Set at completion.",
                    ),
                ),
                (
                    "net_profit",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="gross_profit - total_discount. Set at completion.",
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("completed_at", models.DateTimeField(null=True, blank=True)),
                ("cancelled_at", models.DateTimeField(null=True, blank=True)),
                ("cancellation_reason", models.TextField(blank=True, default="")),
                (
                    "created_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sales",
                        help_text="Cashier who opened the sale",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_at"], name="sales_sale_created_0a4f6e_idx"),
                    models.Index(fields=["status"], name="sales_sale_status_8c2d1b_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SaleItem",
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
                ("position", models.PositiveIntegerField(default=1)),
                ("product_name_snapshot", models.CharField(max_length=255)),
                ("category_snapshot", models.CharField(max_length=255, blank=True, default="")),
                ("unit_snapshot", models.CharField(max_length=16)),
                (
                    "base_unit_price",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        help_text="Catalog sale price at the time of sale.",
                    ),
                ),
                (
                    "custom_unit_price",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        help_text="Price actually charged per unit (may be negotiated).",
                    ),
                ),
                (
                    "purchase_price_snapshot",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        help_text="Unit cost at the time of sale.",
                    ),
                ),
                ("quantity", models.DecimalField(max_digits=12, decimal_places=2)),
                ("base_total", models.DecimalField(max_digits=14, decimal_places=2, editable=False)),
                ("custom_total", models.DecimalField(max_digits=14, decimal_places=2, editable=False)),
                (
                    "discount_amount",
                    models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00")),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "product",
                    models.ForeignKey(
                        to="products.product",
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sale_items",
                    ),
                ),
                (
                    "sale",
                    models.ForeignKey(
                        to="sales.sale",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                    ),
                ),
            ],
            options={
                "ordering": ["position", "created_at"],
                "indexes": [
                    models.Index(fields=["sale", "position"], name="sales_salei_sale_id_3f8a2c_idx"),
                    models.Index(fields=["product", "created_at"], name="sales_salei_product_9d4e1b_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
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
                    "method",
                    models.CharField(
                        max_length=8,
                        choices=[("CASH", "Cash"), ("CARD", "Card"), ("DEBT", "Debt")],
                    ),
                ),
                ("amount", models.DecimalField(max_digits=14, decimal_places=2)),
                ("note", models.CharField(max_length=255, blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "received_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payments_received",
                    ),
                ),
                (
                    "sale",
                    models.ForeignKey(
                        to="sales.sale",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["sale", "created_at"], name="sales_payme_sale_id_7b1d3e_idx"),
                    models.Index(fields=["method"], name="sales_payme_method_2c6f8a_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SaleReturn",
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
                ("return_number", models.CharField(max_length=64, unique=True)),
                (
                    "status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("PENDING", "Pending"),
                            ("APPROVED", "Approved"),
                            ("REJECTED", "Rejected"),
                        ],
                        default="PENDING",
                    ),
                ),
                (
                    "refund_amount",
                    models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00")),
                ),
                ("reason", models.TextField(blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("decided_at", models.DateTimeField(null=True, blank=True)),
                ("decision_note", models.TextField(blank=True, default="")),
                (
                    "debt_credit_amount",
                    models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True),
                ),
                ("debt_credited_at", models.DateTimeField(null=True, blank=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="returns_created",
                    ),
                ),
                (
                    "decided_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="returns_decided",
                    ),
                ),
                (
                    "sale",
                    models.ForeignKey(
                        to="sales.sale",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="returns",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["sale", "status"], name="sales_saler_sale_id_4e2a9f_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReturnItem",
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
                ("quantity", models.DecimalField(max_digits=12, decimal_places=2)),
                ("refund_unit_price", models.DecimalField(max_digits=14, decimal_places=2)),
                ("refund_total", models.DecimalField(max_digits=14, decimal_places=2, editable=False)),
                ("reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "sale_item",
                    models.ForeignKey(
                        to="sales.saleitem",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_items",
                    ),
                ),
                (
                    "sale_return",
                    models.ForeignKey(
                        to="sales.salereturn",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["sale_item"], name="sales_retur_sale_it_8a3c5d_idx"),
                ],
            },
        ),
    ]
