# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .category import Category


class ProductQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def sellable(self):
        return self.alive().filter(is_active=True)


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - stock_quantity is a denormalized cache of the inventory ledger
    - ONLY products.services.stock_ledger writes it (queryset update)
    - save() never writes it on an existing row and refuses a changed value
    - opening_stock is captured once at creation and is the replay origin
    """

    class Unit(models.TextChoices):
        PIECE = "piece", "Piece"
        METER = "meter", "Meter"
        PACK = "pack", "Pack"

    _LEDGER_MANAGED_FIELDS = ("stock_quantity", "opening_stock")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    name = models.CharField(max_length=255, db_index=True)
    unit = models.CharField(max_length=16, choices=Unit.choices, default=Unit.PIECE)

    sale_price = models.DecimalField(max_digits=14, decimal_places=2)
    purchase_price = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    stock_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Ledger-managed. Equals the latest InventoryTransaction.stock_after.",
    )
    opening_stock = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
        help_text="Stock at creation time; origin for ledger replay.",
    )
    min_stock_limit = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    is_active = models.BooleanField(default=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["name"], name="products_pr_name_1b6c0e_idx"),
            models.Index(fields=["deleted_at"], name="products_pr_deleted_7f3a21_idx"),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        if self.sale_price is None or Decimal(self.sale_price) < 0:
            raise ValidationError("sale_price cannot be negative")

        if self.purchase_price is None or Decimal(self.purchase_price) < 0:
            raise ValidationError("purchase_price cannot be negative")

        if self.stock_quantity is not None and Decimal(self.stock_quantity) < 0:
            raise ValidationError("stock_quantity cannot be negative")

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._remember_ledger_values()
        return instance

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self._remember_ledger_values()

    def _remember_ledger_values(self):
        # Values as last read from / written to the database.
        self._loaded_ledger_values = {
            f: self.__dict__[f] for f in self._LEDGER_MANAGED_FIELDS if f in self.__dict__
        }

    def _writable_fields(self, update_fields):
        """
        Columns an update may write. Ledger-managed columns are never among
        them, so a stale in-memory copy cannot overwrite stock moved by a
        concurrent ledger write.
        """
        if update_fields is not None:
            named = set(update_fields)
            touched = named.intersection(self._LEDGER_MANAGED_FIELDS)
            if touched:
                raise ValidationError(
                    f"Product.{sorted(touched)[0]} is managed by the stock ledger "
                    "and cannot be set directly"
                )
            return update_fields

        loaded = getattr(self, "_loaded_ledger_values", {})
        for field, value in loaded.items():
            if Decimal(str(getattr(self, field))) != Decimal(str(value)):
                raise ValidationError(
                    f"Product.{field} is managed by the stock ledger and cannot be set directly"
                )

        deferred = self.get_deferred_fields()
        return [
            f.name
            for f in self._meta.concrete_fields
            if not f.primary_key
            and f.name not in self._LEDGER_MANAGED_FIELDS
            and f.attname not in deferred
        ]

    def save(self, *args, **kwargs):
        if self._state.adding:
            self.opening_stock = self.stock_quantity
        else:
            kwargs["update_fields"] = self._writable_fields(kwargs.get("update_fields"))

        super().save(*args, **kwargs)
        self._remember_ledger_values()

    def soft_delete(self):
        self.deleted_at = timezone.now()
        self.is_active = False
        self.save(update_fields=["deleted_at", "is_active", "updated_at"])

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_low_stock(self) -> bool:
        return Decimal(self.stock_quantity) <= Decimal(self.min_stock_limit or 0)
