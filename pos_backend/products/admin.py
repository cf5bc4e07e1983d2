# products/admin.py

from django.contrib import admin

from products.models import Category, InventoryTransaction, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "category",
        "unit",
        "sale_price",
        "purchase_price",
        "stock_quantity",
        "is_active",
        "deleted_at",
    )
    list_filter = ("unit", "is_active", "category")
    search_fields = ("name",)
    # Stock moves only through the inventory ledger.
    readonly_fields = ("stock_quantity", "opening_stock", "created_at", "updated_at")


@admin.register(InventoryTransaction)
class InventoryTransactionAdmin(admin.ModelAdmin):
    list_display = (
        "product",
        "position",
        "type",
        "quantity",
        "stock_before",
        "stock_after",
        "reference_type",
        "created_at",
    )
    list_filter = ("type", "reference_type")
    search_fields = ("product__name", "reference_id")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
