# sales/admin.py

from django.contrib import admin

from sales.models import Payment, ReturnItem, Sale, SaleItem, SaleReturn


# ======================================================
# SALE ADMIN
# ======================================================


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    can_delete = False
    fields = (
        "position",
        "product_name_snapshot",
        "quantity",
        "base_unit_price",
        "custom_unit_price",
        "discount_amount",
        "custom_total",
    )
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    fields = ("method", "amount", "debt", "received_by", "created_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = (
        "sale_number",
        "status",
        "grand_total",
        "net_profit",
        "created_by",
        "created_at",
    )
    list_filter = ("status", "created_at")
    search_fields = ("sale_number",)
    inlines = [SaleItemInline, PaymentInline]

    # State changes go through sales.services; admin is read-only.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ======================================================
# RETURN ADMIN
# ======================================================


class ReturnItemInline(admin.TabularInline):
    model = ReturnItem
    extra = 0
    can_delete = False
    fields = ("sale_item", "quantity", "refund_unit_price", "refund_total", "reason")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(SaleReturn)
class SaleReturnAdmin(admin.ModelAdmin):
    list_display = (
        "return_number",
        "sale",
        "status",
        "refund_amount",
        "debt_credit_amount",
        "created_at",
    )
    list_filter = ("status", "created_at")
    search_fields = ("return_number", "sale__sale_number")
    inlines = [ReturnItemInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
