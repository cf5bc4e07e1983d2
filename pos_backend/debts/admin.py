# debts/admin.py

from django.contrib import admin

from debts.models import Debt


@admin.register(Debt)
class DebtAdmin(admin.ModelAdmin):
    list_display = (
        "debtor_name",
        "debtor_phone",
        "sale",
        "original_amount",
        "remaining_amount",
        "status",
        "due_date",
    )
    list_filter = ("status", "due_date")
    search_fields = ("debtor_name", "debtor_phone", "sale__sale_number")

    # Payments and write-offs go through debts.services.debt_tracker.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
