# audit/admin.py

from django.contrib import admin

from audit.models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("action", "entity", "entity_id", "user", "created_at")
    list_filter = ("action", "entity", "created_at")
    search_fields = ("entity_id",)
    readonly_fields = (
        "user",
        "action",
        "entity",
        "entity_id",
        "before_snapshot",
        "after_snapshot",
        "metadata",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False
