import json

from django.contrib import admin
from django.utils.html import format_html

from trade_core.models import AuditLog

from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


@admin.register(AuditLog)
class AuditLogAdmin(TenantAdminMixin, ReadOnlyAdmin):
    """Sale, purchase and payment history as written by the services."""

    list_display = (
        "created_at",
        "company",
        "user",
        "action",
        "object_type",
        "object_id",
    )
    search_fields = ("object_type", "object_id", "user__username")
    date_hierarchy = "created_at"
    exclude = ("changes",)

    def get_list_filter(self, request):
        return super().get_list_filter(request) + ("object_type",)

    def get_readonly_fields(self, request, obj=None):
        fields = super().get_readonly_fields(request, obj)
        return [name for name in fields if name != "changes"] + [
            "pretty_changes"]

    @admin.display(description="Changes")
    def pretty_changes(self, obj):
        if not obj.changes:
            return "-"
        return format_html(
            "<pre>{}</pre>", json.dumps(obj.changes, indent=2, sort_keys=True))

    # audit rows are never removed by hand
    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("company", "user")
