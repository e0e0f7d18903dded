from django.contrib import admin
from django.core.exceptions import PermissionDenied

"""Base admin for append-only rows (audit trail, payments)."""


class ReadOnlyAdmin(admin.ModelAdmin):
    list_per_page = 50

    # make every model field readonly
    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    # Viewing the change form is allowed; edits are blocked below
    def has_change_permission(self, request, obj=None):
        return True

    def save_model(self, request, obj, form, change):
        raise PermissionDenied("Rows cannot be changed via the admin.")

    # Common useful filters if present
    def get_list_filter(self, request):
        possible = {f.name for f in self.model._meta.fields}
        return tuple(
            candidate
            for candidate in ("company", "action", "transaction_type",
                              "payment_method", "created_at")
            if candidate in possible
        )
