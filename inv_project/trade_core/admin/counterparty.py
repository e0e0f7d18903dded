from django.contrib import admin

from trade_core.models import Client, Supplier

from .actions import reconcile_selected
from .mixins import TenantAdminMixin

# Maintained by the services / reconciliation, never typed in
CLIENT_BALANCE_FIELDS = (
    "total_purchases",
    "total_revenue",
    "sales_count",
    "last_purchase_date",
    "current_credit",
    "overdue_amount",
    "last_payment_date",
    "last_payment_amount",
    "overpaid_amount",
    "last_reconciled_at",
    "balance_version",
)

SUPPLIER_BALANCE_FIELDS = (
    "total_purchases",
    "purchase_count",
    "last_purchase_date",
    "current_payable",
    "overdue_payable",
    "last_payment_date",
    "last_payment_amount",
    "overpaid_amount",
    "last_reconciled_at",
    "balance_version",
)


@admin.register(Client)
class ClientAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "name",
        "company",
        "phone",
        "credit_limit",
        "current_credit",
        "overdue_amount",
        "credit_status",
        "total_revenue",
        "last_reconciled_at",
    )
    list_filter = ("company", "credit_status", "is_active")
    search_fields = ("name", "phone", "email", "gst_number")
    readonly_fields = CLIENT_BALANCE_FIELDS
    actions = [reconcile_selected]


@admin.register(Supplier)
class SupplierAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "name",
        "company",
        "contact_person",
        "phone",
        "current_payable",
        "overdue_payable",
        "total_purchases",
        "last_reconciled_at",
    )
    list_filter = ("company", "is_active")
    search_fields = ("name", "contact_person", "phone", "gst_number")
    readonly_fields = SUPPLIER_BALANCE_FIELDS
    actions = [reconcile_selected]
