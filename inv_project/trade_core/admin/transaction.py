from django.contrib import admin

from trade_core.models import Payment, Purchase, Sale
from trade_core.services import (delete_payment, delete_purchase, delete_sale,
                                 update_purchase, update_sale)

from .actions import refresh_overdue_selected
from .inlines import PurchaseInlinePayment, SaleInlinePayment
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin

# Only these can be corrected from the admin; everything else is derived
# or set once at creation through the API
EDITABLE = ("total_amount", "due_date", "notes")


class TransactionAdminBase(TenantAdminMixin, admin.ModelAdmin):
    """
    Sales/purchases are created through the API so counters and balances
    stay in step; the admin corrects and deletes them via the same
    services.
    """

    list_filter = ("company", "kind", "payment_type", "payment_status", "date")
    date_hierarchy = "date"
    actions = [refresh_overdue_selected]
    update_service = None
    delete_service = None

    def has_add_permission(self, request):
        return False

    def get_readonly_fields(self, request, obj=None):
        return [
            f.name for f in self.model._meta.fields if f.name not in EDITABLE
        ]

    def save_model(self, request, obj, form, change):
        changed = {name: form.cleaned_data[name]
                   for name in form.changed_data if name in EDITABLE}
        # untouched fields stay out so the service leaves them alone
        type(self).update_service(obj, user=request.user, **changed)

    def delete_model(self, request, obj):
        type(self).delete_service(obj, user=request.user)

    def delete_queryset(self, request, queryset):
        for obj in queryset:
            type(self).delete_service(obj, user=request.user)


# Register `Sale` model
@admin.register(Sale)
class SaleAdmin(TransactionAdminBase):
    list_display = (
        "id",
        "company",
        "kind",
        "number",
        "client",
        "date",
        "due_date",
        "total_amount",
        "amount_paid",
        "amount_due",
        "payment_status",
        "is_overdue",
    )
    search_fields = ("number", "client__name", "client_name")
    inlines = [SaleInlinePayment]
    update_service = staticmethod(update_sale)
    delete_service = staticmethod(delete_sale)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("client", "company")


@admin.register(Purchase)
class PurchaseAdmin(TransactionAdminBase):
    list_display = (
        "id",
        "company",
        "kind",
        "number",
        "supplier",
        "bill_number",
        "date",
        "due_date",
        "total_amount",
        "amount_paid",
        "amount_due",
        "payment_status",
        "is_overdue",
    )
    search_fields = ("number", "bill_number", "supplier__name")
    inlines = [PurchaseInlinePayment]
    update_service = staticmethod(update_purchase)
    delete_service = staticmethod(delete_purchase)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related(
            "supplier", "company")


@admin.register(Payment)
class PaymentAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "company",
        "transaction_type",
        "sale",
        "purchase",
        "amount",
        "payment_method",
        "payment_date",
        "recorded_by",
    )
    search_fields = ("reference_number",)

    # Deleting reverses the payment on its sale/purchase
    def has_delete_permission(self, request, obj=None):
        return True

    def delete_model(self, request, obj):
        delete_payment(obj, user=request.user)

    def delete_queryset(self, request, queryset):
        for payment in queryset:
            delete_payment(payment, user=request.user)
