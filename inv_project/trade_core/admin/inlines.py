from django.contrib import admin

from trade_core.models import Payment

# ---------- Inline admin classes ----------


class PaymentInline(admin.TabularInline):
    """Payments applied to a sale/purchase, shown under it. Read only."""

    model = Payment
    extra = 0
    fields = (
        "payment_date",
        "amount",
        "payment_method",
        "reference_number",
        "recorded_by",
    )
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


class SaleInlinePayment(PaymentInline):
    fk_name = "sale"


class PurchaseInlinePayment(PaymentInline):
    fk_name = "purchase"
