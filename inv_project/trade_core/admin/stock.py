from django.contrib import admin

from trade_core.models import StockItem, Warehouse

from .mixins import TenantAdminMixin


@admin.register(Warehouse)
class WarehouseAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "company", "location", "is_active")
    list_filter = ("company", "is_active")
    search_fields = ("name", "location")


@admin.register(StockItem)
class StockItemAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "name",
        "company",
        "sku",
        "warehouse",
        "quantity",
        "selling_price",
        "low_stock_threshold",
        "is_low_stock",
    )
    list_filter = ("company", "warehouse")
    search_fields = ("name", "sku")

    @admin.display(boolean=True, description="Low stock")
    def is_low_stock(self, obj):
        return obj.is_low_stock
