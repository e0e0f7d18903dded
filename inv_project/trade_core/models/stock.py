from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


# ---------- Warehouse ----------
class Warehouse(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    location = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_warehouse_name"
            ),
        ]

    def __str__(self):
        return self.name


# ---------- Stock items ----------
class StockItem(models.Model):  # Something a company keeps on hand and sells

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    # Item stays when its warehouse is removed
    warehouse = models.ForeignKey(
        Warehouse,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="items",
    )

    name = models.CharField(max_length=200)
    # Stock Keeping Unit (optional code, unique per company when given)
    sku = models.CharField(max_length=80, null=True, blank=True)
    unit = models.CharField(max_length=20, blank=True, default="pcs")

    quantity = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0")
    )
    cost_price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    selling_price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Item counts as low stock once quantity drops to this level
    low_stock_threshold = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("10")
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "name"], name="stock_company_name_idx")
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "sku"], name="uq_company_stockitem_sku"
            )
        ]

    def __str__(self):
        return self.name

    @property
    def is_low_stock(self):
        return self.quantity <= self.low_stock_threshold

    @property
    def stock_value(self):
        return self.quantity * self.selling_price

    def clean(self):
        if self.warehouse_id and self.warehouse.company_id != self.company_id:
            raise ValidationError(
                "Warehouse must belong to the same company as the item."
            )
        if self.selling_price is not None and self.selling_price < 0:
            raise ValidationError("Selling price must be >= 0")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
