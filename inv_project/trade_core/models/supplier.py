from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


class Supplier(models.Model):  # Mirrors Client but for the payables side

    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=200, blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")
    gst_number = models.CharField(max_length=32, blank=True, default="")
    pan_number = models.CharField(max_length=32, blank=True, default="")
    payment_terms = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    # Lifetime counters
    total_purchases = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    purchase_count = models.PositiveIntegerField(default=0)
    last_purchase_date = models.DateField(null=True, blank=True)

    # Payable tracking
    current_payable = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    overdue_payable = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    last_payment_date = models.DateField(null=True, blank=True)
    last_payment_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    overpaid_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    last_reconciled_at = models.DateTimeField(null=True, blank=True)
    balance_version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(
                fields=["company", "is_active"], name="supp_company_active_idx"
            ),
        ]
        # Supplier names must be unique per company
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_supplier_name"
            ),
            models.CheckConstraint(
                condition=models.Q(current_payable__gte=0)
                & models.Q(overdue_payable__gte=0),
                name="supplier_non_negative_payable",
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def last_purchase(self):
        return self.last_purchase_date

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError("Supplier name is required")
        self.email = (self.email or "").strip().lower()
        self.gst_number = (self.gst_number or "").strip().upper()
        self.pan_number = (self.pan_number or "").strip().upper()
        return super().clean()

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
