from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from ..calculations import (DEFAULT_WARNING_RATIO, classify_credit_status,
                            to_decimal)
from ..managers import TenantManager
from .entitymembership import Company

CREDIT_STATUS_CHOICES = [
    ("good", "Good"),
    ("warning", "Warning"),  # at or above the warning ratio of the limit
    ("exceeded", "Exceeded"),  # at or above the limit
    ("blocked", "Blocked"),  # set manually, never reclassified
]


# ---------- Client ----------
# Buyer we sell to (receivables side)
class Client(models.Model):
    # Multi-tenant: every client belongs to a single company
    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=32, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")
    gst_number = models.CharField(max_length=32, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    # Fixed at creation; only added on top of current_credit in
    # dashboard totals, never written back into it
    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    # Lifetime counters, incremented on sale creation and
    # decremented (clamped at 0) on sale deletion
    # what the client has bought from us, in money
    total_purchases = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    total_revenue = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    sales_count = models.PositiveIntegerField(default=0)
    last_purchase_date = models.DateField(null=True, blank=True)

    # Credit tracking
    """ credit_limit = 0 means unlimited credit for this client """
    credit_limit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    current_credit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    overdue_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    credit_status = models.CharField(
        max_length=10, choices=CREDIT_STATUS_CHOICES, default="good"
    )
    last_payment_date = models.DateField(null=True, blank=True)
    last_payment_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Money received beyond what the client owed
    overpaid_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    # Staleness markers for the cached balance fields above
    last_reconciled_at = models.DateTimeField(null=True, blank=True)
    balance_version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(
                fields=["company", "is_active"], name="client_company_active_idx"
            ),
            models.Index(
                fields=["company", "total_revenue"], name="client_company_revenue_idx"
            ),
        ]
        # Enforce uniqueness per tenant
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_client_name"
            ),
            models.CheckConstraint(
                condition=models.Q(credit_limit__gte=0)
                & models.Q(current_credit__gte=0)
                & models.Q(overdue_amount__gte=0),
                name="client_non_negative_credit",
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def available_credit(self):
        """None when the client has unlimited credit."""
        if self.credit_limit <= 0:
            return None
        return self.credit_limit - self.current_credit

    def update_credit_status(self):
        ratio = getattr(
            settings, "TRADE_CORE_CREDIT_WARNING_RATIO", DEFAULT_WARNING_RATIO
        )
        self.credit_status = classify_credit_status(
            self.current_credit,
            self.credit_limit,
            current_status=self.credit_status,
            warning_ratio=to_decimal(ratio),
        )
        return self.credit_status

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError("Client name is required")
        self.email = (self.email or "").strip().lower()
        self.gst_number = (self.gst_number or "").strip().upper()
        if self.credit_limit is not None and self.credit_limit < 0:
            raise ValidationError("Credit limit must be >= 0")
        return super().clean()

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
