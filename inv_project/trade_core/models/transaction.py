from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from ..calculations import (as_date, calculate_is_overdue,
                            derive_payment_fields)
from ..managers import TransactionManager
from .entitymembership import Company

KIND_CHOICES = [
    ("order", "Order"),  # created from a sales/purchase order
    ("direct", "Direct"),  # recorded without an order document
]

PAYMENT_TYPE_CHOICES = [
    ("cash", "Cash"),  # settled at creation
    ("credit", "Credit"),  # settled later through payments
]

PAYMENT_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("partial", "Partial"),
    ("paid", "Paid"),
]

PAYMENT_METHODS = [
    ("cash", "Cash"),
    ("card", "Card"),
    ("upi", "UPI"),
    ("bank_transfer", "Bank Transfer"),
    ("cheque", "Cheque"),
]

# Fields rewritten by apply_payment_rules() on every save
DERIVED_FIELDS = ("amount_paid", "amount_due", "payment_status", "is_overdue")


class TransactionRecord(models.Model):
    """
    Shared shape of a sale or a purchase.

    amount_due, payment_status and is_overdue are never set by callers:
    save() derives them from total_amount, amount_paid and due_date.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    kind = models.CharField(
        max_length=10, choices=KIND_CHOICES, default="order")
    # human-readable sequence number, unique per (company, kind)
    number = models.PositiveIntegerField()
    payment_type = models.CharField(
        max_length=10, choices=PAYMENT_TYPE_CHOICES, default="credit"
    )
    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHODS, default="cash"
    )

    date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)

    total_amount = models.DecimalField(max_digits=18, decimal_places=2)
    amount_paid = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Derived fields
    amount_due = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    payment_status = models.CharField(
        max_length=10, choices=PAYMENT_STATUS_CHOICES, default="pending"
    )
    is_overdue = models.BooleanField(default=False)

    last_payment_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping + payment-state filters
    objects = TransactionManager()

    class Meta:
        abstract = True

    # Subclasses name their counterparty
    transaction_type = None
    party_type = None

    @property
    def counterparty(self):
        raise NotImplementedError

    @property
    def is_settled_at_creation(self):
        return self.kind == "direct" and self.payment_type == "cash"

    @property
    def payment_history(self):
        """Payment ids applied to this record, oldest first."""
        if not self.pk:
            return []
        return list(
            self.payments.order_by("payment_date", "pk").values_list(
                "pk", flat=True)
        )

    def is_overdue_at(self, now=None):
        """Overdue flag evaluated now rather than at the last save."""
        return calculate_is_overdue(self.due_date, self.amount_due, as_date(now))

    def apply_payment_rules(self, today=None):
        if self.is_settled_at_creation:
            self.amount_paid = self.total_amount
        derived = derive_payment_fields(
            self.total_amount,
            self.amount_paid,
            self.due_date,
            as_date(today),
        )
        self.amount_due = derived.amount_due
        self.payment_status = derived.payment_status
        self.is_overdue = derived.is_overdue

    def clean(self):
        if self.total_amount is None:
            raise ValidationError("Total amount is required")
        if self.total_amount < 0:
            raise ValidationError("Total amount must be >= 0")
        if self.amount_paid is not None and self.amount_paid < 0:
            raise ValidationError("Amount paid must be >= 0")
        # Counterparty must live in the same tenant
        party = self.counterparty
        if party is not None and party.company_id != self.company_id:
            raise ValidationError(
                f"{party.__class__.__name__} must belong to the same company."
            )

    def save(self, *args, **kwargs):
        self.apply_payment_rules()
        # keep derived columns in sync on partial saves too
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | set(DERIVED_FIELDS)
        # Uniqueness of (company, kind, number) is left to the database so
        # number allocation can retry on IntegrityError
        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)
