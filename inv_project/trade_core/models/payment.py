from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from ..managers import TenantManager
from .entitymembership import Company
from .purchase import Purchase
from .sale import Sale
from .transaction import PAYMENT_METHODS

TRANSACTION_TYPE_CHOICES = [
    ("sale", "Sale"),
    ("purchase", "Purchase"),
]

PARTY_TYPE_CHOICES = [
    ("client", "Client"),
    ("supplier", "Supplier"),
]


# ---------- Payment ----------
class Payment(models.Model):
    """
    Money received against one sale or paid against one purchase.
    Exactly one of ``sale`` / ``purchase`` is set.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    transaction_type = models.CharField(
        max_length=10, choices=TRANSACTION_TYPE_CHOICES
    )
    # Deleting the transaction removes its payments with it
    sale = models.ForeignKey(
        Sale,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="payments",
    )
    purchase = models.ForeignKey(
        Purchase,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="payments",
    )
    party_type = models.CharField(max_length=10, choices=PARTY_TYPE_CHOICES)

    amount = models.DecimalField(max_digits=18, decimal_places=2)
    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHODS, default="cash"
    )
    payment_date = models.DateField(default=timezone.localdate)
    reference_number = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ["payment_date", "pk"]
        indexes = [
            models.Index(
                fields=["company", "payment_date"], name="pay_company_date_idx"
            ),
            models.Index(
                fields=["company", "transaction_type"],
                name="pay_company_type_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0), name="payment_amount_positive"
            ),
            # one side only
            models.CheckConstraint(
                condition=(
                    models.Q(sale__isnull=False, purchase__isnull=True)
                    | models.Q(sale__isnull=True, purchase__isnull=False)
                ),
                name="payment_single_target",
            ),
        ]

    def __str__(self):
        return (
            f"{self.payment_date} {self.amount} "
            f"({self.transaction_type} #{self.target_id})"
        )

    @property
    def target(self):
        """The sale or purchase this payment settles."""
        return self.sale if self.sale_id else self.purchase

    @property
    def target_id(self):
        return self.sale_id or self.purchase_id

    def clean(self):
        if self.amount is None or self.amount <= 0:
            raise ValidationError("Payment amount must be greater than 0")
        if bool(self.sale_id) == bool(self.purchase_id):
            raise ValidationError(
                "A payment must reference exactly one sale or purchase."
            )
        # Keep the type columns in step with the target
        target = self.target
        self.transaction_type = target.transaction_type
        self.party_type = target.party_type
        if target.company_id != self.company_id:
            raise ValidationError(
                "Payment target must belong to the same company.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
