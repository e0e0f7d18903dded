from django.db import models

from .client import Client
from .transaction import TransactionRecord


# ---------- Sale ----------
# Sales order or direct sale to a client (receivable side)
class Sale(TransactionRecord):
    client = models.ForeignKey(
        Client, on_delete=models.PROTECT, related_name="sales"
    )

    # Snapshot of the client at the time of sale
    client_name = models.CharField(max_length=200, blank=True, default="")
    client_phone = models.CharField(max_length=32, blank=True, default="")
    client_email = models.EmailField(blank=True, default="")

    transaction_type = "sale"
    party_type = "client"

    class Meta:
        ordering = ["-date", "-pk"]
        indexes = [
            models.Index(fields=["company", "date"], name="sale_company_date_idx"),
            models.Index(
                fields=["company", "client"], name="sale_company_client_idx"
            ),
            models.Index(
                fields=["company", "payment_status"],
                name="sale_company_status_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "kind", "number"],
                name="uq_sale_company_kind_number",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0)
                & models.Q(amount_paid__gte=0),
                name="sale_non_negative_amounts",
            ),
        ]

    def __str__(self):
        prefix = "SO" if self.kind == "order" else "DS"
        return f"{prefix}-{self.number} ({self.client_name})"

    @property
    def counterparty(self):
        return self.client if self.client_id else None

    def clean(self):
        if self.client_id and not self.client_name:
            self.client_name = self.client.name
        return super().clean()
