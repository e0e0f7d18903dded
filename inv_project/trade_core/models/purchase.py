from django.db import models

from .supplier import Supplier
from .transaction import TransactionRecord


# ---------- Purchase ----------
# Purchase order or direct purchase from a supplier (payable side)
class Purchase(TransactionRecord):
    supplier = models.ForeignKey(
        Supplier, on_delete=models.PROTECT, related_name="purchases"
    )
    supplier_name = models.CharField(max_length=200, blank=True, default="")
    # Supplier's own bill / invoice reference
    bill_number = models.CharField(max_length=64, blank=True, default="")

    transaction_type = "purchase"
    party_type = "supplier"

    class Meta:
        ordering = ["-date", "-pk"]
        indexes = [
            models.Index(fields=["company", "date"], name="purch_company_date_idx"),
            models.Index(
                fields=["company", "supplier"], name="purch_company_supplier_idx"
            ),
            models.Index(
                fields=["company", "payment_status"],
                name="purch_company_status_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "kind", "number"],
                name="uq_purchase_company_kind_number",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0)
                & models.Q(amount_paid__gte=0),
                name="purchase_non_negative_amounts",
            ),
        ]

    def __str__(self):
        prefix = "PO" if self.kind == "order" else "DP"
        return f"{prefix}-{self.number} ({self.supplier_name})"

    @property
    def counterparty(self):
        return self.supplier if self.supplier_id else None

    def clean(self):
        if self.supplier_id and not self.supplier_name:
            self.supplier_name = self.supplier.name
        return super().clean()
