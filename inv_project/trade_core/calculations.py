"""
Pure payment-tracking rules shared by sales, purchases and counterparties.

Nothing here touches the database: every function takes plain values and
returns plain values, so the same rules run in model ``save()``, in the
reconciliation pass, and in the dashboard read model.
"""
from collections import namedtuple
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.core.exceptions import ValidationError
from django.utils import timezone

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

PAYMENT_PENDING = "pending"
PAYMENT_PARTIAL = "partial"
PAYMENT_PAID = "paid"

CREDIT_GOOD = "good"
CREDIT_WARNING = "warning"
CREDIT_EXCEEDED = "exceeded"
CREDIT_BLOCKED = "blocked"

DEFAULT_WARNING_RATIO = Decimal("0.80")

DerivedPaymentFields = namedtuple(
    "DerivedPaymentFields", ["amount_due", "payment_status", "is_overdue"]
)


def to_decimal(value) -> Decimal:
    """Coerce ints/strings/Decimals to Decimal; floats go through str()."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_currency(amount) -> Decimal:
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_amount_due(total_amount, amount_paid) -> Decimal:
    # Not clamped: an overpaid record shows a negative amount due
    return round_currency(to_decimal(total_amount) - to_decimal(amount_paid))


def calculate_payment_status(amount_paid, total_amount) -> str:
    paid = to_decimal(amount_paid)
    if paid == 0:
        return PAYMENT_PENDING
    if paid >= to_decimal(total_amount):
        return PAYMENT_PAID
    return PAYMENT_PARTIAL


def calculate_is_overdue(due_date, amount_due, today) -> bool:
    """Overdue from the due date itself onward, while money is owed."""
    if due_date is None or to_decimal(amount_due) <= 0:
        return False
    return today >= due_date


def derive_payment_fields(total_amount, amount_paid, due_date, today):
    """
    Compute (amount_due, payment_status, is_overdue) for one transaction.
    A missing total is a caller error, not something to default.
    """
    if total_amount is None:
        raise ValidationError("total_amount is required")
    if amount_paid is None:
        amount_paid = ZERO
    amount_due = calculate_amount_due(total_amount, amount_paid)
    return DerivedPaymentFields(
        amount_due=amount_due,
        payment_status=calculate_payment_status(amount_paid, total_amount),
        is_overdue=calculate_is_overdue(due_date, amount_due, today),
    )


def classify_credit_status(
    current_credit,
    credit_limit,
    current_status: Optional[str] = None,
    warning_ratio=DEFAULT_WARNING_RATIO,
) -> str:
    # Blocked is set by a person and survives reclassification
    if current_status == CREDIT_BLOCKED:
        return CREDIT_BLOCKED
    limit = to_decimal(credit_limit)
    if limit <= 0:
        return CREDIT_GOOD  # 0 limit means unlimited credit
    ratio = to_decimal(current_credit) / limit
    if ratio >= 1:
        return CREDIT_EXCEEDED
    if ratio >= to_decimal(warning_ratio):
        return CREDIT_WARNING
    return CREDIT_GOOD


def as_date(now=None):
    """``now`` (date or datetime) as a local date; today when omitted."""
    if now is None:
        return timezone.localdate()
    if isinstance(now, datetime):
        return timezone.localdate(now) if timezone.is_aware(now) else now.date()
    return now


def clamp_at_zero(value) -> Decimal:
    value = to_decimal(value)
    return value if value > 0 else ZERO
