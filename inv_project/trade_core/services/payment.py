import logging
from collections import namedtuple

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..calculations import ZERO, clamp_at_zero, round_currency
from ..models import Client, Payment, Purchase, Sale, Supplier
from .audit_helper import log_action
from .balances import reconcile_client_balance, reconcile_supplier_balance

logger = logging.getLogger(__name__)

Allocation = namedtuple("Allocation", ["payments", "applied", "overpaid"])


def _later(current, candidate):
    if current is None or candidate >= current:
        return candidate
    return current


def _lock_target(record):
    """Re-read a sale/purchase with a row lock."""
    return type(record).objects.select_for_update().get(pk=record.pk)


def _lock_counterparty(record):
    """(locked counterparty, reconcile function) for a sale or purchase."""
    if isinstance(record, Sale):
        party = Client.objects.select_for_update().get(pk=record.client_id)
        return party, reconcile_client_balance
    party = Supplier.objects.select_for_update().get(pk=record.supplier_id)
    return party, reconcile_supplier_balance


def _open_records(party):
    if isinstance(party, Client):
        records = Sale.objects.filter(company_id=party.company_id, client=party)
    else:
        records = Purchase.objects.filter(
            company_id=party.company_id, supplier=party)
    return records.unpaid().oldest_first().select_for_update()


def _party_payments(party):
    if isinstance(party, Client):
        return Payment.objects.filter(sale__client=party)
    return Payment.objects.filter(purchase__supplier=party)


def refresh_last_payment(party):
    """Point last_payment_date / _amount at the newest remaining payment."""
    latest = _party_payments(party).order_by("-payment_date", "-pk").first()
    party.last_payment_date = latest.payment_date if latest else None
    party.last_payment_amount = latest.amount if latest else ZERO


def _apply(record, amount, *, payment_method, payment_date, reference_number,
           notes, user):
    """Create the Payment row and move it onto the (locked) record."""
    payment = Payment(
        company_id=record.company_id,
        transaction_type=record.transaction_type,
        party_type=record.party_type,
        amount=amount,
        payment_method=payment_method,
        payment_date=payment_date,
        reference_number=reference_number or "",
        notes=notes or "",
        recorded_by=user if user is not None and user.is_authenticated else None,
    )
    setattr(payment, record.transaction_type, record)
    payment.save()

    record.amount_paid += amount
    record.last_payment_date = _later(record.last_payment_date, payment_date)
    record.save(update_fields=["last_payment_date", "updated_at"])
    return payment


# ----------------------------
# Payment-related workflows
# ----------------------------
def record_payment(
    record,
    amount,
    *,
    payment_method="cash",
    payment_date=None,
    reference_number="",
    notes="",
    user=None,
):
    """
    Apply a payment to one sale or purchase.
    Locks the record and its counterparty during the operation; a payment
    larger than the amount still due is rejected.
    """
    amount = round_currency(amount)
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than 0")
    payment_date = payment_date or timezone.localdate()

    # Everything inside either succeeds as one unit or rolls back
    with transaction.atomic():
        record = _lock_target(record)
        if amount > record.amount_due:
            raise ValidationError(
                f"Payment exceeds amount due ({record.amount_due})")

        party, reconcile = _lock_counterparty(record)
        payment = _apply(
            record,
            amount,
            payment_method=payment_method,
            payment_date=payment_date,
            reference_number=reference_number,
            notes=notes,
            user=user,
        )

        party.last_payment_date = payment_date
        party.last_payment_amount = amount
        party.save(update_fields=[
            "last_payment_date", "last_payment_amount", "updated_at"])
        reconcile(party)

        log_action(
            action="payment",
            instance=payment,
            user=user,
            changes={
                record.transaction_type: record.pk,
                "amount": amount,
                "amount_due": record.amount_due,
                "payment_status": record.payment_status,
            },
        )
        logger.info(
            "payment %s on %s %s amount=%s status=%s",
            payment.pk, record.transaction_type, record.pk, amount,
            record.payment_status,
        )
    return payment


def record_counterparty_payment(
    party,
    amount,
    *,
    payment_method="cash",
    payment_date=None,
    reference_number="",
    notes="",
    user=None,
):
    """
    Spread one payment from/to a client or supplier over its unpaid
    records, oldest first. Whatever is left once everything is settled is
    kept as the counterparty's overpaid_amount.
    """
    amount = round_currency(amount)
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than 0")
    payment_date = payment_date or timezone.localdate()

    with transaction.atomic():
        party = type(party).objects.select_for_update().get(pk=party.pk)
        reconcile = (
            reconcile_client_balance
            if isinstance(party, Client)
            else reconcile_supplier_balance
        )

        remaining = amount
        payments = []
        for record in _open_records(party):
            if remaining <= 0:
                break
            share = min(remaining, record.amount_due)
            if share <= 0:
                continue
            payments.append(
                _apply(
                    record,
                    share,
                    payment_method=payment_method,
                    payment_date=payment_date,
                    reference_number=reference_number,
                    notes=notes,
                    user=user,
                )
            )
            remaining -= share

        party.last_payment_date = payment_date
        party.last_payment_amount = amount
        update_fields = ["last_payment_date", "last_payment_amount",
                         "updated_at"]
        if remaining > 0:
            party.overpaid_amount += remaining
            update_fields.append("overpaid_amount")
        party.save(update_fields=update_fields)
        reconcile(party)

        applied = amount - remaining
        log_action(
            action="payment",
            instance=party,
            user=user,
            changes={
                "amount": amount,
                "applied": applied,
                "overpaid": remaining,
                "payments": [p.pk for p in payments],
            },
        )
        logger.info(
            "%s %s paid %s: applied=%s overpaid=%s over %s records",
            party.__class__.__name__.lower(), party.pk, amount, applied,
            remaining, len(payments),
        )
    return Allocation(payments=payments, applied=applied,
                      overpaid=remaining if remaining > 0 else ZERO)


def delete_payment(payment, user=None):
    """
    Reverse a payment: the record's amount_paid drops by the payment
    (never below zero) and the counterparty is reconciled.
    """
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        record = _lock_target(payment.target)
        party, reconcile = _lock_counterparty(record)
        payment_pk = payment.pk
        amount = payment.amount

        payment.delete()
        payment.pk = payment_pk

        latest = record.payments.order_by("-payment_date", "-pk").first()
        record.amount_paid = clamp_at_zero(record.amount_paid - amount)
        record.last_payment_date = latest.payment_date if latest else None
        record.save(update_fields=["last_payment_date", "updated_at"])

        refresh_last_payment(party)
        party.save(update_fields=[
            "last_payment_date", "last_payment_amount", "updated_at"])
        reconcile(party)

        log_action(
            action="delete",
            instance=payment,
            user=user,
            changes={
                record.transaction_type: record.pk,
                "amount": amount,
                "amount_due": record.amount_due,
                "payment_status": record.payment_status,
            },
        )
        logger.info(
            "payment %s reversed on %s %s", payment_pk,
            record.transaction_type, record.pk)
    return record
