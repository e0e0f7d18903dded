"""
Sale / purchase workflows.

Every function here is one unit of work: the transaction row, the lifetime
counters of its counterparty and the counterparty's reconciled balance are
written together or not at all.
"""
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..calculations import clamp_at_zero, round_currency, to_decimal
from ..exceptions import CreditLimitExceeded
from ..models import Client, Purchase, Sale, Supplier
from .audit_helper import log_action, snapshot
from .balances import reconcile_client_balance, reconcile_supplier_balance
from .credit import can_extend_credit
from .numbering import allocate_number
from .payment import refresh_last_payment

logger = logging.getLogger(__name__)

# Default for correction fields the caller did not send; None clears them.
UNSET = object()

AUDITED_FIELDS = [
    "kind",
    "number",
    "payment_type",
    "total_amount",
    "amount_paid",
    "amount_due",
    "payment_status",
    "due_date",
]


def _validate_amounts(total_amount, amount_paid):
    if total_amount is None:
        raise ValidationError("Total amount is required")
    total = round_currency(total_amount)
    paid = round_currency(amount_paid or 0)
    if total < 0:
        raise ValidationError("Total amount must be >= 0")
    if paid < 0:
        raise ValidationError("Amount paid must be >= 0")
    if paid > total:
        raise ValidationError("Amount paid cannot exceed total amount")
    return total, paid


def _later(current, candidate):
    if current is None or candidate >= current:
        return candidate
    return current


# ----------------------------
# Counterparty lookup
# ----------------------------
def _resolve_client(company, *, client, name, phone, email, total, date):
    """
    Locked client for a new sale; created and seeded from the sale when no
    client of that name exists yet. Returns (client, created).
    """
    if client is not None:
        if client.company_id != company.pk:
            raise ValidationError("Client must belong to the same company.")
        return Client.objects.select_for_update().get(pk=client.pk), False

    name = (name or "").strip()
    if not name:
        raise ValidationError("Client name is required")

    existing = (
        Client.objects.for_company(company)
        .select_for_update()
        .filter(name=name)
        .first()
    )
    if existing is not None:
        return existing, False

    created = Client(
        company=company,
        name=name,
        phone=phone or "",
        email=email or "",
        total_purchases=total,
        total_revenue=total,
        sales_count=1,
        last_purchase_date=date,
    )
    created.save()
    return created, True


def _resolve_supplier(company, *, supplier, name, phone, email, total, date):
    if supplier is not None:
        if supplier.company_id != company.pk:
            raise ValidationError("Supplier must belong to the same company.")
        return Supplier.objects.select_for_update().get(pk=supplier.pk), False

    name = (name or "").strip()
    if not name:
        raise ValidationError("Supplier name is required")

    existing = (
        Supplier.objects.for_company(company)
        .select_for_update()
        .filter(name=name)
        .first()
    )
    if existing is not None:
        return existing, False

    created = Supplier(
        company=company,
        name=name,
        phone=phone or "",
        email=email or "",
        total_purchases=total,
        purchase_count=1,
        last_purchase_date=date,
    )
    created.save()
    return created, True


# ----------------------------
# Sales
# ----------------------------
def create_sale(
    company,
    *,
    total_amount,
    client=None,
    client_name=None,
    client_phone="",
    client_email="",
    kind="order",
    payment_type="credit",
    payment_method="cash",
    amount_paid=Decimal("0.00"),
    date=None,
    due_date=None,
    notes="",
    user=None,
    check_credit=True,
):
    """
    Record a sale, update the client's lifetime counters and reconcile the
    client's balance. Credit sales are checked against the client's credit
    limit first and rejected with CreditLimitExceeded.
    """
    total, paid = _validate_amounts(total_amount, amount_paid)
    if payment_type == "cash":
        paid = total  # cash sales are settled on the spot
    date = date or timezone.localdate()

    with transaction.atomic():
        client, created = _resolve_client(
            company,
            client=client,
            name=client_name,
            phone=client_phone,
            email=client_email,
            total=total,
            date=date,
        )

        if check_credit and payment_type == "credit":
            check = can_extend_credit(client, total - paid)
            if not check.allowed:
                logger.info(
                    "credit refused client=%s amount=%s available=%s",
                    client.pk, total - paid, check.available,
                )
                raise CreditLimitExceeded(check)

        def build(number):
            return Sale(
                company=company,
                client=client,
                client_name=client.name,
                client_phone=client_phone or client.phone,
                client_email=client_email or client.email,
                kind=kind,
                number=number,
                payment_type=payment_type,
                payment_method=payment_method,
                total_amount=total,
                amount_paid=paid,
                date=date,
                due_date=due_date,
                notes=notes or "",
                created_by=user,
            )

        sale = allocate_number(Sale, company, kind, build)

        if not created:
            client.total_purchases += total
            client.total_revenue += total
            client.sales_count += 1
            client.last_purchase_date = _later(client.last_purchase_date, date)
            # Backfill contact details, never overwrite them
            if client_phone and not client.phone:
                client.phone = client_phone
            if client_email and not client.email:
                client.email = client_email
            client.save()

        reconcile_client_balance(client)

        log_action(
            action="create",
            instance=sale,
            user=user,
            changes=snapshot(sale, AUDITED_FIELDS),
        )
        logger.info(
            "sale %s created company=%s client=%s total=%s",
            sale, company.pk, client.pk, total,
        )
    return sale


def update_sale(sale, *, total_amount=None, due_date=UNSET, notes=UNSET,
                user=None, check_credit=True):
    """
    Correct a sale's total / due date / notes; counters move by the
    difference. Raising a credit sale's total goes through the same credit
    check as a new sale.
    """
    with transaction.atomic():
        sale = Sale.objects.select_for_update().get(pk=sale.pk)
        client = Client.objects.select_for_update().get(pk=sale.client_id)
        before = snapshot(sale, AUDITED_FIELDS)

        if total_amount is not None:
            total = round_currency(total_amount)
            if total < 0:
                raise ValidationError("Total amount must be >= 0")
            if total < sale.amount_paid and not sale.is_settled_at_creation:
                raise ValidationError(
                    "Total amount cannot be less than the amount already paid"
                )
            delta = total - sale.total_amount
            if check_credit and delta > 0 and sale.payment_type == "credit":
                check = can_extend_credit(client, delta)
                if not check.allowed:
                    logger.info(
                        "credit refused client=%s sale=%s increase=%s "
                        "available=%s",
                        client.pk, sale.pk, delta, check.available,
                    )
                    raise CreditLimitExceeded(check)
            sale.total_amount = total
            client.total_purchases = clamp_at_zero(
                client.total_purchases + delta)
            client.total_revenue = clamp_at_zero(client.total_revenue + delta)
            client.save()
        if due_date is not UNSET:
            sale.due_date = due_date
        if notes is not UNSET:
            sale.notes = notes or ""
        sale.save()

        reconcile_client_balance(client)
        log_action(
            action="update",
            instance=sale,
            user=user,
            changes={"before": before,
                     "after": snapshot(sale, AUDITED_FIELDS)},
        )
    return sale


def delete_sale(sale, user=None):
    """
    Delete a sale with its payments. Client counters are rolled back,
    clamped at zero, the client's last payment is re-read from what is left
    and the balance is reconciled.
    """
    with transaction.atomic():
        sale = Sale.objects.select_for_update().get(pk=sale.pk)
        client = Client.objects.select_for_update().get(pk=sale.client_id)
        total = to_decimal(sale.total_amount)
        before = snapshot(sale, AUDITED_FIELDS)
        sale_pk = sale.pk

        client.total_purchases = clamp_at_zero(client.total_purchases - total)
        client.total_revenue = clamp_at_zero(client.total_revenue - total)
        client.sales_count = max(0, client.sales_count - 1)

        sale.delete()
        sale.pk = sale_pk  # keep the id for the audit entry
        refresh_last_payment(client)
        client.save()
        reconcile_client_balance(client)

        log_action(action="delete", instance=sale, user=user, changes=before)
        logger.info("sale %s deleted company=%s", sale_pk, client.company_id)
    return client


# ----------------------------
# Purchases
# ----------------------------
def create_purchase(
    company,
    *,
    total_amount,
    supplier=None,
    supplier_name=None,
    supplier_phone="",
    supplier_email="",
    bill_number="",
    kind="order",
    payment_type="credit",
    payment_method="cash",
    amount_paid=Decimal("0.00"),
    date=None,
    due_date=None,
    notes="",
    user=None,
):
    """Record a purchase and fold it into the supplier's payable."""
    total, paid = _validate_amounts(total_amount, amount_paid)
    if payment_type == "cash":
        paid = total
    date = date or timezone.localdate()

    with transaction.atomic():
        supplier, created = _resolve_supplier(
            company,
            supplier=supplier,
            name=supplier_name,
            phone=supplier_phone,
            email=supplier_email,
            total=total,
            date=date,
        )

        def build(number):
            return Purchase(
                company=company,
                supplier=supplier,
                supplier_name=supplier.name,
                bill_number=bill_number or "",
                kind=kind,
                number=number,
                payment_type=payment_type,
                payment_method=payment_method,
                total_amount=total,
                amount_paid=paid,
                date=date,
                due_date=due_date,
                notes=notes or "",
                created_by=user,
            )

        purchase = allocate_number(Purchase, company, kind, build)

        if not created:
            supplier.total_purchases += total
            supplier.purchase_count += 1
            supplier.last_purchase_date = _later(
                supplier.last_purchase_date, date)
            if supplier_phone and not supplier.phone:
                supplier.phone = supplier_phone
            if supplier_email and not supplier.email:
                supplier.email = supplier_email
            supplier.save()

        reconcile_supplier_balance(supplier)

        log_action(
            action="create",
            instance=purchase,
            user=user,
            changes=snapshot(purchase, AUDITED_FIELDS),
        )
        logger.info(
            "purchase %s created company=%s supplier=%s total=%s",
            purchase, company.pk, supplier.pk, total,
        )
    return purchase


def update_purchase(purchase, *, total_amount=None, due_date=UNSET,
                    notes=UNSET, user=None):
    with transaction.atomic():
        purchase = Purchase.objects.select_for_update().get(pk=purchase.pk)
        supplier = Supplier.objects.select_for_update().get(
            pk=purchase.supplier_id)
        before = snapshot(purchase, AUDITED_FIELDS)

        if total_amount is not None:
            total = round_currency(total_amount)
            if total < 0:
                raise ValidationError("Total amount must be >= 0")
            if (total < purchase.amount_paid
                    and not purchase.is_settled_at_creation):
                raise ValidationError(
                    "Total amount cannot be less than the amount already paid"
                )
            delta = total - purchase.total_amount
            purchase.total_amount = total
            supplier.total_purchases = clamp_at_zero(
                supplier.total_purchases + delta)
            supplier.save()
        if due_date is not UNSET:
            purchase.due_date = due_date
        if notes is not UNSET:
            purchase.notes = notes or ""
        purchase.save()

        reconcile_supplier_balance(supplier)
        log_action(
            action="update",
            instance=purchase,
            user=user,
            changes={"before": before,
                     "after": snapshot(purchase, AUDITED_FIELDS)},
        )
    return purchase


def delete_purchase(purchase, user=None):
    with transaction.atomic():
        purchase = Purchase.objects.select_for_update().get(pk=purchase.pk)
        supplier = Supplier.objects.select_for_update().get(
            pk=purchase.supplier_id)
        total = to_decimal(purchase.total_amount)
        before = snapshot(purchase, AUDITED_FIELDS)
        purchase_pk = purchase.pk

        supplier.total_purchases = clamp_at_zero(
            supplier.total_purchases - total)
        supplier.purchase_count = max(0, supplier.purchase_count - 1)

        purchase.delete()
        purchase.pk = purchase_pk
        refresh_last_payment(supplier)
        supplier.save()
        reconcile_supplier_balance(supplier)

        log_action(
            action="delete", instance=purchase, user=user, changes=before)
        logger.info(
            "purchase %s deleted company=%s", purchase_pk, supplier.company_id)
    return supplier
