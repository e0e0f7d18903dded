import logging
from collections import namedtuple

from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from ..calculations import ZERO, as_date
from ..models import Client, Purchase, Sale, Supplier

logger = logging.getLogger(__name__)

BalanceChange = namedtuple(
    "BalanceChange", ["changed", "before", "after"]
)


def open_balances(queryset, today):
    """
    (Σ amount_due, Σ overdue amount_due) over the unpaid records of
    ``queryset``. Overdue is judged against ``today``, not the stored flag.
    """
    unpaid = queryset.unpaid()
    owed = unpaid.aggregate(total=Coalesce(Sum("amount_due"), ZERO))["total"]
    overdue = unpaid.overdue_at(today).aggregate(
        total=Coalesce(Sum("amount_due"), ZERO)
    )["total"]
    return owed, overdue


def reconcile_client_balance(client, now=None, dry_run=False):
    """
    Recompute current_credit / overdue_amount / credit_status for ``client``
    from its unpaid sales. Idempotent; balance_version only moves when a
    value actually changes.
    """
    today = as_date(now)
    owed, overdue = open_balances(
        Sale.objects.filter(company_id=client.company_id, client=client), today
    )
    before = (client.current_credit, client.overdue_amount, client.credit_status)

    client.current_credit = owed
    client.overdue_amount = overdue
    client.update_credit_status()
    after = (client.current_credit, client.overdue_amount, client.credit_status)
    changed = before != after

    if dry_run:
        return BalanceChange(changed, before, after)

    update_fields = ["last_reconciled_at", "updated_at"]
    if changed:
        client.balance_version += 1
        update_fields += [
            "current_credit",
            "overdue_amount",
            "credit_status",
            "balance_version",
        ]
        logger.info(
            "client %s balance %s -> %s", client.pk, before, after
        )
    client.last_reconciled_at = timezone.now()
    client.save(update_fields=update_fields)
    return BalanceChange(changed, before, after)


def reconcile_supplier_balance(supplier, now=None, dry_run=False):
    """Supplier twin of reconcile_client_balance (no credit status)."""
    today = as_date(now)
    owed, overdue = open_balances(
        Purchase.objects.filter(
            company_id=supplier.company_id, supplier=supplier
        ),
        today,
    )
    before = (supplier.current_payable, supplier.overdue_payable)

    supplier.current_payable = owed
    supplier.overdue_payable = overdue
    after = (owed, overdue)
    changed = before != after

    if dry_run:
        return BalanceChange(changed, before, after)

    update_fields = ["last_reconciled_at", "updated_at"]
    if changed:
        supplier.balance_version += 1
        update_fields += ["current_payable", "overdue_payable", "balance_version"]
        logger.info(
            "supplier %s payable %s -> %s", supplier.pk, before, after
        )
    supplier.last_reconciled_at = timezone.now()
    supplier.save(update_fields=update_fields)
    return BalanceChange(changed, before, after)


def reconcile_company_balances(company, now=None, dry_run=False):
    """
    Full aggregation pass over every client and supplier of a tenant.

    Runs counterparty by counterparty, each in its own transaction, so an
    interrupted run can simply be started again.
    """
    stats = {"clients": 0, "clients_changed": 0,
             "suppliers": 0, "suppliers_changed": 0}

    for client_id in Client.objects.for_company(company).values_list(
        "pk", flat=True
    ):
        with transaction.atomic():
            client = Client.objects.select_for_update().get(pk=client_id)
            result = reconcile_client_balance(client, now=now, dry_run=dry_run)
        stats["clients"] += 1
        stats["clients_changed"] += int(result.changed)

    for supplier_id in Supplier.objects.for_company(company).values_list(
        "pk", flat=True
    ):
        with transaction.atomic():
            supplier = Supplier.objects.select_for_update().get(pk=supplier_id)
            result = reconcile_supplier_balance(
                supplier, now=now, dry_run=dry_run)
        stats["suppliers"] += 1
        stats["suppliers_changed"] += int(result.changed)

    logger.info(
        "reconciled company=%s dry_run=%s %s", company.pk, dry_run, stats)
    return stats


def refresh_overdue_flags(company, now=None):
    """
    Bring the stored is_overdue flag of every sale/purchase in line with
    ``now``. Returns how many rows were flipped.
    """
    today = as_date(now)
    flipped = 0
    for model in (Sale, Purchase):
        records = model.objects.for_company(company)
        overdue_ids = records.overdue_at(today).values("pk")
        flipped += records.filter(pk__in=overdue_ids, is_overdue=False).update(
            is_overdue=True
        )
        flipped += (
            records.filter(is_overdue=True)
            .exclude(pk__in=overdue_ids)
            .update(is_overdue=False)
        )
    logger.info("refreshed overdue flags company=%s flipped=%s",
                company.pk, flipped)
    return flipped
