"""Rollups consumed by report/export renderers. Nothing here writes."""
from collections import OrderedDict

from django.db.models import Count, Sum
from django.db.models.functions import Coalesce

from ..calculations import ZERO, as_date
from ..models import Client, Sale, Purchase

STATUSES = ("pending", "partial", "paid")


def summarize_transactions(queryset):
    """
    count / totals over ``queryset`` plus a {count, amount, amount_due}
    rollup per payment status.
    """
    totals = queryset.aggregate(
        count=Count("pk"),
        total_amount=Coalesce(Sum("total_amount"), ZERO),
        amount_paid=Coalesce(Sum("amount_paid"), ZERO),
        amount_due=Coalesce(Sum("amount_due"), ZERO),
    )
    by_status = OrderedDict(
        (status, {"count": 0, "amount": ZERO, "amount_due": ZERO})
        for status in STATUSES
    )
    rows = (
        queryset.order_by()
        .values("payment_status")
        .annotate(
            count=Count("pk"),
            amount=Coalesce(Sum("total_amount"), ZERO),
            amount_due=Coalesce(Sum("amount_due"), ZERO),
        )
    )
    for row in rows:
        by_status[row["payment_status"]] = {
            "count": row["count"],
            "amount": row["amount"],
            "amount_due": row["amount_due"],
        }
    totals["by_status"] = by_status
    return totals


def counterparty_statement(party, now=None):
    """
    Unpaid records of a client or supplier, oldest first, each with the
    running balance owed after it (starting from the opening balance).
    """
    today = as_date(now)
    if isinstance(party, Client):
        records = Sale.objects.filter(company_id=party.company_id, client=party)
    else:
        records = Purchase.objects.filter(
            company_id=party.company_id, supplier=party)

    balance = party.opening_balance
    lines = []
    for record in records.unpaid().oldest_first():
        balance += record.amount_due
        lines.append({
            "id": record.pk,
            "kind": record.kind,
            "number": record.number,
            "date": record.date,
            "due_date": record.due_date,
            "total_amount": record.total_amount,
            "amount_paid": record.amount_paid,
            "amount_due": record.amount_due,
            "payment_status": record.payment_status,
            "is_overdue": record.is_overdue_at(today),
            "running_balance": balance,
        })

    return {
        "party_type": "client" if isinstance(party, Client) else "supplier",
        "party_id": party.pk,
        "name": party.name,
        "opening_balance": party.opening_balance,
        "lines": lines,
        "closing_balance": balance,
    }
