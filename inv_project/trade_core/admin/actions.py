from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.db import transaction

from trade_core.models import Client, Company
from trade_core.services import (reconcile_client_balance,
                                 reconcile_company_balances,
                                 reconcile_supplier_balance,
                                 refresh_overdue_flags)

# ---------- Admin actions ----------


@admin.action(description="Reconcile balances")
def reconcile_selected(modeladmin, request, queryset):
    """
    Recompute the balance of each selected client/supplier, or of every
    counterparty of each selected company. One small transaction per row.
    """
    changed = 0
    failures = 0
    for obj in queryset:
        try:
            if isinstance(obj, Company):
                stats = reconcile_company_balances(obj)
                changed += stats["clients_changed"] + stats["suppliers_changed"]
                continue
            with transaction.atomic():
                # re-load & lock the row to avoid race conditions
                locked = type(obj).objects.select_for_update().get(pk=obj.pk)
                if isinstance(locked, Client):
                    result = reconcile_client_balance(locked)
                else:
                    result = reconcile_supplier_balance(locked)
            changed += int(result.changed)
        except ValidationError as exc:
            failures += 1
            modeladmin.message_user(
                request,
                f"Could not reconcile {obj}: {exc}",
                level=messages.ERROR,
            )

    modeladmin.message_user(
        request,
        f"Reconciled {queryset.count()} rows, {changed} balances changed, "
        f"{failures} failed.",
        level=messages.SUCCESS if failures == 0 else messages.WARNING,
    )


@admin.action(description="Refresh overdue flags")
def refresh_overdue_selected(modeladmin, request, queryset):
    """Refresh stored is_overdue flags for the companies behind the rows."""
    if queryset.model is Company:
        companies = list(queryset)
    else:
        company_ids = queryset.values_list("company_id", flat=True).distinct()
        companies = list(Company.objects.filter(pk__in=company_ids))

    flipped = sum(refresh_overdue_flags(company) for company in companies)
    modeladmin.message_user(
        request,
        f"Refreshed overdue flags for {len(companies)} companies "
        f"({flipped} records changed).",
        level=messages.SUCCESS,
    )
