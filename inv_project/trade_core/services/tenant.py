import logging

from django.db import transaction

from ..models import (AuditLog, Client, Company, EntityMembership, Payment,
                      Purchase, Sale, StockItem, Supplier, Warehouse)

logger = logging.getLogger(__name__)

# Children before parents: payments hang off sales/purchases, which
# protect their client/supplier from deletion
OWNED_MODELS = (
    ("payments", Payment),
    ("sales", Sale),
    ("purchases", Purchase),
    ("stock_items", StockItem),
    ("clients", Client),
    ("suppliers", Supplier),
    ("warehouses", Warehouse),
    ("audit_logs", AuditLog),
    ("memberships", EntityMembership),
)


def company_data_stats(company):
    """Row counts per owned table; what delete_company_data would remove."""
    return {
        label: model.objects.filter(company=company).count()
        for label, model in OWNED_MODELS
    }


def delete_company_data(company):
    """
    Delete a tenant and everything it owns. All or nothing: any failure
    rolls the whole deletion back. Returns deleted row counts per table.
    """
    stats = {}
    with transaction.atomic():
        company = Company.objects.select_for_update().get(pk=company.pk)
        for label, model in OWNED_MODELS:
            deleted, _ = model.objects.filter(company=company).delete()
            stats[label] = deleted
        company.delete()
    logger.warning("deleted company data %s", stats)
    return stats
