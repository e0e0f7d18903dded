import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def reconcile_company_balances_task(company_id, dry_run=False):
    # import lazily to avoid circular imports at module import time
    from .models import Company
    from .services import reconcile_company_balances

    company = Company.objects.get(pk=company_id)
    stats = reconcile_company_balances(company, dry_run=dry_run)
    logger.info("reconcile task company=%s %s", company_id, stats)
    return stats


@shared_task
def refresh_overdue_flags_task(company_id):
    from .models import Company
    from .services import refresh_overdue_flags

    company = Company.objects.get(pk=company_id)
    return refresh_overdue_flags(company)


@shared_task
def reconcile_all_companies_task():
    """Fan out one reconcile task per tenant (periodic repair)."""
    from .models import Company

    company_ids = list(Company.objects.values_list("pk", flat=True))
    for company_id in company_ids:
        reconcile_company_balances_task.delay(company_id)
    return len(company_ids)
