import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from django.forms.models import model_to_dict

from ..models import AuditLog, Company

logger = logging.getLogger(__name__)


def _jsonable(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def snapshot(instance, fields: Optional[Iterable[str]] = None) -> dict:
    """Field values of ``instance`` in a form AuditLog.changes can store."""
    data = model_to_dict(instance, fields=fields)
    return {key: _jsonable(value) for key, value in data.items()}


def log_action(
    *,
    action: str,
    instance,
    user=None,
    company: Optional[Company] = None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Safe to call multiple times (caller ensures idempotency).
    """

    if not company:
        company = getattr(instance, "company", None)

    # AnonymousUser cannot be stored
    if user is not None and not user.is_authenticated:
        user = None

    if changes:
        changes = {key: _jsonable(value) for key, value in changes.items()}

    entry = AuditLog.objects.create(
        company=company,
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
    logger.debug(
        "audit %s %s(%s) company=%s",
        action,
        entry.object_type,
        entry.object_id,
        getattr(company, "pk", None),
    )
    return entry
