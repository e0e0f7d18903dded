import logging
import time

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Max

from ..exceptions import SequenceAllocationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_DELAY = 0.05  # seconds


def next_number(model, company, kind):
    """Highest number used so far for (company, kind), plus one."""
    highest = model.objects.filter(company=company, kind=kind).aggregate(
        highest=Max("number")
    )["highest"]
    return (highest or 0) + 1


def allocate_number(model, company, kind, build):
    """
    Save a new sale/purchase under the next free number.

    ``build(number)`` returns an unsaved instance. Each attempt saves inside
    its own savepoint; a uniqueness violation means another request took the
    number first, so the next number is read again after a short pause.
    """
    max_attempts = getattr(
        settings, "TRADE_CORE_SEQUENCE_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS
    )
    delay = getattr(
        settings, "TRADE_CORE_SEQUENCE_RETRY_DELAY", DEFAULT_RETRY_DELAY
    )

    for attempt in range(1, max_attempts + 1):
        number = next_number(model, company, kind)
        instance = build(number)
        instance.number = number
        try:
            with transaction.atomic():
                instance.save()
            return instance
        except IntegrityError:
            logger.warning(
                "%s number %s taken for company=%s (attempt %s/%s)",
                model.__name__,
                number,
                company.pk,
                attempt,
                max_attempts,
            )
            if attempt < max_attempts and delay:
                time.sleep(delay)

    raise SequenceAllocationError(attempts=max_attempts)
