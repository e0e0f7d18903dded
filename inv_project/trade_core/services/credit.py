from collections import namedtuple

from ..calculations import CREDIT_BLOCKED, ZERO, to_decimal

CreditCheck = namedtuple("CreditCheck", ["allowed", "reason", "available"])


def can_extend_credit(client, proposed_amount) -> CreditCheck:
    """
    Would ``proposed_amount`` of new credit keep ``client`` within its limit?

    Reads the stored ``current_credit``, so the answer is only as fresh as
    the client's last reconciliation. Nothing is written.
    """
    amount = to_decimal(proposed_amount)
    if amount < 0:
        return CreditCheck(False, "Proposed amount must be >= 0", None)

    limit = to_decimal(client.credit_limit)
    if limit == 0:
        return CreditCheck(True, None, None)  # unlimited

    if client.credit_status == CREDIT_BLOCKED:
        return CreditCheck(False, "Credit is blocked for this client", ZERO)

    current = to_decimal(client.current_credit)
    available = limit - current
    if current + amount <= limit:
        return CreditCheck(True, None, available)

    return CreditCheck(
        False,
        f"Credit limit exceeded. Available credit: {available}",
        available,
    )
