"""
Amortization Scheduler

Splits an integer principal into a fixed number of installments whose
amounts sum exactly to the principal. Each installment is the remaining
principal divided (truncating) by the installments still to come, so the
final installment absorbs any leftover: 1000 over 3 terms is 333, 333, 334.
"""

from datetime import datetime, timezone, date
from typing import List
import calendar
import uuid

from .loans import ScheduledRepayment, RepaymentStatus
from .exceptions import InvalidArgument


def split_principal(principal: int, terms: int) -> List[int]:
    """
    Split a principal into installment amounts

    Args:
        principal: Amount in minor currency units, must be positive
        terms: Number of installments, must be positive

    Returns:
        List of `terms` amounts summing to `principal`. When the principal
        is smaller than the term count the leading amounts are 0.
    """
    if principal <= 0:
        raise InvalidArgument(f"Principal must be positive, got {principal}")
    if terms <= 0:
        raise InvalidArgument(f"Terms must be positive, got {terms}")

    amounts = []
    remaining = principal
    for i in range(terms):
        amount = remaining // (terms - i)
        remaining -= amount
        amounts.append(amount)

    return amounts


def add_months(start_date: date, months: int) -> date:
    """Add months to a date, handling month-end edge cases"""
    month = start_date.month - 1 + months
    year = start_date.year + month // 12
    month = month % 12 + 1
    day = min(start_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def generate_schedule(
    loan_id: str,
    principal: int,
    terms: int,
    currency_code: str,
    origination_date: date
) -> List[ScheduledRepayment]:
    """
    Build the scheduled repayments for a new loan

    Installment i (0-based) falls due i + 1 calendar months after the
    origination date. Every installment starts fully outstanding.
    """
    amounts = split_principal(principal, terms)
    if principal < terms:
        raise InvalidArgument(
            f"Principal {principal} cannot cover {terms} positive installments"
        )

    now = datetime.now(timezone.utc)
    schedule = []

    for i, amount in enumerate(amounts):
        schedule.append(ScheduledRepayment(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            loan_id=loan_id,
            sequence=i + 1,
            amount=amount,
            outstanding_amount=amount,
            currency_code=currency_code,
            due_date=add_months(origination_date, i + 1),
            status=RepaymentStatus.DUE
        ))

    return schedule
