"""
Repayment Allocator

Applies a received payment to a loan's scheduled repayments in due-date
order. Works on copies: the loan and installments passed in are never
modified, and nothing is produced unless every check passes.

Allocation rules:
- A due installment whose outstanding amount is 0 is reset to its full
  amount before anything else happens.
- When exactly one installment is still due, the payment settles it and
  the loan outright, whatever the amount.
- Otherwise the loan outstanding drops by the payment, the first due
  installment is marked repaid, and any excess over its outstanding amount
  is taken off the next due installment, which becomes partial. The excess
  never reaches a third installment. An excess that exactly clears the next
  installment leaves it partial with nothing outstanding; a larger one is
  rejected.
"""

from datetime import datetime, timezone
from dataclasses import dataclass, replace
from typing import List, Tuple
import uuid

from .loans import (
    Loan, LoanStatus, ScheduledRepayment, RepaymentStatus, ReceivedRepayment
)
from .exceptions import (
    InvalidArgument, CurrencyMismatch, NoOutstandingInstallments,
    StructuralInvariantViolation
)


@dataclass
class AllocationResult:
    """Outcome of allocating one payment"""
    loan: Loan
    scheduled_repayments: List[ScheduledRepayment]  # Full schedule, due-date order
    received_repayment: ReceivedRepayment
    settled: bool                                   # Loan became fully repaid


def validate_schedule(loan: Loan, scheduled_repayments: List[ScheduledRepayment]) -> None:
    """Check installment data against the loan before allocating"""
    if len(scheduled_repayments) != loan.terms:
        raise StructuralInvariantViolation(
            f"Loan {loan.id} has {len(scheduled_repayments)} installments, expected {loan.terms}"
        )

    total = sum(r.amount for r in scheduled_repayments)
    if total != loan.amount:
        raise StructuralInvariantViolation(
            f"Installments of loan {loan.id} sum to {total}, principal is {loan.amount}"
        )

    for repayment in scheduled_repayments:
        if repayment.loan_id != loan.id:
            raise StructuralInvariantViolation(
                f"Installment {repayment.id} belongs to loan {repayment.loan_id}, not {loan.id}"
            )
        if repayment.amount <= 0:
            raise StructuralInvariantViolation(
                f"Installment {repayment.id} has non-positive amount {repayment.amount}"
            )
        if not 0 <= repayment.outstanding_amount <= repayment.amount:
            raise StructuralInvariantViolation(
                f"Installment {repayment.id} outstanding {repayment.outstanding_amount} "
                f"outside [0, {repayment.amount}]"
            )


def partition_repayments(
    scheduled_repayments: List[ScheduledRepayment]
) -> Tuple[List[ScheduledRepayment], List[ScheduledRepayment]]:
    """
    Split installments into (repaid, due), both in due-date order.
    Returns copies; due installments with a zero outstanding amount are
    restored to their full amount.
    """
    repaid = []
    due = []

    for repayment in sorted(scheduled_repayments, key=lambda r: r.sort_key):
        repayment = replace(repayment)
        if repayment.status == RepaymentStatus.DUE and repayment.outstanding_amount == 0:
            repayment.outstanding_amount = repayment.amount

        if repayment.status == RepaymentStatus.REPAID:
            repaid.append(repayment)
        else:
            due.append(repayment)

    return repaid, due


def allocate_repayment(
    loan: Loan,
    scheduled_repayments: List[ScheduledRepayment],
    amount: int,
    currency_code: str,
    received_at: datetime
) -> AllocationResult:
    """
    Allocate a payment against a loan's scheduled repayments

    Args:
        loan: Loan being repaid
        scheduled_repayments: All installments of the loan, in any order
        amount: Payment in minor currency units, must be positive
        currency_code: Payment currency, must equal the loan currency
        received_at: When the payment was received

    Returns:
        AllocationResult with updated copies and the new receipt
    """
    if amount <= 0:
        raise InvalidArgument(f"Repayment amount must be positive, got {amount}")
    if currency_code != loan.currency_code:
        raise CurrencyMismatch(loan.currency_code, currency_code)

    validate_schedule(loan, scheduled_repayments)
    repaid, due = partition_repayments(scheduled_repayments)

    if not due:
        raise NoOutstandingInstallments(loan.id)
    if loan.is_repaid:
        raise StructuralInvariantViolation(
            f"Loan {loan.id} is repaid but has {len(due)} installments still due"
        )

    now = datetime.now(timezone.utc)
    loan = replace(loan, updated_at=now)

    if len(due) == 1:
        # Final payment forces settlement
        final = due[0]
        final.outstanding_amount = 0
        final.status = RepaymentStatus.REPAID
        final.updated_at = now

        loan.outstanding_amount = 0
        loan.status = LoanStatus.REPAID
    else:
        current, following = due[0], due[1]
        if amount > current.outstanding_amount:
            excess = amount - current.outstanding_amount
            if excess > following.outstanding_amount:
                raise InvalidArgument(
                    f"Payment of {amount} exceeds the next two installments of loan {loan.id}"
                )
            following.outstanding_amount -= excess
            following.status = RepaymentStatus.PARTIAL
            following.updated_at = now

        outstanding = loan.outstanding_amount - amount
        if outstanding < 0:
            raise StructuralInvariantViolation(
                f"Payment of {amount} would leave loan {loan.id} outstanding at {outstanding}"
            )

        current.outstanding_amount = 0
        current.status = RepaymentStatus.REPAID
        current.updated_at = now

        loan.outstanding_amount = outstanding

    schedule = sorted(repaid + due, key=lambda r: r.sort_key)
    settled = loan.is_repaid

    received_repayment = ReceivedRepayment(
        id=str(uuid.uuid4()),
        created_at=now,
        loan_id=loan.id,
        amount=amount,
        currency_code=currency_code,
        received_at=received_at
    )

    return AllocationResult(
        loan=loan,
        scheduled_repayments=schedule,
        received_repayment=received_repayment,
        settled=settled
    )
