"""
Loan Records Module

Loans, their scheduled repayments (installments) and received repayments
(settlement receipts). All monetary amounts are integers in minor currency
units; currency codes are opaque tags that must match across a loan.
"""

from datetime import datetime, date
from dataclasses import dataclass, asdict
from typing import Any, Dict
from enum import Enum
import re

from .storage import StorageRecord
from .exceptions import InvalidArgument


CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")


class LoanStatus(Enum):
    """Loan lifecycle states"""
    DUE = "due"          # At least one installment left to repay
    REPAID = "repaid"    # Fully repaid, terminal


class RepaymentStatus(Enum):
    """Scheduled repayment states"""
    DUE = "due"
    PARTIAL = "partial"  # Reduced by the excess of an earlier payment
    REPAID = "repaid"


def normalize_currency_code(currency_code: str) -> str:
    """Validate a currency tag and return its canonical upper-case form"""
    code = (currency_code or "").strip().upper()
    if not CURRENCY_CODE_PATTERN.match(code):
        raise InvalidArgument(f"Invalid currency code: {currency_code!r}")
    return code


@dataclass
class Loan(StorageRecord):
    """Loan with its principal, term count and remaining balance"""
    owner_id: str
    amount: int                 # Principal in minor units
    currency_code: str
    terms: int                  # Number of scheduled repayments
    outstanding_amount: int
    processed_at: date          # Origination date, anchors due dates
    status: LoanStatus = LoanStatus.DUE

    @property
    def is_repaid(self) -> bool:
        return self.status == LoanStatus.REPAID

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['status'] = self.status.value
        result['processed_at'] = self.processed_at.isoformat()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Loan':
        data = dict(data)
        data['status'] = LoanStatus(data['status'])
        data['processed_at'] = date.fromisoformat(data['processed_at'])
        return super().from_dict(data)


@dataclass
class ScheduledRepayment(StorageRecord):
    """One installment of a loan's amortization schedule"""
    loan_id: str
    sequence: int               # 1-based position in the schedule
    amount: int
    outstanding_amount: int
    currency_code: str
    due_date: date
    status: RepaymentStatus = RepaymentStatus.DUE

    @property
    def is_repaid(self) -> bool:
        return self.status == RepaymentStatus.REPAID

    @property
    def sort_key(self):
        """Chronological order of installments within a loan"""
        return (self.due_date, self.sequence)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['status'] = self.status.value
        result['due_date'] = self.due_date.isoformat()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScheduledRepayment':
        data = dict(data)
        data['status'] = RepaymentStatus(data['status'])
        data['due_date'] = date.fromisoformat(data['due_date'])
        return super().from_dict(data)


@dataclass(frozen=True)
class ReceivedRepayment:
    """
    Immutable receipt of a payment applied to a loan.
    Append-only: never updated and never linked to installments.
    """
    id: str
    created_at: datetime
    loan_id: str
    amount: int
    currency_code: str
    received_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['created_at'] = self.created_at.isoformat()
        result['received_at'] = self.received_at.isoformat()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReceivedRepayment':
        data = dict(data)
        data['created_at'] = datetime.fromisoformat(data['created_at'])
        data['received_at'] = datetime.fromisoformat(data['received_at'])
        return cls(**data)
