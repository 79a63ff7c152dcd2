"""
Pydantic schemas for API requests and responses
"""

from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from ..loans import Loan, ScheduledRepayment, ReceivedRepayment


class CreateLoanRequest(BaseModel):
    owner_id: str
    amount: int = Field(..., gt=0, description="Principal in minor currency units")
    currency_code: str = Field(..., min_length=3, max_length=3, description="Currency code (USD, EUR, etc.)")
    terms: int = Field(..., gt=0, description="Number of monthly repayments")
    processed_at: Optional[date] = None  # Defaults to today


class RepayLoanRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Payment in minor currency units")
    currency_code: str = Field(..., min_length=3, max_length=3)
    received_at: Optional[datetime] = None  # Defaults to now


class ScheduledRepaymentModel(BaseModel):
    id: str
    sequence: int
    amount: int
    outstanding_amount: int
    currency_code: str
    due_date: date
    status: str
    
    @classmethod
    def from_repayment(cls, repayment: ScheduledRepayment) -> 'ScheduledRepaymentModel':
        return cls(
            id=repayment.id,
            sequence=repayment.sequence,
            amount=repayment.amount,
            outstanding_amount=repayment.outstanding_amount,
            currency_code=repayment.currency_code,
            due_date=repayment.due_date,
            status=repayment.status.value
        )


class LoanModel(BaseModel):
    id: str
    owner_id: str
    amount: int
    currency_code: str
    terms: int
    outstanding_amount: int
    processed_at: date
    status: str
    scheduled_repayments: List[ScheduledRepaymentModel] = []
    
    @classmethod
    def from_loan(
        cls,
        loan: Loan,
        scheduled_repayments: Optional[List[ScheduledRepayment]] = None
    ) -> 'LoanModel':
        return cls(
            id=loan.id,
            owner_id=loan.owner_id,
            amount=loan.amount,
            currency_code=loan.currency_code,
            terms=loan.terms,
            outstanding_amount=loan.outstanding_amount,
            processed_at=loan.processed_at,
            status=loan.status.value,
            scheduled_repayments=[
                ScheduledRepaymentModel.from_repayment(r) for r in scheduled_repayments or []
            ]
        )


class ReceivedRepaymentModel(BaseModel):
    id: str
    loan_id: str
    amount: int
    currency_code: str
    received_at: datetime
    
    @classmethod
    def from_receipt(cls, receipt: ReceivedRepayment) -> 'ReceivedRepaymentModel':
        return cls(
            id=receipt.id,
            loan_id=receipt.loan_id,
            amount=receipt.amount,
            currency_code=receipt.currency_code,
            received_at=receipt.received_at
        )
