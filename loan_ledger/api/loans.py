"""
Loan endpoints
"""

from datetime import date
from typing import List
from fastapi import APIRouter, HTTPException, Depends, status

from .dependencies import LedgerSystem, get_ledger_system
from .schemas import (
    CreateLoanRequest, RepayLoanRequest, LoanModel, ScheduledRepaymentModel,
    ReceivedRepaymentModel
)
from ..exceptions import (
    LedgerError, LoanNotFound, NoOutstandingInstallments, InvalidArgument,
    CurrencyMismatch
)
from ..logging_config import get_logger


router = APIRouter()
logger = get_logger("loan_ledger.api")


def http_error(exc: LedgerError) -> HTTPException:
    """Translate a ledger failure into an HTTP error"""
    if isinstance(exc, LoanNotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, NoOutstandingInstallments):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, (InvalidArgument, CurrencyMismatch)):
        return HTTPException(status_code=422, detail=str(exc))
    logger.error("Ledger invariant violated: %s", exc)
    return HTTPException(status_code=500, detail=str(exc))


def _load_loan(system: LedgerSystem, loan_id: str):
    loan = system.loan_service.get_loan(loan_id)
    if not loan:
        raise HTTPException(status_code=404, detail="Loan not found")
    return loan


@router.post("", status_code=status.HTTP_201_CREATED, response_model=LoanModel)
def create_loan(
    request: CreateLoanRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Create a loan with its repayment schedule"""
    try:
        loan = system.loan_service.create_loan(
            owner_id=request.owner_id,
            amount=request.amount,
            currency_code=request.currency_code,
            terms=request.terms,
            processed_at=request.processed_at or date.today()
        )
    except LedgerError as e:
        raise http_error(e)
    
    schedule = system.loan_service.get_scheduled_repayments(loan.id)
    return LoanModel.from_loan(loan, schedule)


@router.get("", response_model=List[LoanModel])
def list_owner_loans(
    owner_id: str,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """List the loans of an owner"""
    return [LoanModel.from_loan(loan) for loan in system.loan_service.get_owner_loans(owner_id)]


@router.get("/{loan_id}", response_model=LoanModel)
def get_loan(
    loan_id: str,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get loan details with its schedule"""
    loan = _load_loan(system, loan_id)
    schedule = system.loan_service.get_scheduled_repayments(loan_id)
    return LoanModel.from_loan(loan, schedule)


@router.get("/{loan_id}/schedule", response_model=List[ScheduledRepaymentModel])
def get_loan_schedule(
    loan_id: str,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get loan repayment schedule"""
    _load_loan(system, loan_id)
    return [
        ScheduledRepaymentModel.from_repayment(r)
        for r in system.loan_service.get_scheduled_repayments(loan_id)
    ]


@router.post(
    "/{loan_id}/repayments",
    status_code=status.HTTP_201_CREATED,
    response_model=ReceivedRepaymentModel
)
def repay_loan(
    loan_id: str,
    request: RepayLoanRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Apply a repayment to a loan"""
    try:
        receipt = system.loan_service.repay_loan(
            loan_id=loan_id,
            amount=request.amount,
            currency_code=request.currency_code,
            received_at=request.received_at
        )
    except LedgerError as e:
        raise http_error(e)
    
    return ReceivedRepaymentModel.from_receipt(receipt)


@router.get("/{loan_id}/repayments", response_model=List[ReceivedRepaymentModel])
def get_loan_repayments(
    loan_id: str,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get received repayments of a loan"""
    _load_loan(system, loan_id)
    return [
        ReceivedRepaymentModel.from_receipt(r)
        for r in system.loan_service.get_received_repayments(loan_id)
    ]
