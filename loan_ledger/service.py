"""
Loan Service Module

Creates loans with their amortization schedules and applies received
repayments. Each operation reads, mutates and writes inside a single
storage transaction, so a failure leaves no partial state behind.
"""

from datetime import datetime, timezone, date
from typing import List, Optional
import uuid

from .storage import StorageInterface
from .audit import AuditTrail, AuditEventType
from .loans import (
    Loan, LoanStatus, ScheduledRepayment, ReceivedRepayment, normalize_currency_code
)
from .amortization import generate_schedule
from .allocation import allocate_repayment
from .exceptions import LoanNotFound, StructuralInvariantViolation
from .logging_config import get_logger, log_action


class LoanService:
    """
    Manages loan creation and repayment
    """

    def __init__(self, storage: StorageInterface, audit_trail: Optional[AuditTrail] = None):
        self.storage = storage
        self.audit_trail = audit_trail
        self.logger = get_logger("loan_ledger.service")

        self.loans_table = "loans"
        self.scheduled_table = "scheduled_repayments"
        self.received_table = "received_repayments"

    def create_loan(
        self,
        owner_id: str,
        amount: int,
        currency_code: str,
        terms: int,
        processed_at: date
    ) -> Loan:
        """
        Create a loan and its scheduled repayments

        Args:
            owner_id: Borrower reference
            amount: Principal in minor currency units
            currency_code: Currency tag of the loan
            terms: Number of monthly repayments
            processed_at: Origination date; repayments fall due monthly after it

        Returns:
            Created Loan
        """
        currency_code = normalize_currency_code(currency_code)
        now = datetime.now(timezone.utc)
        loan_id = str(uuid.uuid4())

        # Validates amount and terms before anything is written
        schedule = generate_schedule(loan_id, amount, terms, currency_code, processed_at)

        loan = Loan(
            id=loan_id,
            created_at=now,
            updated_at=now,
            owner_id=owner_id,
            amount=amount,
            currency_code=currency_code,
            terms=terms,
            outstanding_amount=amount,
            processed_at=processed_at,
            status=LoanStatus.DUE
        )

        with self.storage.atomic():
            self._save_loan(loan)
            for repayment in schedule:
                self._save_scheduled_repayment(repayment)

            if self.audit_trail:
                self.audit_trail.log_event(
                    event_type=AuditEventType.LOAN_CREATED,
                    entity_type="loan",
                    entity_id=loan.id,
                    actor_id=owner_id,
                    metadata={
                        "amount": amount,
                        "currency_code": currency_code,
                        "terms": terms,
                        "processed_at": processed_at.isoformat(),
                        "installments": [r.amount for r in schedule]
                    }
                )

        log_action(
            self.logger, "info", "Loan created",
            owner_id=owner_id, action="create_loan", resource=f"loan:{loan.id}",
            extra={"amount": amount, "currency_code": currency_code, "terms": terms}
        )

        return loan

    def repay_loan(
        self,
        loan_id: str,
        amount: int,
        currency_code: str,
        received_at: Optional[datetime] = None
    ) -> ReceivedRepayment:
        """
        Apply a received payment to a loan

        Args:
            loan_id: Loan being repaid
            amount: Payment in minor currency units
            currency_code: Payment currency, must match the loan
            received_at: When the payment was received (defaults to now)

        Returns:
            ReceivedRepayment receipt
        """
        if received_at is None:
            received_at = datetime.now(timezone.utc)
        elif received_at.tzinfo is None:
            received_at = received_at.replace(tzinfo=timezone.utc)
        currency_code = normalize_currency_code(currency_code)

        # The storage transaction holds the backend lock until commit, so
        # concurrent repayments of a loan apply one after another
        with self.storage.atomic():
            loan = self.get_loan(loan_id)
            if not loan:
                raise LoanNotFound(loan_id)

            result = allocate_repayment(
                loan,
                self.get_scheduled_repayments(loan_id),
                amount,
                currency_code,
                received_at
            )

            self._save_loan(result.loan)
            for repayment in result.scheduled_repayments:
                self._save_scheduled_repayment(repayment)
            self._save_received_repayment(result.received_repayment)

            if self.audit_trail:
                self.audit_trail.log_event(
                    event_type=AuditEventType.LOAN_REPAYMENT_RECEIVED,
                    entity_type="loan",
                    entity_id=loan_id,
                    actor_id=loan.owner_id,
                    metadata={
                        "received_repayment_id": result.received_repayment.id,
                        "amount": amount,
                        "currency_code": currency_code,
                        "received_at": received_at.isoformat(),
                        "outstanding_amount": result.loan.outstanding_amount
                    }
                )
                if result.settled:
                    self.audit_trail.log_event(
                        event_type=AuditEventType.LOAN_REPAID,
                        entity_type="loan",
                        entity_id=loan_id,
                        actor_id=loan.owner_id,
                        metadata={"final_payment": amount}
                    )

        log_action(
            self.logger, "info", "Loan repayment received",
            owner_id=loan.owner_id, action="repay_loan", resource=f"loan:{loan_id}",
            extra={
                "amount": amount,
                "currency_code": currency_code,
                "outstanding_amount": result.loan.outstanding_amount,
                "status": result.loan.status.value
            }
        )
        if result.settled:
            self.logger.info("Loan %s fully repaid", loan_id)

        return result.received_repayment

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        """Get loan by ID"""
        data = self.storage.load(self.loans_table, loan_id)
        if data:
            return Loan.from_dict(data)
        return None

    def get_owner_loans(self, owner_id: str) -> List[Loan]:
        """Get all loans of an owner, oldest first"""
        loans = [Loan.from_dict(data) for data in self.storage.find(self.loans_table, {"owner_id": owner_id})]
        loans.sort(key=lambda loan: loan.created_at)
        return loans

    def get_scheduled_repayments(self, loan_id: str) -> List[ScheduledRepayment]:
        """Get a loan's scheduled repayments in due-date order"""
        data = self.storage.find(self.scheduled_table, {"loan_id": loan_id})
        repayments = [ScheduledRepayment.from_dict(item) for item in data]
        repayments.sort(key=lambda r: r.sort_key)
        return repayments

    def get_received_repayments(self, loan_id: str) -> List[ReceivedRepayment]:
        """Get a loan's received repayments in order of receipt"""
        data = self.storage.find(self.received_table, {"loan_id": loan_id})
        receipts = [ReceivedRepayment.from_dict(item) for item in data]
        receipts.sort(key=lambda r: (r.received_at, r.created_at))
        return receipts

    def _save_loan(self, loan: Loan) -> None:
        self.storage.save(self.loans_table, loan.id, loan.to_dict())

    def _save_scheduled_repayment(self, repayment: ScheduledRepayment) -> None:
        self.storage.save(self.scheduled_table, repayment.id, repayment.to_dict())

    def _save_received_repayment(self, receipt: ReceivedRepayment) -> None:
        # Receipts are append-only
        if self.storage.exists(self.received_table, receipt.id):
            raise StructuralInvariantViolation(f"Received repayment {receipt.id} already recorded")
        self.storage.save(self.received_table, receipt.id, receipt.to_dict())
