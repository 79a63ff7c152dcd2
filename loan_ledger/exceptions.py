"""
Ledger Exceptions

Every failure raised by the scheduler, the allocator and the loan service
derives from LedgerError so collaborators can catch the family at once.
"""


class LedgerError(Exception):
    """Base class for loan ledger failures"""


class InvalidArgument(LedgerError, ValueError):
    """Input outside the accepted domain (non-positive principal, terms or amount)"""


class CurrencyMismatch(LedgerError, ValueError):
    """Payment currency differs from the loan currency"""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Currency {actual} does not match loan currency {expected}")


class NoOutstandingInstallments(LedgerError):
    """Repayment attempted against a loan with nothing left to repay"""

    def __init__(self, loan_id: str):
        self.loan_id = loan_id
        super().__init__(f"Loan {loan_id} has no outstanding installments")


class StructuralInvariantViolation(LedgerError):
    """Loan or installment data is inconsistent with the ledger invariants"""


class LoanNotFound(LedgerError, LookupError):
    """No loan stored under the requested id"""

    def __init__(self, loan_id: str):
        self.loan_id = loan_id
        super().__init__(f"Loan {loan_id} not found")
