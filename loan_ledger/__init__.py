"""
Loan Ledger

Loan origination and repayment core: integer amortization schedules,
in-order allocation of received payments against scheduled installments,
and hash-chained audit trails over every state change.
"""

__version__ = "1.0.0"
