"""
Service wiring for the API
"""

from typing import Optional

from ..config import LedgerConfig, get_config
from ..storage import StorageInterface, create_storage
from ..audit import AuditTrail
from ..service import LoanService


class LedgerSystem:
    """Loan ledger with storage, audit trail and service initialized"""
    
    def __init__(self, storage: StorageInterface, config: Optional[LedgerConfig] = None):
        self.config = config or get_config()
        self.storage = storage
        self.audit_trail = AuditTrail(self.storage) if self.config.enable_audit_logging else None
        self.loan_service = LoanService(self.storage, self.audit_trail)
    
    @classmethod
    def from_config(cls, config: LedgerConfig) -> 'LedgerSystem':
        return cls(create_storage(config), config)
    
    def close(self) -> None:
        self.storage.close()


_ledger_system: Optional[LedgerSystem] = None


def get_ledger_system() -> LedgerSystem:
    """Dependency returning the process-wide ledger system"""
    global _ledger_system
    if _ledger_system is None:
        _ledger_system = LedgerSystem.from_config(get_config())
    return _ledger_system
