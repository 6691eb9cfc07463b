from abc import ABC, abstractmethod

from stellar_sdk import TransactionEnvelope

from .models import LedgerAccount, SubmissionResult


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 30


class LedgerGateway(Provider):
    """Provider for ledger account state and transaction submission"""

    @abstractmethod
    async def load_account(self, account_id: str) -> LedgerAccount:
        """Load sequence number and signers for an account"""
        pass

    @abstractmethod
    async def submit_transaction(self, envelope: TransactionEnvelope) -> SubmissionResult:
        """Submit a signed transaction envelope"""
        pass
