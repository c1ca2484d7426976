from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional
from decimal import Decimal

from errors import AccountLocked, InsufficientFunds
from models import AccountSnapshot, TransactionRecord


class AccountLedger(ABC):
    """Per-client balances. Knows nothing about transaction history or disputes."""

    @abstractmethod
    def credit(self, client_id: int, amount: Decimal) -> None:
        """Add funds to available. Raises AccountLocked."""
        pass

    @abstractmethod
    def debit(self, client_id: int, amount: Decimal) -> None:
        """Remove funds from available. Raises AccountLocked or InsufficientFunds."""
        pass

    @abstractmethod
    def hold(self, client_id: int, amount: Decimal) -> None:
        """Move funds from available to held. Available may go negative. Raises AccountLocked."""
        pass

    @abstractmethod
    def release(self, client_id: int, amount: Decimal) -> None:
        """Move funds from held back to available. Raises AccountLocked."""
        pass

    @abstractmethod
    def terminate(self, client_id: int, amount: Decimal) -> None:
        """Remove funds from held and lock the account. Raises AccountLocked."""
        pass

    @abstractmethod
    def snapshot(self, client_id: int) -> Optional[AccountSnapshot]:
        """Get account state. Returns None if the account doesn't exist."""
        pass

    @abstractmethod
    def snapshots(self) -> List[AccountSnapshot]:
        """Get every account, ordered by client id."""
        pass

    @abstractmethod
    def account_exists(self, client_id: int) -> bool:
        """Check if account exists."""
        pass

    @abstractmethod
    def get_accounts_count(self) -> int:
        """Get total number of accounts."""
        pass


class TransactionHistory(ABC):
    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        """Get stored transaction by id."""
        pass

    @abstractmethod
    def store_transaction(self, record: TransactionRecord) -> None:
        """Store applied transaction for dispute lookups."""
        pass

    @abstractmethod
    def get_transactions_count(self) -> int:
        """Get total number of stored transactions."""
        pass


@dataclass
class Account:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False


class InMemoryAccountLedger(AccountLedger):
    def __init__(self):
        self.accounts: Dict[int, Account] = {}

    def _get_or_create(self, client_id: int) -> Account:
        account = self.accounts.get(client_id)
        if account is None:
            account = self.accounts[client_id] = Account(client_id=client_id)
        return account

    def _get_unlocked(self, client_id: int) -> Account:
        account = self._get_or_create(client_id)
        if account.locked:
            raise AccountLocked(f"Account {client_id} is locked")
        return account

    def credit(self, client_id: int, amount: Decimal) -> None:
        account = self._get_unlocked(client_id)
        account.available += amount

    def debit(self, client_id: int, amount: Decimal) -> None:
        account = self._get_unlocked(client_id)
        if account.available < amount:
            raise InsufficientFunds(
                f"Account {client_id} has {account.available} available, {amount} requested"
            )
        account.available -= amount

    def hold(self, client_id: int, amount: Decimal) -> None:
        account = self._get_unlocked(client_id)
        account.available -= amount
        account.held += amount

    def release(self, client_id: int, amount: Decimal) -> None:
        account = self._get_unlocked(client_id)
        account.held -= amount
        account.available += amount

    def terminate(self, client_id: int, amount: Decimal) -> None:
        account = self._get_unlocked(client_id)
        account.held -= amount
        account.locked = True

    def snapshot(self, client_id: int) -> Optional[AccountSnapshot]:
        account = self.accounts.get(client_id)
        if account is None:
            return None
        return AccountSnapshot(
            client=account.client_id,
            available=account.available,
            held=account.held,
            total=account.available + account.held,
            locked=account.locked,
        )

    def snapshots(self) -> List[AccountSnapshot]:
        return [self.snapshot(client_id) for client_id in sorted(self.accounts)]

    def account_exists(self, client_id: int) -> bool:
        return client_id in self.accounts

    def get_accounts_count(self) -> int:
        return len(self.accounts)


class InMemoryTransactionHistory(TransactionHistory):
    def __init__(self):
        self.store: Dict[int, TransactionRecord] = {}

    def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        return self.store.get(transaction_id)

    def store_transaction(self, record: TransactionRecord) -> None:
        self.store[record.transaction_id] = record

    def get_transactions_count(self) -> int:
        return len(self.store)
