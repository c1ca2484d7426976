from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    insufficient_funds = "insufficient_funds"
    account_locked = "account_locked"
    invalid_amount = "invalid_amount"
    unknown_transaction = "unknown_transaction"
    client_mismatch = "client_mismatch"
    invalid_state = "invalid_state"
    duplicate_transaction = "duplicate_transaction"
    input_unavailable = "input_unavailable"

    @property
    def recoverable(self) -> bool:
        """Whether the run can continue after an error of this kind."""
        return self is not ErrorKind.input_unavailable


class PaymentsError(Exception):
    """Base error. Carries a machine-readable kind and a human-readable detail."""

    kind: ErrorKind

    def __init__(self, detail: str, kind: Optional[ErrorKind] = None):
        super().__init__(detail)
        self.detail = detail
        if kind is not None:
            self.kind = kind


class TransactionError(PaymentsError):
    """A single transaction could not be applied. The run continues."""


class InsufficientFunds(TransactionError):
    kind = ErrorKind.insufficient_funds


class AccountLocked(TransactionError):
    kind = ErrorKind.account_locked


class InvalidAmount(TransactionError):
    kind = ErrorKind.invalid_amount


class UnknownTransaction(TransactionError):
    kind = ErrorKind.unknown_transaction


class ClientMismatch(TransactionError):
    kind = ErrorKind.client_mismatch


class InvalidState(TransactionError):
    kind = ErrorKind.invalid_state


class DuplicateTransaction(TransactionError):
    kind = ErrorKind.duplicate_transaction


class InputSourceError(PaymentsError):
    """The input source could not be opened or read. Aborts the run."""

    kind = ErrorKind.input_unavailable
