from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from enum import Enum
from typing import Dict, Optional
from decimal import Decimal

from errors import ErrorKind


MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1
AMOUNT_DECIMAL_PLACES = 4
# Sixteen integer digits keeps running sums well inside the default 28-digit Decimal context.
AMOUNT_MAX_DIGITS = 20


class TransactionType(str, Enum):
    deposit = "deposit"
    withdrawal = "withdrawal"
    dispute = "dispute"
    resolve = "resolve"
    chargeback = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.deposit, TransactionType.withdrawal)


_AMOUNTLESS_TYPES = frozenset(t.value for t in TransactionType if not t.carries_amount)


class DisputeState(str, Enum):
    none = "none"
    disputed = "disputed"
    resolved = "resolved"
    charged_back = "charged_back"


class TransactionEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: TransactionType = Field(..., description="Transaction type")
    client: int = Field(
        ...,
        ge=0,
        le=MAX_CLIENT_ID,
        description="Client identifier (unsigned 16-bit)"
    )
    tx: int = Field(
        ...,
        ge=0,
        le=MAX_TRANSACTION_ID,
        description="Transaction identifier (unsigned 32-bit)"
    )
    amount: Optional[Decimal] = Field(
        None,
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Amount, present only for deposits and withdrawals"
    )

    @model_validator(mode='before')
    @classmethod
    def drop_unused_amount(cls, data):
        # Disputes and their follow-ups act on the recorded amount; any value given here is ignored.
        if isinstance(data, dict) and isinstance(data.get('type'), str):
            if data['type'].strip().lower() in _AMOUNTLESS_TYPES and data.get('amount') is not None:
                data = {**data, 'amount': None}
        return data

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode='after')
    def validate_amount_presence(self):
        # Sign is checked by the processor so non-positive amounts surface as rejections.
        if self.type.carries_amount and self.amount is None:
            raise ValueError(f'{self.type.value} requires an amount')
        return self


class TransactionRecord(BaseModel):
    """Applied deposit or withdrawal, kept for dispute lookups."""

    model_config = ConfigDict(validate_assignment=True)

    transaction_id: int = Field(..., description="Transaction identifier")
    client_id: int = Field(..., description="Owning client")
    transaction_type: TransactionType = Field(..., description="deposit or withdrawal")
    amount: Decimal = Field(..., description="Amount as originally applied")
    dispute_state: DisputeState = Field(DisputeState.none, description="Dispute lifecycle state")


class AccountSnapshot(BaseModel):
    """Read-only projection of an account, decoupled from ledger internals."""

    model_config = ConfigDict(frozen=True)

    client: int = Field(..., description="Client identifier")
    available: Decimal = Field(..., description="Funds usable for withdrawal")
    held: Decimal = Field(..., description="Funds frozen by open disputes")
    total: Decimal = Field(..., description="available + held")
    locked: bool = Field(..., description="Account is locked after a chargeback")


class TransactionOutcome(BaseModel):
    tx: int = Field(..., description="Transaction identifier")
    client: int = Field(..., description="Client named by the event")
    type: TransactionType = Field(..., description="Transaction type")
    applied: bool = Field(..., description="Whether the event changed state")
    reason: Optional[ErrorKind] = Field(None, description="Rejection reason")
    detail: Optional[str] = Field(None, description="Rejection detail")


class Rejection(BaseModel):
    model_config = ConfigDict(frozen=True)

    tx: int = Field(..., description="Transaction identifier")
    client: int = Field(..., description="Client named by the event")
    type: TransactionType = Field(..., description="Transaction type")
    reason: ErrorKind = Field(..., description="Machine-readable error kind")
    detail: str = Field(..., description="Error description")


class ProcessingSummary(BaseModel):
    processed: int = Field(0, description="Events consumed")
    applied: int = Field(0, description="Events applied to the ledger")
    rejected: int = Field(0, description="Events rejected")
    accounts: int = Field(0, description="Accounts in the ledger")
    transactions_recorded: int = Field(0, description="Deposits and withdrawals kept in history")
    rejections_by_reason: Dict[str, int] = Field(default_factory=dict)

    def record(self, outcome: TransactionOutcome) -> None:
        self.processed += 1
        if outcome.applied:
            self.applied += 1
            return
        self.rejected += 1
        key = outcome.reason.value
        self.rejections_by_reason[key] = self.rejections_by_reason.get(key, 0) + 1
