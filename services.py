from typing import Callable, Iterable, Optional
import structlog

from errors import (
    ClientMismatch,
    DuplicateTransaction,
    InvalidAmount,
    InvalidState,
    TransactionError,
    UnknownTransaction,
)
from models import (
    DisputeState,
    ProcessingSummary,
    Rejection,
    TransactionEvent,
    TransactionOutcome,
    TransactionRecord,
    TransactionType,
)
from repositories import AccountLedger, TransactionHistory

logger = structlog.get_logger()

RejectionSink = Callable[[Rejection], None]


def log_rejection(rejection: Rejection) -> None:
    """Default diagnostics sink: one warning per rejected transaction."""
    logger.warning(
        "Transaction rejected",
        tx=rejection.tx,
        client=rejection.client,
        type=rejection.type.value,
        reason=rejection.reason.value,
        detail=rejection.detail
    )


class TransactionProcessor:
    """
    Applies transaction events to the ledger in arrival order.

    Every event ends up either applied or rejected with a reason. A rejected
    event leaves the ledger and history untouched and never stops the run.
    """

    def __init__(
        self,
        ledger: AccountLedger,
        history: TransactionHistory,
        on_rejection: Optional[RejectionSink] = None
    ):
        self.ledger = ledger
        self.history = history
        self.on_rejection = on_rejection or log_rejection
        self._handlers = {
            TransactionType.deposit: self._process_deposit,
            TransactionType.withdrawal: self._process_withdrawal,
            TransactionType.dispute: self._process_dispute,
            TransactionType.resolve: self._process_resolve,
            TransactionType.chargeback: self._process_chargeback,
        }

    def process_transactions(self, events: Iterable[TransactionEvent]) -> ProcessingSummary:
        """Consume events one at a time and return run counters."""
        summary = ProcessingSummary()
        for event in events:
            summary.record(self.process_transaction(event))
        summary.accounts = self.ledger.get_accounts_count()
        summary.transactions_recorded = self.history.get_transactions_count()
        return summary

    def process_transaction(self, event: TransactionEvent) -> TransactionOutcome:
        try:
            self._handlers[event.type](event)
        except TransactionError as e:
            rejection = Rejection(
                tx=event.tx,
                client=event.client,
                type=event.type,
                reason=e.kind,
                detail=e.detail
            )
            self.on_rejection(rejection)
            return TransactionOutcome(
                tx=event.tx,
                client=event.client,
                type=event.type,
                applied=False,
                reason=e.kind,
                detail=e.detail
            )

        logger.debug(
            "Transaction applied",
            tx=event.tx,
            client=event.client,
            type=event.type.value,
            amount=str(event.amount) if event.amount is not None else None
        )
        return TransactionOutcome(
            tx=event.tx,
            client=event.client,
            type=event.type,
            applied=True
        )

    def _validate_new_transaction(self, event: TransactionEvent) -> None:
        if event.amount is None or event.amount <= 0:
            raise InvalidAmount(
                f"{event.type.value} amount must be positive, got {event.amount}"
            )
        if self.history.get_transaction(event.tx) is not None:
            raise DuplicateTransaction(f"Transaction {event.tx} was already applied")

    def _record(self, event: TransactionEvent) -> None:
        self.history.store_transaction(TransactionRecord(
            transaction_id=event.tx,
            client_id=event.client,
            transaction_type=event.type,
            amount=event.amount
        ))

    def _process_deposit(self, event: TransactionEvent) -> None:
        self._validate_new_transaction(event)
        self.ledger.credit(event.client, event.amount)
        self._record(event)

    def _process_withdrawal(self, event: TransactionEvent) -> None:
        # A withdrawal that never took effect is not recorded, so it can't be disputed later.
        self._validate_new_transaction(event)
        self.ledger.debit(event.client, event.amount)
        self._record(event)

    def _lookup(self, event: TransactionEvent, expected: DisputeState) -> TransactionRecord:
        record = self.history.get_transaction(event.tx)
        if record is None:
            raise UnknownTransaction(f"Transaction {event.tx} not found")
        if record.client_id != event.client:
            raise ClientMismatch(
                f"Transaction {event.tx} belongs to client {record.client_id}, not {event.client}"
            )
        if record.dispute_state != expected:
            raise InvalidState(
                f"Transaction {event.tx} is {record.dispute_state.value}, expected {expected.value}"
            )
        return record

    def _process_dispute(self, event: TransactionEvent) -> None:
        record = self._lookup(event, DisputeState.none)
        self.ledger.hold(record.client_id, record.amount)
        record.dispute_state = DisputeState.disputed

    def _process_resolve(self, event: TransactionEvent) -> None:
        record = self._lookup(event, DisputeState.disputed)
        self.ledger.release(record.client_id, record.amount)
        record.dispute_state = DisputeState.resolved

    def _process_chargeback(self, event: TransactionEvent) -> None:
        record = self._lookup(event, DisputeState.disputed)
        self.ledger.terminate(record.client_id, record.amount)
        record.dispute_state = DisputeState.charged_back


# Factory function for dependency injection
def get_transaction_processor(
    ledger: AccountLedger,
    history: TransactionHistory,
    on_rejection: Optional[RejectionSink] = None
) -> TransactionProcessor:
    return TransactionProcessor(ledger, history, on_rejection)
