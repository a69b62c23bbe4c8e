import logging
from typing import Optional

from models import Transaction, TransactionType, ClientAccount, ProcessingResult
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions against state.
    Business-rule failures never raise; they come back as a non-APPLIED ProcessingResult
    and leave balances untouched.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single transaction.

        Dispute, resolve and chargeback act on the account named by the record,
        using the amount of the referenced deposit or withdrawal.

        Returns:
            APPLIED: Balances (and dispute state) were updated
            anything else: The record was skipped, the member names the reason
        """
        account = self._state.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                result = self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                result = self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                result = self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                result = self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                result = self._handle_chargeback(account, transaction)

        if not result.is_applied:
            logger.debug(f"Skipped {transaction}: {result.value}")
        return result

    def _check_new_transaction(self, transaction: Transaction) -> Optional[ProcessingResult]:
        if transaction.amount is None:
            return ProcessingResult.MISSING_AMOUNT
        if self._state.get_transaction(transaction.transaction_id) is not None:
            return ProcessingResult.DUPLICATE_TRANSACTION
        return None

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejected = self._check_new_transaction(transaction)
        if rejected is not None:
            return rejected

        account.credit(transaction.amount)
        self._state.store_transaction(transaction)
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejected = self._check_new_transaction(transaction)
        if rejected is not None:
            return rejected

        # strictly greater: withdrawing the exact available balance is refused
        if account.available <= transaction.amount:
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        self._state.store_transaction(transaction)
        return ProcessingResult.APPLIED

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._state.get_transaction(transaction.transaction_id)
        if original is None:
            return ProcessingResult.TRANSACTION_NOT_FOUND

        # at most one open hold per transaction and client
        if account.is_disputed(original.transaction_id):
            return ProcessingResult.ALREADY_DISPUTED

        account.hold(original.amount)
        account.mark_disputed(original.transaction_id)
        return ProcessingResult.APPLIED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._state.get_transaction(transaction.transaction_id)
        if original is None:
            return ProcessingResult.TRANSACTION_NOT_FOUND

        if not account.is_disputed(original.transaction_id):
            return ProcessingResult.NOT_DISPUTED

        account.release_hold(original.amount)
        account.clear_dispute(original.transaction_id)
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._state.get_transaction(transaction.transaction_id)
        if original is None:
            return ProcessingResult.TRANSACTION_NOT_FOUND

        if not account.is_disputed(original.transaction_id):
            return ProcessingResult.NOT_DISPUTED

        account.remove_held(original.amount)
        account.locked = True
        account.clear_dispute(original.transaction_id)
        return ProcessingResult.APPLIED
