import logging
from typing import Dict, Iterable

from models import Transaction, ClientAccount, ProcessingResult, ProcessingStats
from state_manager import StateManager
from transaction_processor import TransactionProcessor
from transaction_io import read_transactions

logger = logging.getLogger(__name__)


class LedgerEngine:
    """
    Replays a ledger of transactions, strictly in input order, against client accounts.
    Each engine owns its own state; create a new one per run.
    """

    def __init__(self):
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """Apply one transaction. Skipped records are reported, never raised."""
        result = self._processor.process_transaction(transaction)
        self._stats.record(result)
        return result

    def process(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """
        Apply every transaction in order and return final account states.
        Errors raised while producing the transactions (FileError, CsvError,
        ParseError) abort the run and propagate to the caller.
        """
        logger.info("Starting ledger replay")

        for transaction in transactions:
            self.apply(transaction)

        logger.info(f"Ledger replay complete. {self._stats.summary()}")
        return self.get_all_accounts()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        return self.process(read_transactions(filepath))

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        return self._state.get_all_accounts()
