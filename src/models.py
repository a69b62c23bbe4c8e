from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_FLOOR
from enum import Enum
from typing import Optional, Set

from errors import ParseError

AMOUNT_PRECISION = Decimal("0.0001")
MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


def normalize_amount(amount: Decimal) -> Decimal:
    """Truncate to 4 fractional digits (floor, never rounds up)."""
    return amount.quantize(AMOUNT_PRECISION, rounding=ROUND_FLOOR)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @classmethod
    def parse(cls, name: str) -> "TransactionType":
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ParseError(f"unknown transaction type {name!r}") from None


class ProcessingResult(Enum):
    APPLIED = "applied"
    MISSING_AMOUNT = "missing_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"

    @property
    def is_applied(self) -> bool:
        return self is ProcessingResult.APPLIED


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if self.amount is not None:
            object.__setattr__(self, "amount", normalize_amount(self.amount))

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False
    _disputed_transaction_ids: Set[int] = field(default_factory=set, repr=False, compare=False)

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def mark_disputed(self, transaction_id: int) -> None:
        self._disputed_transaction_ids.add(transaction_id)

    def is_disputed(self, transaction_id: int) -> bool:
        return transaction_id in self._disputed_transaction_ids

    def clear_dispute(self, transaction_id: int) -> None:
        self._disputed_transaction_ids.discard(transaction_id)


class ProcessingStats:
    """Counts outcomes of applied records over one run."""

    def __init__(self):
        self._counts: Counter = Counter()

    def record(self, result: ProcessingResult) -> None:
        self._counts[result] += 1

    def count(self, result: ProcessingResult) -> int:
        return self._counts[result]

    @property
    def applied(self) -> int:
        return self._counts[ProcessingResult.APPLIED]

    @property
    def skipped(self) -> int:
        return sum(self._counts.values()) - self.applied

    def summary(self) -> str:
        parts = [f"Applied: {self.applied}", f"Skipped: {self.skipped}"]
        for result, count in sorted(self._counts.items(), key=lambda item: item[0].value):
            if not result.is_applied:
                parts.append(f"{result.value}: {count}")
        return ", ".join(parts)
