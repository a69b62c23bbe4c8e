import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterator, Mapping, Optional, TextIO

from errors import CsvError, FileError
from models import Transaction, TransactionType, ClientAccount, MAX_CLIENT_ID, MAX_TRANSACTION_ID

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")
OUTPUT_COLUMNS = ["client", "available", "held", "total", "locked"]


def read_transactions(filepath: str) -> Iterator[Transaction]:
    """
    Lazily read transactions from a CSV file in file order.

    Header names and field values are trimmed, blank lines are skipped and a
    missing trailing amount is treated as absent. Each call starts over from
    the top of the file.

    Raises:
        FileError: the file cannot be opened or read
        CsvError: malformed header, row shape or field value
        ParseError: unknown transaction type
    """
    try:
        f = open(filepath, "r", newline="")
    except OSError as e:
        raise FileError(f"cannot open {filepath}: {e.strerror or e}") from e

    with f:
        reader = csv.DictReader(f)
        try:
            if reader.fieldnames is None:
                raise CsvError(f"{filepath} is empty, expected a header row")
            reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
            missing = [name for name in REQUIRED_COLUMNS if name not in reader.fieldnames]
            if missing:
                raise CsvError(f"header is missing column(s): {', '.join(missing)}")

            for row in reader:
                yield parse_row(row, reader.line_num)
        except csv.Error as e:
            raise CsvError(f"line {reader.line_num}: {e}") from e
        except OSError as e:
            raise FileError(f"cannot read {filepath}: {e}") from e


def parse_row(row: Mapping[Optional[str], object], line_num: int = 0) -> Transaction:
    """Parse one header-keyed CSV row into a Transaction."""
    if row.get(None):
        raise CsvError(f"line {line_num}: too many fields")

    normalized: Dict[str, str] = {
        k: v.strip() for k, v in row.items() if k is not None and isinstance(v, str)
    }

    for name in REQUIRED_COLUMNS:
        if not normalized.get(name):
            raise CsvError(f"line {line_num}: missing field {name!r}")

    transaction_type = TransactionType.parse(normalized["type"])
    client_id = _parse_id(normalized["client"], "client", MAX_CLIENT_ID, line_num)
    transaction_id = _parse_id(normalized["tx"], "tx", MAX_TRANSACTION_ID, line_num)

    amount = None
    amount_str = normalized.get("amount", "")
    if amount_str:
        try:
            amount = Decimal(amount_str)
        except InvalidOperation:
            raise CsvError(f"line {line_num}: invalid amount {amount_str!r}") from None
        if not amount.is_finite():
            raise CsvError(f"line {line_num}: invalid amount {amount_str!r}")

    try:
        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except InvalidOperation:
        raise CsvError(f"line {line_num}: amount {amount_str!r} exceeds decimal precision") from None


def _parse_id(value: str, column: str, upper_bound: int, line_num: int) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise CsvError(f"line {line_num}: invalid {column} {value!r}") from None
    if not 0 <= parsed <= upper_bound:
        raise CsvError(f"line {line_num}: {column} {parsed} out of range 0..{upper_bound}")
    return parsed


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    normalized = value.normalize()
    return f"{normalized:f}"


def write_accounts(accounts: Mapping[int, ClientAccount], stream: TextIO) -> None:
    """Write one summary row per client, ordered by client id."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow([
            client_id,
            format_decimal(account.available),
            format_decimal(account.held),
            format_decimal(account.total),
            str(account.locked).lower(),
        ])
    logger.debug(f"Wrote {len(accounts)} account rows")
