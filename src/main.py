import logging
import os
import sys

from errors import LedgerError
from ledger_engine import LedgerEngine
from transaction_io import write_accounts

LOG_LEVEL_ENV = "LEDGER_LOG_LEVEL"


def configure_logging() -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    configure_logging()

    filepath = args[0]
    engine = LedgerEngine()
    try:
        accounts = engine.process_file(filepath)
    except LedgerError as e:
        print(str(e), file=sys.stderr)
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
