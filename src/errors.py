class LedgerError(Exception):
    """
    Base class for errors that abort a whole run.
    str() renders as "<kind>: <message>".
    """

    kind = "LedgerError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class FileError(LedgerError):
    """Input source could not be opened or read."""

    kind = "FileError"


class CsvError(LedgerError):
    """Malformed CSV structure, row shape or field value."""

    kind = "CsvError"


class ParseError(LedgerError):
    """Operation name is not one of the known transaction types."""

    kind = "ParseError"
