"""Shared exceptions for service layer operations."""


class CsvStructureError(Exception):
    """
    Raised when an uploaded CSV cannot be imported at all.

    Covers files without a data row and malformed CSV text. Nothing is
    created when this is raised.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class CsvHeaderMismatchError(CsvStructureError):
    """Raised when the header row is not exactly the expected columns."""

    def __init__(self, headers: list[str], expected: list[str]) -> None:
        self.headers = headers
        self.expected = expected
        super().__init__("CSV headers don't match expected format")


class CsvRowError(Exception):
    """Raised for a single data row that fails validation; the batch continues."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
