"""Pydantic schemas for CSV import results."""
from pydantic import BaseModel


class ImportResults(BaseModel):
    """Per-batch import outcome. Partial success is normal."""

    successful: int = 0
    failed: int = 0
    errors: list[str] = []

    def record_failure(self, row_number: int, message: str) -> None:
        """Count a failed row and keep its error message."""
        self.failed += 1
        self.errors.append(f"Row {row_number}: {message}")


class ImportResponse(BaseModel):
    """Response body for POST /problems/import."""

    message: str = "Import completed"
    results: ImportResults
