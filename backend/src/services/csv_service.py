"""
CSV export and import of problems.

The file format is a fixed 12-column header followed by one record per
problem. Fields are written with standard CSV quoting: a value containing a
comma, double quote or newline is wrapped in double quotes with inner quotes
doubled; everything else is written bare.

Import is best-effort. Structural problems (no data row, wrong header) reject
the whole file; anything wrong with a single row is recorded against that row
and the remaining rows are still imported.
"""
import csv
import io
import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from models.problem import Difficulty, Problem
from schemas.csv_import import ImportResults
from schemas.problem import ProblemCreate
from services.exceptions import CsvHeaderMismatchError, CsvRowError, CsvStructureError
from services.problem_service import create_problem

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Title",
    "URL",
    "Difficulty",
    "Language Used",
    "Date Solved",
    "Solution Notes",
    "What Went Wrong",
    "Trigger Keywords",
    "Time Complexity",
    "Space Complexity",
    "Was Hard",
    "Categories",
]

CATEGORY_SEPARATOR = "; "

# Must exceed every accepted field length; oversized values then fail row validation.
MAX_CSV_FIELD_SIZE = 10 * 1024 * 1024

csv.field_size_limit(max(csv.field_size_limit(), MAX_CSV_FIELD_SIZE))


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime (naive values are taken to be UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def problem_to_row(problem: Problem) -> list[str]:
    """Flatten a problem (with categories loaded) into CSV column order."""
    return [
        problem.title,
        problem.url,
        problem.difficulty.value,
        problem.language_used,
        as_utc(problem.date_solved).strftime("%Y-%m-%d"),
        problem.solution_notes,
        problem.what_went_wrong,
        problem.trigger_keywords,
        problem.time_complexity,
        problem.space_complexity,
        "true" if problem.was_hard else "false",
        CATEGORY_SEPARATOR.join(category.name for category in problem.categories),
    ]


def build_problems_csv(problems: Iterable[Problem]) -> str:
    """
    Serialize problems to CSV text.

    Header first, one line per problem, joined by newlines with no trailing
    newline.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerows(problem_to_row(problem) for problem in problems)
    return buffer.getvalue().removesuffix("\n")


def _read_records(lines: list[str]) -> list[list[str]]:
    """
    Read raw records from physical lines.

    A quoted field may span lines. When a record cannot be closed (usually a
    stray opening quote that would otherwise run to the end of the file), the
    line it started on is read as a record by itself and reading resumes on the
    next line, so later rows are still seen.
    """
    records = []
    start = 0
    while start < len(lines):
        reader = csv.reader(lines[start:], skipinitialspace=True, strict=True)
        consumed = 0
        try:
            for record in reader:
                records.append(record)
                consumed = reader.line_num
        except csv.Error:
            broken_line = lines[start + consumed]
            records.append(next(csv.reader([broken_line], skipinitialspace=True), []))
            start += consumed + 1
        else:
            break
    return records


def parse_csv_records(text: str) -> list[list[str]]:
    """
    Split CSV text into records of trimmed, unquoted fields.

    Commas and newlines inside quoted fields do not split; doubled quotes are
    un-escaped. Blank lines and a leading byte-order mark are ignored.

    Raises:
        CsvStructureError: If the text is not parseable as CSV.
    """
    lines = io.StringIO(text.removeprefix("\ufeff"), newline="").readlines()
    try:
        records = [[field.strip() for field in record] for record in _read_records(lines)]
    except csv.Error as e:
        raise CsvStructureError(f"Malformed CSV: {e}") from e
    return [record for record in records if record not in ([], [""])]


def _parse_date_solved(value: str) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Unparseable Date Solved %r, defaulting to now", value)
        return None
    return as_utc(parsed)


def _validation_message(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(loc) for loc in detail['loc'])}: {detail['msg']}"
        for detail in error.errors()
    )


def row_to_problem(values: list[str]) -> ProblemCreate:
    """
    Validate one data record and map it onto ProblemCreate.

    Raises:
        CsvRowError: With the message to report for this row.
    """
    if len(values) != len(CSV_HEADERS):
        raise CsvRowError("Wrong number of columns")

    (
        title, url, difficulty, language_used, date_solved,
        solution_notes, what_went_wrong, trigger_keywords,
        time_complexity, space_complexity, was_hard, categories,
    ) = values

    if not title or not url or not difficulty or not language_used:
        raise CsvRowError("Missing required fields")

    if difficulty.upper() not in Difficulty.__members__:
        raise CsvRowError(f'Invalid difficulty "{difficulty}"')

    try:
        return ProblemCreate(
            title=title,
            url=url,
            difficulty=Difficulty(difficulty.upper()),
            language_used=language_used,
            date_solved=_parse_date_solved(date_solved),
            solution_notes=solution_notes,
            what_went_wrong=what_went_wrong,
            trigger_keywords=trigger_keywords,
            time_complexity=time_complexity,
            space_complexity=space_complexity,
            was_hard=was_hard.lower() == "true",
            categories=categories.split(";"),
        )
    except ValidationError as e:
        raise CsvRowError(_validation_message(e)) from e


async def import_problems_csv(
    db: AsyncSession,
    user_id: str,
    text: str,
) -> ImportResults:
    """
    Create problems for a user from CSV text.

    Rows are numbered with the header as row 1. Each row is created inside its
    own savepoint, so a failing row is rolled back alone and rows created
    before it stay in place.

    Raises:
        CsvStructureError: If there is no data row or the text is malformed.
        CsvHeaderMismatchError: If the header is not exactly CSV_HEADERS.
    """
    records = parse_csv_records(text)
    if len(records) < 2:
        raise CsvStructureError("CSV must have headers and at least one data row")

    headers, *rows = records
    if headers != CSV_HEADERS:
        raise CsvHeaderMismatchError(headers, CSV_HEADERS)

    results = ImportResults()
    for row_number, values in enumerate(rows, start=2):
        try:
            data = row_to_problem(values)
        except CsvRowError as e:
            results.record_failure(row_number, str(e))
            continue

        try:
            async with db.begin_nested():
                await create_problem(db, user_id, data)
        except Exception as e:  # noqa: BLE001 - reported per row, batch continues
            logger.warning("CSV import row %s failed for user %s: %s", row_number, user_id, e)
            results.record_failure(row_number, str(e) or type(e).__name__)
            continue

        results.successful += 1

    logger.info(
        "CSV import for user %s: %s created, %s failed",
        user_id, results.successful, results.failed,
    )
    return results
