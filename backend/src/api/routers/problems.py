"""Problem CRUD, CSV export and CSV import endpoints."""
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.problem import Difficulty
from models.user import User
from schemas.csv_import import ImportResponse
from schemas.problem import (
    ProblemCreate,
    ProblemListItem,
    ProblemListResponse,
    ProblemResponse,
    ProblemUpdate,
)
from services import csv_service, problem_service
from services.exceptions import CsvHeaderMismatchError, CsvStructureError

router = APIRouter(prefix="/problems", tags=["problems"])

PROBLEM_NOT_FOUND = "Problem not found"


@router.post("/", response_model=ProblemResponse, status_code=201)
async def create_problem(
    data: ProblemCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ProblemResponse:
    """Create a new problem."""
    problem = await problem_service.create_problem(db, current_user.id, data)
    return ProblemResponse.model_validate(problem)


@router.get("/", response_model=ProblemListResponse)
async def list_problems(
    q: str | None = Query(default=None, description="Search title, url, trigger keywords and notes"),  # noqa: E501
    difficulty: list[Difficulty] = Query(default=[], description="Filter by difficulty"),
    language: str | None = Query(default=None, description="Filter by language used"),
    was_hard: bool | None = Query(default=None, description="Filter by the was-hard flag"),
    categories: list[str] = Query(default=[], description="Filter by categories"),
    category_match: Literal["all", "any"] = Query(default="all", description="Category matching mode: 'all' (AND) or 'any' (OR)"),  # noqa: E501
    sort_by: problem_service.SortField = Query(default="date_solved", description="Sort field"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", description="Sort order"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=100, description="Pagination limit"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ProblemListResponse:
    """
    List problems for the current user with search, filtering, and sorting.

    - **q**: Case-insensitive text search
    - **difficulty**: One or more of EASY, MEDIUM, HARD
    - **categories**: Filter by one or more categories
    - **category_match**: 'all' requires every category, 'any' requires at least one
    - **sort_by**: date_solved (default), created_at, updated_at, title or difficulty
    """
    problems, total = await problem_service.search_problems(
        db=db,
        user_id=current_user.id,
        query=q,
        difficulties=difficulty or None,
        language=language,
        was_hard=was_hard,
        categories=categories or None,
        category_match=category_match,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=offset,
        limit=limit,
    )
    items = [ProblemListItem.model_validate(p) for p in problems]
    return ProblemListResponse(
        items=items,
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(items) < total,
    )


@router.get("/export")
async def export_problems(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Response:
    """Download all of the current user's problems as a CSV file."""
    problems = await problem_service.list_all_problems(db, current_user.id)
    content = csv_service.build_problems_csv(problems)
    filename = f"leetlog-problems-{datetime.now(UTC).strftime('%Y-%m-%d')}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_problems(
    file: UploadFile | None = File(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ImportResponse:
    """
    Import problems from a CSV file in the export format.

    Returns 400 if the file is missing, not a .csv file, has no data row, or
    its header doesn't match. Otherwise rows are imported independently and
    per-row errors are reported in the response.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="File must be a CSV")

    try:
        text = (await file.read()).decode("utf-8")
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded") from e

    try:
        results = await csv_service.import_problems_csv(db, current_user.id, text)
    except CsvHeaderMismatchError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": str(e), "expected_headers": e.expected},
        ) from e
    except CsvStructureError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return ImportResponse(results=results)


@router.get("/{problem_id}", response_model=ProblemResponse)
async def get_problem(
    problem_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ProblemResponse:
    """Get a single problem by ID."""
    problem = await problem_service.get_problem(db, current_user.id, problem_id)
    if problem is None:
        raise HTTPException(status_code=404, detail=PROBLEM_NOT_FOUND)
    return ProblemResponse.model_validate(problem)


@router.put("/{problem_id}", response_model=ProblemResponse)
async def update_problem(
    problem_id: int,
    data: ProblemUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ProblemResponse:
    """Replace a problem's fields and categories."""
    problem = await problem_service.update_problem(db, current_user.id, problem_id, data)
    if problem is None:
        raise HTTPException(status_code=404, detail=PROBLEM_NOT_FOUND)
    return ProblemResponse.model_validate(problem)


@router.delete("/{problem_id}", status_code=204)
async def delete_problem(
    problem_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a problem."""
    deleted = await problem_service.delete_problem(db, current_user.id, problem_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=PROBLEM_NOT_FOUND)
