"""Pydantic schemas for problem endpoints."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.config import get_settings
from models.problem import Difficulty


def normalize_category_names(names: list[str]) -> list[str]:
    """
    Trim category names, drop empty ones and remove duplicates.

    Order of first occurrence is kept, so ["Array", "Stack", "Array"]
    becomes ["Array", "Stack"].
    """
    normalized: list[str] = []
    for name in names:
        trimmed = name.strip()
        if trimmed and trimmed not in normalized:
            normalized.append(trimmed)
    return normalized


def validate_title_length(title: str) -> str:
    """Validate that title doesn't exceed maximum length."""
    settings = get_settings()
    if len(title) > settings.max_title_length:
        raise ValueError(
            f"Title exceeds maximum length of {settings.max_title_length:,} characters "
            f"(got {len(title):,} characters).",
        )
    return title


def validate_text_length(value: str) -> str:
    """Validate that a free-text field doesn't exceed maximum length."""
    settings = get_settings()
    if len(value) > settings.max_text_length:
        raise ValueError(
            f"Text exceeds maximum length of {settings.max_text_length:,} characters "
            f"(got {len(value):,} characters).",
        )
    return value


class ProblemCreate(BaseModel):
    """Schema for creating a new problem."""

    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    difficulty: Difficulty
    language_used: str = Field(..., min_length=1, max_length=100)
    solution_notes: str = ""
    what_went_wrong: str = ""
    trigger_keywords: str = ""
    time_complexity: str = Field(default="", max_length=100)
    space_complexity: str = Field(default="", max_length=100)
    was_hard: bool = False
    date_solved: datetime | None = Field(
        default=None,
        description="When the problem was solved. Defaults to the creation time.",
    )
    categories: list[str] = []

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, v: Any) -> Any:
        """Accept difficulty in any letter case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("categories", mode="before")
    @classmethod
    def normalize_categories(cls, v: list[str] | None) -> list[str]:
        """Trim and deduplicate category names."""
        if v is None:
            return []
        return normalize_category_names(v)

    @field_validator("title")
    @classmethod
    def check_title_length(cls, v: str) -> str:
        """Validate title length."""
        return validate_title_length(v)

    @field_validator("solution_notes", "what_went_wrong", "trigger_keywords")
    @classmethod
    def check_text_length(cls, v: str) -> str:
        """Validate free-text field length."""
        return validate_text_length(v)


class ProblemUpdate(ProblemCreate):
    """
    Schema for replacing a problem's mutable fields.

    Same shape as ProblemCreate: every field is replaced, including the
    category set. An omitted date_solved keeps the stored value.
    """


class ProblemListItem(BaseModel):
    """
    Schema for problem list items (excludes the long free-text fields).

    Note: Uses model_validator to extract category names from the categories
    relationship when eagerly loaded.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    url: str
    difficulty: Difficulty
    language_used: str
    was_hard: bool
    date_solved: datetime
    categories: list[str]
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def extract_category_names(cls, data: Any) -> Any:
        """
        Extract category names from the categories relationship.

        Only accesses categories if it's already loaded (not lazy) to avoid
        triggering database queries outside async context.
        """
        if hasattr(data, "__dict__") and hasattr(data, "_sa_instance_state"):
            data_dict = {
                key: getattr(data, key)
                for key in [
                    "id", "title", "url", "difficulty", "language_used", "was_hard",
                    "date_solved", "created_at", "updated_at", "solution_notes",
                    "what_went_wrong", "trigger_keywords", "time_complexity",
                    "space_complexity",
                ]
            }
            loaded = data.__dict__.get("categories")
            data_dict["categories"] = [c.name for c in loaded] if loaded is not None else []
            return data_dict
        return data


class ProblemResponse(ProblemListItem):
    """Schema for full problem responses (includes notes and complexity)."""

    solution_notes: str
    what_went_wrong: str
    trigger_keywords: str
    time_complexity: str
    space_complexity: str


class ProblemListResponse(BaseModel):
    """Schema for paginated problem list responses."""

    items: list[ProblemListItem]
    total: int  # Total count of problems matching the query (before pagination)
    offset: int
    limit: int
    has_more: bool
