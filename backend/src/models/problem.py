"""Problem model for storing solved coding-practice problems."""
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin
from models.category import problem_categories

if TYPE_CHECKING:
    from models.category import Category
    from models.user import User


class Difficulty(StrEnum):
    """Problem difficulty as labelled by the judge site."""

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class Problem(Base, TimestampMixin):
    """Problem model - one logged practice attempt with its metadata and categories."""

    __tablename__ = "problems"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[Difficulty] = mapped_column(
        Enum(Difficulty, name="difficulty"),
        nullable=False,
    )
    language_used: Mapped[str] = mapped_column(String(100), nullable=False)
    solution_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    what_went_wrong: Mapped[str] = mapped_column(Text, nullable=False, default="")
    trigger_keywords: Mapped[str] = mapped_column(Text, nullable=False, default="")
    time_complexity: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    space_complexity: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    was_hard: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    date_solved: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    user: Mapped["User"] = relationship(back_populates="problems")
    categories: Mapped[list["Category"]] = relationship(
        secondary=problem_categories,
        back_populates="problems",
    )
