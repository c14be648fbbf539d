"""User model mirroring identity-provider accounts."""
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.problem import Problem


class User(Base, TimestampMixin):
    """User model - keyed by the Clerk user id, kept in sync by webhooks."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Clerk user id (e.g. 'user_2abc...')",
    )
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Problems are removed by the FK's ON DELETE CASCADE
    problems: Mapped[list["Problem"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
