"""
User ORM model.

Only the fields the inspection pipeline consumes: contact details for
notifications and locale preferences for the analysis prompt.

Dependencies: sqlalchemy, car_repair.boundary.db.base
System role: Task owner persistence
"""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from car_repair.boundary.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from car_repair.boundary.db.models.task_model import TaskModel
    from car_repair.boundary.db.models.user_token_model import UserTokenModel


class UserModel(Base, UUIDMixin, TimestampMixin):
    """
    User ORM model.

    Attributes:
        email: Contact address; report-ready mail is skipped when empty
        name: Display name used in the greeting
        language: Preferred report language (ISO 639-1), optional
        currency: Preferred currency code (ISO 4217), optional
    """

    __tablename__ = "users"

    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    language: Mapped[str | None] = mapped_column(String(8), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)

    tasks: Mapped[list["TaskModel"]] = relationship(
        "TaskModel",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tokens: Mapped[list["UserTokenModel"]] = relationship(
        "UserTokenModel",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
