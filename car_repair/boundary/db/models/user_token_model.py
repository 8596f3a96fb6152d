"""
User token ORM model.

Single-use, expiring credentials: direct-access report links, password
resets and email verification.

Dependencies: sqlalchemy, car_repair.boundary.db.base
System role: Credential persistence for emailed links
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from car_repair.boundary.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from car_repair.boundary.db.models.user_model import UserModel


class TokenType(str, enum.Enum):
    """Purpose of a user token."""

    DIRECT_ACCESS = "direct_access"
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFY = "email_verify"


class UserTokenModel(Base, UUIDMixin, TimestampMixin):
    """
    Expiring single-use token.

    Attributes:
        user_id: Token owner
        token: 64 hex characters, unique
        type: Token purpose
        data: Purpose-specific payload (e.g. {"report_id": ...})
        expires_at: Expiry (UTC)
        used_at: Set when redeemed; a used token is rejected
    """

    __tablename__ = "user_tokens"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    type: Mapped[TokenType] = mapped_column(Enum(TokenType, native_enum=False), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["UserModel"] = relationship("UserModel", back_populates="tokens")
