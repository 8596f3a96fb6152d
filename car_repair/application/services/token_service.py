"""
User token service.

Issues and validates single-use, expiring tokens. Direct-access tokens let
a report-ready email link straight to the report without a login.

Dependencies: secrets (stdlib), car_repair.boundary.db.CRUD
System role: Credential issuing for emailed links
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from car_repair.boundary.db.base import as_utc, utc_now
from car_repair.boundary.db.CRUD.user_token_crud import user_token_crud
from car_repair.boundary.db.models.user_token_model import TokenType, UserTokenModel

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


@dataclass(frozen=True)
class TokenCheck:
    """Result of presenting a token."""

    valid: bool
    reason: str | None = None
    user_id: UUID | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def rejected(cls, reason: str) -> "TokenCheck":
        return cls(valid=False, reason=reason)


def generate_token() -> str:
    """64 hex characters from a CSPRNG."""
    return secrets.token_hex(TOKEN_BYTES)


class TokenService:
    """Issue and validate user tokens."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize token service.

        Args:
            db: AsyncSession for database operations
        """
        self.db = db

    async def create_token(
        self,
        user_id: UUID,
        token_type: TokenType,
        lifetime: timedelta,
        data: dict[str, Any] | None = None,
    ) -> UserTokenModel:
        """
        Create and commit a token.

        Args:
            user_id: Token owner
            token_type: Token purpose
            lifetime: Time until expiry
            data: Purpose-specific payload

        Returns:
            UserTokenModel: Persisted token
        """
        try:
            token = await user_token_crud.create(
                self.db,
                user_id=user_id,
                token=generate_token(),
                type=token_type,
                data=data or {},
                expires_at=utc_now() + lifetime,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(
            f"{__name__}:create_token - Token issued",
            extra={"user_id": str(user_id), "token_type": token_type.value},
        )
        return token

    async def create_direct_access_token(
        self,
        user_id: UUID,
        report_id: UUID,
        days: int = 7,
    ) -> str:
        """
        Issue a direct-access token for one report.

        Returns:
            str: Token string for the link
        """
        token = await self.create_token(
            user_id,
            TokenType.DIRECT_ACCESS,
            timedelta(days=days),
            data={"report_id": str(report_id)},
        )
        return token.token

    async def validate(self, token: str, token_type: TokenType, consume: bool = False) -> TokenCheck:
        """
        Check a token and optionally consume it.

        Args:
            token: Token string from the link
            token_type: Expected purpose
            consume: Mark the token used so it cannot be presented again

        Returns:
            TokenCheck: valid with owner and payload, or invalid with a
            reason (missing, invalid, used, expired)
        """
        if not token:
            return TokenCheck.rejected("missing")
        record = await user_token_crud.get_by_token(self.db, token, token_type)
        if record is None:
            return TokenCheck.rejected("invalid")
        if record.used_at is not None:
            return TokenCheck.rejected("used")
        now = utc_now()
        if as_utc(record.expires_at) <= now:
            return TokenCheck.rejected("expired")

        check = TokenCheck(valid=True, user_id=record.user_id, data=dict(record.data or {}))
        if consume:
            if not await user_token_crud.mark_used(self.db, token, now):
                await self.db.rollback()
                return TokenCheck.rejected("used")
            await self.db.commit()
            logger.info(
                f"{__name__}:validate - Token consumed",
                extra={"user_id": str(check.user_id), "token_type": token_type.value},
            )
        return check
