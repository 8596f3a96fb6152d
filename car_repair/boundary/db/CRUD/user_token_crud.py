"""
User token CRUD operations.

Dependencies: sqlalchemy, car_repair.boundary.db.models
System role: Token persistence operations
"""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from car_repair.boundary.db.CRUD.base_crud import BaseCRUD
from car_repair.boundary.db.models.user_token_model import TokenType, UserTokenModel


class UserTokenCRUD(BaseCRUD[UserTokenModel]):
    """CRUD operations for UserTokenModel."""

    def __init__(self) -> None:
        super().__init__(UserTokenModel)

    async def get_by_token(
        self,
        session: AsyncSession,
        token: str,
        token_type: TokenType,
    ) -> UserTokenModel | None:
        """Look up a token string of the given type."""
        result = await session.execute(
            select(UserTokenModel).where(
                UserTokenModel.token == token,
                UserTokenModel.type == token_type,
            )
        )
        return result.scalar_one_or_none()

    async def mark_used(self, session: AsyncSession, token: str, used_at: datetime) -> bool:
        """
        Redeem a token.

        Returns:
            True if this call redeemed it, False if it was already used
        """
        stmt = (
            update(UserTokenModel)
            .where(UserTokenModel.token == token, UserTokenModel.used_at.is_(None))
            .values(used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0


user_token_crud = UserTokenCRUD()
