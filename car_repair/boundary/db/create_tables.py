"""
Database table creation and lookup seeding.

Creates all tables defined in ORM models and seeds the status and image
type vocabularies. Both steps are idempotent.

Dependencies: sqlalchemy, car_repair.configs
System role: Database schema initialization

Usage:
    python -m car_repair.boundary.db.create_tables
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from car_repair.boundary.db.base import Base
from car_repair.boundary.db.connection import create_session_factory, get_async_engine
from car_repair.boundary.db.CRUD.task_status_crud import task_status_crud

# Import all models to register them with Base.metadata
from car_repair.boundary.db.models import (  # noqa: F401
    IMAGE_TYPE_NAMES,
    ImageModel,
    ImageTypeModel,
    QueueJobModel,
    ReportModel,
    TaskModel,
    TaskStatusHistoryModel,
    TaskStatusModel,
    TaskStatusName,
    UserModel,
    UserTokenModel,
)

logger = logging.getLogger(__name__)


async def create_all_tables(engine: AsyncEngine) -> None:
    """
    Create all database tables from registered ORM models.

    Args:
        engine: Async engine to create the schema on

    Raises:
        SQLAlchemyError: If the connection or DDL fails
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{__name__}:create_all_tables - Tables created")


async def seed_lookup_tables(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """
    Insert missing task statuses and image types.

    Args:
        session_factory: Session factory for the target database
    """
    async with session_factory() as session:
        inserted_statuses = await task_status_crud.ensure_names(
            session, [status.value for status in TaskStatusName]
        )

        result = await session.execute(select(ImageTypeModel.name))
        existing_types = set(result.scalars().all())
        inserted_types = [name for name in IMAGE_TYPE_NAMES if name not in existing_types]
        session.add_all(ImageTypeModel(name=name) for name in inserted_types)

        await session.commit()

    logger.info(
        f"{__name__}:seed_lookup_tables - Lookups seeded",
        extra={"statuses": inserted_statuses, "image_types": inserted_types},
    )


async def initialize_database(engine: AsyncEngine) -> None:
    """Create the schema and seed lookups on an engine."""
    await create_all_tables(engine)
    await seed_lookup_tables(create_session_factory(engine))


async def _main() -> None:
    engine = get_async_engine()
    try:
        await initialize_database(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_main())
