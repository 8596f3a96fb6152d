"""
Task status registry.

Resolves status names to their lookup-table ids (cached after first
read) and applies guarded status transitions. Every applied transition
also writes a status history row in the same transaction.

Dependencies: sqlalchemy, car_repair.boundary.db
System role: Single source of truth for the task status state machine
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from car_repair.boundary.db.CRUD.task_crud import task_crud
from car_repair.boundary.db.CRUD.task_status_crud import task_status_crud
from car_repair.boundary.db.models.task_status_model import TaskStatusName
from car_repair.core.exceptions import StatusNotFoundError

logger = logging.getLogger(__name__)

# Target status -> statuses it may be entered from. None means "no status yet".
ALLOWED_SOURCES: dict[TaskStatusName, frozenset[TaskStatusName | None]] = {
    TaskStatusName.IMAGE_UPLOADED: frozenset({None}),
    TaskStatusName.PROCESSING: frozenset(
        {None, TaskStatusName.IMAGE_UPLOADED, TaskStatusName.PROCESSING}
    ),
    TaskStatusName.COMPLETED: frozenset(
        {None, TaskStatusName.IMAGE_UPLOADED, TaskStatusName.PROCESSING}
    ),
    TaskStatusName.FAILED: frozenset(
        {None, TaskStatusName.IMAGE_UPLOADED, TaskStatusName.PROCESSING}
    ),
}


def is_transition_allowed(current: TaskStatusName | None, target: TaskStatusName) -> bool:
    """Whether a task in `current` may move to `target`."""
    return current in ALLOWED_SOURCES[target]


class StatusRegistry:
    """
    Status vocabulary resolver and transition writer.

    Status ids never change after seeding, so the name map is loaded once
    per registry and reused.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._ids: dict[str, UUID] = {}
        self._lock = asyncio.Lock()

    async def resolve(self, name: TaskStatusName | str, session: AsyncSession | None = None) -> UUID:
        """
        Resolve a status name to its id.

        Args:
            name: Status name
            session: Optional session to read through on a cache miss

        Returns:
            UUID: Status id

        Raises:
            StatusNotFoundError: The name has not been seeded
        """
        key = name.value if isinstance(name, TaskStatusName) else name
        if key not in self._ids:
            await self._load(session)
        try:
            return self._ids[key]
        except KeyError:
            raise StatusNotFoundError(key) from None

    async def seed(self) -> list[str]:
        """Insert missing status names and refresh the cache."""
        async with self._session_factory() as session:
            inserted = await task_status_crud.ensure_names(
                session, [status.value for status in TaskStatusName]
            )
            await session.commit()
        self._ids.clear()
        return inserted

    async def transition_in_session(
        self,
        session: AsyncSession,
        task_id: UUID,
        target: TaskStatusName,
    ) -> bool:
        """
        Move a task to `target` inside the caller's transaction.

        Returns:
            True if applied, False if the task is missing or its current
            status does not allow the move (e.g. already completed)
        """
        target_id = await self.resolve(target, session)
        allowed = ALLOWED_SOURCES[target]
        allowed_ids = [await self.resolve(source, session) for source in allowed if source is not None]

        applied = await task_crud.set_status_if_current_in(
            session,
            task_id,
            target_id,
            allowed_current_ids=allowed_ids,
            allow_unset=None in allowed,
        )
        if applied:
            await task_status_crud.add_history(session, task_id, target_id)
        else:
            logger.info(
                f"{__name__}:transition_in_session - Transition rejected",
                extra={"task_id": str(task_id), "target": target.value},
            )
        return applied

    async def transition(self, task_id: UUID, target: TaskStatusName) -> bool:
        """
        Move a task to `target` in its own transaction.

        Raises:
            SQLAlchemyError: Propagated after rollback
        """
        async with self._session_factory() as session:
            try:
                applied = await self.transition_in_session(session, task_id, target)
                await session.commit()
                return applied
            except Exception:
                await session.rollback()
                raise

    async def _load(self, session: AsyncSession | None) -> None:
        async with self._lock:
            if session is not None:
                self._ids = await task_status_crud.get_name_map(session)
                return
            async with self._session_factory() as own_session:
                self._ids = await task_status_crud.get_name_map(own_session)
