"""Database boundary: ORM base, models, CRUD and connection management."""

from car_repair.boundary.db.base import Base
from car_repair.boundary.db.connection import (
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)

__all__ = ["Base", "get_async_db", "get_async_engine", "get_async_session_factory"]
