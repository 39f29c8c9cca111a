"""Database layer - session management, base models, and mixins."""

from mirath.core.database.base import Base, IdMixin, TimestampMixin, generate_id
from mirath.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "IdMixin",
    "TimestampMixin",
    "async_engine",
    "async_session_factory",
    "generate_id",
    "get_db",
]
