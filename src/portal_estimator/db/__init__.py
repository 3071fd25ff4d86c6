"""Database layer: async SQLAlchemy models, sessions and repositories."""

from portal_estimator.db.base import Base, TimestampMixin, UUIDMixin, UUIDType
from portal_estimator.db.session import (
    close_db,
    create_test_engine,
    get_db,
    get_db_context,
    get_engine,
    get_session_factory,
    get_test_session_factory,
    init_db,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "UUIDType",
    "close_db",
    "create_test_engine",
    "get_db",
    "get_db_context",
    "get_engine",
    "get_session_factory",
    "get_test_session_factory",
    "init_db",
]
