from .base import Base
from .session import (
    async_session_factory,
    create_engine_for,
    create_session_factory,
    engine,
    get_db_session,
)
from .models import FileRecordModel, UserAccountModel

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "create_engine_for",
    "create_session_factory",
    "get_db_session",
    "FileRecordModel",
    "UserAccountModel",
]
