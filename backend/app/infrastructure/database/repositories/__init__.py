from .file_record_repository import SQLAlchemyFileRecordRepository
from .user_repository import SQLAlchemyUserRepository

__all__ = [
    "SQLAlchemyFileRecordRepository",
    "SQLAlchemyUserRepository",
]
