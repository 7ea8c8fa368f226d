from .file_record_repository import FileRecordRepository
from .user_repository import UserRepository

__all__ = [
    "FileRecordRepository",
    "UserRepository",
]
