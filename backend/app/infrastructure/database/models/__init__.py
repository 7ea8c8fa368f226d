from .file_record import FileRecordModel
from .user_account import UserAccountModel

__all__ = [
    "FileRecordModel",
    "UserAccountModel",
]
