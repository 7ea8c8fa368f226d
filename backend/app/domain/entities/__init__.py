from .file_record import (
    EDITABLE_FIELDS,
    LENDING_FIELDS,
    FileRecord,
    FileStatus,
    NewFileRecord,
    StorageUnit,
)
from .user_account import UserAccount, UserRole

__all__ = [
    "EDITABLE_FIELDS",
    "LENDING_FIELDS",
    "FileRecord",
    "FileStatus",
    "NewFileRecord",
    "StorageUnit",
    "UserAccount",
    "UserRole",
]
