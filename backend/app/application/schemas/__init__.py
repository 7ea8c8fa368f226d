from .auth import LoginRequest, TokenResponse, UserCreate, UserResponse
from .file_record import (
    BatchDeleteRequest,
    BatchDeleteResponse,
    BorrowRequest,
    FileRecordCreate,
    FileRecordResponse,
    FileRecordUpdate,
    FilterUpdate,
    ImportResultResponse,
    ImportRowErrorSchema,
    PageResponse,
    RetainRequest,
    SearchUpdate,
)

__all__ = [
    "LoginRequest",
    "TokenResponse",
    "UserCreate",
    "UserResponse",
    "BatchDeleteRequest",
    "BatchDeleteResponse",
    "BorrowRequest",
    "FileRecordCreate",
    "FileRecordResponse",
    "FileRecordUpdate",
    "FilterUpdate",
    "ImportResultResponse",
    "ImportRowErrorSchema",
    "PageResponse",
    "RetainRequest",
    "SearchUpdate",
]
