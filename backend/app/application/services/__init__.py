from .auth_service import AuthenticatedSession, AuthService, LoginResult
from .record_filter import FILTER_FIELDS, PAGE_SIZES, Page, Pagination, RecordFilter
from .record_import_service import ImportRowError, ImportSummary, RecordImportService
from .record_store import BatchDeleteResult, RecordStore
from .store_session_manager import StoreSessionManager

__all__ = [
    "AuthService",
    "AuthenticatedSession",
    "LoginResult",
    "FILTER_FIELDS",
    "PAGE_SIZES",
    "Page",
    "Pagination",
    "RecordFilter",
    "ImportRowError",
    "ImportSummary",
    "RecordImportService",
    "BatchDeleteResult",
    "RecordStore",
    "StoreSessionManager",
]
