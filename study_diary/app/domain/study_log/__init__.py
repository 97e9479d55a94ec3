"""Study log domain package."""

from .criteria import StudyLogCriteria, matches
from .models import DeletionReceipt, StudyLog
from .ordering import Ordering, SortDirection, SortField
from .pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MIN_PAGE_SIZE,
    Page,
    PageRequest,
    paginate,
)
from .repository import (
    InMemoryStudyLogRepository,
    SqlStudyLogRepository,
    StudyLogRepository,
    build_study_log_repository,
    study_logs_table,
)
from .service import StudyLogService
from .types import (
    Category,
    StudyLogNotFoundError,
    StudyLogServiceError,
    StudyLogStorageError,
    StudyLogValidationError,
    Understanding,
)

__all__ = [
    "Category",
    "DEFAULT_PAGE_SIZE",
    "DeletionReceipt",
    "InMemoryStudyLogRepository",
    "MAX_PAGE_SIZE",
    "MIN_PAGE_SIZE",
    "Ordering",
    "Page",
    "PageRequest",
    "SortDirection",
    "SortField",
    "SqlStudyLogRepository",
    "StudyLog",
    "StudyLogCriteria",
    "StudyLogNotFoundError",
    "StudyLogRepository",
    "StudyLogService",
    "StudyLogServiceError",
    "StudyLogStorageError",
    "StudyLogValidationError",
    "Understanding",
    "build_study_log_repository",
    "matches",
    "paginate",
    "study_logs_table",
]
