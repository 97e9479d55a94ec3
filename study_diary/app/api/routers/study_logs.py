"""Study log CRUD, paging and search endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, model_validator

from ...api.dependencies import get_study_log_service
from ...domain.study_log import (
    DEFAULT_PAGE_SIZE,
    DeletionReceipt,
    Page,
    StudyLog,
    StudyLogService,
    StudyLogServiceError,
)

router = APIRouter(prefix="/api/v1/logs", tags=["study-logs"])


class StudyLogRecord(BaseModel):
    """API representation for a study log."""

    id: int
    title: str
    content: str
    category: str
    understanding: str
    study_time: int
    study_date: date
    created_at: datetime
    updated_at: datetime


class StudyLogPageResponse(BaseModel):
    """Standard paginated study log payload."""

    items: List[StudyLogRecord] = Field(default_factory=list)
    page: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    total_elements: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_previous: bool = False


class StudyLogCreateRequest(BaseModel):
    """Request body for POST /api/v1/logs."""

    title: str | None = None
    content: str | None = None
    category: str | None = None
    understanding: str | None = None
    study_time: int | None = None
    study_date: date | None = None


class StudyLogUpdateRequest(BaseModel):
    """Request body for PUT /api/v1/logs/{id}; only provided fields change."""

    title: str | None = None
    content: str | None = None
    category: str | None = None
    understanding: str | None = None
    study_time: int | None = None
    study_date: date | None = None

    @model_validator(mode="after")
    def _validate_mutation(self) -> "StudyLogUpdateRequest":
        if not any(
            value is not None
            for value in (
                self.title,
                self.content,
                self.category,
                self.understanding,
                self.study_time,
                self.study_date,
            )
        ):
            raise ValueError("At least one field must be provided")
        return self


class StudyLogDeleteResponse(BaseModel):
    id: int
    message: str
    deleted_at: datetime


PageIndex = Annotated[int, Query()]
PageSize = Annotated[int, Query()]
SortBy = Annotated[
    str | None,
    Query(pattern="^(created_at|id|title|study_time|study_date)$"),
]
SortDir = Annotated[str | None, Query(pattern="^(asc|desc)$")]


def _to_record(log: StudyLog) -> StudyLogRecord:
    return StudyLogRecord(
        id=log.id,
        title=log.title,
        content=log.content,
        category=log.category.name,
        understanding=log.understanding.name,
        study_time=log.study_time,
        study_date=log.study_date,
        created_at=log.created_at,
        updated_at=log.updated_at,
    )


def _to_page_response(page: Page[StudyLog]) -> StudyLogPageResponse:
    records = page.map(_to_record)
    return StudyLogPageResponse(
        items=records.content,
        page=records.page_index,
        page_size=records.page_size,
        total_elements=records.total_elements,
        total_pages=records.total_pages,
        has_next=records.has_next,
        has_previous=records.has_previous,
    )


def _to_delete_response(receipt: DeletionReceipt) -> StudyLogDeleteResponse:
    return StudyLogDeleteResponse(
        id=receipt.id,
        message=receipt.message,
        deleted_at=receipt.deleted_at,
    )


def _handle_service_error(exc: StudyLogServiceError) -> HTTPException:
    return HTTPException(
        status_code=int(exc.status_code),
        detail={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


@router.post(
    "",
    response_model=StudyLogRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create Study Log",
)
def create_study_log(
    payload: StudyLogCreateRequest,
    service: StudyLogService = Depends(get_study_log_service),
) -> StudyLogRecord:
    try:
        log = service.create(payload.model_dump(exclude_none=True))
    except StudyLogServiceError as exc:
        raise _handle_service_error(exc) from exc
    return _to_record(log)


@router.get("", response_model=List[StudyLogRecord], summary="List Study Logs")
def list_study_logs(
    service: StudyLogService = Depends(get_study_log_service),
) -> List[StudyLogRecord]:
    try:
        logs = service.list_all()
    except StudyLogServiceError as exc:
        raise _handle_service_error(exc) from exc
    return [_to_record(log) for log in logs]


@router.get(
    "/page",
    response_model=StudyLogPageResponse,
    summary="Page Study Logs",
)
def page_study_logs(
    page: PageIndex = 0,
    size: PageSize = DEFAULT_PAGE_SIZE,
    sort_by: SortBy = None,
    sort_dir: SortDir = None,
    service: StudyLogService = Depends(get_study_log_service),
) -> StudyLogPageResponse:
    try:
        result = service.get_page(page, size, sort_by=sort_by, sort_dir=sort_dir)
    except StudyLogServiceError as exc:
        raise _handle_service_error(exc) from exc
    return _to_page_response(result)


@router.get(
    "/search",
    response_model=StudyLogPageResponse,
    summary="Search Study Logs",
)
def search_study_logs(
    title: Annotated[str | None, Query(max_length=100)] = None,
    category: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    page: PageIndex = 0,
    size: PageSize = DEFAULT_PAGE_SIZE,
    sort_by: SortBy = None,
    sort_dir: SortDir = None,
    service: StudyLogService = Depends(get_study_log_service),
) -> StudyLogPageResponse:
    try:
        result = service.search(
            title=title,
            category=category,
            start_date=start_date,
            end_date=end_date,
            page=page,
            size=size,
            sort_by=sort_by,
            sort_dir=sort_dir,
        )
    except StudyLogServiceError as exc:
        raise _handle_service_error(exc) from exc
    return _to_page_response(result)


@router.get(
    "/date/{study_date}",
    response_model=List[StudyLogRecord],
    summary="List Study Logs By Date",
)
def list_study_logs_by_date(
    study_date: date,
    service: StudyLogService = Depends(get_study_log_service),
) -> List[StudyLogRecord]:
    try:
        logs = service.list_by_date(study_date)
    except StudyLogServiceError as exc:
        raise _handle_service_error(exc) from exc
    return [_to_record(log) for log in logs]


@router.get(
    "/category/{category}",
    response_model=List[StudyLogRecord],
    summary="List Study Logs By Category",
)
def list_study_logs_by_category(
    category: str,
    service: StudyLogService = Depends(get_study_log_service),
) -> List[StudyLogRecord]:
    try:
        logs = service.list_by_category(category)
    except StudyLogServiceError as exc:
        raise _handle_service_error(exc) from exc
    return [_to_record(log) for log in logs]


@router.get(
    "/category/{category}/page",
    response_model=StudyLogPageResponse,
    summary="Page Study Logs By Category",
)
def page_study_logs_by_category(
    category: str,
    page: PageIndex = 0,
    size: PageSize = DEFAULT_PAGE_SIZE,
    sort_by: SortBy = None,
    sort_dir: SortDir = None,
    service: StudyLogService = Depends(get_study_log_service),
) -> StudyLogPageResponse:
    try:
        result = service.get_page_by_category(
            category, page, size, sort_by=sort_by, sort_dir=sort_dir
        )
    except StudyLogServiceError as exc:
        raise _handle_service_error(exc) from exc
    return _to_page_response(result)


@router.get(
    "/{log_id}",
    response_model=StudyLogRecord,
    summary="Get Study Log",
)
def get_study_log(
    log_id: int,
    service: StudyLogService = Depends(get_study_log_service),
) -> StudyLogRecord:
    try:
        log = service.get(log_id)
    except StudyLogServiceError as exc:
        raise _handle_service_error(exc) from exc
    return _to_record(log)


@router.put(
    "/{log_id}",
    response_model=StudyLogRecord,
    summary="Update Study Log",
)
def update_study_log(
    log_id: int,
    payload: StudyLogUpdateRequest,
    service: StudyLogService = Depends(get_study_log_service),
) -> StudyLogRecord:
    try:
        log = service.update(log_id, payload.model_dump(exclude_none=True))
    except StudyLogServiceError as exc:
        raise _handle_service_error(exc) from exc
    return _to_record(log)


@router.delete(
    "/{log_id}",
    response_model=StudyLogDeleteResponse,
    summary="Delete Study Log",
)
def delete_study_log(
    log_id: int,
    service: StudyLogService = Depends(get_study_log_service),
) -> StudyLogDeleteResponse:
    try:
        receipt = service.delete(log_id)
    except StudyLogServiceError as exc:
        raise _handle_service_error(exc) from exc
    return _to_delete_response(receipt)
