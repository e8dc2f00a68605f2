"""Recruitment form builder and analytics endpoints (console)."""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.deps import (
    get_db,
    require_console_user,
    require_csrf_header,
    require_roles,
)
from app.core.structured_logging import build_log_context
from app.db.enums import ROLES_CAN_DELETE, FormRole
from app.schemas.auth import UserSession
from app.schemas.forms import (
    FieldAggregateRead,
    FormAnalyticsRead,
    FormCreate,
    FormListResponse,
    FormRead,
    FormStats,
    FormSummary,
    FormUpdate,
    SchemaErrorRead,
    SchemaValidationResponse,
    SubmissionRead,
)
from app.services import (
    form_schema_service,
    form_service,
    form_submission_service,
    response_aggregator,
)
from app.services.form_schema_service import SchemaInvalidError
from app.services.form_service import ProjectDateConflictError
from app.utils.pagination import PaginationParams, get_pagination

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/recruitment-forms", tags=["recruitment-forms"])


def _schema_error_detail(exc: SchemaInvalidError) -> dict[str, Any]:
    return {"message": str(exc), "errors": [e.to_dict() for e in exc.errors]}


def _form_read(form) -> FormRead:
    return FormRead.model_validate(form_service.summarize_form(form))


def _form_summary(form) -> FormSummary:
    return FormSummary.model_validate(form_service.summarize_form(form))


def _get_form_or_404(db: Session, form_id: UUID):
    form = form_service.get_form(db, form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


# =============================================================================
# Form CRUD
# =============================================================================


@router.get("", response_model=FormListResponse)
def list_forms(
    search: str | None = Query(None, max_length=200),
    role: FormRole | None = None,
    is_active: bool | None = None,
    project_item_id: str | None = Query(None, max_length=64),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(require_console_user),
    db: Session = Depends(get_db),
):
    forms, total = form_service.list_forms(
        db,
        search=search,
        role=role.value if role else None,
        is_active=is_active,
        project_item_id=project_item_id,
        page=pagination.page,
        per_page=pagination.per_page,
    )
    return FormListResponse(
        items=[_form_summary(f) for f in forms],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages(total),
    )


@router.get("/stats", response_model=FormStats)
def get_form_stats(
    session: UserSession = Depends(require_console_user),
    db: Session = Depends(get_db),
):
    return FormStats(**form_service.form_stats(db))


@router.post(
    "/validate",
    response_model=SchemaValidationResponse,
    dependencies=[Depends(require_csrf_header)],
)
def validate_form_schema(
    payload: dict[str, Any] = Body(...),
    session: UserSession = Depends(require_console_user),
):
    """Check a form definition without saving it."""
    errors = form_schema_service.validate_schema_payload(payload)
    return SchemaValidationResponse(
        valid=not errors,
        errors=[SchemaErrorRead(**e.to_dict()) for e in errors],
    )


@router.post(
    "",
    response_model=FormRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_form(
    body: FormCreate,
    session: UserSession = Depends(require_console_user),
    db: Session = Depends(get_db),
):
    try:
        form = form_service.create_form(db, session.user_id, body)
    except SchemaInvalidError as exc:
        raise HTTPException(status_code=422, detail=_schema_error_detail(exc)) from exc
    except ProjectDateConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _form_read(form)


@router.get("/{form_id}", response_model=FormRead)
def get_form(
    form_id: UUID,
    session: UserSession = Depends(require_console_user),
    db: Session = Depends(get_db),
):
    return _form_read(_get_form_or_404(db, form_id))


@router.put(
    "/{form_id}",
    response_model=FormRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_form(
    form_id: UUID,
    body: FormUpdate,
    session: UserSession = Depends(require_console_user),
    db: Session = Depends(get_db),
):
    form = _get_form_or_404(db, form_id)
    try:
        form = form_service.update_form(db, form, session.user_id, body)
    except SchemaInvalidError as exc:
        raise HTTPException(status_code=422, detail=_schema_error_detail(exc)) from exc
    except ProjectDateConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _form_read(form)


@router.delete("", dependencies=[Depends(require_csrf_header)])
def delete_form(
    id: UUID = Query(..., description="Form id"),
    session: UserSession = Depends(require_roles(list(ROLES_CAN_DELETE))),
    db: Session = Depends(get_db),
):
    """Delete a form and all of its submissions (admin only)."""
    form = _get_form_or_404(db, id)
    form_service.delete_form(db, form)
    return {"success": True}


# =============================================================================
# Analytics & Export
# =============================================================================


@router.get("/{form_id}/analytics", response_model=FormAnalyticsRead)
def get_form_analytics(
    form_id: UUID,
    session: UserSession = Depends(require_console_user),
    db: Session = Depends(get_db),
):
    form = _get_form_or_404(db, form_id)
    fields = form_service.form_fields(form)
    submissions = form_submission_service.list_all_for_form(db, form.id)
    total = form_submission_service.count_for_form(db, form.id)
    aggregates = response_aggregator.aggregate_form(
        fields, [s.answers_json or {} for s in submissions]
    )
    truncated = total > len(submissions)
    if truncated:
        logger.info(
            "Recruitment analytics limited to newest %d of %d submissions",
            len(submissions),
            total,
            extra=build_log_context(form_id=str(form.id)),
        )
    logger.debug(
        "Recruitment analytics computed",
        extra=build_log_context(user_id=str(session.user_id), form_id=str(form.id)),
    )
    return FormAnalyticsRead(
        form_id=form.id,
        submission_count=len(submissions),
        total_submissions=total,
        truncated=truncated,
        fields=[FieldAggregateRead.model_validate(a.to_dict()) for a in aggregates],
    )


@router.get("/{form_id}/export", response_class=StreamingResponse)
def export_form_responses(
    form_id: UUID,
    session: UserSession = Depends(require_console_user),
    db: Session = Depends(get_db),
) -> StreamingResponse:
    """Export every response to a form as CSV, in submission order."""
    form = _get_form_or_404(db, form_id)
    fields = form_service.form_fields(form)
    submissions = [
        SubmissionRead.model_validate(s)
        for s in form_submission_service.list_all_for_form(db, form.id, limit=0)
    ]
    filename = response_aggregator.csv_filename((form.title or {}).get("en", ""))
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(
        response_aggregator.stream_csv(fields, submissions),
        media_type="text/csv",
        headers=headers,
    )
