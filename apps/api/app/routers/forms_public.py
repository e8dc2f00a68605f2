"""Public recruitment endpoints for applicants."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db
from app.core.rate_limit import limiter
from app.core.structured_logging import build_log_context
from app.db.enums import FieldType, FormAvailability, FormRole
from app.schemas.forms import (
    FormListResponse,
    FormPublicRead,
    FormSummary,
    RenderField,
    SubmissionCreate,
    SubmissionCreated,
    UploadRead,
)
from app.services import (
    field_contracts,
    form_schema_service,
    form_service,
    form_submission_service,
    upload_service,
)
from app.services.field_contracts import FieldValidationError
from app.services.form_submission_service import DuplicateSubmissionError, FormUnavailableError
from app.services.upload_service import UploadRejectedError
from app.utils.file_upload import content_length_exceeds_limit, get_upload_file_size
from app.utils.pagination import PaginationParams, get_pagination

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recruitment", tags=["recruitment-public"])


def _field_errors_detail(exc: FieldValidationError) -> dict:
    return {
        "message": "Some answers need attention",
        "field_errors": {
            (e.field_id or "_form"): {"label": e.label, "message": e.message} for e in exc.errors
        },
    }


def _get_form_or_404(db: Session, form_id: UUID):
    form = form_service.get_form(db, form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


@router.get("", response_model=FormListResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PUBLIC_READ}/minute")
def list_open_forms(
    request: Request,
    role: FormRole | None = None,
    project_item_id: str | None = Query(None, max_length=64),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    """Forms currently accepting applications."""
    forms, total = form_service.list_forms(
        db,
        role=role.value if role else None,
        project_item_id=project_item_id,
        available_only=True,
        page=pagination.page,
        per_page=pagination.per_page,
    )
    return FormListResponse(
        items=[FormSummary.model_validate(form_service.summarize_form(f)) for f in forms],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages(total),
    )


@router.get("/{form_id}", response_model=FormPublicRead)
@limiter.limit(f"{settings.RATE_LIMIT_PUBLIC_READ}/minute")
def get_public_form(request: Request, form_id: UUID, db: Session = Depends(get_db)):
    """Form schema plus the render contract a renderer builds inputs from."""
    form = _get_form_or_404(db, form_id)
    fields = form_service.form_fields(form)

    schema_errors = form_schema_service.validate_fields(fields)
    if schema_errors:
        logger.warning(
            "Refusing to render invalid recruitment form",
            extra=build_log_context(form_id=str(form.id)),
        )
        raise HTTPException(status_code=409, detail="Form is not configured correctly")

    return FormPublicRead(
        id=form.id,
        title=form.title,
        description=form.description,
        role=form.role,
        image=form.image,
        availability=form_service.availability(form),
        start_date=form.start_date,
        end_date=form.end_date,
        fields=[RenderField.model_validate(d) for d in field_contracts.render_contract(fields)],
    )


@router.post("/{form_id}/submit", response_model=SubmissionCreated, status_code=201)
@limiter.limit(f"{settings.RATE_LIMIT_PUBLIC_SUBMIT}/minute")
def submit_form(
    request: Request,
    form_id: UUID,
    body: SubmissionCreate,
    db: Session = Depends(get_db),
):
    form = _get_form_or_404(db, form_id)
    try:
        submission = form_submission_service.create_submission(db, form, body)
    except FieldValidationError as exc:
        raise HTTPException(status_code=422, detail=_field_errors_detail(exc)) from exc
    except DuplicateSubmissionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except FormUnavailableError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return SubmissionCreated(
        id=submission.id,
        status=submission.status,
        created_at=submission.created_at,
    )


@router.post("/{form_id}/uploads", response_model=UploadRead)
@limiter.limit(f"{settings.RATE_LIMIT_UPLOAD}/minute")
async def upload_answer_file(
    request: Request,
    form_id: UUID,
    file: UploadFile = File(...),
    field_id: str = Form(..., min_length=1, max_length=100),
    db: Session = Depends(get_db),
):
    """Store a file for one file field; the returned url becomes the answer value."""
    if content_length_exceeds_limit(request.headers.get("content-length")):
        raise HTTPException(status_code=413, detail="File too large")

    form = _get_form_or_404(db, form_id)
    state = form_service.availability(form)
    if state != FormAvailability.OPEN:
        raise HTTPException(status_code=400, detail=str(FormUnavailableError(state)))

    fields = {f.id: f for f in form_service.form_fields(form)}
    field = fields.get(field_id)
    if field is None or field.type != FieldType.FILE:
        raise HTTPException(status_code=400, detail="Field is not a file field")

    file_size = await get_upload_file_size(file)
    try:
        stored = upload_service.store_upload(
            file.file,
            filename=file.filename or "",
            content_type=file.content_type or "application/octet-stream",
            file_size=file_size,
            form_id=form.id,
            field_id=field_id,
        )
    except UploadRejectedError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return UploadRead(**stored)
