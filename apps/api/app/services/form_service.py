"""Recruitment form service: schema CRUD, availability and console stats."""

import logging
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.structured_logging import build_log_context
from app.db.enums import FormAvailability
from app.db.models import RecruitmentForm, RecruitmentSubmission
from app.schemas.forms import FieldDefinition, FormCreate, FormUpdate
from app.services import form_schema_service
from app.services.form_schema_service import SchemaInvalidError
from app.utils.datetime_parsing import as_utc, utc_now
from app.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)


class ProjectDateConflictError(ValueError):
    """Another active form for the same project overlaps the date window."""


# =============================================================================
# Helpers
# =============================================================================


def form_fields(form: RecruitmentForm) -> list[FieldDefinition]:
    return form_schema_service.load_fields(form.fields_json)


def availability(form: RecruitmentForm, now: datetime | None = None) -> FormAvailability:
    """Derived state, checked in order: inactive, full, expired, upcoming, open."""
    now = as_utc(now) or utc_now()
    if not form.is_active:
        return FormAvailability.INACTIVE
    if form.max_responses is not None and (form.current_responses or 0) >= form.max_responses:
        return FormAvailability.FULL
    end_date = as_utc(form.end_date)
    if end_date is not None and now > end_date:
        return FormAvailability.EXPIRED
    start_date = as_utc(form.start_date)
    if start_date is not None and now < start_date:
        return FormAvailability.UPCOMING
    return FormAvailability.OPEN


def _validate_or_raise(schema: FormCreate) -> None:
    errors = form_schema_service.validate_schema(schema)
    if errors:
        raise SchemaInvalidError(errors)


def _windows_overlap(
    a_start: datetime | None,
    a_end: datetime | None,
    b_start: datetime | None,
    b_end: datetime | None,
) -> bool:
    # Open-ended windows are unbounded on that side
    starts_before_b_ends = a_start is None or b_end is None or a_start <= b_end
    b_starts_before_a_ends = b_start is None or a_end is None or b_start <= a_end
    return starts_before_b_ends and b_starts_before_a_ends


def _check_project_conflict(
    db: Session,
    *,
    project_item_id: str | None,
    is_active: bool,
    start_date: datetime | None,
    end_date: datetime | None,
    exclude_form_id: uuid.UUID | None = None,
) -> None:
    if not project_item_id or not is_active:
        return
    query = db.query(RecruitmentForm).filter(
        RecruitmentForm.project_item_id == project_item_id,
        RecruitmentForm.is_active.is_(True),
    )
    if exclude_form_id is not None:
        query = query.filter(RecruitmentForm.id != exclude_form_id)
    for existing in query.all():
        if _windows_overlap(
            as_utc(start_date),
            as_utc(end_date),
            as_utc(existing.start_date),
            as_utc(existing.end_date),
        ):
            raise ProjectDateConflictError(
                "Date Conflict: Another active form exists for this project in the selected date range."
            )


# =============================================================================
# CRUD
# =============================================================================


def list_forms(
    db: Session,
    *,
    search: str | None = None,
    role: str | None = None,
    is_active: bool | None = None,
    project_item_id: str | None = None,
    available_only: bool = False,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[RecruitmentForm], int]:
    """
    List forms newest first with filters and pagination.

    ``available_only`` keeps forms that are open right now (active, inside
    their window, not full).

    Returns (items, total_count).
    """
    query = db.query(RecruitmentForm)

    # Search either language of title or description
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                RecruitmentForm.title["en"].as_string().ilike(search_term),
                RecruitmentForm.title["ta"].as_string().ilike(search_term),
                RecruitmentForm.description["en"].as_string().ilike(search_term),
                RecruitmentForm.description["ta"].as_string().ilike(search_term),
            )
        )
    if role:
        query = query.filter(RecruitmentForm.role == role)
    if is_active is not None:
        query = query.filter(RecruitmentForm.is_active.is_(is_active))
    if project_item_id:
        query = query.filter(RecruitmentForm.project_item_id == project_item_id)
    if available_only:
        now = utc_now()
        query = query.filter(
            RecruitmentForm.is_active.is_(True),
            or_(RecruitmentForm.start_date.is_(None), RecruitmentForm.start_date <= now),
            or_(RecruitmentForm.end_date.is_(None), RecruitmentForm.end_date >= now),
            or_(
                RecruitmentForm.max_responses.is_(None),
                RecruitmentForm.current_responses < RecruitmentForm.max_responses,
            ),
        )

    query = query.order_by(RecruitmentForm.created_at.desc(), RecruitmentForm.id.desc())
    return paginate_query(query, PaginationParams(page=page, per_page=per_page))


def get_form(db: Session, form_id: uuid.UUID) -> RecruitmentForm | None:
    return db.query(RecruitmentForm).filter(RecruitmentForm.id == form_id).first()


def create_form(db: Session, user_id: uuid.UUID | None, data: FormCreate) -> RecruitmentForm:
    _validate_or_raise(data)
    _check_project_conflict(
        db,
        project_item_id=data.project_item_id,
        is_active=data.is_active,
        start_date=data.start_date,
        end_date=data.end_date,
    )

    now = utc_now()
    form = RecruitmentForm(
        title=data.title.model_dump(),
        description=data.description.model_dump() if data.description else None,
        role=data.role.value,
        project_item_id=data.project_item_id or None,
        fields_json=form_schema_service.dump_fields(form_schema_service.ordered_fields(data.fields)),
        image=data.image or None,
        is_active=data.is_active,
        start_date=as_utc(data.start_date),
        end_date=as_utc(data.end_date),
        max_responses=data.max_responses,
        current_responses=0,
        email_notification=data.email_notification,
        created_by_user_id=user_id,
        updated_by_user_id=user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(form)
    db.commit()
    db.refresh(form)
    logger.info(
        "Recruitment form created",
        extra=build_log_context(user_id=str(user_id) if user_id else None, form_id=str(form.id)),
    )
    return form


NULLABLE_FORM_KEYS = frozenset(
    {"description", "project_item_id", "image", "start_date", "end_date", "max_responses"}
)


def _provided_changes(data: FormUpdate) -> dict[str, Any]:
    """Keys sent in the update; explicit nulls only count where the column allows them."""
    return {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FORM_KEYS
    }


def _merged_schema(form: RecruitmentForm, data: FormUpdate) -> FormCreate:
    """The form as it would look after applying a partial update."""
    provided = _provided_changes(data)
    current: dict[str, Any] = {
        "title": form.title,
        "description": form.description,
        "role": form.role,
        "project_item_id": form.project_item_id,
        "fields": form.fields_json,
        "image": form.image,
        "is_active": form.is_active,
        "start_date": as_utc(form.start_date),
        "end_date": as_utc(form.end_date),
        "max_responses": form.max_responses,
        "email_notification": form.email_notification,
    }
    current.update(provided)
    return FormCreate.model_validate(current)


def update_form(
    db: Session,
    form: RecruitmentForm,
    user_id: uuid.UUID | None,
    data: FormUpdate,
) -> RecruitmentForm:
    """Apply a partial update. Only fields present in the request change."""
    merged = _merged_schema(form, data)
    _validate_or_raise(merged)
    _check_project_conflict(
        db,
        project_item_id=merged.project_item_id,
        is_active=merged.is_active,
        start_date=merged.start_date,
        end_date=merged.end_date,
        exclude_form_id=form.id,
    )

    provided = set(_provided_changes(data))
    if "title" in provided:
        form.title = merged.title.model_dump()
    if "description" in provided:
        form.description = merged.description.model_dump() if merged.description else None
    if "role" in provided:
        form.role = merged.role.value
    if "project_item_id" in provided:
        form.project_item_id = merged.project_item_id or None
    if "fields" in provided:
        form.fields_json = form_schema_service.dump_fields(
            form_schema_service.ordered_fields(merged.fields)
        )
    if "image" in provided:
        form.image = merged.image or None
    if "is_active" in provided:
        form.is_active = merged.is_active
    if "start_date" in provided:
        form.start_date = as_utc(merged.start_date)
    if "end_date" in provided:
        form.end_date = as_utc(merged.end_date)
    if "max_responses" in provided:
        form.max_responses = merged.max_responses
    if "email_notification" in provided:
        form.email_notification = merged.email_notification
    form.updated_by_user_id = user_id
    form.updated_at = utc_now()

    db.commit()
    db.refresh(form)
    logger.info(
        "Recruitment form updated",
        extra=build_log_context(user_id=str(user_id) if user_id else None, form_id=str(form.id)),
    )
    return form


def delete_form(db: Session, form: RecruitmentForm) -> None:
    """Delete a form together with every submission made to it."""
    form_id = form.id
    # Submissions go through the ORM cascade
    db.delete(form)
    db.commit()
    logger.info("Recruitment form deleted", extra=build_log_context(form_id=str(form_id)))


# =============================================================================
# Stats
# =============================================================================


def form_stats(db: Session) -> dict[str, Any]:
    total_forms = db.query(func.count(RecruitmentForm.id)).scalar() or 0
    active_forms = (
        db.query(func.count(RecruitmentForm.id))
        .filter(RecruitmentForm.is_active.is_(True))
        .scalar()
        or 0
    )
    total_submissions = db.query(func.count(RecruitmentSubmission.id)).scalar() or 0
    field_counts = [len(fields or []) for (fields,) in db.query(RecruitmentForm.fields_json).all()]
    average = sum(field_counts) / len(field_counts) if field_counts else 0.0
    return {
        "total_forms": total_forms,
        "active_forms": active_forms,
        "total_submissions": total_submissions,
        "average_field_count": round(average, 2),
    }


def summarize_form(form: RecruitmentForm, now: datetime | None = None) -> dict[str, Any]:
    """Response payload shared by list and detail endpoints."""
    return {
        "id": form.id,
        "title": form.title,
        "description": form.description,
        "role": form.role,
        "project_item_id": form.project_item_id,
        "fields": form_fields(form),
        "field_count": len(form.fields_json or []),
        "image": form.image,
        "is_active": form.is_active,
        "availability": availability(form, now),
        "start_date": as_utc(form.start_date),
        "end_date": as_utc(form.end_date),
        "max_responses": form.max_responses,
        "current_responses": form.current_responses,
        "email_notification": form.email_notification,
        "created_by_user_id": form.created_by_user_id,
        "created_at": as_utc(form.created_at),
        "updated_at": as_utc(form.updated_at),
    }
