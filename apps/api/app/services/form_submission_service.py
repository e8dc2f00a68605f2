"""Recruitment submission service: public submit, moderation and reads."""

import logging
import uuid
from typing import Any, Iterable

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.structured_logging import build_log_context
from app.db.enums import DEFAULT_SUBMISSION_STATUS, FormAvailability, SubmissionStatus
from app.db.models import RecruitmentForm, RecruitmentSubmission
from app.schemas.forms import SubmissionCreate
from app.services import field_contracts, form_service, submission_codec
from app.services.field_contracts import FieldValidationError
from app.utils.datetime_parsing import utc_now
from app.utils.normalization import normalize_email, normalize_name, normalize_phone
from app.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)


class FormUnavailableError(ValueError):
    """The form is not accepting submissions right now."""

    def __init__(self, availability: FormAvailability):
        self.availability = availability
        messages = {
            FormAvailability.INACTIVE: "This form is not active",
            FormAvailability.FULL: "This form has reached its maximum number of responses",
            FormAvailability.EXPIRED: "This form is closed",
            FormAvailability.UPCOMING: "This form is not open yet",
        }
        super().__init__(messages.get(availability, "This form is not accepting responses"))


class DuplicateSubmissionError(ValueError):
    """The applicant already submitted this form."""


# =============================================================================
# Submit
# =============================================================================


def _known_answers(fields: Iterable, answers: dict[str, Any]) -> dict[str, Any]:
    """Drop answers for ids the schema does not declare."""
    known = {f.id for f in fields}
    dropped = sorted(set(answers) - known)
    if dropped:
        logger.debug("Dropping answers for unknown fields", extra={"field_ids": dropped})
    return {k: v for k, v in answers.items() if k in known}


def create_submission(
    db: Session,
    form: RecruitmentForm,
    payload: SubmissionCreate,
) -> RecruitmentSubmission:
    """
    Accept one applicant's answers.

    The wire answers are decoded with the form schema and re-validated here;
    this is the authoritative check. The row insert and the response counter
    increment commit together.

    Raises:
        FormUnavailableError: form inactive, full, expired or upcoming
        FieldValidationError: one or more answers fail their field contract
        DuplicateSubmissionError: this email already applied to this form
    """
    state = form_service.availability(form)
    if state != FormAvailability.OPEN:
        raise FormUnavailableError(state)

    fields = form_service.form_fields(form)
    answers = _known_answers(fields, submission_codec.decode(payload.answers, fields))
    errors = field_contracts.validate_answers(fields, answers)
    if errors:
        raise FieldValidationError(errors)

    email = normalize_email(payload.applicant_email) or ""
    existing = (
        db.query(RecruitmentSubmission.id)
        .filter(
            RecruitmentSubmission.form_id == form.id,
            RecruitmentSubmission.applicant_email == email,
        )
        .first()
    )
    if existing:
        raise DuplicateSubmissionError("You have already submitted this form")

    # Conditional increment so concurrent submits cannot overshoot max_responses
    updated = (
        db.query(RecruitmentForm)
        .filter(
            RecruitmentForm.id == form.id,
            or_(
                RecruitmentForm.max_responses.is_(None),
                RecruitmentForm.current_responses < RecruitmentForm.max_responses,
            ),
        )
        .update(
            {RecruitmentForm.current_responses: RecruitmentForm.current_responses + 1},
            synchronize_session=False,
        )
    )
    if not updated:
        db.rollback()
        raise FormUnavailableError(FormAvailability.FULL)

    submission = RecruitmentSubmission(
        form_id=form.id,
        project_item_id=form.project_item_id,
        role_applied=form.role,
        applicant_name=normalize_name(payload.applicant_name) or "",
        applicant_email=email,
        applicant_phone=normalize_phone(payload.applicant_phone),
        status=DEFAULT_SUBMISSION_STATUS.value,
        answers_json=answers,
        created_at=utc_now(),
    )
    db.add(submission)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateSubmissionError("You have already submitted this form") from exc

    db.refresh(submission)
    db.refresh(form)
    logger.info(
        "Recruitment submission created",
        extra=build_log_context(form_id=str(form.id), submission_id=str(submission.id)),
    )
    return submission


# =============================================================================
# Reads
# =============================================================================


def get_submission(db: Session, submission_id: uuid.UUID) -> RecruitmentSubmission | None:
    return (
        db.query(RecruitmentSubmission)
        .filter(RecruitmentSubmission.id == submission_id)
        .first()
    )


def _filtered_query(
    db: Session,
    *,
    form_id: uuid.UUID | None = None,
    status: str | None = None,
    search: str | None = None,
):
    query = db.query(RecruitmentSubmission)
    if form_id:
        query = query.filter(RecruitmentSubmission.form_id == form_id)
    if status:
        query = query.filter(RecruitmentSubmission.status == status)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                RecruitmentSubmission.applicant_name.ilike(search_term),
                RecruitmentSubmission.applicant_email.ilike(search_term),
                RecruitmentSubmission.applicant_phone.ilike(search_term),
            )
        )
    return query


def list_submissions(
    db: Session,
    *,
    form_id: uuid.UUID | None = None,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[RecruitmentSubmission], int]:
    """
    List submissions newest first with filters and pagination.

    Returns (items, total_count).
    """
    query = _filtered_query(db, form_id=form_id, status=status, search=search).order_by(
        RecruitmentSubmission.created_at.desc()
    )
    return paginate_query(query, PaginationParams(page=page, per_page=per_page))


def list_all_for_form(
    db: Session,
    form_id: uuid.UUID,
    limit: int | None = None,
) -> list[RecruitmentSubmission]:
    """
    Committed submissions in submission order, for analytics and export.

    With a limit, the newest ``limit`` submissions are kept, still returned
    oldest first. ``limit=0`` reads everything.
    """
    limit = settings.ANALYTICS_MAX_SUBMISSIONS if limit is None else limit
    query = db.query(RecruitmentSubmission).filter(RecruitmentSubmission.form_id == form_id)
    if limit and limit > 0:
        newest = query.order_by(RecruitmentSubmission.created_at.desc()).limit(limit).all()
        return list(reversed(newest))
    return query.order_by(RecruitmentSubmission.created_at.asc()).all()


def count_for_form(db: Session, form_id: uuid.UUID) -> int:
    return (
        db.query(func.count(RecruitmentSubmission.id))
        .filter(RecruitmentSubmission.form_id == form_id)
        .scalar()
        or 0
    )


def status_counts(db: Session, *, form_id: uuid.UUID | None = None, search: str | None = None) -> dict[str, int]:
    rows = (
        _filtered_query(db, form_id=form_id, search=search)
        .with_entities(RecruitmentSubmission.status, func.count(RecruitmentSubmission.id))
        .group_by(RecruitmentSubmission.status)
        .all()
    )
    counts = {status.value: 0 for status in SubmissionStatus}
    for status, count in rows:
        counts[status] = count
    counts["all"] = sum(count for _, count in rows)
    return counts


# =============================================================================
# Moderation
# =============================================================================


def update_status(
    db: Session,
    submission: RecruitmentSubmission,
    status: SubmissionStatus,
    review_notes: str | None,
    reviewer_id: uuid.UUID | None,
) -> RecruitmentSubmission:
    """Set the flat moderation label. Any status may follow any other."""
    submission.status = status.value
    if review_notes is not None:
        submission.review_notes = review_notes
    submission.reviewed_at = utc_now()
    submission.reviewed_by_user_id = reviewer_id

    db.commit()
    db.refresh(submission)
    logger.info(
        "Recruitment submission status updated",
        extra=build_log_context(
            user_id=str(reviewer_id) if reviewer_id else None,
            submission_id=str(submission.id),
        ),
    )
    return submission


def delete_submission(db: Session, submission: RecruitmentSubmission) -> None:
    """Delete a submission and give its slot back to the form."""
    submission_id = submission.id
    form_id = submission.form_id
    db.query(RecruitmentForm).filter(
        RecruitmentForm.id == form_id,
        RecruitmentForm.current_responses > 0,
    ).update(
        {RecruitmentForm.current_responses: RecruitmentForm.current_responses - 1},
        synchronize_session=False,
    )
    db.delete(submission)
    db.commit()
    logger.info(
        "Recruitment submission deleted",
        extra=build_log_context(form_id=str(form_id), submission_id=str(submission_id)),
    )
