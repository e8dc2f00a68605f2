"""Console moderation of recruitment submissions."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_console_user, require_csrf_header, require_roles
from app.db.enums import ROLES_CAN_DELETE, SubmissionStatus
from app.schemas.auth import UserSession
from app.schemas.forms import SubmissionListResponse, SubmissionRead, SubmissionStatusUpdate
from app.services import form_submission_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter(prefix="/admin/recruitment-responses", tags=["recruitment-responses"])


def _get_submission_or_404(db: Session, submission_id: UUID):
    submission = form_submission_service.get_submission(db, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


@router.get("", response_model=SubmissionListResponse)
def list_responses(
    form_id: UUID | None = None,
    status: SubmissionStatus | None = None,
    search: str | None = Query(None, max_length=200),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(require_console_user),
    db: Session = Depends(get_db),
):
    """List submissions newest first; status counts ignore the status filter."""
    items, total = form_submission_service.list_submissions(
        db,
        form_id=form_id,
        status=status.value if status else None,
        search=search,
        page=pagination.page,
        per_page=pagination.per_page,
    )
    return SubmissionListResponse(
        items=[SubmissionRead.model_validate(s) for s in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages(total),
        status_counts=form_submission_service.status_counts(db, form_id=form_id, search=search),
    )


@router.get("/{submission_id}", response_model=SubmissionRead)
def get_response(
    submission_id: UUID,
    session: UserSession = Depends(require_console_user),
    db: Session = Depends(get_db),
):
    return SubmissionRead.model_validate(_get_submission_or_404(db, submission_id))


@router.put(
    "/{submission_id}",
    response_model=SubmissionRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_response_status(
    submission_id: UUID,
    body: SubmissionStatusUpdate,
    session: UserSession = Depends(require_console_user),
    db: Session = Depends(get_db),
):
    submission = _get_submission_or_404(db, submission_id)
    submission = form_submission_service.update_status(
        db, submission, body.status, body.review_notes, session.user_id
    )
    return SubmissionRead.model_validate(submission)


@router.delete("", dependencies=[Depends(require_csrf_header)])
def delete_response(
    id: UUID = Query(..., description="Submission id"),
    session: UserSession = Depends(require_roles(list(ROLES_CAN_DELETE))),
    db: Session = Depends(get_db),
):
    """Delete a submission (admin only). Frees one response slot on its form."""
    submission = _get_submission_or_404(db, id)
    form_submission_service.delete_submission(db, submission)
    return {"success": True}
