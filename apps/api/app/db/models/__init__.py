"""SQLAlchemy ORM models."""

from app.db.models.forms import RecruitmentForm, RecruitmentSubmission

__all__ = ["RecruitmentForm", "RecruitmentSubmission"]
