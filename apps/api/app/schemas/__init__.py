"""Pydantic schemas for API request/response models."""

from app.schemas.auth import TokenPayload, UserSession
from app.schemas.forms import (
    FieldDefinition,
    FormAnalyticsRead,
    FormCreate,
    FormListResponse,
    FormPublicRead,
    FormRead,
    FormUpdate,
    SubmissionCreate,
    SubmissionListResponse,
    SubmissionRead,
)

__all__ = [
    # Auth
    "TokenPayload",
    "UserSession",
    # Forms
    "FieldDefinition",
    "FormCreate",
    "FormUpdate",
    "FormRead",
    "FormListResponse",
    "FormPublicRead",
    "FormAnalyticsRead",
    # Submissions
    "SubmissionCreate",
    "SubmissionRead",
    "SubmissionListResponse",
]
