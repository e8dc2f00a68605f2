"""Enum definitions for application constants."""

from app.db.enums.auth import ROLES_CAN_DELETE, Role
from app.db.enums.forms import (
    CHOICE_FIELD_TYPES,
    FIELD_TYPE_ALIASES,
    GRID_FIELD_TYPES,
    NUMERIC_FIELD_TYPES,
    TEXT_LIKE_FIELD_TYPES,
    FieldType,
    FormAvailability,
    FormRole,
    SubmissionStatus,
)

DEFAULT_SUBMISSION_STATUS: SubmissionStatus = SubmissionStatus.PENDING
DEFAULT_FORM_ROLE: FormRole = FormRole.PARTICIPANTS

__all__ = [
    "CHOICE_FIELD_TYPES",
    "DEFAULT_FORM_ROLE",
    "DEFAULT_SUBMISSION_STATUS",
    "FIELD_TYPE_ALIASES",
    "GRID_FIELD_TYPES",
    "NUMERIC_FIELD_TYPES",
    "ROLES_CAN_DELETE",
    "TEXT_LIKE_FIELD_TYPES",
    "FieldType",
    "FormAvailability",
    "FormRole",
    "Role",
    "SubmissionStatus",
]
