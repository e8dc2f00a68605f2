"""Recruitment form enums."""

from enum import Enum


class FieldType(str, Enum):
    """Field types a recruitment form can be composed of."""

    TEXT = "text"
    TEXTAREA = "textarea"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    DATE = "date"
    TIME = "time"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    FILE = "file"
    SCALE = "scale"
    GRID_RADIO = "grid_radio"
    GRID_CHECKBOX = "grid_checkbox"


# Legacy spellings still found in stored schemas
FIELD_TYPE_ALIASES: dict[str, FieldType] = {
    "tel": FieldType.PHONE,
}

CHOICE_FIELD_TYPES = frozenset({FieldType.SELECT, FieldType.RADIO, FieldType.CHECKBOX})
GRID_FIELD_TYPES = frozenset({FieldType.GRID_RADIO, FieldType.GRID_CHECKBOX})
NUMERIC_FIELD_TYPES = frozenset({FieldType.NUMBER, FieldType.SCALE})
TEXT_LIKE_FIELD_TYPES = frozenset(
    {
        FieldType.TEXT,
        FieldType.TEXTAREA,
        FieldType.EMAIL,
        FieldType.PHONE,
        FieldType.DATE,
        FieldType.TIME,
    }
)


class FormRole(str, Enum):
    """Who a recruitment form is recruiting."""

    CREW = "crew"
    PARTICIPANTS = "participants"
    VOLUNTEER = "volunteer"


class FormAvailability(str, Enum):
    """Derived open/closed state of a recruitment form."""

    OPEN = "open"
    INACTIVE = "inactive"
    FULL = "full"
    EXPIRED = "expired"
    UPCOMING = "upcoming"


class SubmissionStatus(str, Enum):
    """Flat moderation label on a submission."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
