"""Schemas for recruitment forms, submissions and analytics."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from app.db.enums import FIELD_TYPE_ALIASES, FieldType, FormAvailability, FormRole, SubmissionStatus


# =============================================================================
# Form schema building blocks
# =============================================================================


class BilingualText(BaseModel):
    """Parallel English/Tamil text. A plain string fills both languages."""

    en: str = ""
    ta: str = ""

    @model_validator(mode="before")
    @classmethod
    def _coerce_plain_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"en": data, "ta": data}
        return data


class FieldOption(BaseModel):
    value: str = Field(..., min_length=1, max_length=200)
    label: BilingualText

    @model_validator(mode="before")
    @classmethod
    def _coerce_option(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"value": data, "label": {"en": data, "ta": data}}
        if isinstance(data, dict) and "label" not in data and ("en" in data or "ta" in data):
            # Legacy option shape: {en, ta, value}
            en = data.get("en") or ""
            ta = data.get("ta") or en
            return {"value": data.get("value") or en, "label": {"en": en, "ta": ta}}
        return data


class FieldValidation(BaseModel):
    min_length: int | None = Field(None, ge=0)
    max_length: int | None = Field(None, ge=0)
    pattern: str | None = None
    min: float | None = None
    max: float | None = None


class FieldDefinition(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
    type: FieldType
    label: BilingualText
    placeholder: BilingualText | None = None
    required: bool = False
    order: int = 0
    options: list[FieldOption] | None = None
    validation: FieldValidation | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _resolve_type_alias(cls, value: Any) -> Any:
        if isinstance(value, str) and value in FIELD_TYPE_ALIASES:
            return FIELD_TYPE_ALIASES[value]
        return value


def _default_field_order(fields: Any) -> Any:
    """Fill a missing ``order`` with the field's position (1-based)."""
    if not isinstance(fields, list):
        return fields
    normalized = []
    for idx, field in enumerate(fields):
        if isinstance(field, dict) and field.get("order") is None:
            field = {**field, "order": idx + 1}
        normalized.append(field)
    return normalized


# =============================================================================
# Form CRUD
# =============================================================================


class FormCreate(BaseModel):
    title: BilingualText
    description: BilingualText | None = None
    role: FormRole = FormRole.PARTICIPANTS
    project_item_id: str | None = Field(None, max_length=64)
    fields: list[FieldDefinition]
    image: str | None = Field(None, max_length=500)
    is_active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None
    max_responses: int | None = Field(None, ge=1)
    email_notification: bool = True

    @field_validator("fields", mode="before")
    @classmethod
    def _fill_order(cls, value: Any) -> Any:
        return _default_field_order(value)


class FormUpdate(BaseModel):
    title: BilingualText | None = None
    description: BilingualText | None = None
    role: FormRole | None = None
    project_item_id: str | None = Field(None, max_length=64)
    fields: list[FieldDefinition] | None = None
    image: str | None = Field(None, max_length=500)
    is_active: bool | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    max_responses: int | None = Field(None, ge=1)
    email_notification: bool | None = None

    @field_validator("fields", mode="before")
    @classmethod
    def _fill_order(cls, value: Any) -> Any:
        return _default_field_order(value)


class FormSummary(BaseModel):
    id: UUID
    title: BilingualText
    role: FormRole
    project_item_id: str | None
    is_active: bool
    availability: FormAvailability
    start_date: datetime | None
    end_date: datetime | None
    max_responses: int | None
    current_responses: int
    field_count: int
    created_at: datetime
    updated_at: datetime


class FormRead(FormSummary):
    description: BilingualText | None
    fields: list[FieldDefinition]
    image: str | None
    email_notification: bool
    created_by_user_id: UUID | None


class FormListResponse(BaseModel):
    items: list[FormSummary]
    total: int
    page: int
    per_page: int
    pages: int


class FormStats(BaseModel):
    total_forms: int
    active_forms: int
    total_submissions: int
    average_field_count: float


class SchemaErrorRead(BaseModel):
    code: str
    message: str
    field_id: str | None = None


class SchemaValidationResponse(BaseModel):
    valid: bool
    errors: list[SchemaErrorRead]


# =============================================================================
# Render contract
# =============================================================================


class RenderOption(BaseModel):
    value: str
    label: BilingualText


class RenderField(BaseModel):
    id: str
    type: FieldType
    affordance: Literal["single", "multi", "row_map", "file"]
    label: BilingualText
    placeholder: BilingualText | None = None
    required: bool
    options: list[RenderOption] = Field(default_factory=list)
    rows: list[RenderOption] = Field(default_factory=list)
    columns: list[int] = Field(default_factory=list)
    min: float | None = None
    max: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None


class FormPublicRead(BaseModel):
    id: UUID
    title: BilingualText
    description: BilingualText | None
    role: FormRole
    image: str | None
    availability: FormAvailability
    start_date: datetime | None
    end_date: datetime | None
    fields: list[RenderField]


# =============================================================================
# Submissions
# =============================================================================


class WireAnswer(BaseModel):
    key: str = Field(..., min_length=1)
    value: str | int | float | bool | None = None


class SubmissionCreate(BaseModel):
    applicant_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("applicant_name", "applicantName"),
    )
    applicant_email: str = Field(
        ...,
        min_length=3,
        max_length=255,
        validation_alias=AliasChoices("applicant_email", "applicantEmail"),
    )
    applicant_phone: str | None = Field(
        None,
        max_length=50,
        validation_alias=AliasChoices("applicant_phone", "applicantPhone"),
    )
    answers: list[WireAnswer] = Field(default_factory=list)


class SubmissionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    form_id: UUID
    project_item_id: str | None
    role_applied: str
    applicant_name: str
    applicant_email: str
    applicant_phone: str | None
    status: SubmissionStatus
    answers: dict[str, Any] = Field(validation_alias=AliasChoices("answers", "answers_json"))
    review_notes: str | None
    reviewed_at: datetime | None
    reviewed_by_user_id: UUID | None
    created_at: datetime


class SubmissionListResponse(BaseModel):
    items: list[SubmissionRead]
    total: int
    page: int
    per_page: int
    pages: int
    status_counts: dict[str, int]


class SubmissionStatusUpdate(BaseModel):
    status: SubmissionStatus
    review_notes: str | None = Field(None, max_length=5000)


class FieldErrorRead(BaseModel):
    field_id: str | None
    label: BilingualText | None
    message: str


class SubmissionCreated(BaseModel):
    id: UUID
    status: SubmissionStatus
    created_at: datetime


class UploadRead(BaseModel):
    file_path: str
    url: str


# =============================================================================
# Analytics
# =============================================================================


class FrequencyEntry(BaseModel):
    name: str
    value: int


class GridRowPivot(BaseModel):
    row: str
    label: str
    counts: dict[str, int]


class FieldAggregateRead(BaseModel):
    field_id: str
    type: FieldType
    label: BilingualText
    visualization: str
    total: int
    frequencies: list[FrequencyEntry] = Field(default_factory=list)
    values: list[str] = Field(default_factory=list)
    mean: float | None = None
    rows: list[GridRowPivot] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)


class FormAnalyticsRead(BaseModel):
    form_id: UUID
    submission_count: int
    total_submissions: int
    truncated: bool = False
    fields: list[FieldAggregateRead]
