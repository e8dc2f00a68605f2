"""Pure answer-map updates plus an applicant draft with per-field upload state.

Every helper returns a new map and leaves its input untouched, so grid cells
and scalar fields can be edited in any interleaving without partial updates.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

from app.db.enums import FieldType
from app.schemas.forms import FieldDefinition
from app.services import field_contracts


Answers = Mapping[str, Any]


def _freeze(answers: dict[str, Any]) -> Answers:
    return MappingProxyType(answers)


def empty_answers() -> Answers:
    return _freeze({})


def _copy_value(value: Any) -> Any:
    # Stored values never alias the caller's maps or lists
    if isinstance(value, Mapping):
        return {k: _copy_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return list(value)
    return value


def set_field_value(answers: Answers, field_id: str, value: Any) -> Answers:
    updated = dict(answers)
    updated[field_id] = _copy_value(value)
    return _freeze(updated)


def set_grid_cell(answers: Answers, field_id: str, row_key: str, value: Any) -> Answers:
    current = answers.get(field_id)
    rows = dict(current) if isinstance(current, Mapping) else {}
    rows[row_key] = _copy_value(value)
    updated = dict(answers)
    updated[field_id] = rows
    return _freeze(updated)


def toggle_choice(answers: Answers, field_id: str, option_value: str) -> Answers:
    """Add or remove one checkbox option, keeping selection order."""
    current = answers.get(field_id)
    selected = list(current) if isinstance(current, (list, tuple)) else []
    if option_value in selected:
        selected.remove(option_value)
    else:
        selected.append(option_value)
    return set_field_value(answers, field_id, selected)


def clear_field(answers: Answers, field_id: str) -> Answers:
    updated = {k: v for k, v in answers.items() if k != field_id}
    return _freeze(updated)


def to_dict(answers: Answers) -> dict[str, Any]:
    """Plain (mutable) copy, e.g. for encoding."""
    return {
        k: dict(v) if isinstance(v, Mapping) else list(v) if isinstance(v, list) else v
        for k, v in answers.items()
    }


# =============================================================================
# Applicant draft
# =============================================================================


@dataclass(frozen=True)
class ApplicantDraft:
    """What an applicant has entered so far, plus uploads still in flight."""

    fields: tuple[FieldDefinition, ...]
    answers: Answers = field(default_factory=empty_answers)
    uploading: frozenset[str] = frozenset()
    upload_errors: frozenset[str] = frozenset()

    @classmethod
    def for_fields(cls, fields: list[FieldDefinition]) -> "ApplicantDraft":
        return cls(fields=tuple(fields))

    def _file_field(self, field_id: str) -> FieldDefinition:
        for f in self.fields:
            if f.id == field_id:
                if f.type != FieldType.FILE:
                    raise ValueError(f"Field '{field_id}' is not a file field")
                return f
        raise ValueError(f"Unknown field '{field_id}'")

    def with_value(self, field_id: str, value: Any) -> "ApplicantDraft":
        return replace(self, answers=set_field_value(self.answers, field_id, value))

    def with_grid_cell(self, field_id: str, row_key: str, value: Any) -> "ApplicantDraft":
        return replace(self, answers=set_grid_cell(self.answers, field_id, row_key, value))

    def with_toggle(self, field_id: str, option_value: str) -> "ApplicantDraft":
        return replace(self, answers=toggle_choice(self.answers, field_id, option_value))

    def begin_upload(self, field_id: str) -> "ApplicantDraft":
        self._file_field(field_id)
        return replace(
            self,
            uploading=self.uploading | {field_id},
            upload_errors=self.upload_errors - {field_id},
        )

    def finish_upload(self, field_id: str, file_url: str) -> "ApplicantDraft":
        self._file_field(field_id)
        return replace(
            self,
            answers=set_field_value(self.answers, field_id, file_url),
            uploading=self.uploading - {field_id},
        )

    def fail_upload(self, field_id: str) -> "ApplicantDraft":
        self._file_field(field_id)
        return replace(
            self,
            uploading=self.uploading - {field_id},
            upload_errors=self.upload_errors | {field_id},
        )

    def is_uploading(self, field_id: str) -> bool:
        return field_id in self.uploading

    @property
    def required_uploads_pending(self) -> bool:
        return any(f.required and f.id in self.uploading for f in self.fields)

    def errors(self) -> list[field_contracts.FieldError]:
        return field_contracts.validate_answers(list(self.fields), dict(self.answers))

    @property
    def can_submit(self) -> bool:
        return not self.required_uploads_pending and not self.errors()
