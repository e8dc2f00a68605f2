"""Per-field-type contracts: render affordance plus answer validation.

Each ``FieldType`` maps to exactly one contract object. Adding a field type
without a contract fails at import time.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from typing import Any

from app.db.enums import CHOICE_FIELD_TYPES, GRID_FIELD_TYPES, FieldType
from app.schemas.forms import FieldDefinition
from app.services.form_schema_service import column_range, ordered_fields, scale_bounds


class Affordance(str, Enum):
    """Input shape a renderer must produce for a field."""

    SINGLE = "single"
    MULTI = "multi"
    ROW_MAP = "row_map"
    FILE = "file"


@dataclass(frozen=True)
class FieldError:
    """Validation failure scoped to one field (``field_id`` None means form-wide)."""

    field_id: str | None
    label: dict[str, str] | None
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"field_id": self.field_id, "label": self.label, "message": self.message}


class FieldValidationError(ValueError):
    """Raised when submitted answers fail their field contracts."""

    def __init__(self, errors: list[FieldError]):
        self.errors = errors
        super().__init__(errors[0].message if errors else "Invalid answers")


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_empty(value: Any) -> bool:
    """True for None, blank strings, and empty lists or maps."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


# =============================================================================
# Contracts
# =============================================================================


class FieldContract:
    affordance = Affordance.SINGLE

    def check(self, field: FieldDefinition, value: Any) -> str | None:
        """Validate a present (non-empty) value. Returns an error message or None."""
        return None

    def missing(self, field: FieldDefinition, value: Any) -> bool:
        return is_empty(value)

    def validate(self, field: FieldDefinition, value: Any) -> FieldError | None:
        if self.missing(field, value):
            if field.required:
                return _error(field, f"Missing required field: {field.label.en}")
            return None
        message = self.check(field, value)
        if message:
            return _error(field, message)
        return None


class TextContract(FieldContract):
    def check(self, field: FieldDefinition, value: Any) -> str | None:
        if not isinstance(value, str):
            return f"Field '{field.label.en}' must be a string"
        validation = field.validation
        if validation:
            if validation.min_length is not None and len(value) < validation.min_length:
                return f"Field '{field.label.en}' must be at least {validation.min_length} characters"
            if validation.max_length is not None and len(value) > validation.max_length:
                return f"Field '{field.label.en}' must be at most {validation.max_length} characters"
            if validation.pattern:
                try:
                    if re.fullmatch(validation.pattern, value) is None:
                        return f"Field '{field.label.en}' does not match required pattern"
                except re.error:
                    return f"Invalid validation pattern for '{field.label.en}'"
        return self.check_format(field, value)

    def check_format(self, field: FieldDefinition, value: str) -> str | None:
        return None


class EmailContract(TextContract):
    def check_format(self, field: FieldDefinition, value: str) -> str | None:
        if not _EMAIL_RE.match(value.strip()):
            return f"Field '{field.label.en}' must be a valid email address"
        return None


class DateContract(TextContract):
    def check_format(self, field: FieldDefinition, value: str) -> str | None:
        try:
            date.fromisoformat(value)
        except ValueError:
            return f"Field '{field.label.en}' must be a date (YYYY-MM-DD)"
        return None


class TimeContract(TextContract):
    def check_format(self, field: FieldDefinition, value: str) -> str | None:
        try:
            time.fromisoformat(value)
        except ValueError:
            return f"Field '{field.label.en}' must be a time (HH:MM)"
        return None


class NumberContract(FieldContract):
    def bounds(self, field: FieldDefinition) -> tuple[float | None, float | None]:
        validation = field.validation
        if not validation:
            return None, None
        return validation.min, validation.max

    def check(self, field: FieldDefinition, value: Any) -> str | None:
        numeric_value = _as_number(value)
        if numeric_value is None:
            return f"Field '{field.label.en}' must be a number"
        low, high = self.bounds(field)
        if low is not None and numeric_value < low:
            return f"Field '{field.label.en}' must be at least {_fmt(low)}"
        if high is not None and numeric_value > high:
            return f"Field '{field.label.en}' must be at most {_fmt(high)}"
        return None


class ScaleContract(NumberContract):
    def bounds(self, field: FieldDefinition) -> tuple[float | None, float | None]:
        return scale_bounds(field)


class SingleChoiceContract(FieldContract):
    def check(self, field: FieldDefinition, value: Any) -> str | None:
        if not isinstance(value, str):
            return f"Field '{field.label.en}' must be a string"
        allowed = {o.value for o in field.options or []}
        if value not in allowed:
            return f"Invalid option for '{field.label.en}'"
        return None


class CheckboxContract(FieldContract):
    affordance = Affordance.MULTI

    def check(self, field: FieldDefinition, value: Any) -> str | None:
        if not isinstance(value, list):
            return f"Field '{field.label.en}' must be a list"
        allowed = {o.value for o in field.options or []}
        for item in value:
            if not isinstance(item, str):
                return f"Field '{field.label.en}' must be a list of strings"
            if item not in allowed:
                return f"Invalid option for '{field.label.en}'"
        return None


class GridContract(FieldContract):
    """Rows come from the options; column values are free labels and not cross-checked.

    A checkbox-grid cell is a list of column labels, a radio-grid cell a single one.
    """

    affordance = Affordance.ROW_MAP

    def validate(self, field: FieldDefinition, value: Any) -> FieldError | None:
        if value is not None and not isinstance(value, dict):
            return _error(field, f"Field '{field.label.en}' must map rows to values")
        if not field.required:
            return None
        answered = value or {}
        unanswered = [
            o.label.en or o.value
            for o in field.options or []
            if is_empty(answered.get(o.value))
        ]
        if unanswered:
            return _error(
                field,
                f"Field '{field.label.en}' needs an answer for every row: missing {', '.join(unanswered)}",
            )
        return None


class FileContract(FieldContract):
    """Uploads are checked by the upload collaborator; only presence is checked here."""

    affordance = Affordance.FILE


CONTRACTS: dict[FieldType, FieldContract] = {
    FieldType.TEXT: TextContract(),
    FieldType.TEXTAREA: TextContract(),
    FieldType.EMAIL: EmailContract(),
    FieldType.PHONE: TextContract(),
    FieldType.NUMBER: NumberContract(),
    FieldType.DATE: DateContract(),
    FieldType.TIME: TimeContract(),
    FieldType.SELECT: SingleChoiceContract(),
    FieldType.RADIO: SingleChoiceContract(),
    FieldType.CHECKBOX: CheckboxContract(),
    FieldType.FILE: FileContract(),
    FieldType.SCALE: ScaleContract(),
    FieldType.GRID_RADIO: GridContract(),
    FieldType.GRID_CHECKBOX: GridContract(),
}


def check_contract_coverage(contracts: dict[FieldType, FieldContract]) -> None:
    missing = set(FieldType) - set(contracts)
    if missing:
        raise RuntimeError(f"No field contract for: {sorted(t.value for t in missing)}")


check_contract_coverage(CONTRACTS)


def _fmt(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def _error(field: FieldDefinition, message: str) -> FieldError:
    return FieldError(field_id=field.id, label=field.label.model_dump(), message=message)


# =============================================================================
# Public API
# =============================================================================


def contract_for(field_type: FieldType) -> FieldContract:
    return CONTRACTS[FieldType(field_type)]


def affordance(field_type: FieldType) -> Affordance:
    return contract_for(field_type).affordance


def validate(field: FieldDefinition, value: Any) -> FieldError | None:
    return contract_for(field.type).validate(field, value)


def validate_answers(fields: list[FieldDefinition], answers: dict[str, Any]) -> list[FieldError]:
    """Validate a decoded answer map against every field, one error per bad field."""
    if not fields:
        return [FieldError(field_id=None, label=None, message="Form has no fields")]
    errors: list[FieldError] = []
    for field in ordered_fields(fields):
        error = validate(field, answers.get(field.id))
        if error:
            errors.append(error)
    return errors


def render_contract(fields: list[FieldDefinition]) -> list[dict[str, Any]]:
    """Ordered render descriptors for a renderer to build inputs from."""
    descriptors: list[dict[str, Any]] = []
    for field in ordered_fields(fields):
        validation = field.validation
        descriptor: dict[str, Any] = {
            "id": field.id,
            "type": field.type.value,
            "affordance": affordance(field.type).value,
            "label": field.label.model_dump(),
            "placeholder": field.placeholder.model_dump() if field.placeholder else None,
            "required": field.required,
            "options": [],
            "rows": [],
            "columns": [],
            "min": validation.min if validation else None,
            "max": validation.max if validation else None,
            "min_length": validation.min_length if validation else None,
            "max_length": validation.max_length if validation else None,
            "pattern": validation.pattern if validation else None,
        }
        options = [{"value": o.value, "label": o.label.model_dump()} for o in field.options or []]
        if field.type in GRID_FIELD_TYPES:
            descriptor["rows"] = options
            descriptor["columns"] = column_range(field)
        elif field.type in CHOICE_FIELD_TYPES:
            descriptor["options"] = options
        if field.type == FieldType.SCALE:
            descriptor["min"], descriptor["max"] = scale_bounds(field)
        descriptors.append(descriptor)
    return descriptors
