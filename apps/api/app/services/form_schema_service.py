"""Recruitment form schema checks and helpers.

Everything here is side-effect free. ``validate_schema`` runs when an admin
saves a form and again before a form is rendered for applicants.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from pydantic import ValidationError

from app.db.enums import CHOICE_FIELD_TYPES, GRID_FIELD_TYPES, FieldType
from app.schemas.forms import FieldDefinition, FormCreate
from app.utils.datetime_parsing import as_utc


# Shared by the field contracts, the render contract and the aggregator
SCALE_DEFAULT_MIN = 1
SCALE_DEFAULT_MAX = 5

# Wire delimiters (see submission_codec)
GRID_KEY_DELIMITER = "::"
MULTI_VALUE_DELIMITER = ","


@dataclass(frozen=True)
class SchemaError:
    """One problem with a form definition."""

    code: str
    message: str
    field_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "field_id": self.field_id}


class SchemaInvalidError(ValueError):
    """Raised by the form service when a schema fails validation."""

    def __init__(self, errors: list[SchemaError]):
        self.errors = errors
        summary = "; ".join(e.message for e in errors[:3])
        super().__init__(f"Form schema is invalid: {summary}")


# =============================================================================
# Helpers
# =============================================================================


def ordered_fields(fields: Iterable[FieldDefinition]) -> list[FieldDefinition]:
    """Fields sorted by their ``order`` hint; ties keep declaration order."""
    return sorted(fields, key=lambda f: f.order)


def load_fields(fields_json: list[dict] | None) -> list[FieldDefinition]:
    """Parse stored field JSON into ordered definitions."""
    return ordered_fields(FieldDefinition.model_validate(f) for f in (fields_json or []))


def dump_fields(fields: Iterable[FieldDefinition]) -> list[dict]:
    return [f.model_dump(mode="json", exclude_none=True) for f in fields]


def scale_bounds(field: FieldDefinition) -> tuple[float, float]:
    """Inclusive numeric bounds for scale fields and grid columns."""
    validation = field.validation
    low = validation.min if validation and validation.min is not None else SCALE_DEFAULT_MIN
    high = validation.max if validation and validation.max is not None else SCALE_DEFAULT_MAX
    return low, high


def column_range(field: FieldDefinition) -> list[int]:
    """Implicit grid column labels, e.g. 1..5."""
    low, high = scale_bounds(field)
    return list(range(int(low), int(high) + 1))


# =============================================================================
# Validation
# =============================================================================


def validate_fields(fields: list[FieldDefinition]) -> list[SchemaError]:
    errors: list[SchemaError] = []
    if not fields:
        errors.append(SchemaError("empty_schema", "Form must define at least one field"))
        return errors

    seen: set[str] = set()
    for field in fields:
        label = field.label.en or field.id

        if field.id in seen:
            errors.append(
                SchemaError("duplicate_field_id", f"Duplicate field id '{field.id}'", field.id)
            )
        seen.add(field.id)

        if GRID_KEY_DELIMITER in field.id:
            errors.append(
                SchemaError(
                    "reserved_delimiter",
                    f"Field id '{field.id}' must not contain '{GRID_KEY_DELIMITER}'",
                    field.id,
                )
            )

        needs_options = field.type in CHOICE_FIELD_TYPES or field.type in GRID_FIELD_TYPES
        if needs_options and not field.options:
            kind = "row" if field.type in GRID_FIELD_TYPES else "option"
            errors.append(
                SchemaError(
                    "missing_options",
                    f"Field '{label}' must declare at least one {kind}",
                    field.id,
                )
            )

        option_values = [o.value for o in field.options or []]
        if len(set(option_values)) != len(option_values):
            errors.append(
                SchemaError("duplicate_option", f"Field '{label}' has duplicate options", field.id)
            )
        for value in option_values:
            if field.type in GRID_FIELD_TYPES and GRID_KEY_DELIMITER in value:
                errors.append(
                    SchemaError(
                        "reserved_delimiter",
                        f"Row '{value}' in '{label}' must not contain '{GRID_KEY_DELIMITER}'",
                        field.id,
                    )
                )
            if field.type == FieldType.CHECKBOX and MULTI_VALUE_DELIMITER in value:
                errors.append(
                    SchemaError(
                        "reserved_delimiter",
                        f"Option '{value}' in '{label}' must not contain '{MULTI_VALUE_DELIMITER}'",
                        field.id,
                    )
                )

        validation = field.validation
        if validation is None:
            continue
        if validation.min is not None and validation.max is not None and validation.min > validation.max:
            errors.append(
                SchemaError("invalid_bounds", f"Field '{label}' has min greater than max", field.id)
            )
        if (
            validation.min_length is not None
            and validation.max_length is not None
            and validation.min_length > validation.max_length
        ):
            errors.append(
                SchemaError(
                    "invalid_bounds",
                    f"Field '{label}' has min_length greater than max_length",
                    field.id,
                )
            )
        if validation.pattern:
            try:
                re.compile(validation.pattern)
            except re.error:
                errors.append(
                    SchemaError("invalid_pattern", f"Field '{label}' has an invalid pattern", field.id)
                )

    return errors


def validate_window(start_date: datetime | None, end_date: datetime | None) -> list[SchemaError]:
    if start_date and end_date and as_utc(end_date) <= as_utc(start_date):
        return [SchemaError("invalid_window", "End date must be after start date")]
    return []


def validate_schema(schema: FormCreate) -> list[SchemaError]:
    """Return every problem with a form definition (empty list when valid)."""
    errors: list[SchemaError] = []
    if not schema.title.en.strip() or not schema.title.ta.strip():
        errors.append(SchemaError("missing_title", "Title in both languages is required"))
    errors.extend(validate_fields(list(schema.fields)))
    errors.extend(validate_window(schema.start_date, schema.end_date))
    return errors


def validate_schema_payload(payload: dict[str, Any]) -> list[SchemaError]:
    """Validate a raw JSON form definition, reporting parse failures as errors.

    Used by the validate endpoint and the CLI where the input has not been
    through request parsing yet.
    """
    try:
        schema = FormCreate.model_validate(payload)
    except ValidationError as exc:
        return [
            SchemaError(
                "malformed",
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}",
            )
            for err in exc.errors()
        ]
    return validate_schema(schema)
