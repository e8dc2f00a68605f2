"""Tests for form schema validation."""

from datetime import datetime, timedelta, timezone

from app.schemas.forms import FieldDefinition, FormCreate
from app.services import form_schema_service
from app.services.form_schema_service import validate_schema, validate_schema_payload


def _field(**kwargs) -> FieldDefinition:
    data = {"id": "q1", "type": "text", "label": {"en": "Question", "ta": "கேள்வி"}}
    data.update(kwargs)
    return FieldDefinition.model_validate(data)


def _schema(fields, **kwargs) -> FormCreate:
    data = {"title": {"en": "Crew call", "ta": "குழு அழைப்பு"}, "fields": fields}
    data.update(kwargs)
    return FormCreate.model_validate(data)


def _codes(errors):
    return [e.code for e in errors]


def test_valid_schema_has_no_errors(form_payload):
    assert validate_schema(FormCreate.model_validate(form_payload())) == []


def test_empty_schema_is_rejected():
    assert _codes(validate_schema(_schema([]))) == ["empty_schema"]


def test_duplicate_field_ids_are_rejected():
    errors = validate_schema(_schema([{"id": "a", "type": "text", "label": "A"}, {"id": "a", "type": "email", "label": "B"}]))
    assert _codes(errors) == ["duplicate_field_id"]
    assert errors[0].field_id == "a"


def test_choice_fields_need_options():
    for field_type in ("select", "radio", "checkbox", "grid_radio", "grid_checkbox"):
        errors = validate_schema(_schema([{"id": "c", "type": field_type, "label": "C", "options": []}]))
        assert _codes(errors) == ["missing_options"], field_type


def test_delimiters_are_reserved():
    errors = validate_schema(
        _schema(
            [
                {"id": "a::b", "type": "text", "label": "A"},
                {"id": "grid", "type": "grid_radio", "label": "G", "options": ["row::1"]},
                {"id": "days", "type": "checkbox", "label": "D", "options": ["sat,sun"]},
            ]
        )
    )
    assert _codes(errors) == ["reserved_delimiter"] * 3
    assert [e.field_id for e in errors] == ["a::b", "grid", "days"]


def test_select_options_may_contain_commas():
    errors = validate_schema(_schema([{"id": "city", "type": "select", "label": "City", "options": ["Jaffna, North"]}]))
    assert errors == []


def test_duplicate_option_values_are_rejected():
    errors = validate_schema(_schema([{"id": "s", "type": "radio", "label": "S", "options": ["a", "a"]}]))
    assert _codes(errors) == ["duplicate_option"]


def test_inverted_bounds_are_rejected():
    errors = validate_schema(
        _schema(
            [
                {"id": "n", "type": "number", "label": "N", "validation": {"min": 10, "max": 1}},
                {"id": "t", "type": "text", "label": "T", "validation": {"min_length": 5, "max_length": 2}},
            ]
        )
    )
    assert _codes(errors) == ["invalid_bounds", "invalid_bounds"]


def test_invalid_pattern_is_rejected():
    errors = validate_schema(_schema([{"id": "t", "type": "text", "label": "T", "validation": {"pattern": "(["}}]))
    assert _codes(errors) == ["invalid_pattern"]


def test_window_must_end_after_start():
    start = datetime(2026, 5, 1, tzinfo=timezone.utc)
    errors = validate_schema(
        _schema([{"id": "t", "type": "text", "label": "T"}], start_date=start, end_date=start - timedelta(days=1))
    )
    assert _codes(errors) == ["invalid_window"]


def test_title_needs_both_languages():
    errors = validate_schema(
        _schema([{"id": "t", "type": "text", "label": "T"}], title={"en": "Crew call", "ta": " "})
    )
    assert _codes(errors) == ["missing_title"]


def test_every_error_is_reported_at_once():
    errors = validate_schema(
        _schema(
            [
                {"id": "a", "type": "select", "label": "A"},
                {"id": "a", "type": "text", "label": "B"},
            ],
            title={"en": "", "ta": ""},
        )
    )
    assert set(_codes(errors)) == {"missing_title", "missing_options", "duplicate_field_id"}


def test_payload_validation_reports_malformed_input():
    errors = validate_schema_payload({"title": "x", "fields": [{"id": "a", "type": "hologram", "label": "A"}]})
    assert errors
    assert all(e.code == "malformed" for e in errors)
    assert "fields.0.type" in errors[0].message


def test_legacy_shapes_are_accepted():
    field = _field(
        type="tel",
        options=[{"en": "Yes", "ta": "ஆம்", "value": "yes"}, "No"],
    )
    assert field.type.value == "phone"
    assert [o.value for o in field.options] == ["yes", "No"]
    assert field.options[1].label.ta == "No"


def test_missing_order_defaults_to_position():
    schema = _schema([{"id": "a", "type": "text", "label": "A"}, {"id": "b", "type": "text", "label": "B"}])
    assert [f.order for f in schema.fields] == [1, 2]


def test_ordered_fields_follows_order_hint():
    fields = [_field(id="late", order=5), _field(id="early", order=1), _field(id="mid", order=3)]
    assert [f.id for f in form_schema_service.ordered_fields(fields)] == ["early", "mid", "late"]


def test_scale_bounds_default_to_one_through_five():
    field = _field(type="scale")
    assert form_schema_service.scale_bounds(field) == (1, 5)
    assert form_schema_service.column_range(_field(type="grid_radio", validation={"min": 0, "max": 3})) == [0, 1, 2, 3]
