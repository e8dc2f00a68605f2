"""Tests for applicant answer-map updates and upload tracking."""

import pytest

from app.schemas.forms import FieldDefinition
from app.services import answer_state
from app.services.answer_state import ApplicantDraft


def _fields():
    return [
        FieldDefinition.model_validate(f)
        for f in [
            {"id": "name", "type": "text", "label": "Name", "required": True},
            {"id": "days", "type": "checkbox", "label": "Days", "options": ["sat", "sun"]},
            {"id": "skills", "type": "grid_radio", "label": "Skills", "options": ["a", "b"]},
            {"id": "cv", "type": "file", "label": "CV", "required": True},
            {"id": "photo", "type": "file", "label": "Photo"},
        ]
    ]


def test_helpers_never_mutate_their_input():
    start = answer_state.empty_answers()
    after = answer_state.set_field_value(start, "name", "Anu")
    assert dict(start) == {}
    assert dict(after) == {"name": "Anu"}
    with pytest.raises(TypeError):
        after["name"] = "Other"  # type: ignore[index]


def test_grid_cells_and_scalars_interleave():
    answers = answer_state.empty_answers()
    answers = answer_state.set_grid_cell(answers, "skills", "a", "4")
    answers = answer_state.set_field_value(answers, "name", "Anu")
    answers = answer_state.set_grid_cell(answers, "skills", "b", "5")
    answers = answer_state.set_grid_cell(answers, "skills", "a", "3")
    assert answer_state.to_dict(answers) == {"skills": {"a": "3", "b": "5"}, "name": "Anu"}


def test_grid_cell_update_copies_the_row_map():
    first = answer_state.set_grid_cell(answer_state.empty_answers(), "skills", "a", "1")
    second = answer_state.set_grid_cell(first, "skills", "b", "2")
    assert first["skills"] == {"a": "1"}
    assert second["skills"] == {"a": "1", "b": "2"}


def test_set_field_value_copies_row_maps_and_lists():
    grid = {"a": "4", "b": ["x"]}
    answers = answer_state.set_field_value(answer_state.empty_answers(), "skills", grid)

    grid["a"] = "1"
    grid["b"].append("y")

    assert answers["skills"] == {"a": "4", "b": ["x"]}
    assert answers["skills"] is not grid


def test_toggle_choice_adds_and_removes():
    answers = answer_state.toggle_choice(answer_state.empty_answers(), "days", "sat")
    answers = answer_state.toggle_choice(answers, "days", "sun")
    assert answers["days"] == ["sat", "sun"]
    answers = answer_state.toggle_choice(answers, "days", "sat")
    assert answers["days"] == ["sun"]


def test_clear_field_removes_the_answer():
    answers = answer_state.set_field_value(answer_state.empty_answers(), "name", "Anu")
    assert "name" not in answer_state.clear_field(answers, "name")


def test_required_upload_in_flight_blocks_submit():
    draft = ApplicantDraft.for_fields(_fields()).with_value("name", "Anu")
    draft = draft.begin_upload("cv")
    assert draft.is_uploading("cv")
    assert draft.required_uploads_pending
    assert not draft.can_submit

    draft = draft.finish_upload("cv", "https://cdn.example/cv.pdf")
    assert not draft.is_uploading("cv")
    assert draft.answers["cv"] == "https://cdn.example/cv.pdf"
    assert draft.can_submit


def test_optional_upload_in_flight_does_not_block_submit():
    draft = (
        ApplicantDraft.for_fields(_fields())
        .with_value("name", "Anu")
        .with_value("cv", "https://cdn.example/cv.pdf")
        .begin_upload("photo")
    )
    assert not draft.required_uploads_pending
    assert draft.can_submit


def test_uploads_are_tracked_per_field():
    draft = ApplicantDraft.for_fields(_fields()).begin_upload("cv").begin_upload("photo")
    draft = draft.finish_upload("photo", "https://cdn.example/p.png")
    assert draft.is_uploading("cv")
    assert not draft.is_uploading("photo")


def test_failed_upload_is_recorded_and_cleared_on_retry():
    draft = ApplicantDraft.for_fields(_fields()).begin_upload("cv").fail_upload("cv")
    assert "cv" in draft.upload_errors
    assert not draft.is_uploading("cv")
    assert "cv" not in draft.begin_upload("cv").upload_errors


def test_upload_state_is_only_for_file_fields():
    draft = ApplicantDraft.for_fields(_fields())
    with pytest.raises(ValueError):
        draft.begin_upload("name")
    with pytest.raises(ValueError):
        draft.begin_upload("missing")


def test_draft_errors_follow_field_contracts():
    draft = ApplicantDraft.for_fields(_fields()).with_toggle("days", "mon")
    field_ids = [e.field_id for e in draft.errors()]
    assert field_ids == ["name", "days", "cv"]
