"""Per-field analytics and CSV export for recruitment submissions.

Read-only: the aggregator never mutates or deletes a submission.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field as dc_field
from datetime import datetime
from typing import Any, Iterable, Iterator, Mapping, Sequence

from app.db.enums import GRID_FIELD_TYPES, NUMERIC_FIELD_TYPES, FieldType
from app.schemas.forms import FieldDefinition, SubmissionRead
from app.services.form_schema_service import GRID_KEY_DELIMITER, ordered_fields
from app.services.submission_codec import parse_number


LATEST_TEXT_LIMIT = 10
LATEST_FILE_LIMIT = 15

CSV_FIXED_HEADERS = ("Submitted At", "Name", "Email", "Phone", "Status")
CSV_DANGEROUS_PREFIXES = ("=", "+", "-", "@")

VISUALIZATIONS: dict[FieldType, str] = {
    FieldType.TEXT: "latest_list",
    FieldType.TEXTAREA: "latest_list",
    FieldType.EMAIL: "latest_list",
    FieldType.PHONE: "latest_list",
    FieldType.SELECT: "categorical",
    FieldType.RADIO: "categorical",
    FieldType.CHECKBOX: "ranked_bar",
    FieldType.NUMBER: "mean_distribution",
    FieldType.SCALE: "mean_distribution",
    FieldType.DATE: "chronological",
    FieldType.TIME: "chronological",
    FieldType.FILE: "file_links",
    FieldType.GRID_RADIO: "stacked_bar",
    FieldType.GRID_CHECKBOX: "stacked_bar",
}


@dataclass
class GridRow:
    row: str
    label: str
    counts: dict[str, int] = dc_field(default_factory=dict)


@dataclass
class FieldAggregate:
    field_id: str
    type: FieldType
    label: dict[str, str]
    visualization: str
    total: int = 0
    frequencies: list[tuple[str, int]] = dc_field(default_factory=list)
    values: list[str] = dc_field(default_factory=list)
    mean: float | None = None
    rows: list[GridRow] = dc_field(default_factory=list)
    columns: list[str] = dc_field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return dict(self.frequencies)

    def pivot(self) -> dict[str, dict[str, int]]:
        return {r.row: dict(r.counts) for r in self.rows}

    def to_dict(self) -> dict[str, Any]:
        return {
            "field_id": self.field_id,
            "type": self.type.value,
            "label": self.label,
            "visualization": self.visualization,
            "total": self.total,
            "frequencies": [{"name": name, "value": count} for name, count in self.frequencies],
            "values": self.values,
            "mean": self.mean,
            "rows": [{"row": r.row, "label": r.label, "counts": r.counts} for r in self.rows],
            "columns": self.columns,
        }


# =============================================================================
# Value helpers
# =============================================================================


def _label(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _sort_key(name: str) -> tuple[int, float, str]:
    number = parse_number(name)
    if number is None:
        return (1, 0.0, name)
    return (0, float(number), name)


def grid_answer(field: FieldDefinition, answers: Mapping[str, Any]) -> dict[str, Any]:
    """Row map for a grid field, also reading legacy ``field::row`` keys."""
    nested = answers.get(field.id)
    if isinstance(nested, Mapping):
        return dict(nested)
    prefix = f"{field.id}{GRID_KEY_DELIMITER}"
    return {key[len(prefix):]: value for key, value in answers.items() if key.startswith(prefix)}


def mean(values: Iterable[Any]) -> float | None:
    """Mean over numeric values; blanks and non-numbers count for nothing."""
    total = 0.0
    count = 0
    for value in values:
        number = parse_number(value)
        if number is None:
            continue
        total += number
        count += 1
    if count == 0:
        return None
    return total / count


# =============================================================================
# Aggregation
# =============================================================================


def _aggregate_grid(field: FieldDefinition, answer_sets: Sequence[Mapping[str, Any]]) -> FieldAggregate:
    result = FieldAggregate(
        field_id=field.id,
        type=field.type,
        label=field.label.model_dump(),
        visualization=VISUALIZATIONS[field.type],
    )
    rows: dict[str, GridRow] = {}
    for option in field.options or []:
        rows[option.value] = GridRow(row=option.value, label=option.label.en or option.value)

    for answers in answer_sets:
        row_map = grid_answer(field, answers)
        answered = False
        for row_key, cell in row_map.items():
            cells = cell if isinstance(cell, list) else [cell]
            cells = [c for c in cells if _present(c)]
            if not cells:
                continue
            answered = True
            row = rows.setdefault(row_key, GridRow(row=row_key, label=row_key))
            for c in cells:
                name = _label(c)
                row.counts[name] = row.counts.get(name, 0) + 1
        if answered:
            result.total += 1

    result.rows = list(rows.values())
    observed = {name for row in result.rows for name in row.counts}
    result.columns = sorted(observed, key=_sort_key)
    return result


def aggregate_field(field: FieldDefinition, answer_sets: Sequence[Mapping[str, Any]]) -> FieldAggregate:
    """Chart-ready aggregate for one field over decoded answer maps."""
    if field.type in GRID_FIELD_TYPES:
        return _aggregate_grid(field, answer_sets)

    result = FieldAggregate(
        field_id=field.id,
        type=field.type,
        label=field.label.model_dump(),
        visualization=VISUALIZATIONS[field.type],
    )
    counts: dict[str, int] = {}
    seen_values: list[str] = []
    raw_values: list[Any] = []

    for answers in answer_sets:
        answer = answers.get(field.id)
        items = answer if isinstance(answer, list) else [answer]
        items = [item for item in items if _present(item)]
        if not items:
            continue
        result.total += 1
        for item in items:
            name = _label(item)
            counts[name] = counts.get(name, 0) + 1
            seen_values.append(name)
            raw_values.append(item)

    frequencies = list(counts.items())
    if field.type == FieldType.CHECKBOX:
        frequencies.sort(key=lambda entry: entry[1], reverse=True)
    elif field.type in NUMERIC_FIELD_TYPES or field.type in (FieldType.DATE, FieldType.TIME):
        frequencies.sort(key=lambda entry: _sort_key(entry[0]))
    result.frequencies = frequencies

    if field.type in NUMERIC_FIELD_TYPES:
        result.mean = mean(raw_values)
    elif field.type == FieldType.FILE:
        result.values = list(reversed(seen_values[-LATEST_FILE_LIMIT:]))
    elif result.visualization == "latest_list":
        result.values = list(reversed(seen_values[-LATEST_TEXT_LIMIT:]))
    return result


def aggregate_form(
    fields: Sequence[FieldDefinition],
    answer_sets: Sequence[Mapping[str, Any]],
) -> list[FieldAggregate]:
    return [aggregate_field(f, answer_sets) for f in ordered_fields(fields)]


# =============================================================================
# CSV export
# =============================================================================


def _csv_safe(value: str) -> str:
    """Neutralize spreadsheet formulas; signed numbers such as phones pass through."""
    if not value or not value.startswith(CSV_DANGEROUS_PREFIXES):
        return value
    if value[0] in "+-" and parse_number(value[1:]) is not None:
        return value
    return f"'{value}"


def render_answer(value: Any) -> str:
    """Flatten one answer for a CSV cell."""
    if value is None:
        return ""
    if isinstance(value, list):
        return "; ".join(_label(v) for v in value)
    if isinstance(value, Mapping):
        return " | ".join(f"{k}: {render_answer(v)}" for k, v in value.items())
    return _label(value)


def _format_timestamp(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M:%S")


def csv_header(fields: Sequence[FieldDefinition]) -> list[str]:
    return [*CSV_FIXED_HEADERS, *(f.label.en or f.id for f in ordered_fields(fields))]


def csv_row(fields: Sequence[FieldDefinition], submission: SubmissionRead) -> list[str]:
    answers = submission.answers or {}
    cells = [
        _format_timestamp(submission.created_at),
        submission.applicant_name,
        submission.applicant_email,
        submission.applicant_phone or "",
        submission.status.value,
    ]
    for f in ordered_fields(fields):
        value = grid_answer(f, answers) if f.type in GRID_FIELD_TYPES else answers.get(f.id)
        cells.append(render_answer(value))
    return cells


def _write_csv_row(values: Sequence[str]) -> str:
    output = io.StringIO()
    # Every cell quoted; csv doubles embedded quotes
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([_csv_safe(v) for v in values])
    return output.getvalue()


def stream_csv(fields: Sequence[FieldDefinition], submissions: Iterable[SubmissionRead]) -> Iterator[str]:
    """Yield the export line by line, rows in the order given."""
    yield _write_csv_row(csv_header(fields))
    for submission in submissions:
        yield _write_csv_row(csv_row(fields, submission))


def build_csv(fields: Sequence[FieldDefinition], submissions: Iterable[SubmissionRead]) -> str:
    return "".join(stream_csv(fields, submissions))


def csv_filename(title: str) -> str:
    return f"{re.sub(r'[^A-Za-z0-9]', '_', title or 'form')}_responses.csv"
