"""Wire encoding for submission answers.

Answers are held as a map ``field_id -> value`` where grid fields carry a
nested ``row_key -> column_value`` map. On the wire they travel as a flat list
of ``{"key", "value"}`` pairs:

- grid cell: ``{"key": "skills::teamwork", "value": "4"}``
- checkbox:  ``{"key": "days", "value": "sat,sun"}``
- anything else: ``{"key": "name", "value": "Anu"}``

Values containing ``,`` or ``::`` do not survive the trip; schema validation
keeps those delimiters out of ids and option values. An empty grid row map
encodes to no pairs and comes back as "no answer".
"""

import logging
import math
from typing import Any, Iterable, Mapping

from app.db.enums import FieldType, NUMERIC_FIELD_TYPES
from app.schemas.forms import FieldDefinition
from app.services.form_schema_service import GRID_KEY_DELIMITER, MULTI_VALUE_DELIMITER

logger = logging.getLogger(__name__)


class WireEncodingError(ValueError):
    """Raised when an answer cannot be represented in wire form."""


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return MULTI_VALUE_DELIMITER.join(_stringify(v) for v in value)
    return str(value)


def encode(answers: Mapping[str, Any]) -> list[dict[str, str]]:
    """Flatten an answer map into wire pairs.

    ``None`` values are skipped; a missing key already means "no answer". An
    empty row map has no cells to send, so it is skipped too and decodes as
    absent rather than as ``{}``.
    """
    pairs: list[dict[str, str]] = []
    for field_id, value in answers.items():
        if GRID_KEY_DELIMITER in field_id:
            raise WireEncodingError(f"Field id '{field_id}' contains '{GRID_KEY_DELIMITER}'")
        if value is None:
            continue
        if isinstance(value, Mapping):
            for row_key, cell in value.items():
                if GRID_KEY_DELIMITER in str(row_key):
                    raise WireEncodingError(
                        f"Row '{row_key}' of field '{field_id}' contains '{GRID_KEY_DELIMITER}'"
                    )
                if cell is None:
                    continue
                pairs.append(
                    {"key": f"{field_id}{GRID_KEY_DELIMITER}{row_key}", "value": _stringify(cell)}
                )
            continue
        pairs.append({"key": field_id, "value": _stringify(value)})
    return pairs


def _pair_parts(pair: Any) -> tuple[str, Any]:
    if isinstance(pair, Mapping):
        return str(pair["key"]), pair.get("value")
    return str(pair.key), pair.value


def _split_multi(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    text = _stringify(value)
    if text == "":
        return []
    return text.split(MULTI_VALUE_DELIMITER)


def parse_number(value: Any) -> int | float | None:
    """Parse a wire value as a finite number; None when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    # "nan" and "inf" parse as floats but never satisfy a bound
    return number if math.isfinite(number) else None


def _decode_value(field: FieldDefinition | None, value: Any) -> Any:
    if field is None:
        return value
    if field.type == FieldType.CHECKBOX:
        return _split_multi(value)
    if field.type in NUMERIC_FIELD_TYPES:
        number = parse_number(value)
        # Unparseable input is left as-is for the field contract to reject
        return value if number is None else number
    return value


def _decode_cell(field: FieldDefinition | None, value: Any) -> Any:
    if field is not None and field.type == FieldType.GRID_CHECKBOX:
        return _split_multi(value)
    return value


def decode(
    pairs: Iterable[Any],
    fields: Iterable[FieldDefinition] | None = None,
) -> dict[str, Any]:
    """Rebuild an answer map from wire pairs.

    Without ``fields`` every value stays as transmitted. With ``fields`` the
    decode is schema-aware: checkbox values become lists and number/scale
    values become numbers. Fields missing from the wire are simply absent.
    """
    by_id = {f.id: f for f in fields} if fields is not None else {}
    answers: dict[str, Any] = {}
    grids: dict[str, dict[str, Any]] = {}

    for pair in pairs:
        key, value = _pair_parts(pair)
        if value is None:
            continue
        if GRID_KEY_DELIMITER in key:
            field_id, row_key = key.split(GRID_KEY_DELIMITER, 1)
            grids.setdefault(field_id, {})[row_key] = _decode_cell(by_id.get(field_id), value)
            continue
        answers[key] = _decode_value(by_id.get(key), value)

    for field_id, rows in grids.items():
        if field_id in answers and not isinstance(answers[field_id], dict):
            logger.warning(
                "Wire answers mix plain and grid keys for one field; grid cells win",
                extra={"field_id": field_id},
            )
        answers[field_id] = rows
    return answers
