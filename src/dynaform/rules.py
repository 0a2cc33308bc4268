"""Validation rule table shared by every place that checks form input.

``RULES`` maps a field type to a shape check followed by its constraint
checks, in the order they are evaluated. ``validate_field`` is the
interactive, single-field entry point (run on every change and blur);
``validate_submission`` is the authoritative gate run before anything is
stored. Both walk the same table, so they cannot drift apart.
"""

from __future__ import annotations

import functools
import re
from typing import Any, Callable, NamedTuple

from dynaform.coerce import coerce_date, coerce_number, format_number
from dynaform.errors import FieldNotFoundError
from dynaform.schema import get_field

REQUIRED_MESSAGE = "This field is required."

# Multi-select fields whose values are free-text tags rather than option values.
FREE_TEXT_FIELDS = frozenset({"skills"})

Check = Callable[[dict[str, Any], Any], "str | None"]

_INVALID = object()


class FieldRule(NamedTuple):
    shape: Callable[[Any], Any]
    shape_message: str
    checks: tuple[Check, ...]


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return True
    return False


@functools.lru_cache(maxsize=128)
def _compiled(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def _option_values(field: dict[str, Any]) -> list[str]:
    return [option["value"] for option in field.get("options") or []]


def _option_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


# Shape checks: return the value the constraints work on, or _INVALID.


def _text_shape(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else _INVALID


def _string_shape(value: Any) -> Any:
    return value if isinstance(value, str) else _INVALID


def _number_shape(value: Any) -> Any:
    number = coerce_number(value)
    return _INVALID if number is None else number


def _list_shape(value: Any) -> Any:
    return list(value) if isinstance(value, (list, tuple)) else _INVALID


def _bool_shape(value: Any) -> Any:
    return value if isinstance(value, bool) else _INVALID


# Constraint checks.


def _min_length(field: dict[str, Any], value: str) -> str | None:
    limit = field["validation"].get("minLength")
    if limit and len(value) < limit:
        return f"Must be at least {limit} characters."
    return None


def _max_length(field: dict[str, Any], value: str) -> str | None:
    limit = field["validation"].get("maxLength")
    if limit and len(value) > limit:
        return f"Must be at most {limit} characters."
    return None


def _regex(field: dict[str, Any], value: str) -> str | None:
    pattern = field["validation"].get("regex")
    if pattern and not _compiled(pattern).search(value):
        return "Invalid format."
    return None


def _min_value(field: dict[str, Any], value: float) -> str | None:
    bound = field["validation"].get("min")
    if bound is not None and value < bound:
        return f"Must be at least {format_number(bound)}."
    return None


def _max_value(field: dict[str, Any], value: float) -> str | None:
    bound = field["validation"].get("max")
    if bound is not None and value > bound:
        return f"Must be at most {format_number(bound)}."
    return None


def _one_of_options(field: dict[str, Any], value: str) -> str | None:
    allowed = _option_values(field)
    if allowed and value not in allowed:
        return "Invalid option selected."
    return None


def _all_in_options(field: dict[str, Any], values: list[Any]) -> str | None:
    if field.get("name") in FREE_TEXT_FIELDS:
        return None
    allowed = _option_values(field)
    if allowed and any(_option_text(item) not in allowed for item in values):
        return "Contains invalid option(s)."
    return None


def _min_selected(field: dict[str, Any], values: list[Any]) -> str | None:
    limit = field["validation"].get("minSelected")
    if limit and len(values) < limit:
        return f"Select at least {limit} option(s)."
    return None


def _max_selected(field: dict[str, Any], values: list[Any]) -> str | None:
    limit = field["validation"].get("maxSelected")
    if limit and len(values) > limit:
        return f"Select at most {limit} option(s)."
    return None


def _valid_date(field: dict[str, Any], value: str) -> str | None:
    if coerce_date(value) is None:
        return "Invalid date."
    return None


def _min_date(field: dict[str, Any], value: str) -> str | None:
    raw_bound = field["validation"].get("minDate")
    if not raw_bound:
        return None
    bound = coerce_date(raw_bound)
    if bound is not None and coerce_date(value) < bound:
        return f"Date must be on or after {raw_bound}."
    return None


_TEXT_RULE = FieldRule(_text_shape, "Must be a string.", (_min_length, _max_length, _regex))

RULES: dict[str, FieldRule] = {
    "text": _TEXT_RULE,
    "textarea": _TEXT_RULE,
    "number": FieldRule(_number_shape, "Must be a number.", (_min_value, _max_value)),
    "select": FieldRule(_string_shape, "Must be a string.", (_one_of_options,)),
    "multi-select": FieldRule(
        _list_shape, "Must be an array.", (_all_in_options, _min_selected, _max_selected)
    ),
    "date": FieldRule(
        _string_shape, "Must be a date string (YYYY-MM-DD).", (_valid_date, _min_date)
    ),
    "switch": FieldRule(_bool_shape, "Must be a boolean.", ()),
}


def validate_field(field: dict[str, Any], raw_value: Any) -> str | None:
    """Return the first error message for ``raw_value``, or ``None`` if it passes."""
    if is_empty(raw_value):
        return REQUIRED_MESSAGE if field.get("required") else None

    rule = RULES.get(field.get("type", ""))
    if rule is None:
        # Unknown types never get past schema loading; ad-hoc definitions pass.
        return None

    value = rule.shape(raw_value)
    if value is _INVALID:
        return rule.shape_message
    field = {**field, "validation": field.get("validation") or {}}
    for check in rule.checks:
        message = check(field, value)
        if message:
            return message
    return None


def check_field(schema: dict[str, Any], name: str, raw_value: Any) -> str | None:
    field = get_field(schema, name)
    if field is None:
        raise FieldNotFoundError(name)
    return validate_field(field, raw_value)


def validate_submission(schema: dict[str, Any], data: dict[str, Any] | None) -> dict[str, Any]:
    data = data or {}
    errors: dict[str, str] = {}
    for field in schema["fields"]:
        message = validate_field(field, data.get(field["name"]))
        if message:
            errors[field["name"]] = message
    return {"isValid": not errors, "errors": errors}
