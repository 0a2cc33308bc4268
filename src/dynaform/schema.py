from __future__ import annotations

import copy
import re
from pathlib import Path
from typing import Any

import orjson
from jsonschema import Draft7Validator

from dynaform.coerce import coerce_date
from dynaform.config import ALLOWED_TYPES, KEY_PATTERN, OPTION_TYPES
from dynaform.errors import SchemaError

DEFAULT_FORM_SCHEMA: dict[str, Any] = {
    "title": "Employee Onboarding",
    "description": "Onboarding form for new employees.",
    "fields": [
        {
            "name": "fullName",
            "label": "Full Name",
            "type": "text",
            "placeholder": "Enter full name",
            "required": True,
            "validation": {"minLength": 3, "maxLength": 100},
        },
        {
            "name": "email",
            "label": "Email",
            "type": "text",
            "placeholder": "name@company.com",
            "required": True,
            "validation": {"regex": r"^[^\s@]+@[^\s@]+\.[^\s@]+$"},
        },
        {
            "name": "age",
            "label": "Age",
            "type": "number",
            "placeholder": "Enter age",
            "required": False,
            "validation": {"min": 18, "max": 65},
        },
        {
            "name": "department",
            "label": "Department",
            "type": "select",
            "placeholder": "Select department",
            "required": True,
            "options": [
                {"label": "Engineering", "value": "engineering"},
                {"label": "HR", "value": "hr"},
                {"label": "Finance", "value": "finance"},
            ],
        },
        {
            "name": "skills",
            "label": "Skills",
            "type": "multi-select",
            "placeholder": "Add skills",
            "required": False,
            "options": [
                {"label": "JavaScript", "value": "JavaScript"},
                {"label": "React", "value": "React"},
                {"label": "Node.js", "value": "Node.js"},
            ],
            "validation": {"minSelected": 1, "maxSelected": 5},
        },
        {
            "name": "joiningDate",
            "label": "Joining Date",
            "type": "date",
            "placeholder": "Select joining date",
            "required": True,
            "validation": {"minDate": "2020-01-01"},
        },
        {
            "name": "notes",
            "label": "Notes",
            "type": "textarea",
            "placeholder": "Additional information",
            "required": False,
            "validation": {"maxLength": 500},
        },
        {
            "name": "isRemote",
            "label": "Remote Employee",
            "type": "switch",
            "required": False,
        },
    ],
}

_COUNT = {"type": "integer", "minimum": 0}

FORM_SCHEMA_DEFINITION: dict[str, Any] = {
    "type": "object",
    "required": ["title", "fields"],
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "description": {"type": ["string", "null"]},
        "fields": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["name", "type"],
                "properties": {
                    "name": {"type": "string", "pattern": KEY_PATTERN},
                    "label": {"type": "string"},
                    "placeholder": {"type": "string"},
                    "type": {"type": "string"},
                    "required": {"type": "boolean"},
                    "options": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["label", "value"],
                            "properties": {
                                "label": {"type": "string"},
                                "value": {"type": "string"},
                            },
                        },
                    },
                    "validation": {
                        "type": "object",
                        "properties": {
                            "minLength": _COUNT,
                            "maxLength": _COUNT,
                            "regex": {"type": "string"},
                            "min": {"type": "number"},
                            "max": {"type": "number"},
                            "minSelected": _COUNT,
                            "maxSelected": _COUNT,
                            "minDate": {"type": "string"},
                        },
                    },
                },
            },
        },
    },
}

VALIDATION_KEYS = (
    "minLength",
    "maxLength",
    "regex",
    "min",
    "max",
    "minSelected",
    "maxSelected",
    "minDate",
)

COUNT_KEYS = frozenset({"minLength", "maxLength", "minSelected", "maxSelected"})

_BOUND_PAIRS = (("minLength", "maxLength"), ("min", "max"), ("minSelected", "maxSelected"))


def _structure_errors(raw: Any) -> list[str]:
    validator = Draft7Validator(FORM_SCHEMA_DEFINITION)
    errors = sorted(validator.iter_errors(raw), key=lambda err: list(err.path))
    messages: list[str] = []
    for error in errors:
        location = "/".join(str(part) for part in error.path) or "(root)"
        messages.append(f"{location}: {error.message}")
    return messages


def _field_errors(index: int, field: dict[str, Any]) -> list[str]:
    loc = f"fields/{index} ({field['name']})"
    errors: list[str] = []
    field_type = field["type"]
    if field_type not in ALLOWED_TYPES:
        errors.append(f"{loc}: unknown field type ({field_type})")

    seen_values: set[str] = set()
    for option in field.get("options") or []:
        value = option["value"]
        if value in seen_values:
            errors.append(f"{loc}: duplicate option value ({value})")
        seen_values.add(value)

    validation = field.get("validation") or {}
    pattern = validation.get("regex")
    if pattern is not None:
        try:
            re.compile(pattern)
        except re.error as exc:
            errors.append(f"{loc}: regex does not compile ({exc})")
    min_date = validation.get("minDate")
    if min_date is not None and coerce_date(min_date) is None:
        errors.append(f"{loc}: minDate is not a valid date ({min_date})")
    for low_key, high_key in _BOUND_PAIRS:
        low = validation.get(low_key)
        high = validation.get(high_key)
        if low is not None and high is not None and low > high:
            errors.append(f"{loc}: {low_key} is greater than {high_key}")
    return errors


def check_schema_definition(raw: Any) -> list[str]:
    """Return every problem with a raw form schema document (empty if usable)."""
    errors = _structure_errors(raw)
    if errors:
        return errors
    seen_names: set[str] = set()
    for index, field in enumerate(raw["fields"]):
        name = field["name"]
        if name in seen_names:
            errors.append(f"fields/{index}: duplicate field name ({name})")
        seen_names.add(name)
        errors.extend(_field_errors(index, field))
    return errors


def normalize_field(raw: dict[str, Any]) -> dict[str, Any]:
    field_type = raw["type"]
    validation = raw.get("validation") or {}
    return {
        "name": raw["name"],
        "label": str(raw.get("label") or raw["name"]),
        "type": field_type,
        "placeholder": str(raw.get("placeholder") or ""),
        "required": bool(raw.get("required")),
        "options": [
            {"label": option["label"], "value": option["value"]}
            for option in raw.get("options") or []
        ]
        if field_type in OPTION_TYPES
        else [],
        "validation": {
            key: int(validation[key]) if key in COUNT_KEYS else validation[key]
            for key in VALIDATION_KEYS
            if validation.get(key) is not None
        },
    }


def parse_form_schema(raw: Any) -> dict[str, Any]:
    errors = check_schema_definition(raw)
    if errors:
        raise SchemaError(errors)
    return {
        "title": raw["title"],
        "description": raw.get("description") or "",
        "fields": [normalize_field(field) for field in raw["fields"]],
    }


def load_form_schema(path: Path | None = None) -> dict[str, Any]:
    if path is None:
        return parse_form_schema(DEFAULT_FORM_SCHEMA)
    try:
        raw = orjson.loads(Path(path).read_bytes())
    except OSError as exc:
        raise SchemaError([f"cannot read schema file {path}: {exc.strerror}"]) from exc
    except orjson.JSONDecodeError as exc:
        raise SchemaError([f"schema file {path} is not valid JSON: {exc}"]) from exc
    return parse_form_schema(raw)


def get_field(schema: dict[str, Any], name: str) -> dict[str, Any] | None:
    for field in schema["fields"]:
        if field["name"] == name:
            return field
    return None


def sanitize_schema_output(schema: dict[str, Any]) -> dict[str, Any]:
    return {
        "title": schema["title"],
        "description": schema.get("description", ""),
        "fields": copy.deepcopy(schema["fields"]),
    }
