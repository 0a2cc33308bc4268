"""Single coercion step per loosely-typed field kind.

Values arrive from JSON bodies, form inputs and query strings, so numbers and
dates may be strings. Validation and schema checking both go through these
helpers so they never disagree on what a value means.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any


def coerce_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip()
        # float() accepts "1_000"; form input with digit separators is not a number.
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    # Full timestamps such as "2024-03-01T09:00:00Z" count as their calendar day.
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def format_number(value: float | int) -> str:
    """Render a constraint bound the way an operator wrote it (18, not 18.0)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
