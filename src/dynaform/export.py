from __future__ import annotations

import csv
import io
from typing import Any

from dynaform.utils import dumps_json, to_iso

EXPORT_FORMATS = {
    "csv": (",", "text/csv"),
    "tsv": ("\t", "text/tab-separated-values"),
}


def value_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(value_to_text(item) for item in value if item is not None)
    if isinstance(value, dict):
        return dumps_json(value)
    return str(value)


def export_headers(schema: dict[str, Any]) -> list[str]:
    return ["id", "createdAt"] + [field["label"] for field in schema["fields"]]


def export_rows(schema: dict[str, Any], records: list[dict[str, Any]]) -> list[list[str]]:
    rows: list[list[str]] = []
    for record in records:
        data = record.get("data", {})
        row = [record["id"], to_iso(record["created_at"])]
        row.extend(value_to_text(data.get(field["name"])) for field in schema["fields"])
        rows.append(row)
    return rows


def render_export(schema: dict[str, Any], records: list[dict[str, Any]], fmt: str = "csv") -> str:
    delimiter, _ = EXPORT_FORMATS.get(fmt, EXPORT_FORMATS["csv"])
    output = io.StringIO()
    writer = csv.writer(output, delimiter=delimiter)
    writer.writerow(export_headers(schema))
    writer.writerows(export_rows(schema, records))
    return output.getvalue()
