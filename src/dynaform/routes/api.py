from __future__ import annotations

from typing import Any

import orjson
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from dynaform.errors import BadRequestError
from dynaform.export import EXPORT_FORMATS, render_export
from dynaform.query import normalize_sort_order, parse_page_params
from dynaform.rules import check_field, validate_submission
from dynaform.schema import sanitize_schema_output
from dynaform.store import submission_output
from dynaform.utils import loads_json

router = APIRouter()


async def read_payload(request: Request) -> dict[str, Any]:
    body = await request.body()
    try:
        payload = loads_json(body)
    except orjson.JSONDecodeError:
        raise BadRequestError("Request body is not valid JSON")
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise BadRequestError("Request body must be a JSON object")
    return payload


@router.get("/api/form-schema", tags=["api/form-schema"])
async def api_form_schema(request: Request) -> JSONResponse:
    return JSONResponse(sanitize_schema_output(request.app.state.form_schema))


@router.post("/api/form-schema/validate", tags=["api/form-schema"])
async def api_validate_payload(request: Request) -> JSONResponse:
    payload = await read_payload(request)
    return JSONResponse(validate_submission(request.app.state.form_schema, payload))


@router.post("/api/form-schema/fields/{field_name}/validate", tags=["api/form-schema"])
async def api_validate_field(field_name: str, request: Request) -> JSONResponse:
    payload = await read_payload(request)
    error = check_field(request.app.state.form_schema, field_name, payload.get("value"))
    return JSONResponse({"field": field_name, "valid": error is None, "error": error})


@router.post("/api/submissions", tags=["api/submissions"])
async def api_create_submission(request: Request) -> JSONResponse:
    store = request.app.state.store
    payload = await read_payload(request)
    record = store.create(payload)
    return JSONResponse(
        {"success": True, "submission": submission_output(record)}, status_code=201
    )


@router.get("/api/submissions", tags=["api/submissions"])
async def api_list_submissions(request: Request) -> JSONResponse:
    store = request.app.state.store
    settings = request.app.state.settings
    page, limit, sort_order = parse_page_params(
        request.query_params,
        default_limit=settings.default_page_limit,
        max_limit=settings.max_page_limit,
    )
    result = store.list_page(page, limit, sort_order)
    return JSONResponse(
        {
            "success": True,
            "data": [submission_output(record) for record in result["data"]],
            "pagination": result["pagination"],
            "sort": result["sort"],
        }
    )


@router.get("/api/submissions/export", tags=["api/submissions"])
async def api_export_submissions(request: Request) -> PlainTextResponse:
    store = request.app.state.store
    fmt = request.query_params.get("format", "csv").lower()
    if fmt not in EXPORT_FORMATS:
        raise BadRequestError(f"Unsupported export format: {fmt}")
    sort_order = normalize_sort_order(request.query_params.get("sortOrder"))
    records = store.sorted_records(sort_order)
    _, content_type = EXPORT_FORMATS[fmt]
    return PlainTextResponse(
        render_export(store.schema, records, fmt),
        media_type=content_type,
        headers={"Content-Disposition": f"attachment; filename=submissions.{fmt}"},
    )


@router.get("/api/submissions/{submission_id}", tags=["api/submissions"])
async def api_get_submission(submission_id: str, request: Request) -> JSONResponse:
    record = request.app.state.store.get(submission_id)
    return JSONResponse({"success": True, "submission": submission_output(record)})


@router.put("/api/submissions/{submission_id}", tags=["api/submissions"])
async def api_update_submission(submission_id: str, request: Request) -> JSONResponse:
    store = request.app.state.store
    payload = await read_payload(request)
    record = store.update(submission_id, payload)
    return JSONResponse({"success": True, "submission": submission_output(record)})


@router.delete("/api/submissions/{submission_id}", tags=["api/submissions"])
async def api_delete_submission(submission_id: str, request: Request) -> JSONResponse:
    record = request.app.state.store.delete(submission_id)
    return JSONResponse({"success": True, "submission": submission_output(record)})


@router.get("/healthz", tags=["system"])
async def healthz() -> dict[str, str]:
    return {"status": "ok"}
