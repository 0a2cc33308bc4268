from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dynaform.config import Settings
from dynaform.errors import (
    BadRequestError,
    FieldNotFoundError,
    SubmissionNotFoundError,
    SubmissionValidationError,
)
from dynaform.routes.api import router as api_router
from dynaform.schema import load_form_schema
from dynaform.store import SubmissionStore

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"success": False, "message": message, **extra}, status_code=status_code)


async def _validation_error(request: Request, exc: SubmissionValidationError) -> JSONResponse:
    return _error(400, "Validation failed", errors=exc.errors)


async def _bad_request(request: Request, exc: BadRequestError) -> JSONResponse:
    return _error(400, exc.message)


async def _submission_not_found(request: Request, exc: SubmissionNotFoundError) -> JSONResponse:
    return _error(404, "Submission not found")


async def _field_not_found(request: Request, exc: FieldNotFoundError) -> JSONResponse:
    return _error(404, "Field not found")


async def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error: %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


def create_app(
    settings: Settings | None = None,
    store: SubmissionStore | None = None,
) -> FastAPI:
    settings = settings or Settings()
    if store is None:
        store = SubmissionStore(load_form_schema(settings.form_schema_path))

    app = FastAPI(
        title="dynaform",
        openapi_tags=[
            {"name": "api/form-schema", "description": "REST API: form schema and field checks"},
            {"name": "api/submissions", "description": "REST API: submissions"},
            {"name": "system", "description": "System"},
        ],
    )

    app.state.settings = settings
    app.state.store = store
    app.state.form_schema = store.schema

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SubmissionValidationError, _validation_error)
    app.add_exception_handler(BadRequestError, _bad_request)
    app.add_exception_handler(SubmissionNotFoundError, _submission_not_found)
    app.add_exception_handler(FieldNotFoundError, _field_not_found)
    app.add_exception_handler(Exception, _internal_error)

    app.include_router(api_router)

    logger.info(
        "Serving form %r with %d fields", store.schema["title"], len(store.schema["fields"])
    )
    return app
