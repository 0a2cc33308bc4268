from __future__ import annotations

import copy
import logging
import math
import threading
from datetime import datetime
from typing import Any, Callable

from dynaform.errors import SubmissionNotFoundError, SubmissionValidationError
from dynaform.query import normalize_sort_order
from dynaform.rules import validate_submission
from dynaform.utils import new_ulid, now_utc, to_iso

logger = logging.getLogger(__name__)


def submission_output(record: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": record["id"],
        "data": copy.deepcopy(record["data"]),
        "createdAt": to_iso(record["created_at"]),
    }


class SubmissionStore:
    """In-memory submissions, validated against one form schema.

    Records keep insertion order, which breaks ties between equal
    ``created_at`` values when listing. Every operation holds the same lock,
    so readers never observe a record mid-update.
    """

    def __init__(
        self,
        schema: dict[str, Any],
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = new_ulid,
    ) -> None:
        self._schema = schema
        self._clock = clock
        self._new_id = id_factory
        self._records: list[dict[str, Any]] = []
        self._lock = threading.RLock()

    @property
    def schema(self) -> dict[str, Any]:
        return self._schema

    def _validate(self, data: dict[str, Any]) -> None:
        result = validate_submission(self._schema, data)
        if not result["isValid"]:
            logger.info("Submission rejected: %s", ", ".join(result["errors"]))
            raise SubmissionValidationError(result["errors"])

    def _index_of(self, submission_id: str) -> int:
        for index, record in enumerate(self._records):
            if record["id"] == submission_id:
                return index
        raise SubmissionNotFoundError(submission_id)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def all(self) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(record) for record in self._records]

    def get(self, submission_id: str) -> dict[str, Any]:
        with self._lock:
            record = self._records[self._index_of(submission_id)]
            return copy.deepcopy(record)

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        self._validate(data)
        with self._lock:
            record = {
                "id": self._new_id(),
                "data": copy.deepcopy(data),
                "created_at": self._clock(),
            }
            self._records.append(record)
            logger.info("Submission created: %s", record["id"])
            return copy.deepcopy(record)

    def update(self, submission_id: str, data: dict[str, Any]) -> dict[str, Any]:
        self._validate(data)
        with self._lock:
            try:
                index = self._index_of(submission_id)
            except SubmissionNotFoundError:
                logger.info("Update of unknown submission: %s", submission_id)
                raise
            record = self._records[index]
            record["data"] = copy.deepcopy(data)
            logger.info("Submission updated: %s", submission_id)
            return copy.deepcopy(record)

    def delete(self, submission_id: str) -> dict[str, Any]:
        with self._lock:
            try:
                index = self._index_of(submission_id)
            except SubmissionNotFoundError:
                logger.info("Delete of unknown submission: %s", submission_id)
                raise
            record = self._records.pop(index)
            logger.info("Submission deleted: %s", submission_id)
            return record

    def sorted_records(self, sort_order: str = "desc") -> list[dict[str, Any]]:
        order = normalize_sort_order(sort_order)
        with self._lock:
            # list.sort is stable, also with reverse=True, so equal timestamps
            # stay in insertion order.
            return sorted(
                (copy.deepcopy(record) for record in self._records),
                key=lambda record: record["created_at"],
                reverse=order == "desc",
            )

    def list_page(self, page: int = 1, limit: int = 5, sort_order: str = "desc") -> dict[str, Any]:
        order = normalize_sort_order(sort_order)
        limit = max(1, int(limit))
        items = self.sorted_records(order)

        total_items = len(items)
        total_pages = max(1, math.ceil(total_items / limit))
        safe_page = min(max(int(page), 1), total_pages)
        start = (safe_page - 1) * limit

        return {
            "data": items[start : start + limit],
            "pagination": {
                "page": safe_page,
                "limit": limit,
                "totalItems": total_items,
                "totalPages": total_pages,
            },
            "sort": {"sortBy": "createdAt", "sortOrder": order},
        }
