from __future__ import annotations


class DynaformError(Exception):
    """Base class for errors raised by dynaform."""


class SchemaError(DynaformError):
    """The form schema definition is malformed.

    Every problem found while checking the definition is collected in
    ``errors`` so an operator can fix them in one pass.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid form schema")


class BadRequestError(DynaformError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SubmissionValidationError(DynaformError):
    """A payload failed validation. Nothing was written."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__(f"validation failed for: {', '.join(self.errors)}")


class SubmissionNotFoundError(DynaformError, KeyError):
    def __init__(self, submission_id: str) -> None:
        self.submission_id = submission_id
        super().__init__(submission_id)

    def __str__(self) -> str:
        return f"submission not found: {self.submission_id}"


class FieldNotFoundError(DynaformError, KeyError):
    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(field_name)

    def __str__(self) -> str:
        return f"field not found: {self.field_name}"
