"""Domain errors raised by the survey services and their HTTP rendering.

Every error carries the HTTP status it maps to and enough detail to
reproduce the failing input (offending field or id).
"""
# app/core/errors.py
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class SurveyError(Exception):
    status_code: int = 400
    title: str = "Bad Request"
    default_detail: str = "Bad request"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_problem(self) -> dict[str, Any]:
        return {"title": self.title, "status": self.status_code, "detail": self.detail}


class Forbidden(SurveyError):
    status_code = 403
    title = "Forbidden"
    default_detail = "Unauthorized action"


class NotFound(SurveyError):
    status_code = 404
    title = "Not Found"
    default_detail = "Survey not found"


class ValidationFailed(SurveyError):
    """Every violated field, not just the first one."""

    status_code = 422
    title = "Unprocessable Entity"
    default_detail = "The given data was invalid."

    def __init__(self, errors: list[dict[str, Any]]):
        super().__init__()
        self.errors = errors

    def to_problem(self) -> dict[str, Any]:
        return super().to_problem() | {"errors": self.errors}


class InvalidImageFormat(SurveyError):
    status_code = 422
    title = "Unprocessable Entity"
    default_detail = "Image must be a data URI of type jpg, jpeg, gif or png"

    def to_problem(self) -> dict[str, Any]:
        return super().to_problem() | {"field": "image"}


class InvalidImageEncoding(InvalidImageFormat):
    default_detail = "Image payload is not valid base64"


class InvalidQuestion(SurveyError):
    status_code = 400
    title = "Bad Request"

    def __init__(self, question_id: Any):
        super().__init__(f'Invalid question ID: "{question_id}"')
        self.question_id = question_id

    def to_problem(self) -> dict[str, Any]:
        return super().to_problem() | {"question_id": str(self.question_id)}


class Conflict(SurveyError):
    status_code = 409
    title = "Conflict"

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Survey was modified concurrently (expected version {expected}, found {actual})")
        self.expected = expected
        self.actual = actual

    def to_problem(self) -> dict[str, Any]:
        return super().to_problem() | {"expected": self.expected, "actual": self.actual}


_LOCATIONS = {"body", "query", "path", "header"}


def request_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Flatten pydantic errors into `{"field", "message"}` entries.

    `("body", "questions", 0, "id")` becomes `"questions.0.id"`.
    """
    errors = []
    for error in exc.errors():
        loc = list(error.get("loc", ()))
        if loc and loc[0] in _LOCATIONS and len(loc) > 1:
            loc = loc[1:]
        errors.append({"field": ".".join(str(part) for part in loc), "message": error.get("msg", "")})
    return errors


async def handle_survey_error(request: Request, exc: SurveyError) -> JSONResponse:
    return JSONResponse(exc.to_problem(), status_code=exc.status_code)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed requests get the same 422 body as `ValidationFailed`."""
    return await handle_survey_error(request, ValidationFailed(request_errors(exc)))
