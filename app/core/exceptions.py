"""Domain errors raised by the service layer and their HTTP mapping.

Services never build HTTP responses themselves; they raise one of the
errors below and the handlers registered by ``register_exception_handlers``
turn them into JSON bodies the frontend understands.
"""

from typing import Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logger import logger


class FeedbackBoardError(Exception):
    """Base error for the feedback board domain."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_body(self) -> dict:
        return {"message": self.message}


class ValidationError(FeedbackBoardError):
    """Missing or malformed input, reported per field."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed"):
        self.errors = errors
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, error: str) -> "ValidationError":
        return cls({field: [error]})

    def to_body(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class AuthorizationError(FeedbackBoardError):
    """The acting user does not own the resource."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(FeedbackBoardError):
    """A referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: Optional[int] = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


def _field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        # loc looks like ("body", "title") or ("query", "page")
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(FeedbackBoardError)
    async def feedback_board_error_handler(request: Request, exc: FeedbackBoardError):
        logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = _field_errors(exc)
        logger.warning(f"Request validation failed on {request.method} {request.url.path}: {errors}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"message": "Validation failed", "errors": errors},
        )
