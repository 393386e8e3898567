"""
Request and internal errors, and their mapping onto HTTP responses.

Handlers raise these; the exception handlers registered here turn them into
JSON bodies. Internal failures are logged with their full context and the
client only ever sees a generic 500 body.
"""
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

DECODE_MESSAGE = "unable to decode payload"
VALIDATION_MESSAGE = "data validation error"
INTERNAL_MESSAGE = "Internal Server Error"


class DecodeError(Exception):
    """The request body could not be decoded."""

    def __init__(self, message: str = DECODE_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


class FieldsError(Exception):
    """One or more request fields failed validation."""

    def __init__(self, fields: dict[str, str]) -> None:
        super().__init__(", ".join(f"{k}: {v}" for k, v in fields.items()))
        self.fields = fields

    @classmethod
    def for_field(cls, field: str, message: str) -> "FieldsError":
        return cls({field: message})


class RequestError(Exception):
    """A failure the client is allowed to see, with the status to report it under."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class InternalError(Exception):
    """
    An unexpected failure from the business core.

    Carries the operation name and whatever identifies the request
    (ids, the decoded payload) so the server log can explain it.
    """

    def __init__(self, op: str, **context: Any) -> None:
        details = " ".join(f"{k}[{v!r}]" for k, v in context.items())
        super().__init__(f"{op}: {details}" if details else op)
        self.op = op
        self.context = context


def _error_response(status_code: int, error: str, fields: dict[str, str] | None = None) -> JSONResponse:
    body: dict[str, Any] = {"error": error}
    if fields:
        body["fields"] = fields
    return JSONResponse(status_code=status_code, content=body)


def classify_validation_error(exc: RequestValidationError) -> DecodeError | FieldsError:
    """Split FastAPI's validation failure into an undecodable body or field errors."""
    fields: dict[str, str] = {}
    for error in exc.errors():
        loc = tuple(error.get("loc", ()))
        if error.get("type") == "json_invalid" or loc == ("body",):
            return DecodeError()
        name = ".".join(str(part) for part in loc[1:]) or str(loc[0] if loc else "body")
        fields.setdefault(name, error.get("msg", "invalid value"))
    return FieldsError(fields)


def register_error_handlers(app: FastAPI) -> None:
    """Register the request and internal error handlers on the application."""

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        err = classify_validation_error(exc)
        if isinstance(err, DecodeError):
            return await handle_decode(request, err)
        return await handle_fields(request, err)

    @app.exception_handler(DecodeError)
    async def handle_decode(request: Request, exc: DecodeError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path}: {exc.message}")
        return _error_response(400, exc.message)

    @app.exception_handler(FieldsError)
    async def handle_fields(request: Request, exc: FieldsError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path}: validation failed: {exc}")
        return _error_response(400, VALIDATION_MESSAGE, exc.fields)

    @app.exception_handler(RequestError)
    async def handle_request_error(request: Request, exc: RequestError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path}: {exc.status_code} {exc.message}")
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(InternalError)
    async def handle_internal(request: Request, exc: InternalError) -> JSONResponse:
        logger.error(f"{request.method} {request.url.path}: {exc}", exc_info=exc)
        return _error_response(500, INTERNAL_MESSAGE)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"{request.method} {request.url.path}: unexpected {type(exc).__name__}")
        return _error_response(500, INTERNAL_MESSAGE)
