"""Uniform error shape for the API.

Services raise ``AppError`` subclasses; storage and validation exceptions are
mapped by ``translate_exception`` so that no raw SQLAlchemy or pydantic error
reaches a client. Every failure is serialized as::

    {"success": false, "error": "...", "message": "...", "code": "...", "field": "..."}
"""

import logging
import re
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: str | None = None, field: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.field = field


class ValidationFailed(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class Unauthenticated(AppError):
    status_code = 401
    code = "UNAUTHENTICATED"


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"


class InternalError(AppError):
    status_code = 500
    code = "INTERNAL_ERROR"


@dataclass(frozen=True)
class ErrorResponse:
    status: int
    message: str
    code: str
    field: str | None = None

    def to_dict(self) -> dict:
        out = {"success": False, "error": self.message, "message": self.message, "code": self.code}
        if self.field:
            out["field"] = self.field
        return out


# Postgres: Key (email)=(a@b.c) already exists.   SQLite: UNIQUE constraint failed: users.email
_PG_KEY = re.compile(r"Key \(([^)]+)\)=")
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: ([\w.]+)")

_DUPLICATE_MESSAGES = {
    "email": "An account with this email address already exists",
    "phone": "An account with this phone number already exists",
}


def _sqlstate(exc: IntegrityError) -> str | None:
    return getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)


def _is_unique_violation(exc: IntegrityError) -> bool:
    return _sqlstate(exc) == "23505" or "unique" in str(exc.orig).lower()


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    return _sqlstate(exc) == "23503" or "foreign key" in str(exc.orig).lower()


def duplicate_field(exc: IntegrityError) -> str:
    """Best-effort column name of a unique violation ("field" when unknown)."""
    text = str(exc.orig)
    m = _PG_KEY.search(text)
    if m:
        return m.group(1).split(",")[0].strip()
    m = _SQLITE_UNIQUE.search(text)
    if m:
        return m.group(1).split(",")[0].strip().split(".")[-1]
    return "field"


def _first_validation_error(errors: list[dict]) -> tuple[str | None, str]:
    if not errors:
        return None, "Validation error"
    first = errors[0]
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    return (".".join(loc) or None), first.get("msg", "Validation error")


def require_args(**kwargs) -> None:
    """Raise ValidationFailed for the first argument that is missing or blank."""
    if not kwargs:
        raise ValidationFailed("Missing required arguments")
    for key, value in kwargs.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationFailed(f"Missing required argument: {key}", field=key)


def translate_exception(exc: Exception) -> ErrorResponse:
    if isinstance(exc, AppError):
        return ErrorResponse(exc.status_code, exc.message, exc.code, exc.field)

    if isinstance(exc, (RequestValidationError, ValidationError)):
        field, msg = _first_validation_error(list(exc.errors()))
        resp = ErrorResponse(400, msg, "VALIDATION_ERROR", field)
    elif isinstance(exc, IntegrityError) and _is_unique_violation(exc):
        field = duplicate_field(exc)
        message = _DUPLICATE_MESSAGES.get(field, "This information is already in use")
        resp = ErrorResponse(409, message, "DUPLICATE_FIELD", field)
    elif isinstance(exc, IntegrityError) and _is_foreign_key_violation(exc):
        resp = ErrorResponse(400, "Invalid reference data provided", "INVALID_REFERENCE")
    elif isinstance(exc, NoResultFound):
        resp = ErrorResponse(404, "Record not found", "NOT_FOUND")
    elif isinstance(exc, SQLAlchemyError):
        resp = ErrorResponse(500, "Database operation failed", "DATABASE_ERROR")
    else:
        resp = ErrorResponse(500, "An unexpected error occurred. Please try again.", "INTERNAL_ERROR")

    if resp.status >= 500:
        logger.error("Unhandled %s translated to %s", type(exc).__name__, resp.code, exc_info=exc)
    else:
        logger.warning("%s translated to %s (%s)", type(exc).__name__, resp.code, resp.status)
    return resp


_ERROR_BY_STATUS = {
    400: ValidationFailed,
    401: Unauthenticated,
    403: Forbidden,
    404: NotFound,
    409: Conflict,
}


def as_app_error(exc: Exception) -> AppError:
    """Translate ``exc`` and wrap the result so services can re-raise it."""
    resp = translate_exception(exc)
    cls = _ERROR_BY_STATUS.get(resp.status, InternalError)
    return cls(resp.message, code=resp.code, field=resp.field)


def _json(resp: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=resp.status, content=resp.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        return _json(translate_exception(exc))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        return _json(translate_exception(exc))

    @app.exception_handler(SQLAlchemyError)
    async def _storage_error(request: Request, exc: SQLAlchemyError):
        return _json(translate_exception(exc))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": detail, "message": detail, "code": "HTTP_ERROR"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        return _json(translate_exception(exc))
