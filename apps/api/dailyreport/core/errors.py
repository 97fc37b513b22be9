import enum
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorCode(str, enum.Enum):
    # 401
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_UNAUTHORIZED = "AUTH_UNAUTHORIZED"

    # 403
    FORBIDDEN_ACCESS = "FORBIDDEN_ACCESS"
    FORBIDDEN_EDIT = "FORBIDDEN_EDIT"
    FORBIDDEN_DELETE = "FORBIDDEN_DELETE"

    # 400 / 422
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # 404 / 409
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_IN_USE = "RESOURCE_IN_USE"
    STATE_CONFLICT = "STATE_CONFLICT"

    # 500
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_STATUS = {
    ErrorCode.AUTH_INVALID_CREDENTIALS: 401,
    ErrorCode.AUTH_UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN_ACCESS: 403,
    ErrorCode.FORBIDDEN_EDIT: 403,
    ErrorCode.FORBIDDEN_DELETE: 403,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.DUPLICATE_ENTRY: 400,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.RESOURCE_IN_USE: 409,
    ErrorCode.STATE_CONFLICT: 409,
    ErrorCode.INTERNAL_ERROR: 500,
}

DEFAULT_MESSAGES = {
    ErrorCode.AUTH_INVALID_CREDENTIALS: "Invalid email or password",
    ErrorCode.AUTH_UNAUTHORIZED: "Authentication required",
    ErrorCode.FORBIDDEN_ACCESS: "You do not have access to this resource",
    ErrorCode.FORBIDDEN_EDIT: "You do not have permission to edit this resource",
    ErrorCode.FORBIDDEN_DELETE: "You do not have permission to delete this resource",
    ErrorCode.VALIDATION_ERROR: "Invalid input",
    ErrorCode.DUPLICATE_ENTRY: "This entry already exists",
    ErrorCode.RESOURCE_NOT_FOUND: "The requested resource was not found",
    ErrorCode.RESOURCE_IN_USE: "This resource is in use and cannot be changed",
    ErrorCode.STATE_CONFLICT: "The resource is not in a state that allows this operation",
    ErrorCode.INTERNAL_ERROR: "Internal server error",
}

# Starlette raises these for unknown routes / wrong methods
_HTTP_STATUS_CODES = {
    401: ErrorCode.AUTH_UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN_ACCESS,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    422: ErrorCode.VALIDATION_ERROR,
}


class ApiError(Exception):
    """An error that is rendered straight into the JSON error envelope."""

    def __init__(
        self,
        code: ErrorCode,
        message: Optional[str] = None,
        details: Optional[list[dict[str, Any]]] = None,
        reason: Optional[str] = None,
    ):
        self.code = code
        self.message = message or DEFAULT_MESSAGES[code]
        self.details = details
        self.reason = reason
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self.code]

    @classmethod
    def unauthorized(cls, message: Optional[str] = None) -> "ApiError":
        return cls(ErrorCode.AUTH_UNAUTHORIZED, message)

    @classmethod
    def not_found(cls, message: Optional[str] = None) -> "ApiError":
        return cls(ErrorCode.RESOURCE_NOT_FOUND, message)

    @classmethod
    def duplicate(cls, message: Optional[str] = None) -> "ApiError":
        return cls(ErrorCode.DUPLICATE_ENTRY, message)

    @classmethod
    def in_use(cls, message: Optional[str] = None) -> "ApiError":
        return cls(ErrorCode.RESOURCE_IN_USE, message)

    @classmethod
    def validation(cls, message: Optional[str] = None, field: Optional[str] = None) -> "ApiError":
        details = [{"field": field, "message": message}] if field else None
        return cls(ErrorCode.VALIDATION_ERROR, message, details)


def error_body(
    code: ErrorCode,
    message: str,
    details: Optional[list[dict[str, Any]]] = None,
    reason: Optional[str] = None,
) -> dict:
    error: dict[str, Any] = {"code": code.value, "message": message}
    if details:
        error["details"] = details
    if reason:
        error["reason"] = reason
    return {"success": False, "error": error}


def validation_details(exc: RequestValidationError) -> list[dict[str, Any]]:
    details = []
    for err in exc.errors():
        # loc is ("body" | "query" | "path", field, ...)
        loc = [str(part) for part in err.get("loc", ())]
        field = ".".join(loc[1:]) if len(loc) > 1 else ".".join(loc)
        details.append({"field": field, "message": err.get("msg", ""), "code": err.get("type")})
    return details


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.code, exc.message, exc.details, exc.reason)),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(
            error_body(ErrorCode.VALIDATION_ERROR, DEFAULT_MESSAGES[ErrorCode.VALIDATION_ERROR], validation_details(exc))
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else DEFAULT_MESSAGES[code]
    return JSONResponse(status_code=exc.status_code, content=error_body(code, message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body(ErrorCode.INTERNAL_ERROR, DEFAULT_MESSAGES[ErrorCode.INTERNAL_ERROR]),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
