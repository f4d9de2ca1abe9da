import logging
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("wifmart.errors")


class WifmartError(Exception):
    """
    Base class for errors raised by the hire lifecycle and its collaborators.

    Each subclass carries the HTTP status and machine-readable error code the
    exception handler uses when turning it into a response.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "WIFMART_ERROR"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)

    def extra(self) -> Dict[str, Any]:
        return {}


class ValidationError(WifmartError):
    """Malformed or missing input. The user must correct it and resubmit."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class AuthorizationError(WifmartError):
    """The actor has no rights over the target entity."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "PERMISSION_DENIED"

    def __init__(self, detail: str = "You do not have permission to perform this action."):
        super().__init__(detail)


class NotFoundError(WifmartError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class InvalidTransitionError(WifmartError):
    """
    A status change that the hire request state machine does not allow from
    the request's current status.
    """

    status_code = status.HTTP_409_CONFLICT
    error_code = "INVALID_TRANSITION"

    def __init__(self, current_status: str, attempted_status: str):
        self.current_status = current_status
        self.attempted_status = attempted_status
        super().__init__(f'Cannot change status from "{current_status}" to "{attempted_status}"')

    def extra(self) -> Dict[str, Any]:
        return {"current_status": self.current_status, "attempted_status": self.attempted_status}


class ExternalServiceError(WifmartError):
    """Payment gateway or network failure. Recoverable by retrying."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "EXTERNAL_SERVICE_ERROR"


class StorageError(WifmartError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "STORAGE_ERROR"


def error_response(status_code: int, error: str, detail: Any, extra: Optional[Dict[str, Any]] = None) -> JSONResponse:
    content = {"detail": detail, "error": error}
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


async def wifmart_exception_handler(request: Request, exc: WifmartError):
    """
    Turn a WifmartError into a JSON response.

    Server-side failures are logged at error level, everything else is a
    caller mistake and only logged as a warning.
    """
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.detail}")
    else:
        logger.warning(f"{exc.error_code} on {request.method} {request.url.path}: {exc.detail}")
    return error_response(exc.status_code, exc.error_code, exc.detail, exc.extra())


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        errors.append({"field": err["loc"][-1], "message": err["msg"]})
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ValidationError.error_code,
        "Validation failed",
        {"errors": errors},
    )


def register_exception_handlers(app):
    app.add_exception_handler(WifmartError, wifmart_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
