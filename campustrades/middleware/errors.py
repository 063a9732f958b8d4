"""Map messaging core errors to HTTP responses."""
from fastapi import Request, status
from fastapi.responses import JSONResponse
import logging

from campustrades.errors import (
    BackendError,
    CampusTradesError,
    NotAParticipant,
    NotAuthenticated,
    NotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)

SIGN_IN_PATH = "/auth"


def _body(error: CampusTradesError, **extra):
    body = {"detail": error.message, "code": error.code}
    if error.details:
        body["details"] = error.details
    body.update(extra)
    return body


async def validation_error_handler(request: Request, exc: ValidationError):
    # Shown inline next to the offending control
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_body(exc, field=exc.field),
    )


async def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    # Client sends the user to the sign-in flow
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=_body(exc, redirect=SIGN_IN_PATH),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def forbidden_handler(request: Request, exc: NotAParticipant):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=_body(exc))


async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=_body(exc))


async def backend_error_handler(request: Request, exc: BackendError):
    # Transient notification; the user retries by hand
    logger.error(f"Backend error on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_body(exc, transient=True),
    )


def add_exception_handlers(app):
    """Register handlers for the messaging error taxonomy."""
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotAuthenticated, not_authenticated_handler)
    app.add_exception_handler(NotAParticipant, forbidden_handler)
    app.add_exception_handler(NotFound, not_found_handler)
    app.add_exception_handler(BackendError, backend_error_handler)
