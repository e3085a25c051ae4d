"""Interface layer error mapping.

Domain and adapter errors are translated to HTTP responses here, so use
cases and routes just let them propagate.
"""

from typing import Any

import logfire
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from studyhall.config import Settings
from studyhall.domain.error import (
    AccountLinkConflictError,
    DecryptionError,
    DomainError,
    DuplicateSocialAuthLinkError,
    LastFactorError,
    NotAuthorizedError,
    NotFoundError,
    ProviderError,
    UnsupportedProviderError,
    UserInfoUnsupportedError,
    ValidationError,
)
from studyhall.util.error import JWTError

# Most specific first
_STATUS_BY_ERROR: list[tuple[type[Exception], int]] = [
    (UnsupportedProviderError, status.HTTP_400_BAD_REQUEST),
    (AccountLinkConflictError, status.HTTP_409_CONFLICT),
    (DuplicateSocialAuthLinkError, status.HTTP_409_CONFLICT),
    (LastFactorError, status.HTTP_400_BAD_REQUEST),
    (DecryptionError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (NotAuthorizedError, status.HTTP_403_FORBIDDEN),
    (UserInfoUnsupportedError, status.HTTP_400_BAD_REQUEST),
    (ProviderError, status.HTTP_502_BAD_GATEWAY),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (JWTError, status.HTTP_401_UNAUTHORIZED),
]


def status_for(error: Exception) -> int:
    """HTTP status code for an error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(error: Exception, expose_diagnostics: bool) -> dict[str, Any]:
    """JSON body for an error response.

    Args:
        error: The raised error
        expose_diagnostics: Whether raw detail may be included

    Returns:
        ``{"success": false, "message": ..., "error"?: ..., "data"?: ...}``
    """
    body: dict[str, Any] = {"success": False, "message": str(error)}

    if isinstance(error, AccountLinkConflictError) and error.report is not None:
        body["data"] = error.report.model_dump(mode="json")

    if expose_diagnostics:
        if isinstance(error, ProviderError) and error.diagnostic:
            body["error"] = error.diagnostic
        else:
            body["error"] = type(error).__name__

    return body


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Install handlers for domain and session errors.

    Args:
        app: FastAPI application
        settings: Settings deciding whether diagnostics are exposed
    """

    async def handle_known_error(request: Request, exc: Exception) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= 500 or isinstance(exc, ProviderError):
            logfire.error(
                "Request failed",
                path=request.url.path,
                error_type=type(exc).__name__,
                status_code=status_code,
            )
        return JSONResponse(
            status_code=status_code,
            content=error_body(exc, settings.expose_diagnostics),
        )

    app.add_exception_handler(DomainError, handle_known_error)
    app.add_exception_handler(JWTError, handle_known_error)

    async def handle_http_error(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    app.add_exception_handler(StarletteHTTPException, handle_http_error)
