"""Error envelope shared by every endpoint.

All failures are rendered as::

    {"success": false, "error": str, "code": str, "request_id": str}

Request validation problems are 400s, not FastAPI's default 422.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from gtm_workspace.core.logging import get_logger

logger = get_logger(__name__)

ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "VALIDATION_ERROR",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHENTICATED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}

STORAGE_ERROR_MESSAGE = "Failed to save workspace. Please try again later."
INTERNAL_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def request_id_of(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def error_response(request: Request, status_code: int, error: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "code": code,
            "request_id": request_id_of(request),
        },
    )


def describe_validation_errors(exc: RequestValidationError) -> str:
    """``body.companyName: Field required; ...`` style summary."""
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


async def _on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(
        "Rejected request payload",
        extra={
            "request_id": request_id_of(request),
            "errors": [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()],
        },
    )
    return error_response(
        request, status.HTTP_400_BAD_REQUEST, describe_validation_errors(exc), "VALIDATION_ERROR"
    )


async def _on_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        code = "INTERNAL_ERROR"
    else:
        code = ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return error_response(request, exc.status_code, str(exc.detail), code)


async def _on_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # get_session has already rolled the request back
    logger.error(
        "Workspace storage failed",
        extra={
            "request_id": request_id_of(request),
            "error_type": type(exc).__name__,
            "error_message": str(exc),
        },
    )
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, STORAGE_ERROR_MESSAGE, "STORAGE_ERROR"
    )


async def _on_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception",
        extra={"request_id": request_id_of(request), "error_type": type(exc).__name__},
    )
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE, "INTERNAL_ERROR"
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _on_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _on_http_error)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _on_storage_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _on_unexpected_error)
