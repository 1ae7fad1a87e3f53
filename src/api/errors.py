"""Maps the domain error taxonomy onto HTTP responses."""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InternalError,
    MarketplaceError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

_STATUS_BY_ERROR: list[tuple[type[MarketplaceError], int]] = [
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InternalError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_code_for(exc: MarketplaceError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _body(code: str, message: str, field: str | None = None) -> dict:  # type: ignore[type-arg]
    return {"error": code, "message": message, "field": field}


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        # Details were logged where the error was raised; callers get the generic text.
        generic = InternalError()
        return JSONResponse(status_code=status_code, content=_body(generic.code, generic.message))

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content=_body(exc.code, exc.message, getattr(exc, "field", None)),
        headers=headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    generic = InternalError()
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_body(generic.code, generic.message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
