"""
Exception handlers mapping the service error families onto HTTP responses.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from structlog import get_logger

from groupmatch.core.errors import Forbidden, NotFound, StorageError, Unauthenticated
from groupmatch.service.media import MediaExistsError
from groupmatch.service.user import UserExistsError


def _handler(status_code: int, event: str):
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        log = get_logger().bind(path=request.url.path, error=str(exc))
        await log.ainfo(event, status_code=status_code)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handle


def add_exception_handlers(app: FastAPI) -> FastAPI:
    """
    Adds exception handlers for the service errors, so that they surface as
    4xx/5xx responses carrying the error message rather than as 500s.
    """
    app.add_exception_handler(
        NotFound, _handler(status.HTTP_404_NOT_FOUND, "api.not_found")
    )
    app.add_exception_handler(
        Forbidden, _handler(status.HTTP_403_FORBIDDEN, "api.forbidden")
    )
    app.add_exception_handler(
        Unauthenticated,
        _handler(status.HTTP_401_UNAUTHORIZED, "api.unauthenticated"),
    )
    app.add_exception_handler(
        StorageError,
        _handler(status.HTTP_503_SERVICE_UNAVAILABLE, "api.storage_error"),
    )
    for exists_error in (UserExistsError, MediaExistsError):
        app.add_exception_handler(
            exists_error, _handler(status.HTTP_409_CONFLICT, "api.conflict")
        )
    return app
