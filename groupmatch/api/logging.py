"""
Request logging.
"""

import time

from fastapi import FastAPI, Request
from structlog import get_logger


def add_request_logging(app: FastAPI) -> FastAPI:
    """
    Log one `api.request` event per request, with its method, path, response
    status and duration.
    """

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        log = get_logger().bind(method=request.method, path=request.url.path)
        start = time.perf_counter()

        response = await call_next(request)

        await log.ainfo(
            "api.request",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return response

    return app
