import time
import logging
import uuid
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.core.config import settings

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (reused from the X-Request-ID header when
    the caller sends one) and logs requests slower than
    LOG_SLOW_REQUEST_THRESHOLD_MS. Booking and hold writes hold the SQLite
    write lock, so slow writes are the first sign of contention.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        started = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        status_code = 500
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            if elapsed_ms > settings.log_slow_request_threshold_ms:
                logger.warning(
                    f"Slow request: {request.method} {request.url.path} "
                    f"-> {status_code} in {elapsed_ms:.0f}ms",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": status_code,
                        "duration_ms": round(elapsed_ms, 2),
                        "request_id": request_id,
                    },
                )
