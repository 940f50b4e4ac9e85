"""HTTP middleware for scrape correlation and access logging.

Bind a request id to the structlog context for every request served by the
exporter, so log lines emitted while rendering a scrape can be tied to the
Prometheus request that triggered them.
"""

import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.pingz.core.logging_config import bind_contextvars, clear_contextvars, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestCorrelationMiddleware(BaseHTTPMiddleware):
    """Attach a request id to the log context and the response headers.

    An id supplied by the caller (a proxy in front of the exporter, say) is
    reused; otherwise a UUID4 is generated.
    """

    async def dispatch(self, request: Request, call_next):
        # Context may survive from a previous request on the same task.
        clear_contextvars()

        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        response: Response = await call_next(request)
        logger.debug(
            "request served",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
