import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Per-request context:
    - request_id (taken from the scheduler's X-Request-ID header when present)
    - latency header and one access log line per request
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start_time = time.perf_counter()

        request.state.request_id = request_id

        response: Response = await call_next(request)

        latency_ms = int((time.perf_counter() - start_time) * 1000)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Latency-ms"] = str(latency_ms)

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({latency_ms} ms)",
            extra={"labels": {"request_id": request_id}}
        )

        return response
