import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from asgi_correlation_id import correlation_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        # Reuse the caller's request id, or generate one
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = correlation_id.set(request_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(f"{request.method} {request.url.path} ({elapsed_ms:.1f} ms)")
            correlation_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
