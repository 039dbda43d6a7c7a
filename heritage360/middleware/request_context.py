"""Request context middleware: assigns a unique ID to every request.

WHY REQUEST IDs
-----------------
A learner double-clicks "complete" and two requests run at once.  Their
log lines interleave:

  INFO  Lesson completed user=u1 lesson=aksum-l1
  INFO  Progress save conflict, retrying user=u1 attempt=1
  INFO  Lesson completed user=u1 lesson=aksum-l1

Which request hit the conflict?  With a request ID on every line:

  INFO  [req-7f3a] Lesson completed user=u1 lesson=aksum-l1
  INFO  [req-91c2] Progress save conflict, retrying user=u1 attempt=1
  INFO  [req-91c2] Lesson completed user=u1 lesson=aksum-l1

The ID is taken from an incoming X-Request-ID header when a gateway has
already assigned one, otherwise a UUID is generated.  It is echoed back
on the response so a client can quote it in a bug report.

WHY CONTEXT VARIABLES (NOT THREAD-LOCALS)
-------------------------------------------
Concurrent requests run on the same event-loop thread, so a
threading.local() would be shared between them.  A ContextVar is
per-task: each request sees its own value even on a shared thread.
_RequestContextFilter copies it onto every LogRecord, so service code
never passes the ID around by hand.

REQUEST TIMING
---------------
Each request is timed and logged once on completion with method, path,
status and duration_ms as structured fields.  MetricsMiddleware times
the request on its own for the REQUEST_DURATION histogram.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class _RequestContextFilter(logging.Filter):
    """Injects the current request ID into every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        return True


# Installed on the root logger so every logger inherits it; guarded
# against duplicate installation across reloads.
root_logger = logging.getLogger()
if not any(isinstance(f, _RequestContextFilter) for f in root_logger.filters):
    root_logger.addFilter(_RequestContextFilter())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a request ID, times the request, logs one summary line and
    echoes X-Request-ID on the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
