from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from pkggen.api.observability.metrics import observe_request
from pkggen.core.observability.metrics import inc_named

log = logging.getLogger("pkggen.request")

REQUEST_ID_HEADER = "X-Request-Id"


def _package_of(request: Request) -> Optional[str]:
    # query-string operations name their package; body operations are logged by the pipeline
    return request.query_params.get("package_path")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Assigns every request an id (client supplied or generated), echoes it as
    ``X-Request-Id`` and emits one structured line per ``/api/`` request.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER.lower()) or uuid.uuid4().hex
        request.state.request_id = rid

        start = time.perf_counter()
        resp = await call_next(request)
        elapsed = time.perf_counter() - start

        resp.headers[REQUEST_ID_HEADER] = rid
        route = observe_request(request.method, request.url.path, resp.status_code, elapsed)
        inc_named("requests_total")

        if request.url.path.startswith("/api/"):
            entry = {
                "event": "request",
                "request_id": rid,
                "method": request.method,
                "route": route,
                "status_code": resp.status_code,
                "duration_ms": int(elapsed * 1000),
            }
            package = _package_of(request)
            if package:
                entry["package_path"] = package
            log.info("%s", entry)
        return resp
