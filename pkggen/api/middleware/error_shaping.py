from __future__ import annotations

import logging
import traceback
from typing import Callable, Dict, Tuple, Type

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from pkggen.core.errors import (
    ArtifactExistsError,
    DuplicateFieldError,
    FieldValidationError,
    LedgerCorruptError,
    ModelExistsError,
    PackageGeneratorError,
    WorkspacePathError,
)

log = logging.getLogger("pkggen.errors")

# First match wins; subclasses before their bases.
_STATUS_BY_ERROR: Tuple[Tuple[Type[BaseException], int], ...] = (
    (DuplicateFieldError, 409),
    (ModelExistsError, 409),
    (ArtifactExistsError, 409),
    (FieldValidationError, 400),
    (WorkspacePathError, 400),
    (LedgerCorruptError, 500),
    (LookupError, 404),
    (OSError, 500),
)


def status_for(exc: BaseException) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 500


def _rid(request: Request):
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


async def _generator_error(request: Request, exc: PackageGeneratorError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        log.error("Generator failure rid=%s path=%s: %s", _rid(request), request.url.path, exc)
    else:
        log.info("Rejected request rid=%s path=%s: %s", _rid(request), request.url.path, exc)
    payload: Dict[str, object] = {"detail": str(exc), "error": type(exc).__name__}
    rid = _rid(request)
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=status, content=payload)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PackageGeneratorError, _generator_error)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """Last-resort 500 for anything the domain handlers did not map; the traceback stays in the log."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = _rid(request)
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
