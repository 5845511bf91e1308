from __future__ import annotations

from fastapi import FastAPI

from pkggen.api.endpoints import fields, health, metrics, packages
from pkggen.api.middleware.error_shaping import SafeErrorMiddleware, register_error_handlers
from pkggen.api.middleware.request_context import RequestContextMiddleware

app = FastAPI(
    title="pkggen API",
    version="0.1.0",
)

# ------------------------------------------------------------
# Middleware stack (ORDER MATTERS)
# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
#   SafeErrorMiddleware -> RequestContext -> handler
# ------------------------------------------------------------
app.add_middleware(RequestContextMiddleware)
app.add_middleware(SafeErrorMiddleware)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(packages.router)
app.include_router(fields.router)
