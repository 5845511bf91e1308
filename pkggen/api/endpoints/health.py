from __future__ import annotations

from fastapi import APIRouter

from pkggen.core.observability.metrics import inc_named
from pkggen.core.templating import TEMPLATES_DIR

router = APIRouter()


@router.get("/health")
def health():
    inc_named("health")
    return {"status": "ok"}


@router.get("/api/v1/health/live")
def liveness():
    inc_named("health_live")
    return {"status": "alive", "templates": TEMPLATES_DIR.is_dir()}
