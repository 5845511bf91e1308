from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pkggen.api.deps import get_pipeline, with_defaults
from pkggen.api.schemas.packages import AddFieldRequest, UpdateFieldRequest
from pkggen.core.observability.metrics import inc_named
from pkggen.core.pipeline import GenerationPipeline

router = APIRouter(prefix="/api/v1/packages/fields", tags=["fields"])


@router.get("")
def list_fields(
    package_path: str = Query(...),
    model: str = Query(...),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    fields = pipeline.list_fields(package_path, model)
    return {"model": model, "fields": [f.to_record() for f in fields]}


@router.post("", status_code=201)
def add_field(payload: AddFieldRequest, pipeline: GenerationPipeline = Depends(get_pipeline)):
    inc_named("fields_added")
    record = with_defaults([payload.field], pipeline.settings)[0]
    return pipeline.add_field(payload.package_path, payload.model, record).to_dict()


@router.put("/{name}")
def update_field(name: str, payload: UpdateFieldRequest, pipeline: GenerationPipeline = Depends(get_pipeline)):
    inc_named("fields_updated")
    return pipeline.update_field(payload.package_path, payload.model, name, payload.changes).to_dict()


@router.delete("/{name}")
def remove_field(
    name: str,
    package_path: str = Query(...),
    model: str = Query(...),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    inc_named("fields_removed")
    return pipeline.remove_field(package_path, model, name).to_dict()
