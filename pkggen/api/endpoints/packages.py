from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pkggen.api.deps import get_pipeline, with_defaults
from pkggen.api.schemas.packages import AddModelRequest, CreatePackageRequest, ModelRef
from pkggen.core.analyzer import PackageAnalyzer
from pkggen.core.errors import PackageNotFoundError
from pkggen.core.observability.metrics import inc_named
from pkggen.core.pipeline import GenerationPipeline

router = APIRouter(prefix="/api/v1/packages", tags=["packages"])


@router.post("", status_code=201)
def create_package(payload: CreatePackageRequest, pipeline: GenerationPipeline = Depends(get_pipeline)):
    inc_named("packages_created")
    report = pipeline.create_package(
        payload.name,
        payload.model,
        with_defaults(payload.fields, pipeline.settings),
        namespace=payload.namespace,
        package_type=payload.package_type,
        api_only=payload.api_only,
        api_version=payload.api_version,
        package_path=payload.package_path,
    )
    return report.to_dict()


@router.get("/metadata")
def package_metadata(
    package_path: str = Query(...),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    path = pipeline.package_path(package_path)
    analyzer = PackageAnalyzer(path)
    if not analyzer.exists():
        raise PackageNotFoundError(path)
    return analyzer.metadata()


@router.post("/models", status_code=201)
def add_model(payload: AddModelRequest, pipeline: GenerationPipeline = Depends(get_pipeline)):
    report = pipeline.add_model(
        payload.package_path,
        payload.model,
        with_defaults(payload.fields, pipeline.settings),
    )
    return report.to_dict()


@router.post("/regenerate")
def regenerate(payload: ModelRef, pipeline: GenerationPipeline = Depends(get_pipeline)):
    return pipeline.regenerate(payload.package_path, payload.model).to_dict()
