from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from pkggen.core.context import PackageContext, resolve_namespace
from pkggen.core.errors import ArtifactExistsError, ArtifactWriteError
from pkggen.core.fields.models import FieldSpec
from pkggen.core.observability.metrics import inc_artifact
from pkggen.core.settings import OverwritePolicy
from pkggen.core.templating import TemplateRenderer, get_renderer

log = logging.getLogger("pkggen.generators")


class ArtifactStatus(str, Enum):
    WRITTEN = "written"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ArtifactResult:
    kind: str
    path: Path
    status: ArtifactStatus

    @property
    def ok(self) -> bool:
        return self.status in (ArtifactStatus.WRITTEN, ArtifactStatus.UNCHANGED)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "path": str(self.path), "status": self.status.value, "ok": self.ok}


def write_text_atomic(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(content, encoding="utf-8")
        tmp.replace(path)
    except OSError as exc:
        raise ArtifactWriteError(path, exc.strerror or str(exc)) from exc


def write_artifact(path: Path, content: str, policy: OverwritePolicy = OverwritePolicy.OVERWRITE) -> ArtifactStatus:
    """
    Write ``content`` to ``path`` honoring the overwrite policy.

    An existing file that already holds exactly ``content`` is reported as
    unchanged and never counts as a conflict.
    """
    if path.exists():
        try:
            current = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            current = None
        if current == content:
            return ArtifactStatus.UNCHANGED
        if policy == OverwritePolicy.SKIP:
            return ArtifactStatus.SKIPPED
        if policy == OverwritePolicy.FAIL:
            raise ArtifactExistsError(path)

    write_text_atomic(path, content)
    return ArtifactStatus.WRITTEN


def record_result(kind: str, path: Path, status: ArtifactStatus) -> ArtifactResult:
    inc_artifact(kind, status.value)
    if status == ArtifactStatus.WRITTEN:
        log.info("Created: %s", path)
    elif status == ArtifactStatus.SKIPPED:
        log.warning("Skipped existing %s artifact: %s", kind, path)
    else:
        log.debug("Unchanged: %s", path)
    return ArtifactResult(kind=kind, path=path, status=status)


class ArtifactGenerator:
    """
    Renders one artifact from a model's fields and the package context.

    Subclasses name the template, the target path and the placeholder values;
    ``generate`` renders and writes.
    """

    kind: str = ""
    template: str = ""

    def __init__(
        self,
        renderer: Optional[TemplateRenderer] = None,
        policy: OverwritePolicy = OverwritePolicy.OVERWRITE,
    ):
        self.renderer = renderer or get_renderer()
        self.policy = OverwritePolicy(policy)

    def applies(self, context: PackageContext) -> bool:
        return True

    def path(self, context: PackageContext) -> Path:
        raise NotImplementedError

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        raise NotImplementedError

    def render(self, fields: Sequence[FieldSpec], context: PackageContext) -> str:
        return self.renderer.render(self.template, self.values(fields, context))

    def generate(self, fields: Sequence[FieldSpec], context: PackageContext) -> ArtifactResult:
        path = self.path(context)
        content = self.render(fields, context)
        status = write_artifact(path, content, self.policy)
        return record_result(self.kind, path, status)


def class_values(context: PackageContext) -> Dict[str, Any]:
    """Names shared by the PHP class templates."""
    model = context.model_name
    return {
        "model": model,
        "modelVariable": context.model_variable,
        "pluralModelVariable": context.plural_model_variable,
        "tableName": context.table_name,
        "modelNamespace": resolve_namespace(context, "Models"),
        "serviceNamespace": resolve_namespace(context, "Services"),
        "requestNamespace": resolve_namespace(context, "Http\\Requests"),
        "resourceNamespace": resolve_namespace(context, "Http\\Resources"),
        "controllerNamespace": resolve_namespace(context, "Http\\Controllers"),
        "service": f"{model}Service",
        "formRequest": f"{model}Request",
        "resource": f"{model}Resource",
        "controller": f"{model}Controller",
    }
