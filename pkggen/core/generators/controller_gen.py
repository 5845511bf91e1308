from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Sequence

from pkggen.core.context import PackageContext
from pkggen.core.fields.models import FieldSpec

from .base import ArtifactGenerator, class_values


class ControllerGenerator(ArtifactGenerator):
    kind = "controller"
    template = "php/controller.php.j2"

    def path(self, context: PackageContext) -> Path:
        return context.source_dir / "Http" / "Controllers" / f"{context.model_name}Controller.php"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        values = class_values(context)
        values["apiPrefix"] = f"/{context.api_version}" if context.api_version else ""
        return values
