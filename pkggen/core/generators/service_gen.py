from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Sequence

from pkggen.core.context import PackageContext
from pkggen.core.fields.models import FieldSpec

from .base import ArtifactGenerator, class_values


class ServiceGenerator(ArtifactGenerator):
    kind = "service"
    template = "php/service.php.j2"

    def path(self, context: PackageContext) -> Path:
        return context.source_dir / "Services" / f"{context.model_name}Service.php"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        return class_values(context)
