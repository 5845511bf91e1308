from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Sequence

from pkggen.core.context import PackageContext
from pkggen.core.fields import fragments
from pkggen.core.fields.models import FieldSpec

from .base import ArtifactGenerator, class_values


class ResourceGenerator(ArtifactGenerator):
    kind = "resource"
    template = "php/resource.php.j2"

    def path(self, context: PackageContext) -> Path:
        return context.source_dir / "Http" / "Resources" / f"{context.model_name}Resource.php"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        values = class_values(context)
        values["attributes"] = fragments.resource_attributes_block(fields)
        return values
