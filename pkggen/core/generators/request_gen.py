from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Sequence

from pkggen.core.context import PackageContext
from pkggen.core.fields import fragments
from pkggen.core.fields.models import FieldSpec

from .base import ArtifactGenerator, class_values


class RequestGenerator(ArtifactGenerator):
    """Form request holding the validation rules of every field."""

    kind = "request"
    template = "php/request.php.j2"

    def path(self, context: PackageContext) -> Path:
        return context.source_dir / "Http" / "Requests" / f"{context.model_name}Request.php"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        values = class_values(context)
        values["rules"] = fragments.rules_block(fields)
        return values
