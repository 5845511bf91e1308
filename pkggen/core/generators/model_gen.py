from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence

from pkggen.core.context import PackageContext
from pkggen.core.fields import fragments
from pkggen.core.fields.models import FieldSpec
from pkggen.core.settings import OverwritePolicy
from pkggen.core.templating import TemplateRenderer

from .base import ArtifactGenerator, class_values


class ModelGenerator(ArtifactGenerator):
    """
    Data model class. Relationship methods recovered from an existing model
    file are passed in and re-emitted, so regenerating after a field change
    keeps hand-declared relations.
    """

    kind = "model"
    template = "php/model.php.j2"

    def __init__(
        self,
        renderer: Optional[TemplateRenderer] = None,
        policy: OverwritePolicy = OverwritePolicy.OVERWRITE,
        relationships: Iterable[Any] = (),
    ):
        super().__init__(renderer, policy)
        self.relationships = list(relationships)

    def path(self, context: PackageContext) -> Path:
        return context.source_dir / "Models" / f"{context.model_name}.php"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        values = class_values(context)
        values.update(
            fillable=fragments.fillable_block(fields),
            casts=fragments.casts_block(fields),
            relationships=fragments.relationships_block(self.relationships),
        )
        return values
