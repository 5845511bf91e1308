from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Sequence

from pkggen.core import naming
from pkggen.core.context import PackageContext, views_dir
from pkggen.core.fields import fragments
from pkggen.core.fields.models import FieldSpec

from .base import ArtifactGenerator


class ViewGenerator(ArtifactGenerator):
    """Vue single-file components. Not generated for API-only packages."""

    suffix = ""

    def applies(self, context: PackageContext) -> bool:
        return not context.api_only

    def path(self, context: PackageContext) -> Path:
        return views_dir(context) / f"{context.kebab_name}{self.suffix}.vue"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        return {
            "modelName": context.model_name,
            "modelTitle": naming.title(naming.snake(context.model_name)),
            "modelVariable": context.model_variable,
            "pluralModelVariable": context.plural_model_variable,
            "kebabModelName": context.kebab_name,
            "apiUrl": f"/api/{context.api_version}/{context.table_name}",
            "webUrl": f"/{context.table_name}",
        }


class FormViewGenerator(ViewGenerator):
    kind = "form_view"
    template = "vue/form.vue.j2"
    suffix = "-form"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        values = super().values(fields, context)
        values.update(
            formFields=fragments.form_fields_block(fields),
            formData=fragments.form_data_block(fields, indent=" " * 16),
        )
        return values


class ListViewGenerator(ViewGenerator):
    kind = "list_view"
    template = "vue/list.vue.j2"
    suffix = "-list"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        values = super().values(fields, context)
        values.update(
            tableHeaders=fragments.table_headers_block(fields, indent=" " * 20),
            tableRows=fragments.table_rows_block(fields, indent=" " * 20),
        )
        return values


class DetailViewGenerator(ViewGenerator):
    kind = "detail_view"
    template = "vue/detail.vue.j2"
    suffix = "-view"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        values = super().values(fields, context)
        values["detailFields"] = fragments.detail_fields_block(fields, indent=" " * 12)
        return values
