from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Sequence

from pkggen.core.context import PackageContext, routes_dir
from pkggen.core.fields.models import FieldSpec

from .base import ArtifactGenerator, ArtifactResult, ArtifactStatus, class_values, record_result, write_text_atomic

ROUTE_FILE_HEADER = "<?php\n\nuse Illuminate\\Support\\Facades\\Route;\n"


def extract_route_group(content: str) -> str:
    """
    Strip the boilerplate header of a rendered route file: the ``<?php`` tag,
    ``use`` imports, and comments or blank lines before the first ``Route::``.
    Everything from the first ``Route::`` line on is kept verbatim.
    """
    out = []
    in_routes = False
    for line in content.split("\n"):
        if line.startswith("<?php") or line.startswith("use "):
            continue
        if not in_routes:
            stripped = line.strip()
            if not stripped or stripped.startswith(("/*", "*", "|", "//")):
                continue
        if in_routes or "Route::" in line:
            in_routes = True
            out.append(line)
    return "\n".join(out)


def append_routes(existing: str, rendered: str) -> str:
    """Union of the route file and a rendered route group."""
    group = extract_route_group(rendered)
    if not group.strip() or group in existing:
        return existing
    return existing + "\n" + group


class RouteGenerator(ArtifactGenerator):
    """
    Route registrations are appended to a file shared by every model of the
    package. Appending an already present group is a no-op.
    """

    filename = ""

    def path(self, context: PackageContext) -> Path:
        return routes_dir(context) / self.filename

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        values = class_values(context)
        values.update(
            apiVersion=context.api_version,
            routeName=context.table_name,
            kebabModelName=context.kebab_name,
        )
        return values

    def generate(self, fields: Sequence[FieldSpec], context: PackageContext) -> ArtifactResult:
        path = self.path(context)
        rendered = self.render(fields, context)
        existing = path.read_text(encoding="utf-8") if path.exists() else ROUTE_FILE_HEADER
        updated = append_routes(existing, rendered)
        if path.exists() and updated == existing:
            status = ArtifactStatus.UNCHANGED
        else:
            # appends never replace an existing group, so the overwrite policy does not apply
            write_text_atomic(path, updated)
            status = ArtifactStatus.WRITTEN
        return record_result(self.kind, path, status)


class ApiRouteGenerator(RouteGenerator):
    kind = "api_routes"
    template = "routes/api.php.j2"
    filename = "api.php"


class WebRouteGenerator(RouteGenerator):
    kind = "web_routes"
    template = "routes/web.php.j2"
    filename = "web.php"

    def applies(self, context: PackageContext) -> bool:
        return not context.api_only
