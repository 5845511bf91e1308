"""Package-level artifacts: the manifest and the service provider."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Sequence

from pkggen.core import naming
from pkggen.core.context import PackageContext, base_namespace, service_provider_name
from pkggen.core.fields.models import FieldSpec
from pkggen.core.settings import PackageType

from .base import ArtifactGenerator


def build_manifest(context: PackageContext) -> Dict[str, Any]:
    ns = base_namespace(context)
    vendor = context.namespace.strip("\\").split("\\")[0]
    psr4 = ns + "\\"
    manifest: Dict[str, Any] = {
        "name": f"{naming.slug(vendor)}/{naming.slug(context.package_name)}",
        "description": f"A package for {context.package_name}",
        "type": "library",
        "license": "MIT",
        "autoload": {
            "psr-4": {psr4: "src/" if context.package_type == PackageType.COMPOSER else ""},
        },
        "extra": {
            "laravel": {
                "providers": [psr4 + service_provider_name(context.package_name)],
            },
        },
        "require": {"php": "^8.1"},
    }
    if context.package_type == PackageType.COMPOSER:
        manifest["require"]["illuminate/support"] = "^11.0"
        manifest["minimum-stability"] = "dev"
        manifest["prefer-stable"] = True
    return manifest


class ManifestGenerator(ArtifactGenerator):
    kind = "manifest"

    def path(self, context: PackageContext) -> Path:
        return Path(context.package_path) / "composer.json"

    def render(self, fields: Sequence[FieldSpec], context: PackageContext) -> str:
        return json.dumps(build_manifest(context), indent=4) + "\n"


class ServiceProviderGenerator(ArtifactGenerator):
    kind = "service_provider"
    template = "package/service_provider.php.j2"

    def path(self, context: PackageContext) -> Path:
        return context.source_dir / f"{service_provider_name(context.package_name)}.php"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        return {
            "namespace": base_namespace(context),
            "class": service_provider_name(context.package_name),
            "packageName": naming.kebab(context.package_name),
            "apiOnly": context.api_only,
        }
