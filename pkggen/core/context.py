from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pkggen.core import naming
from pkggen.core.errors import WorkspacePathError
from pkggen.core.settings import PackageType, Settings


@dataclass(frozen=True)
class PackageContext:
    """
    Everything a generator needs to know about the package it renders into.

    Immutable for the duration of one generation run.
    """

    package_path: Path
    namespace: str
    model_name: str
    package_type: PackageType = PackageType.DOMAIN
    api_only: bool = False
    api_version: str = "v1"

    @property
    def package_name(self) -> str:
        return Path(self.package_path).name

    @property
    def source_dir(self) -> Path:
        if self.package_type == PackageType.COMPOSER:
            return Path(self.package_path) / "src"
        return Path(self.package_path)

    @property
    def table_name(self) -> str:
        return naming.table_name(self.model_name)

    @property
    def model_variable(self) -> str:
        return naming.camel(self.model_name)

    @property
    def plural_model_variable(self) -> str:
        return naming.plural(self.model_variable)

    @property
    def kebab_name(self) -> str:
        return naming.kebab(self.model_name)

    def with_model(self, model_name: str) -> "PackageContext":
        return PackageContext(
            package_path=self.package_path,
            namespace=self.namespace,
            model_name=model_name,
            package_type=self.package_type,
            api_only=self.api_only,
            api_version=self.api_version,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package_path": str(self.package_path),
            "package_name": self.package_name,
            "namespace": self.namespace,
            "model_name": self.model_name,
            "package_type": self.package_type.value,
            "api_only": self.api_only,
            "api_version": self.api_version,
        }


def base_namespace(context: PackageContext) -> str:
    """
    Root namespace of the package's classes.

    Composer packages use the namespace as given. Domain packages fold the
    domain name in after the vendor segment: ``Acme\\Billing`` for the
    ``Billing`` domain of vendor ``Acme``.
    """
    ns = context.namespace.strip("\\")
    if context.package_type == PackageType.DOMAIN:
        vendor = ns.split("\\")[0]
        return f"{vendor}\\{naming.studly(context.package_name)}"
    return ns


def resolve_namespace(context: PackageContext, subpath: str = "") -> str:
    base = base_namespace(context)
    sub = subpath.strip("\\")
    return f"{base}\\{sub}" if sub else base


def ledger_path(package_path: Union[str, Path], model_name: str) -> Path:
    return Path(package_path) / ".definitions" / f"{model_name.lower()}.json"


def migrations_dir(context: PackageContext) -> Path:
    return context.source_dir / "database" / "migrations"


def routes_dir(context: PackageContext) -> Path:
    return context.source_dir / "routes"


def views_dir(context: PackageContext) -> Path:
    return context.source_dir / "resources" / "js" / "components" / context.kebab_name


def service_provider_name(package_name: str) -> str:
    return f"{naming.studly(package_name)}ServiceProvider"


def resolve_package_path(
    settings: Settings,
    name: str,
    *,
    namespace: Optional[str] = None,
    package_type: Optional[PackageType] = None,
) -> Path:
    """Default location of a new package under the workspace root."""
    ptype = PackageType(package_type or settings.package_type)
    ns = (namespace or settings.namespace).strip("\\")
    pattern = settings.paths[ptype.value]
    if ptype == PackageType.COMPOSER:
        rel = pattern.format(vendor=naming.slug(ns), name=naming.slug(name), namespace=ns.replace("\\", "/"))
    else:
        rel = pattern.format(vendor=naming.slug(ns), name=naming.studly(name), namespace=ns.replace("\\", "/"))
    return ensure_within_workspace(settings, rel)


def ensure_within_workspace(settings: Settings, path: Union[str, Path]) -> Path:
    root = Path(settings.workspace_root).resolve()
    p = Path(path)
    if not p.is_absolute():
        p = root / p
    resolved = p.resolve()
    if resolved != root and root not in resolved.parents:
        raise WorkspacePathError(path, root)
    return resolved
