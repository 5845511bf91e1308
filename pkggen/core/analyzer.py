"""
Read-only inspection of an existing package.

Recovers what a mutation needs to regenerate artifacts consistently with the
ones already on disk: namespace, API mode and version, the models, their
field ledgers and hand-declared relationships. Every query is best effort; a
missing artifact yields an empty or ``None`` result rather than an error.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pkggen.core.fields.models import FieldSpec
from pkggen.core.ledger import FieldLedger
from pkggen.core.settings import PackageType

log = logging.getLogger("pkggen.analyzer")

RELATIONSHIP_TYPES = (
    "hasOne",
    "hasMany",
    "belongsTo",
    "belongsToMany",
    "morphOne",
    "morphTo",
    "morphMany",
    "morphToMany",
    "morphedByMany",
)

_NAMESPACE_RE = re.compile(r"^\s*namespace\s+([^;\s]+)\s*;", re.MULTILINE)
_API_VERSION_RE = re.compile(r"""prefix\s*\(\s*['"]api/([^'"]+)['"]\s*\)""")
_CLASS_RE = re.compile(r"^\s*(?:abstract\s+|final\s+)?class\s+", re.MULTILINE)
_IMPORT_RE = re.compile(r"^\s*use\s+([A-Za-z0-9_\\]+)(?:\s+as\s+([A-Za-z0-9_]+))?\s*;", re.MULTILINE)
_METHOD_RE = re.compile(r"public\s+function\s+([A-Za-z0-9_]+)\s*\(\s*\)")
_RELATION_CALL_RE = re.compile(
    r"\$this\s*->\s*("
    + "|".join(sorted(RELATIONSHIP_TYPES, key=len, reverse=True))
    + r")\s*\(([^)]*)\)",
    re.DOTALL,
)


@dataclass(frozen=True)
class Relationship:
    name: str
    type: str
    related_model: Optional[str] = None
    foreign_key: Optional[str] = None
    local_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "related_model": self.related_model,
            "foreign_key": self.foreign_key,
            "local_key": self.local_key,
        }


def _imports(source: str) -> Dict[str, str]:
    """Alias -> fully qualified name for the file-level ``use`` lines."""
    cls = _CLASS_RE.search(source)
    header = source[: cls.start()] if cls else source
    out: Dict[str, str] = {}
    for m in _IMPORT_RE.finditer(header):
        full = m.group(1).lstrip("\\")
        out[m.group(2) or full.split("\\")[-1]] = full
    return out


def _class_ref(arg: str, imports: Dict[str, str]) -> str:
    """Class reference as written, qualified through the imports when it names one."""
    arg = arg.strip()
    if arg[:1] in ("'", '"'):
        # class-name strings are always fully qualified
        return "\\" + arg.strip("'\"").replace("\\\\", "\\").lstrip("\\")
    if arg.endswith("::class"):
        arg = arg[: -len("::class")]
    if arg.startswith("\\"):
        return arg
    head, sep, rest = arg.partition("\\")
    if head in imports:
        return "\\" + imports[head] + sep + rest
    return arg


def parse_relationships(source: str) -> List[Relationship]:
    """Relationship methods of a model class, in declaration order."""
    imports = _imports(source)
    methods = list(_METHOD_RE.finditer(source))
    out: List[Relationship] = []
    for i, m in enumerate(methods):
        end = methods[i + 1].start() if i + 1 < len(methods) else len(source)
        body = source[m.end():end]
        call = _RELATION_CALL_RE.search(body)
        if not call:
            continue
        args = [a for a in (s.strip() for s in call.group(2).split(",")) if a]
        if call.group(1) == "morphTo":
            # morphTo takes the morph name and columns, not a related class
            args = [""] + args
        out.append(
            Relationship(
                name=m.group(1),
                type=call.group(1),
                related_model=_class_ref(args[0], imports) if args and args[0] else None,
                foreign_key=args[1].strip("'\"") if len(args) > 1 else None,
                local_key=args[2].strip("'\"") if len(args) > 2 else None,
            )
        )
    return out


def detect_package_type(package_path: Union[str, Path]) -> PackageType:
    return PackageType.COMPOSER if (Path(package_path) / "src").is_dir() else PackageType.DOMAIN


class PackageAnalyzer:
    def __init__(self, package_path: Union[str, Path], package_type: Optional[PackageType] = None):
        self.package_path = Path(package_path)
        self.package_type = PackageType(package_type) if package_type else detect_package_type(self.package_path)

    def exists(self) -> bool:
        return self.package_path.is_dir()

    @property
    def source_dir(self) -> Path:
        if self.package_type == PackageType.COMPOSER:
            return self.package_path / "src"
        return self.package_path

    def namespace(self) -> Optional[str]:
        providers = sorted(self.source_dir.glob("*ServiceProvider.php")) if self.source_dir.is_dir() else []
        if providers:
            m = _NAMESPACE_RE.search(providers[0].read_text(encoding="utf-8"))
            if m:
                return m.group(1)

        manifest = self.package_path / "composer.json"
        if manifest.is_file():
            try:
                data = json.loads(manifest.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                log.warning("Ignoring unreadable manifest %s: %s", manifest, exc)
                return None
            psr4 = (data.get("autoload") or {}).get("psr-4") if isinstance(data, dict) else None
            if isinstance(psr4, dict) and psr4:
                return next(iter(psr4)).rstrip("\\")
        return None

    def models(self) -> List[str]:
        models_dir = self.source_dir / "Models"
        if not models_dir.is_dir():
            return []
        return sorted(p.stem for p in models_dir.glob("*.php"))

    def model_exists(self, model_name: str) -> bool:
        return (self.source_dir / "Models" / f"{model_name}.php").is_file()

    def model_fields(self, model_name: str) -> List[FieldSpec]:
        return FieldLedger(self.package_path, model_name).load()

    def is_api_only(self) -> bool:
        return not (self.source_dir / "routes" / "web.php").is_file()

    def api_version(self) -> Optional[str]:
        api_routes = self.source_dir / "routes" / "api.php"
        if not api_routes.is_file():
            return None
        m = _API_VERSION_RE.search(api_routes.read_text(encoding="utf-8"))
        return m.group(1) if m else "v1"

    def model_relationships(self, model_name: str) -> List[Relationship]:
        model_path = self.source_dir / "Models" / f"{model_name}.php"
        if not model_path.is_file():
            return []
        return parse_relationships(model_path.read_text(encoding="utf-8"))

    def metadata(self) -> Dict[str, Any]:
        models = self.models()
        return {
            "name": self.package_path.name,
            "type": self.package_type.value,
            "namespace": self.namespace(),
            "models": models,
            "api_only": self.is_api_only(),
            "api_version": self.api_version(),
            "model_details": {
                name: {
                    "fields": [f.to_record() for f in self.model_fields(name)],
                    "relationships": [r.to_dict() for r in self.model_relationships(name)],
                }
                for name in models
            },
        }
