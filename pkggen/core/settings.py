"""
Generator settings.

Built from, in increasing precedence:
    1. built-in defaults
    2. an optional YAML/JSON file named by PKGGEN_CONFIG_FILE
    3. PKGGEN_* environment variables

Config file format (YAML or JSON):
    workspace_root: /srv/app
    namespace: Acme
    package_type: composer
    api_version: v2
    default_rules:
      string: "required|string|max:255"
"""
from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

_log = logging.getLogger("pkggen.settings")

CONFIG_FILE_ENV = "PKGGEN_CONFIG_FILE"
ENV_PREFIX = "PKGGEN_"


class PackageType(str, Enum):
    COMPOSER = "composer"
    DOMAIN = "domain"


class OverwritePolicy(str, Enum):
    SKIP = "skip"
    OVERWRITE = "overwrite"
    FAIL = "fail"


DEFAULT_PATHS: Dict[str, str] = {
    "composer": "packages/{vendor}/{name}",
    "domain": "domains/{namespace}/{name}",
}

DEFAULT_RULES: Dict[str, str] = {
    "string": "required|string|max:255",
    "integer": "required|integer",
    "text": "required|string",
    "boolean": "boolean",
    "float": "required|numeric|min:0|decimal:0,2",
    "file": "required|file|mimes:pdf,doc,docx,xls,xlsx|max:10240",
}


class Settings(BaseModel):
    workspace_root: Path = Path("workspace")
    namespace: str = "Acme"
    package_type: PackageType = PackageType.DOMAIN
    api_version: str = "v1"
    api_only: bool = False
    overwrite_policy: OverwritePolicy = OverwritePolicy.OVERWRITE
    templates_dir: Optional[Path] = None
    strict_placeholders: bool = True
    paths: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PATHS))
    default_rules: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_RULES))

    @field_validator("paths", "default_rules")
    @classmethod
    def _merge_defaults(cls, v: Dict[str, str], info) -> Dict[str, str]:
        base = DEFAULT_PATHS if info.field_name == "paths" else DEFAULT_RULES
        merged = dict(base)
        merged.update(v or {})
        return merged

    @field_validator("templates_dir", mode="before")
    @classmethod
    def _blank_dir(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


_ENV_KEYS = (
    "workspace_root",
    "namespace",
    "package_type",
    "api_version",
    "api_only",
    "overwrite_policy",
    "templates_dir",
    "strict_placeholders",
)


def _load_file(path: Path) -> Dict[str, Any]:
    raw_text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        data = yaml.safe_load(raw_text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must be a mapping, got {type(data).__name__}")
    return data


def _env_overrides(env: Dict[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in _ENV_KEYS:
        value = env.get(ENV_PREFIX + key.upper())
        if value is None:
            continue
        if key in ("api_only", "strict_placeholders"):
            out[key] = value.strip().lower() in ("1", "true", "yes", "on")
        else:
            out[key] = value.strip()
    return out


def load_settings(env: Optional[Dict[str, str]] = None, **overrides: Any) -> Settings:
    """
    Resolve settings from file, environment and explicit keyword overrides.

    A config file that is named but missing or unparseable is an error; a
    misconfigured generator should not silently write to default locations.
    """
    env = dict(os.environ if env is None else env)
    data: Dict[str, Any] = {}

    config_file = (env.get(CONFIG_FILE_ENV) or "").strip()
    if config_file:
        path = Path(config_file)
        data.update(_load_file(path))
        _log.info("Loaded settings from %s", path)

    data.update(_env_overrides(env))
    data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
