from __future__ import annotations

from typing import Any, Dict, Iterable, List

from pkggen.core.fields.factory import apply_default_rules
from pkggen.core.pipeline import GenerationPipeline
from pkggen.core.settings import Settings, load_settings


def get_settings() -> Settings:
    return load_settings()


def get_pipeline() -> GenerationPipeline:
    return GenerationPipeline(get_settings())


def with_defaults(records: Iterable[Dict[str, Any]], settings: Settings) -> List[Dict[str, Any]]:
    return [apply_default_rules(r, settings.default_rules) for r in records]
