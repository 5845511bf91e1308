from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, StrictUndefined, Undefined, meta, select_autoescape

from pkggen.core.errors import UnresolvedPlaceholderError

log = logging.getLogger("pkggen.templating")

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"


class _LiteralUndefined(Undefined):
    """Renders a missing placeholder back as its own ``{{ name }}`` text."""

    def __str__(self) -> str:
        return "{{ %s }}" % self._undefined_name


class TemplateRenderer:
    """
    Renders the artifact templates.

    Placeholders use the ``{{ identifier }}`` form. In strict mode a template
    that references a name the caller did not supply is rejected before
    rendering; in lenient mode the placeholder is written out verbatim and a
    warning is logged.
    """

    def __init__(self, templates_dir: Optional[Union[str, Path]] = None, strict: bool = True):
        self.strict = strict
        self.override_dir = Path(templates_dir) if templates_dir else None

        loaders: List[FileSystemLoader] = []
        if self.override_dir is not None:
            loaders.append(FileSystemLoader(str(self.override_dir)))
        loaders.append(FileSystemLoader(str(TEMPLATES_DIR)))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(enabled_extensions=()),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined if strict else _LiteralUndefined,
        )

    def placeholders(self, name: str) -> List[str]:
        source, _, _ = self.env.loader.get_source(self.env, name)
        return sorted(meta.find_undeclared_variables(self.env.parse(source)))

    def render(self, name: str, values: Mapping[str, Any]) -> str:
        missing = [p for p in self.placeholders(name) if p not in values]
        if missing:
            if self.strict:
                raise UnresolvedPlaceholderError(name, missing)
            log.warning("Template %s left placeholders unresolved: %s", name, ", ".join(missing))

        return self.env.get_template(name).render(**dict(values))


def publish_templates(dest: Union[str, Path], *, force: bool = False) -> List[Path]:
    """
    Copy the built-in templates into ``dest`` so they can be customized and
    used as ``templates_dir``. Existing files are kept unless ``force``.
    """
    dest = Path(dest)
    written: List[Path] = []
    for src in sorted(TEMPLATES_DIR.rglob("*.j2")):
        target = dest / src.relative_to(TEMPLATES_DIR)
        if target.exists() and not force:
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, target)
        written.append(target)
    log.info("Published %d templates to %s", len(written), dest)
    return written


_RENDERERS: Dict[tuple, TemplateRenderer] = {}


def get_renderer(templates_dir: Optional[Union[str, Path]] = None, strict: bool = True) -> TemplateRenderer:
    key = (str(templates_dir) if templates_dir else None, bool(strict))
    renderer = _RENDERERS.get(key)
    if renderer is None:
        renderer = TemplateRenderer(templates_dir, strict=strict)
        _RENDERERS[key] = renderer
    return renderer
