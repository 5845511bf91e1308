"""
Migration deltas: the schema change for a single field mutation.

``build_delta`` is pure (inputs in, migration text out); ``emit_delta`` picks
the next free timestamp in the package's migrations directory and writes the
file. Only ``add`` is fully reversible. ``update`` drops and re-adds the
column, ``remove`` drops it; both lose column data and are flagged so callers
can surface the warning.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field as dc_field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pkggen.core.context import PackageContext, migrations_dir
from pkggen.core.errors import FieldValidationError
from pkggen.core.fields import fragments
from pkggen.core.fields.models import FieldSpec
from pkggen.core.observability.metrics import inc_delta
from pkggen.core.templating import TemplateRenderer, get_renderer

from .base import write_text_atomic
from .migration_gen import Clock, next_timestamp

log = logging.getLogger("pkggen.migrations")

TEMPLATE = "migrations/delta.php.j2"

_INDENT = " " * 12

NOT_REVERSIBLE_COMMENT = "// This migration is not safely reversible."


class DeltaAction(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


_PREPOSITION = {
    DeltaAction.ADD: "to",
    DeltaAction.UPDATE: "in",
    DeltaAction.REMOVE: "from",
}


@dataclass(frozen=True)
class MigrationDelta:
    action: DeltaAction
    table: str
    field_name: str
    filename: str
    content: str
    reversible: bool
    requires_review: bool = False
    warnings: Tuple[str, ...] = dc_field(default_factory=tuple)
    path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "table": self.table,
            "field": self.field_name,
            "filename": self.filename,
            "path": str(self.path) if self.path else None,
            "reversible": self.reversible,
            "requires_review": self.requires_review,
            "warnings": list(self.warnings),
        }


def delta_filename(action: DeltaAction, field_name: str, table: str, timestamp: str) -> str:
    action = DeltaAction(action)
    return f"{timestamp}_{action.value}_{field_name}_{_PREPOSITION[action]}_{table}_table.php"


def _drop(name: str) -> str:
    return f"$table->dropColumn({fragments.php_string(name)});"


def _lines(*statements: str) -> str:
    return "\n".join(_INDENT + s for s in statements)


def build_delta(
    action: DeltaAction,
    table: str,
    before: Optional[FieldSpec],
    after: Optional[FieldSpec],
    timestamp: str,
    renderer: Optional[TemplateRenderer] = None,
) -> MigrationDelta:
    action = DeltaAction(action)
    warnings: Tuple[str, ...] = ()
    requires_review = False

    if action == DeltaAction.ADD:
        if after is None:
            raise FieldValidationError("An add migration needs the new field")
        name = after.name
        up = _lines(fragments.migration_column_definition(after))
        down = _lines(_drop(name))
        reversible = True

    elif action == DeltaAction.UPDATE:
        if before is None or after is None:
            raise FieldValidationError("An update migration needs the prior and the new field")
        name = before.name
        up = _lines(_drop(name), fragments.migration_column_definition(after))
        down = _lines(
            NOT_REVERSIBLE_COMMENT,
            f"// Previous definition: {fragments.migration_column_definition(before)}",
        )
        reversible = False
        warnings = (
            f"Updating '{name}' drops and re-adds the column; existing data in {table}.{name} is lost.",
        )

    else:
        if before is None:
            raise FieldValidationError("A remove migration needs the removed field")
        name = before.name
        up = _lines(_drop(name))
        down = _lines(
            "// Re-adding the column does not restore its data. Review before enabling:",
            f"// {fragments.migration_column_definition(before)}",
        )
        reversible = False
        requires_review = True
        warnings = (
            f"Removing '{name}' drops {table}.{name} and its data; the down() migration needs manual review.",
        )

    content = (renderer or get_renderer()).render(
        TEMPLATE,
        {"tableName": table, "up": up, "down": down},
    )
    return MigrationDelta(
        action=action,
        table=table,
        field_name=name,
        filename=delta_filename(action, name, table, timestamp),
        content=content,
        reversible=reversible,
        requires_review=requires_review,
        warnings=warnings,
    )


def emit_delta(
    action: DeltaAction,
    context: PackageContext,
    before: Optional[FieldSpec],
    after: Optional[FieldSpec],
    *,
    clock: Optional[Clock] = None,
    renderer: Optional[TemplateRenderer] = None,
) -> MigrationDelta:
    """Build the delta for one mutation and write it into the migrations dir."""
    directory = migrations_dir(context)
    delta = build_delta(action, context.table_name, before, after, next_timestamp(directory, clock), renderer)
    path = directory / delta.filename
    write_text_atomic(path, delta.content)

    inc_delta(delta.action.value, delta.reversible)
    log.info("Created migration: %s", path)
    for warning in delta.warnings:
        log.warning("%s (%s)", warning, path)
    return replace(delta, path=path)
