from __future__ import annotations

import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from pkggen.core.context import PackageContext, migrations_dir
from pkggen.core.fields import fragments
from pkggen.core.fields.models import FieldSpec
from pkggen.core.settings import OverwritePolicy
from pkggen.core.templating import TemplateRenderer

from .base import ArtifactGenerator, class_values

MIGRATION_TS_FORMAT = "%Y_%m_%d_%H%M%S"
_TS_PREFIX = re.compile(r"^(\d{4}_\d{2}_\d{2}_\d{6})_")

Clock = Callable[[], datetime]


def latest_timestamp(directory: Path) -> Optional[datetime]:
    if not directory.is_dir():
        return None
    latest: Optional[datetime] = None
    for p in directory.glob("*.php"):
        m = _TS_PREFIX.match(p.name)
        if not m:
            continue
        try:
            ts = datetime.strptime(m.group(1), MIGRATION_TS_FORMAT)
        except ValueError:
            continue
        if latest is None or ts > latest:
            latest = ts
    return latest


def next_timestamp(directory: Path, clock: Optional[Clock] = None) -> str:
    """
    Timestamp prefix for a new migration in ``directory``.

    Never earlier than (or equal to) an existing migration's timestamp, so
    lexical filename order is creation order even within one second.
    """
    now = (clock or datetime.now)().replace(microsecond=0)
    latest = latest_timestamp(directory)
    if latest is not None and latest >= now:
        now = latest + timedelta(seconds=1)
    return now.strftime(MIGRATION_TS_FORMAT)


class MigrationGenerator(ArtifactGenerator):
    """
    Table creation migration.

    An existing ``*_create_<table>_table.php`` keeps its filename, so
    regenerating rewrites that migration instead of adding another one.
    """

    kind = "migration"
    template = "migrations/create.php.j2"

    def __init__(
        self,
        renderer: Optional[TemplateRenderer] = None,
        policy: OverwritePolicy = OverwritePolicy.OVERWRITE,
        clock: Optional[Clock] = None,
    ):
        super().__init__(renderer, policy)
        self.clock = clock

    def existing_path(self, context: PackageContext) -> Optional[Path]:
        directory = migrations_dir(context)
        if not directory.is_dir():
            return None
        matches = sorted(directory.glob(f"*_create_{context.table_name}_table.php"))
        return matches[0] if matches else None

    def path(self, context: PackageContext) -> Path:
        existing = self.existing_path(context)
        if existing is not None:
            return existing
        directory = migrations_dir(context)
        return directory / f"{next_timestamp(directory, self.clock)}_create_{context.table_name}_table.php"

    def values(self, fields: Sequence[FieldSpec], context: PackageContext) -> Dict[str, Any]:
        values = class_values(context)
        values["schema"] = fragments.schema_block(fields)
        return values
