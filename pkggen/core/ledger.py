"""
Field Ledger: the persisted, authoritative list of a model's fields.

One JSON document per model at ``<package>/.definitions/<model>.json``:

    {"model": "Invoice", "fields": [{"name": "amount", "type": "float", ...}]}

Field order is insertion order. The document is rewritten wholesale on every
save (temp file + atomic replace). Read-modify-write operations hold an
exclusive advisory lock on a side ``.lock`` file so that concurrent mutations
of the same model are serialized.
"""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Union

from pkggen.core.context import ledger_path
from pkggen.core.errors import LedgerCorruptError, LedgerWriteError
from pkggen.core.fields.factory import find_field, from_record
from pkggen.core.fields.models import FieldSpec

try:
    import fcntl as _fcntl
    _HAS_FCNTL = True
except ImportError:
    _HAS_FCNTL = False
    logging.getLogger("pkggen.locking").warning(
        "fcntl not available (non-POSIX). Ledger locking is disabled. "
        "Do not run concurrent field mutations on this platform."
    )

log = logging.getLogger("pkggen.ledger")


@contextmanager
def _locked(lock_path: Path) -> Generator:
    """Exclusive flock on ``lock_path`` (POSIX only). No-op on Windows."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with open(lock_path, "a", encoding="utf-8") as fh:
        if _HAS_FCNTL:
            _fcntl.flock(fh, _fcntl.LOCK_EX)
        try:
            yield fh
        finally:
            if _HAS_FCNTL:
                _fcntl.flock(fh, _fcntl.LOCK_UN)


def _atomic_write(path: Path, obj: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(obj, indent=2) + "\n", encoding="utf-8")
    tmp.replace(path)


class FieldLedger:
    def __init__(self, package_path: Union[str, Path], model_name: str):
        self.package_path = Path(package_path)
        self.model_name = model_name
        self.path = ledger_path(self.package_path, model_name)
        self.lock_path = self.path.with_suffix(".lock")

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> List[FieldSpec]:
        """Fields in ledger order; empty when the ledger does not exist yet."""
        if not self.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            raise LedgerCorruptError(self.path, str(exc)) from exc
        except json.JSONDecodeError as exc:
            raise LedgerCorruptError(self.path, f"invalid JSON: {exc.msg}") from exc

        records = data.get("fields") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise LedgerCorruptError(self.path, "expected an object with a 'fields' list")

        fields: List[FieldSpec] = []
        for rec in records:
            try:
                fields.append(from_record(rec))
            except ValueError as exc:
                raise LedgerCorruptError(self.path, str(exc)) from exc
        return fields

    def save(self, fields: List[FieldSpec]) -> bool:
        try:
            with _locked(self.lock_path):
                self._write(fields)
        except OSError as exc:
            log.error("Failed to save ledger %s: %s", self.path, exc)
            return False
        return True

    def add_field(self, field: FieldSpec) -> bool:
        """Append ``field``. Returns False without writing when the name exists."""
        with _locked(self.lock_path):
            fields = self.load()
            if find_field(fields, field.name) is not None:
                return False
            fields.append(field)
            return self._try_write(fields)

    def update_field(self, name: str, field: FieldSpec) -> bool:
        """Replace the field called ``name`` in place. False when absent."""
        with _locked(self.lock_path):
            fields = self.load()
            for i, f in enumerate(fields):
                if f.name == name:
                    fields[i] = field
                    return self._try_write(fields)
            return False

    def remove_field(self, name: str) -> bool:
        with _locked(self.lock_path):
            fields = self.load()
            kept = [f for f in fields if f.name != name]
            if len(kept) == len(fields):
                return False
            return self._try_write(kept)

    def get_field(self, name: str) -> Optional[FieldSpec]:
        return find_field(self.load(), name)

    def require_saved(self, ok: bool) -> None:
        if not ok:
            raise LedgerWriteError(self.path, self.model_name)

    # ------------------------------------------------------------------
    def _try_write(self, fields: List[FieldSpec]) -> bool:
        try:
            self._write(fields)
        except OSError as exc:
            log.error("Failed to save ledger %s: %s", self.path, exc)
            return False
        return True

    def _write(self, fields: List[FieldSpec]) -> None:
        _atomic_write(
            self.path,
            {"model": self.model_name, "fields": [f.to_record() for f in fields]},
        )
        log.info("Saved %d field(s) to %s", len(fields), self.path)
