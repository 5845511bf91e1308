from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from pkggen.core.errors import FieldValidationError, UnknownFieldTypeError

from .models import FIELD_TYPES, FieldSpec
from .rules import derived_rules, has_equivalent, split_rules, strip_derived

_ADAPTER: TypeAdapter = TypeAdapter(FieldSpec)


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in FIELD_TYPES)
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def from_record(record: Mapping[str, Any]) -> FieldSpec:
    """
    Build a FieldSpec from a generic ``{name, type, ...options}`` mapping.

    Accepts the ledger record shape (``validation`` as ``a|b|c``) and plain
    lists of rules. Raises FieldValidationError / UnknownFieldTypeError.
    """
    if not isinstance(record, Mapping):
        raise FieldValidationError("Field definition must be a mapping")
    name = record.get("name")
    field_type = record.get("type")
    if not name or not field_type:
        raise FieldValidationError("Field definition must include name and type", field=name)
    if field_type not in FIELD_TYPES:
        raise UnknownFieldTypeError(str(field_type), field=str(name))

    try:
        return _ADAPTER.validate_python(dict(record))
    except ValidationError as exc:
        raise FieldValidationError(f"Invalid field '{name}': {_describe(exc)}", field=str(name)) from exc


def to_record(field: FieldSpec) -> Dict[str, Any]:
    return field.to_record()


def from_records(records: Iterable[Mapping[str, Any]]) -> List[FieldSpec]:
    return [from_record(r) for r in records]


def _record_key(cls: type, key: str) -> str:
    """Map any accepted spelling of a parameter to its ledger record key."""
    if key in ("validation_rules", "validation", "rules"):
        return "validation"
    for attr, rec_key in cls.param_keys.items():
        alias = cls.model_fields[attr].validation_alias
        names = {attr, rec_key} | set(getattr(alias, "choices", None) or ())
        if key in names:
            return rec_key
    return key


def merge_record(prior: FieldSpec, changes: Mapping[str, Any]) -> FieldSpec:
    """
    Build the updated version of ``prior`` from its record plus ``changes``.

    Unless the caller passes ``validation`` explicitly, tokens ``prior``
    derived from its own parameters are dropped first so the new field derives
    them again from the new parameters.
    """
    target = FIELD_TYPES.get(str(changes.get("type", prior.type)))
    if target is None:
        raise UnknownFieldTypeError(str(changes.get("type")), field=prior.name)
    changes = {_record_key(target, k): v for k, v in changes.items()}

    record = prior.to_record()
    if changes.get("type", prior.type) != prior.type:
        # parameters and default of the old variant do not carry over
        record = {k: record[k] for k in ("name", "nullable", "description", "validation")}

    if "validation" not in changes:
        record["validation"] = strip_derived(split_rules(record.get("validation")), prior)

    record.update(changes)
    return from_record(record)


def find_field(fields: Iterable[FieldSpec], name: str) -> Optional[FieldSpec]:
    for f in fields:
        if f.name == name:
            return f
    return None


def apply_default_rules(record: Mapping[str, Any], default_rules: Mapping[str, str]) -> Dict[str, Any]:
    """
    Give a new field record the configured default rules for its type when it
    carries no ``validation`` of its own.

    Default tokens the field derives from its own parameters (``max:``,
    ``decimal:``...) are left out so the field's parameters win.
    """
    out = dict(record)
    if any(out.get(k) for k in ("validation", "validation_rules", "rules")):
        return out
    defaults = split_rules(default_rules.get(str(out.get("type")), ""))
    if not defaults:
        return out
    derived = derived_rules(from_record(out))
    out["validation"] = [t for t in defaults if not has_equivalent(derived, t)]
    return out
