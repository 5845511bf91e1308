"""
Validation rule tokens.

A rule set is an ordered list of tokens such as ``required``, ``max:255`` or
``decimal:0,2``. Each field variant derives a few canonical tokens from its own
parameters; those are appended after the explicit rules, and only when an
equivalent token is not already there. "Equivalent" means the same token for
bare tokens (``integer``) and the same ``name:`` prefix for parameterized ones
(``max:100`` counts as present for a derived ``max:255``).
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional, Union

RULE_SEPARATOR = "|"


def split_rules(value: Union[None, str, Iterable[Any]]) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(RULE_SEPARATOR)
    else:
        parts = [str(v) for v in value]
    return [p.strip() for p in parts if p and p.strip()]


def join_rules(rules: Iterable[str]) -> str:
    return RULE_SEPARATOR.join(rules)


def rule_key(token: str) -> str:
    """``max:255`` -> ``max:``; ``integer`` -> ``integer``."""
    if ":" in token:
        return token.split(":", 1)[0] + ":"
    return token


def has_equivalent(rules: Iterable[str], token: str) -> bool:
    key = rule_key(token)
    if key.endswith(":"):
        return any(r.startswith(key) for r in rules)
    return key in rules


def dedupe(rules: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for r in rules:
        if r in seen:
            continue
        seen.add(r)
        out.append(r)
    return out


def format_number(value: Optional[Union[int, float]]) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def derived_rules(field: Any) -> List[str]:
    """Tokens a field derives from its own parameters, in injection order."""
    kind = field.type
    if kind == "string":
        return [f"max:{field.max_length}"]
    if kind == "integer":
        out = ["integer"]
        if field.min is not None:
            out.append(f"min:{format_number(field.min)}")
        if field.max is not None:
            out.append(f"max:{format_number(field.max)}")
        return out
    if kind == "text":
        return []
    if kind == "boolean":
        return ["boolean"]
    if kind == "float":
        out = ["numeric", f"decimal:0,{field.decimals}"]
        if field.min is not None:
            out.append(f"min:{format_number(field.min)}")
        if field.max is not None:
            out.append(f"max:{format_number(field.max)}")
        return out
    if kind == "file":
        out = ["file", f"max:{field.max_size_kb}"]
        if field.allowed_extensions:
            out.append("mimes:" + ",".join(field.allowed_extensions))
        return out
    raise ValueError(f"Unknown field type: {kind!r}")


def canonical_rules(explicit: Iterable[str], field: Any) -> List[str]:
    rules = dedupe(explicit)
    for token in derived_rules(field):
        if not has_equivalent(rules, token):
            rules.append(token)
    return rules


def strip_derived(rules: Iterable[str], field: Any) -> List[str]:
    """Drop the tokens ``field`` would have derived itself, keep the rest."""
    derived = set(derived_rules(field))
    return [r for r in rules if r not in derived]
