"""
Case and inflection helpers used to derive class, variable, table and file
names from a model name.

Mirrors the host framework's string helpers closely enough that generated
names match what the framework itself would infer (``InvoiceItem`` ->
``invoice_items`` table, ``invoiceItems`` variable, ``invoice-item`` kebab).
"""
from __future__ import annotations

import re
from typing import List, Tuple

_UNCOUNTABLE = {
    "audio",
    "data",
    "equipment",
    "feedback",
    "fish",
    "information",
    "metadata",
    "money",
    "news",
    "rice",
    "series",
    "sheep",
    "species",
}

_IRREGULAR = {
    "child": "children",
    "foot": "feet",
    "goose": "geese",
    "man": "men",
    "mouse": "mice",
    "person": "people",
    "tooth": "teeth",
    "woman": "women",
}
_IRREGULAR_SINGULAR = {v: k for k, v in _IRREGULAR.items()}

# First match wins.
_PLURAL_RULES: List[Tuple[str, str]] = [
    (r"(quiz)$", r"\1zes"),
    (r"(matr|vert|ind)(?:ix|ex)$", r"\1ices"),
    (r"(x|ch|ss|sh)$", r"\1es"),
    (r"([^aeiouy]|qu)y$", r"\1ies"),
    (r"(hive)$", r"\1s"),
    (r"(?:([^f])fe|([lr])f)$", r"\1\2ves"),
    (r"sis$", "ses"),
    (r"([ti])um$", r"\1a"),
    (r"(buffal|tomat|potat)o$", r"\1oes"),
    (r"(bu)s$", r"\1ses"),
    (r"(alias|status|campus)$", r"\1es"),
    (r"(octop|vir)us$", r"\1i"),
    (r"(ax|test)is$", r"\1es"),
    (r"s$", "s"),
    (r"$", "s"),
]

_WORD_SPLIT = re.compile(r"[A-Z]?[a-z0-9]+|[A-Z]+(?![a-z])")


def words(value: str) -> List[str]:
    return _WORD_SPLIT.findall(value.replace("-", " ").replace("_", " "))


def studly(value: str) -> str:
    """``invoice_item`` / ``invoice-item`` / ``invoiceItem`` -> ``InvoiceItem``."""
    return "".join(w[:1].upper() + w[1:] for w in words(value))


def camel(value: str) -> str:
    s = studly(value)
    return s[:1].lower() + s[1:]


def lcfirst(value: str) -> str:
    return value[:1].lower() + value[1:]


def snake(value: str, delimiter: str = "_") -> str:
    return delimiter.join(w.lower() for w in words(value))


def kebab(value: str) -> str:
    return snake(value, "-")


def title(value: str) -> str:
    """``due_date`` -> ``Due Date``."""
    return " ".join(w[:1].upper() + w[1:] for w in value.replace("_", " ").split(" ") if w)


def slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def _match_case(source: str, target: str) -> str:
    if source.isupper() and len(source) > 1:
        return target.upper()
    if source[:1].isupper():
        return target[:1].upper() + target[1:]
    return target


def _inflect(word: str, irregular: dict, rules: List[Tuple[str, str]]) -> str:
    if not word:
        return word
    lower = word.lower()
    if lower in _UNCOUNTABLE:
        return word
    if lower in irregular:
        return _match_case(word, irregular[lower])
    for pattern, repl in rules:
        if re.search(pattern, lower):
            return _match_case(word, re.sub(pattern, repl, lower, count=1))
    return word


def plural(word: str) -> str:
    """Pluralize the last word of ``word`` keeping its leading part intact."""
    if lcfirst(word) in _IRREGULAR_SINGULAR or word.lower() in _IRREGULAR_SINGULAR:
        return word
    head, tail = _split_last_word(word)
    return head + _inflect(tail, _IRREGULAR, _PLURAL_RULES)


def plural_studly(value: str) -> str:
    """``InvoiceItem`` -> ``InvoiceItems``."""
    return plural(studly(value))


def table_name(model: str) -> str:
    return snake(plural_studly(model))


def _split_last_word(value: str) -> Tuple[str, str]:
    m = re.search(r"([A-Z]?[a-z0-9]+|[A-Z]+)$", value)
    if not m:
        return "", value
    return value[: m.start()], m.group(0)
