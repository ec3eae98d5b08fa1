"""Build and inspect MSP search query strings.

The MSP API accepts a free-text query grammar: bare terms, ``key:value``
qualifiers, ``-key:value`` exclusions, double-quoted values, wildcards,
comparisons (``ts:>1720000000``), ranges (``ts:1720000000-1720086400``) and
size units (``download:>1MB``). The server does the matching; this module only
composes and splits query strings.
"""

import re
from typing import Any, NamedTuple

BOX_QUALIFIERS = ("box.id", "box.name", "box.group.id")

SEARCH_QUALIFIERS: dict[str, tuple[str, ...]] = {
    "devices": ("device.name", "device.id", "mac", "ip", "type", "online", *BOX_QUALIFIERS),
    "alarms": (
        "ts", "type", "status",
        *BOX_QUALIFIERS,
        "device.id", "device.name",
        "remote.category", "remote.domain", "remote.region",
        "transfer.download", "transfer.upload", "transfer.total",
    ),
    "flows": (
        "ts", "status", "direction", "protocol",
        *BOX_QUALIFIERS,
        "device.id", "device.name",
        "category", "domain", "region", "sport", "dport",
        "download", "upload", "total",
    ),
    "boxes": ("name", "model", "online", "version", *BOX_QUALIFIERS),
    "rules": ("status", "action", "direction", "target.type", "target.value", *BOX_QUALIFIERS),
}

_TOKEN = re.compile(
    r'(?P<neg>-)?(?P<key>[A-Za-z_][\w.]*):(?P<value>"[^"]*"|\S+)'
    r'|(?P<term>"[^"]*"|\S+)'
)


class Qualifier(NamedTuple):
    key: str
    value: str
    negated: bool = False

    def __str__(self) -> str:
        return format_qualifier(self.key, self.value, exclude=self.negated)


class ParsedQuery(NamedTuple):
    terms: list[str]
    qualifiers: list[Qualifier]

    @property
    def keys(self) -> list[str]:
        return [q.key for q in self.qualifiers]


def _quote(value: str) -> str:
    if value.startswith('"') and value.endswith('"') and len(value) > 1:
        return value
    if any(ch.isspace() for ch in value):
        return '"' + value.replace('"', "") + '"'
    return value


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (tuple, list)) and len(value) == 2:
        start, end = value
        return f"{_format_value(start)}-{_format_value(end)}"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return _quote(str(value).strip())


def format_qualifier(key: str, value: Any, exclude: bool = False) -> str:
    """Render one ``key:value`` qualifier.

    A two element tuple becomes a range, values containing whitespace are
    quoted and ``exclude`` negates the qualifier.
    """
    key = key.strip()
    if not key:
        raise ValueError("Qualifier key cannot be empty")
    prefix = "-" if exclude else ""
    return f"{prefix}{key}:{_format_value(value)}"


def build_query(text: str | None = None, filters: dict[str, Any] | None = None) -> str:
    """Join free text and qualifier filters into one query string.

    Filter keys starting with ``-`` are exclusions. ``None`` values are skipped.
    """
    parts = []
    if text and text.strip():
        parts.append(text.strip())
    for key, value in (filters or {}).items():
        if value is None or value == "":
            continue
        exclude = key.startswith("-")
        parts.append(format_qualifier(key.lstrip("-"), value, exclude=exclude))
    return " ".join(parts)


def parse_query(query: str | None) -> ParsedQuery:
    """Split a query string into free-text terms and qualifiers."""
    terms: list[str] = []
    qualifiers: list[Qualifier] = []
    for match in _TOKEN.finditer(query or ""):
        if match.group("key"):
            value = match.group("value")
            if len(value) > 1 and value.startswith('"') and value.endswith('"'):
                value = value[1:-1]
            qualifiers.append(Qualifier(match.group("key"), value, bool(match.group("neg"))))
        else:
            term = match.group("term")
            if len(term) > 1 and term.startswith('"') and term.endswith('"'):
                term = term[1:-1]
            terms.append(term)
    return ParsedQuery(terms, qualifiers)


def unknown_qualifiers(entity_type: str, query: str | None) -> list[str]:
    """Qualifier keys in ``query`` that are not documented for ``entity_type``."""
    known = SEARCH_QUALIFIERS.get(entity_type)
    if known is None:
        return []
    return [key for key in parse_query(query).keys if key not in known]
