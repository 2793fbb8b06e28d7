"""Pure helpers for Logseq link syntax.

Two reference syntaxes appear in block content and property values:

- ``[[Page Name]]``   named link; ``[[A/B/C]]`` is a namespaced (hierarchical) link
- ``((uuid))``        direct reference to a block or page by UUID

Everything here is side-effect free. Network work (existence checks, page
creation) lives in ``api_client_links``.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from ..models.properties import PropertyValue

NAMESPACE_SEPARATOR = "/"

_LINK_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")
_REF_PATTERN = re.compile(r"\(\(([^)]+)\)\)")

_JOURNAL_PATTERNS = (
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),
    re.compile(r"^\d{4}_\d{2}_\d{2}$"),
    re.compile(r"^\d{4}/\d{2}/\d{2}$"),
)


def _unique_matches(pattern: re.Pattern[str], text: str) -> list[str]:
    seen: set[str] = set()
    found: list[str] = []
    for match in pattern.finditer(text or ""):
        value = match.group(1).strip()
        if value and value not in seen:
            seen.add(value)
            found.append(value)
    return found


def extract_links(content: str) -> list[str]:
    """Return the unique ``[[...]]`` targets in first-seen order."""
    return _unique_matches(_LINK_PATTERN, content)


def extract_block_refs(content: str) -> list[str]:
    """Return the unique ``((...))`` targets in first-seen order."""
    return _unique_matches(_REF_PATTERN, content)


def merge_unique(*groups: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    merged: list[str] = []
    for group in groups:
        for item in group:
            if item not in seen:
                seen.add(item)
                merged.append(item)
    return merged


def string_values(properties: Mapping[str, PropertyValue] | None) -> list[str]:
    """String-typed property values, in mapping order. Other types are skipped."""
    if not properties:
        return []
    return [value for value in properties.values() if isinstance(value, str)]


def is_namespaced(name: str) -> bool:
    return NAMESPACE_SEPARATOR in name


def namespace_prefixes(name: str) -> list[str]:
    """Accumulated prefixes of a hierarchical name, skipping empty segments.

    >>> namespace_prefixes("A/B/C")
    ['A', 'A/B', 'A/B/C']
    """
    prefixes: list[str] = []
    current = ""
    for part in name.split(NAMESPACE_SEPARATOR):
        if not part.strip():
            continue
        current = part if not current else f"{current}{NAMESPACE_SEPARATOR}{part}"
        prefixes.append(current)
    return prefixes


def link_markup(name: str) -> str:
    return f"[[{name}]]"


def ref_markup(uuid: str) -> str:
    return f"(({uuid}))"


def replace_link(text: str, name: str, uuid: str) -> str:
    """Replace every literal ``[[name]]`` in text with ``((uuid))``."""
    return text.replace(link_markup(name), ref_markup(uuid))


# Public helper; no tool calls it.
def is_journal_name(name: str) -> bool:
    """True when a page name looks like a journal date (YYYY-MM-DD and variants)."""
    return any(pattern.match(name) for pattern in _JOURNAL_PATTERNS)


def normalize_tag(tag: str) -> str:
    """``"Project"`` or ``"#Project"`` -> ``"#Project"``."""
    return "#" + tag.strip().removeprefix("#")


def to_snake_case(key: str) -> str:
    """camelCase / PascalCase -> snake_case (ASCII upper-case boundaries only)."""
    out: list[str] = []
    for i, ch in enumerate(key):
        if i > 0 and "A" <= ch <= "Z":
            out.append("_")
        out.append(ch.lower())
    return "".join(out)
