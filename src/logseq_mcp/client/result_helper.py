"""Normalization of raw Logseq API results.

The HTTP API is loose about response shapes. The same logical result can
arrive as an object, a bare UUID string, ``null``, ``[]``, a list of values,
or a list of single-column rows (``[[value], [value]]``, the usual shape of
``(pull ?p [*])`` queries). These helpers turn those variants into typed
models so the client methods never special-case them inline.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from ..models import Block, DecodeError, GraphInfo, Page

JsonValue = Any


def is_empty_result(value: JsonValue) -> bool:
    """``null`` and ``[]`` both mean "no result" on this API."""
    return value is None or value == []


def flatten_rows(value: JsonValue) -> JsonValue:
    """Collapse ``[[a], [b]]`` into ``[a, b]``; anything else is returned as-is.

    The check looks at the first element only: when it is a list, every
    non-empty inner list contributes its first element and empty rows are
    dropped.
    """
    if isinstance(value, list) and value and isinstance(value[0], list):
        return [row[0] for row in value if isinstance(row, list) and row]
    return value


def _unwrap_row(item: JsonValue) -> JsonValue:
    if isinstance(item, list):
        return item[0] if item else None
    return item


def decode_page(value: JsonValue, context: str = "page") -> Page:
    if not isinstance(value, dict):
        raise DecodeError(context, TypeError(f"expected object, got {type(value).__name__}"))
    try:
        return Page.model_validate(value)
    except ValidationError as err:
        raise DecodeError(context, err) from err


def decode_optional_page(value: JsonValue, context: str = "page") -> Page | None:
    if is_empty_result(value):
        return None
    return decode_page(value, context)


def decode_block(value: JsonValue, context: str = "block") -> Block:
    if not isinstance(value, dict):
        raise DecodeError(context, TypeError(f"expected object, got {type(value).__name__}"))
    try:
        return Block.model_validate(value)
    except ValidationError as err:
        raise DecodeError(context, err) from err


def decode_blocks(value: JsonValue, context: str = "blocks") -> list[Block]:
    """Decode a block list; a single object or a list of rows is also accepted."""
    if value is None:
        return []
    if isinstance(value, dict):
        return [decode_block(value, context)]
    if not isinstance(value, list):
        raise DecodeError(context, TypeError(f"expected list, got {type(value).__name__}"))
    blocks: list[Block] = []
    for item in value:
        item = _unwrap_row(item)
        if item is None:
            continue
        blocks.append(decode_block(item, context))
    return blocks


def decode_graph(value: JsonValue) -> GraphInfo:
    if not isinstance(value, dict):
        raise DecodeError("graph info", TypeError("no graph is open or unexpected response"))
    try:
        return GraphInfo.model_validate(value)
    except ValidationError as err:
        raise DecodeError("graph info", err) from err


def decode_pages(value: JsonValue, require_uuid: bool = False) -> list[Page]:
    """Decode pages from either row or value encoding, skipping undecodable items."""
    pages: list[Page] = []
    if not isinstance(value, list):
        return pages
    for item in value:
        item = _unwrap_row(item)
        if not isinstance(item, dict):
            continue
        try:
            page = Page.model_validate(item)
        except ValidationError:
            continue
        if require_uuid and not page.uuid:
            continue
        pages.append(page)
    return pages


def extract_uuid(value: JsonValue) -> str:
    """UUID from a bare string response or an object's ``uuid`` field, else ``""``."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        uuid = value.get("uuid")
        if isinstance(uuid, str):
            return uuid
    return ""


def first_string_column(value: JsonValue) -> list[str]:
    """Collect string results from ``[s, ...]`` or ``[[s], ...]`` encodings."""
    names: list[str] = []
    if not isinstance(value, list):
        return names
    for item in value:
        item = _unwrap_row(item)
        if isinstance(item, str) and item:
            names.append(item)
    return names
