"""Typed property values for pages and blocks.

Logseq stores properties as an open key/value map. Values arriving from the
tool surface are parsed into a small closed set of types so that the link
synchronizer can dispatch on the type of each value:

- ``str``        free text, scanned for ``[[links]]`` and ``((refs))``
- ``Reference``  a value that is exactly one ``((uuid))`` reference
- ``bool``/``int``/``float`` scalars, passed through untouched
- ``list``       a list of any of the above, passed through untouched
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping, Union

_REFERENCE_VALUE = re.compile(r"^\(\(([^)]+)\)\)$")


@dataclass(frozen=True)
class Reference:
    """A direct ``((uuid))`` reference held as a property value."""

    uuid: str

    def __str__(self) -> str:
        return f"(({self.uuid}))"


PropertyValue = Union[bool, int, float, str, Reference, list]
PropertyMap = dict[str, PropertyValue]


def parse_property_value(raw: Any) -> PropertyValue:
    """Convert one JSON value into a PropertyValue.

    Raises:
        ValueError: for ``None``, objects, and any other unsupported type.
    """
    if isinstance(raw, (Reference, bool, int, float)):
        return raw
    if isinstance(raw, str):
        match = _REFERENCE_VALUE.match(raw.strip())
        if match and match.group(1).strip():
            return Reference(match.group(1).strip())
        return raw
    if isinstance(raw, (list, tuple)):
        return [parse_property_value(item) for item in raw]
    raise ValueError(f"unsupported property value: {raw!r}")


def parse_properties(raw: Mapping[str, Any] | None) -> PropertyMap:
    """Parse a caller-supplied mapping into a PropertyMap (empty for None)."""
    if not raw:
        return {}
    properties: PropertyMap = {}
    for key, value in raw.items():
        try:
            properties[str(key)] = parse_property_value(value)
        except ValueError as err:
            raise ValueError(f"property '{key}': {err}") from err
    return properties


def property_to_wire(value: PropertyValue) -> Any:
    if isinstance(value, Reference):
        return str(value)
    if isinstance(value, list):
        return [property_to_wire(item) for item in value]
    return value


def properties_to_wire(properties: Mapping[str, PropertyValue] | None) -> dict[str, Any]:
    """Render a PropertyMap back into JSON-compatible values."""
    if not properties:
        return {}
    return {key: property_to_wire(value) for key, value in properties.items()}
