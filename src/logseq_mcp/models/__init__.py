"""Data models, configuration and errors for the Logseq client."""

from .configuration import APIConfiguration
from .entities import Block, BlockContent, EntityRef, GraphInfo, Page
from .errors import (
    APIError,
    AuthenticationError,
    BusinessError,
    DecodeError,
    EntityCreationError,
    LogseqError,
    NetworkError,
    NodeNotFoundError,
    TimeoutError,
)
from .properties import (
    PropertyMap,
    PropertyValue,
    Reference,
    parse_properties,
    parse_property_value,
    properties_to_wire,
)

__all__ = [
    "APIConfiguration",
    "APIError",
    "AuthenticationError",
    "Block",
    "BlockContent",
    "BusinessError",
    "DecodeError",
    "EntityCreationError",
    "EntityRef",
    "GraphInfo",
    "LogseqError",
    "NetworkError",
    "NodeNotFoundError",
    "Page",
    "PropertyMap",
    "PropertyValue",
    "Reference",
    "TimeoutError",
    "parse_properties",
    "parse_property_value",
    "properties_to_wire",
]
