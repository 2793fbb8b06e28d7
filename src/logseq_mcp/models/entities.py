"""Pydantic models for pages, blocks and graph descriptors."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .properties import parse_properties, properties_to_wire

# Top-level page fields that are never folded into Page.properties
PAGE_KNOWN_FIELDS = frozenset({
    "id", "uuid", "name", "originalName", "journal?", "properties",
    "left", "parent", "page", "format", "children", "content",
    "createdAt", "updatedAt", "file", "namespace",
})


class EntityRef(BaseModel):
    """Reference to a page or block; the API sends either an id or an object."""

    model_config = ConfigDict(extra="ignore")

    id: int = 0
    uuid: str = ""

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_id(cls, data: Any) -> Any:
        if isinstance(data, bool):
            return data
        if isinstance(data, int):
            return {"id": data}
        if isinstance(data, str):
            return {"uuid": data}
        return data


class Page(BaseModel):
    """A Logseq page.

    Any top-level field the API returns that is not part of the page schema
    is treated as a page property, because Logseq versions differ in whether
    page properties arrive nested under ``properties`` or flattened onto the
    page object. Explicitly nested properties win on conflicts.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = 0
    uuid: str = ""
    name: str = ""
    original_name: str = Field(default="", alias="originalName")
    journal: bool = Field(default=False, alias="journal?")
    properties: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fold_extra_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        folded = {k: v for k, v in data.items() if k not in PAGE_KNOWN_FIELDS}
        explicit = data.get("properties")
        if isinstance(explicit, dict):
            folded.update(explicit)
        return {**data, "properties": folded}

    @property
    def display_name(self) -> str:
        return self.original_name or self.name


class Block(BaseModel):
    """A Logseq block (outline node)."""

    model_config = ConfigDict(extra="ignore")

    id: int = 0
    uuid: str = ""
    content: str = ""
    format: str = ""
    left: Any = None
    parent: EntityRef | None = None
    page: EntityRef | None = None
    properties: dict[str, Any] = Field(default_factory=dict)
    children: list[Any] = Field(default_factory=list)
    refs: list[Any] = Field(default_factory=list)

    @field_validator("properties", mode="before")
    @classmethod
    def _null_properties(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("children", "refs", mode="before")
    @classmethod
    def _null_lists(cls, value: Any) -> Any:
        return [] if value is None else value


class GraphInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    path: str = ""


class BlockContent(BaseModel):
    """One node of a block tree submitted through insertBatchBlock."""

    model_config = ConfigDict(extra="ignore")

    content: str = ""
    properties: dict[str, Any] = Field(default_factory=dict)
    children: list["BlockContent"] = Field(default_factory=list)

    @field_validator("properties", mode="before")
    @classmethod
    def _parse_properties(cls, value: Any) -> Any:
        return parse_properties(value)

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"content": self.content}
        if self.properties:
            payload["properties"] = properties_to_wire(self.properties)
        if self.children:
            payload["children"] = [child.to_wire() for child in self.children]
        return payload
