"""Logseq MCP server implementation using FastMCP."""

import argparse
import json
import logging
from contextlib import asynccontextmanager
from typing import Annotated, Any, Callable

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from . import __version__
from .client import LogseqClient
from .client.link_helper import to_snake_case
from .config import LogseqMode, ServerConfig, setup_logging
from .models import LogseqError, Page

logger = logging.getLogger(__name__)

INVALID_PROPERTIES = "The properties provided are not valid JSON. Please check your formatting and try again."


class PageRequest(BaseModel):
    name: str = ""
    properties: dict[str, Any] = Field(default_factory=dict)


_PAGE_REQUESTS = TypeAdapter(list[PageRequest])
_STRING_LIST = TypeAdapter(list[str])


def _to_json(value: Any) -> str:
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)
    elif isinstance(value, list):
        value = [item.model_dump(by_alias=True) if isinstance(item, BaseModel) else item for item in value]
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _insert_options(sibling: bool, before: bool) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if sibling:
        options["sibling"] = True
        if before:
            options["before"] = True
    return options


class LogseqTools:
    """Tool handlers: argument validation, mode rules and response text.

    Every handler returns plain text on success and raises ToolError with a
    message meant for the calling model on failure.
    """

    def __init__(self, client: LogseqClient, mode: LogseqMode = LogseqMode.GENERAL):
        self.client = client
        self.mode = mode

    @property
    def ontological(self) -> bool:
        return self.mode == LogseqMode.ONTOLOGICAL

    def _normalize_keys(self, properties: dict[str, Any] | None) -> dict[str, Any] | None:
        if properties is None or not self.ontological:
            return properties
        return {to_snake_case(key): value for key, value in properties.items()}

    def _normalize_tree(self, nodes: list[Any]) -> list[Any]:
        if not self.ontological:
            return nodes
        for node in nodes:
            if isinstance(node, dict):
                if isinstance(node.get("properties"), dict):
                    node["properties"] = self._normalize_keys(node["properties"])
                if isinstance(node.get("children"), list):
                    self._normalize_tree(node["children"])
        return nodes

    @staticmethod
    def _parse_properties(raw: str | None, required: bool = False) -> dict[str, Any] | None:
        if not raw:
            return {} if required else None
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as err:
            raise ToolError(INVALID_PROPERTIES) from err
        if not isinstance(value, dict):
            raise ToolError(INVALID_PROPERTIES)
        return value

    @staticmethod
    def _require(value: str, message: str) -> None:
        if not value or not value.strip():
            raise ToolError(message)

    async def _resolve_page(self, uuid: str, action: str) -> Page:
        try:
            page = await self.client.get_page(uuid)
        except LogseqError as err:
            logger.error(f"{action}: failed to get page {uuid}: {err}")
            raise ToolError(
                f"Could not retrieve the page to {action}: {err}. Please ensure the UUID is correct."
            ) from err
        if page is None:
            raise ToolError(f"Page not found: '{uuid}'. Please double-check the name or UUID.")
        return page

    # Graph

    async def read_graph_info(self) -> str:
        """Get information about the current graph."""
        try:
            graph = await self.client.get_graph()
        except LogseqError as err:
            logger.error(f"read_graph_info failed: {err}")
            raise ToolError(
                "Could not retrieve graph information. Please ensure Logseq is running "
                "and the HTTP API is enabled in settings."
            ) from err
        return f"Graph: {graph.name}\nPath: {graph.path}"

    async def query(
        self,
        query: Annotated[str, Field(description="The Datalog query string (e.g., '[:find (pull ?b [*]) :where ...]')")],
    ) -> str:
        self._require(
            query,
            "A query string is required. Please provide a valid Datalog query "
            "(e.g., '[:find (pull ?p [*]) :where [?p :block/name]]').",
        )
        try:
            results = await self.client.query(query)
        except LogseqError as err:
            logger.error(f"query failed: {err}")
            raise ToolError(
                f"The query failed: {err}. Please check your Datalog syntax or ensure the requested entities exist."
            ) from err
        return _to_json(results)

    async def list_namespaces(self) -> str:
        try:
            namespaces = await self.client.list_namespaces()
        except LogseqError as err:
            logger.error(f"list_namespaces failed: {err}")
            raise ToolError(
                "Could not list namespaces. This may happen if the graph is empty or the API is unreachable."
            ) from err
        return _to_json(namespaces)

    async def get_daily_journal(self) -> str:
        try:
            page = await self.client.get_daily_journal()
        except LogseqError as err:
            logger.error(f"get_daily_journal failed: {err}")
            raise ToolError(
                f"Could not retrieve the daily journal page: {err}. Please check if Logseq is running."
            ) from err
        if page is None:
            raise ToolError(
                "No journal page exists for today. You can create one by adding a block or property to it."
            )
        return _to_json(page)

    # Pages / entities

    async def read_page(
        self,
        uuid: Annotated[str, Field(description="The UUID or name of the page")],
    ) -> str:
        self._require(
            uuid,
            "A UUID or page name is required. Please provide the unique identifier for the page you wish to read.",
        )
        try:
            page = await self.client.get_page(uuid)
        except LogseqError as err:
            logger.error(f"read_page failed: {err}")
            raise ToolError(
                f"Could not retrieve the page: {err}. Please ensure the UUID or name is correct and the page exists."
            ) from err
        if page is None:
            raise ToolError(
                f"Page not found: '{uuid}'. Please double-check the name or UUID. "
                "For namespaced pages, use the full path like 'Projects/MyTask'."
            )
        return _to_json(page)

    async def create_entity(
        self,
        name: Annotated[str, Field(description="The specific name of the Instance (e.g. 'The Hobbit', 'Alice Smith')")],
        namespace: Annotated[str, Field(description="The optional Class or category (e.g., 'Person', 'Project').")] = "",
        properties: Annotated[str, Field(description="JSON string of Attributes or Relationships (e.g. '{\"author\": \"[[J.R.R. Tolkien]]\"}')")] = "",
    ) -> str:
        self._require(name, "A name is required to create an entity. Please provide a title for the new page.")
        props = self._normalize_keys(self._parse_properties(properties, required=True))

        full_name = f"{namespace}/{name}" if namespace else name
        try:
            page = await self.client.create_page(full_name, props)
        except ValueError as err:
            raise ToolError(f"Invalid property value: {err}") from err
        except LogseqError as err:
            logger.error(f"create_entity failed: {err}")
            raise ToolError(
                f"Failed to create the entity: {err}. Please ensure the name is valid and doesn't contain forbidden characters."
            ) from err

        return (
            f"Entity created successfully: {page.display_name} (UUID: {page.uuid}). "
            "You should use this UUID for any further updates to this entity."
        )

    async def create_pages(
        self,
        pages: Annotated[str, Field(description="JSON array of objects with 'name' and optional 'properties'")],
    ) -> str:
        self._require(
            pages,
            "A list of pages (JSON array) is required. Please provide the names and optional properties for the pages you wish to create.",
        )
        try:
            requests = _PAGE_REQUESTS.validate_json(pages)
        except ValidationError as err:
            raise ToolError(
                "The pages list provided is not valid JSON. Please check your formatting and ensure it is a JSON array of page objects."
            ) from err

        count = 0
        errors: list[str] = []
        for request in requests:
            if not request.name.strip():
                errors.append("(unnamed): a name is required")
                continue
            try:
                await self.client.create_page(request.name, self._normalize_keys(request.properties))
            except (LogseqError, ValueError) as err:
                logger.error(f"create_pages: failed to create {request.name}: {err}")
                errors.append(f"{request.name}: {err}")
            else:
                count += 1

        if errors:
            raise ToolError(
                f"Created {count} pages, but failed for: {errors}. Please ensure all page names are valid."
            )
        return f"Successfully created {count} pages."

    async def update_page(
        self,
        uuid: Annotated[str, Field(description="The UUID or name of the page")],
        properties: Annotated[str, Field(description="JSON string of properties to update")],
    ) -> str:
        self._require(
            uuid,
            "A UUID or page name is required. Please provide the unique identifier for the page you wish to update.",
        )
        self._require(
            properties,
            "Updated properties (JSON string) are required. Please provide the attributes you wish to modify.",
        )
        props = self._normalize_keys(self._parse_properties(properties, required=True))

        page = await self._resolve_page(uuid, "update")
        try:
            updated = await self.client.update_page(page.uuid, props or {})
        except ValueError as err:
            raise ToolError(f"Invalid property value: {err}") from err
        except LogseqError as err:
            logger.error(f"update_page failed: {err}")
            raise ToolError(
                f"Failed to update the page: {err}. Please ensure the properties are valid for this entity."
            ) from err
        return f"Page updated successfully: {(updated or page).uuid}"

    async def delete_page(
        self,
        uuid: Annotated[str, Field(description="The UUID or name of the page")],
    ) -> str:
        self._require(
            uuid,
            "A UUID or page name is required. Please provide the identifier for the page you wish to delete.",
        )
        try:
            await self.client.delete_page(uuid)
        except LogseqError as err:
            logger.error(f"delete_page failed for {uuid}: {err}")
            raise ToolError(f"Failed to delete the page: {err}. Please ensure the identifier is correct.") from err
        return f"Page successfully deleted: {uuid}"

    async def delete_pages(
        self,
        uuids: Annotated[str, Field(description="JSON array of page UUIDs or names to delete")],
    ) -> str:
        self._require(
            uuids,
            "A list of UUIDs or names is required. Please provide a JSON array of page identifiers to delete.",
        )
        try:
            targets = _STRING_LIST.validate_json(uuids)
        except ValidationError as err:
            raise ToolError(
                "The list of identifiers provided is not valid JSON. Please check your formatting and ensure it is a JSON array of strings."
            ) from err

        count = 0
        errors: list[str] = []
        for target in targets:
            try:
                await self.client.delete_page(target)
            except LogseqError as err:
                logger.error(f"delete_pages: failed to delete {target}: {err}")
                errors.append(f"{target}: {err}")
            else:
                count += 1

        if errors:
            raise ToolError(
                f"Deleted {count} pages, but failed for: {errors}. Please verify the remaining identifiers are correct."
            )
        return f"Successfully deleted {count} pages."

    async def rename_page(
        self,
        uuid: Annotated[str, Field(description="The UUID or name of the page")],
        new_name: Annotated[str, Field(description="The new name of the page")],
    ) -> str:
        self._require(
            uuid,
            "A UUID or current page name is required. Please provide the identifier for the page you wish to rename.",
        )
        self._require(new_name, "A new name is required. Please provide the target title for the page.")

        page = await self._resolve_page(uuid, "rename")
        try:
            await self.client.rename_page(page.uuid, new_name)
        except LogseqError as err:
            logger.error(f"rename_page failed for {page.uuid} -> {new_name}: {err}")
            raise ToolError(
                f"Failed to rename the page: {err}. Please ensure the new name is valid and not already in use."
            ) from err
        return f"Page successfully renamed to: {new_name}"

    # Namespaces

    async def read_namespace(
        self,
        namespace: Annotated[str, Field(description="The Class or category to list")],
    ) -> str:
        self._require(
            namespace,
            "A namespace name is required. Please provide the category (e.g., 'Projects') you wish to list.",
        )
        try:
            pages = await self.client.get_namespace_pages(namespace)
        except LogseqError as err:
            logger.error(f"read_namespace failed for {namespace}: {err}")
            raise ToolError(
                f"Could not retrieve pages for namespace '{namespace}': {err}. Please ensure the namespace exists."
            ) from err
        return _to_json(pages)

    async def create_namespace(
        self,
        namespace: Annotated[str, Field(description="The namespace name (e.g. 'work/project')")],
    ) -> str:
        self._require(
            namespace,
            "A namespace name is required. Please provide the name (e.g., 'work/project') for the new category.",
        )
        result = await self.client.materialize_namespace(namespace)
        for message in result.diagnostics:
            logger.warning(f"create_namespace {namespace}: {message}")
        if not result.uuid:
            raise ToolError(
                f"Failed to create the namespace page: {'; '.join(result.diagnostics) or 'unknown error'}. "
                "Please ensure the name is valid."
            )
        if not result.ok:
            return (
                f"Namespace created: {namespace} (UUID: {result.uuid}), but some parent levels "
                f"could not be created: {'; '.join(result.diagnostics)}"
            )
        return f"Namespace created successfully: {namespace} (UUID: {result.uuid})"

    # Blocks / entries

    async def read_block(
        self,
        uuid: Annotated[str, Field(description="The UUID of the block")],
    ) -> str:
        self._require(
            uuid,
            "A block UUID is required. Please provide the unique identifier for the block you wish to read.",
        )
        try:
            block = await self.client.get_block(uuid)
        except LogseqError as err:
            logger.error(f"read_block failed for {uuid}: {err}")
            raise ToolError(f"Could not retrieve the block: {err}. Please ensure the UUID is correct.") from err
        if block is None:
            raise ToolError(f"Block not found: '{uuid}'. Please double-check the UUID.")
        return _to_json(block)

    async def create_block(
        self,
        parent_uuid: Annotated[str, Field(description="The UUID of the parent block or page")],
        content: Annotated[str, Field(description="The content of the block")],
        properties: Annotated[str, Field(description="JSON string of block-level properties")] = "",
        sibling: Annotated[bool, Field(description="Insert as sibling instead of child")] = False,
        before: Annotated[bool, Field(description="Insert before the reference block (only if sibling=true)")] = False,
    ) -> str:
        self._require(
            parent_uuid,
            "A parent UUID (page or block) is required. Please provide a valid identifier for where the block should be inserted.",
        )
        self._require(content, "Block content is required. Please provide the text for the new block.")
        props = self._normalize_keys(self._parse_properties(properties))

        try:
            block = await self.client.insert_block(parent_uuid, content, props, _insert_options(sibling, before))
        except ValueError as err:
            raise ToolError(f"Invalid property value: {err}") from err
        except LogseqError as err:
            logger.error(f"create_block failed: {err}")
            raise ToolError(
                f"Failed to insert the block: {err}. Please ensure the parent exists and the content is valid."
            ) from err
        return (
            f"Block inserted successfully: {block.uuid}. "
            "You can use this UUID to reference or update this block later."
        )

    async def create_block_tree(
        self,
        parent_uuid: Annotated[str, Field(description="The UUID of the parent block or page")],
        tree: Annotated[str, Field(description="JSON array of BlockContent objects. Use nested 'children' to represent the outline hierarchy.")],
        sibling: Annotated[bool, Field(description="Insert as sibling instead of child")] = False,
        before: Annotated[bool, Field(description="Insert before the reference block (only if sibling=true)")] = False,
    ) -> str:
        self._require(
            parent_uuid,
            "A parent UUID (page or block) is required. Please provide a valid identifier for where the tree should be inserted.",
        )
        self._require(
            tree,
            "A tree structure (JSON array) is required. Please provide a valid list of blocks and their nested children.",
        )
        invalid_tree = (
            "The tree structure provided is not valid JSON. Please check your formatting "
            "and ensure it matches the BlockContent structure."
        )
        try:
            nodes = json.loads(tree)
        except json.JSONDecodeError as err:
            raise ToolError(invalid_tree) from err
        if not isinstance(nodes, list):
            raise ToolError(invalid_tree)

        try:
            blocks = await self.client.insert_batch_block(
                parent_uuid, self._normalize_tree(nodes), _insert_options(sibling, before)
            )
        except ValueError as err:
            raise ToolError(f"{invalid_tree} ({err})") from err
        except LogseqError as err:
            logger.error(f"create_block_tree failed: {err}")
            raise ToolError(
                f"Failed to insert the block tree: {err}. Please ensure the parent exists and the tree structure is valid."
            ) from err
        return f"Successfully inserted {len(blocks)} blocks into the tree."

    async def append_block(
        self,
        uuid: Annotated[str, Field(description="The UUID or name of the page")],
        content: Annotated[str, Field(description="The content of the block")],
    ) -> str:
        self._require(
            uuid,
            "A page name or UUID is required. Please provide the identifier for the page where the block should be appended.",
        )
        self._require(content, "Block content is required. Please provide the text to append.")
        try:
            block = await self.client.append_block_in_page(uuid, content)
        except LogseqError as err:
            logger.error(f"append_block failed for {uuid}: {err}")
            raise ToolError(f"Failed to append the block: {err}. Please ensure the page exists.") from err
        return f"Block successfully appended to '{uuid}'. New block UUID: {block.uuid}"

    async def update_block(
        self,
        uuid: Annotated[str, Field(description="The UUID of the block")],
        content: Annotated[str, Field(description="The new content")],
        properties: Annotated[str, Field(description="JSON string of properties")] = "",
    ) -> str:
        self._require(
            uuid,
            "A block UUID is required. Please provide the unique identifier for the block you wish to update.",
        )
        props = self._normalize_keys(self._parse_properties(properties))
        try:
            block = await self.client.update_block(uuid, content, props)
        except ValueError as err:
            raise ToolError(f"Invalid property value: {err}") from err
        except LogseqError as err:
            logger.error(f"update_block failed for {uuid}: {err}")
            raise ToolError(
                f"Failed to update the block: {err}. Please ensure the UUID is correct and the block still exists."
            ) from err
        return f"Block updated successfully: {block.uuid}"

    async def remove_block(
        self,
        uuid: Annotated[str, Field(description="The UUID of the block")],
    ) -> str:
        self._require(
            uuid,
            "A block UUID is required. Please provide the identifier for the block you wish to delete.",
        )
        try:
            await self.client.delete_block(uuid)
        except LogseqError as err:
            logger.error(f"remove_block failed for {uuid}: {err}")
            raise ToolError(f"Failed to delete the block: {err}. Please ensure the UUID is correct.") from err
        return f"Block successfully deleted: {uuid}"

    async def remove_blocks(
        self,
        uuids: Annotated[str, Field(description="JSON array of block UUIDs to delete")],
    ) -> str:
        self._require(
            uuids,
            "A list of UUIDs is required. Please provide a JSON array of block identifiers to delete.",
        )
        try:
            targets = _STRING_LIST.validate_json(uuids)
        except ValidationError as err:
            raise ToolError(
                "The list of UUIDs provided is not valid JSON. Please check your formatting and ensure it is a JSON array of strings."
            ) from err

        count = 0
        errors: list[str] = []
        for target in targets:
            try:
                await self.client.delete_block(target)
            except LogseqError as err:
                logger.error(f"remove_blocks: failed to delete {target}: {err}")
                errors.append(f"{target}: {err}")
            else:
                count += 1

        if errors:
            raise ToolError(
                f"Deleted {count} blocks, but failed for: {errors}. Please verify the remaining UUIDs are correct."
            )
        return f"Successfully deleted {count} blocks."

    # Tags and properties

    async def add_tag(
        self,
        uuid: Annotated[str, Field(description="The UUID of the block/entry or page/entity")],
        tag: Annotated[str, Field(description="The tag to add (e.g. 'Project' or '#Project')")],
    ) -> str:
        self._require(
            uuid,
            "A UUID or page name is required. Please provide the identifier for the entity you wish to tag.",
        )
        self._require(tag, "A tag is required. Please provide the text for the tag you wish to add.")
        try:
            await self.client.add_tag(uuid, tag)
        except LogseqError as err:
            logger.error(f"add_tag failed for {uuid} ({tag}): {err}")
            raise ToolError(
                f"Failed to add the tag: {err}. Please ensure the target exists and the tag format is valid."
            ) from err
        return f"Tag '{tag}' successfully added to {uuid}."

    async def remove_tag(
        self,
        uuid: Annotated[str, Field(description="The UUID of the block/entry or page/entity")],
        tag: Annotated[str, Field(description="The tag to remove (e.g. 'Project' or '#Project')")],
    ) -> str:
        self._require(
            uuid,
            "A UUID or page name is required. Please provide the identifier for the entity from which to remove the tag.",
        )
        self._require(tag, "A tag is required. Please provide the text for the tag you wish to remove.")
        try:
            await self.client.remove_tag(uuid, tag)
        except LogseqError as err:
            logger.error(f"remove_tag failed for {uuid} ({tag}): {err}")
            raise ToolError(
                f"Failed to remove the tag: {err}. Please ensure the entity exists and contains the specified tag."
            ) from err
        return f"Tag '{tag}' successfully removed from {uuid}."

    async def remove_property(
        self,
        uuid: Annotated[str, Field(description="The UUID of the block/entry or page/entity")],
        key: Annotated[str, Field(description="The property key to remove")],
    ) -> str:
        self._require(
            uuid,
            "A UUID or page name is required. Please provide the identifier for the entity from which to remove the property.",
        )
        self._require(key, "A property key is required. Please provide the name of the attribute you wish to remove.")
        try:
            await self.client.remove_property(uuid, key)
        except LogseqError as err:
            logger.error(f"remove_property failed for {uuid} ({key}): {err}")
            raise ToolError(
                f"Failed to remove the property: {err}. Please ensure the entity exists and contains the specified attribute."
            ) from err
        return f"Property '{key}' successfully removed from {uuid}."

    async def add_property(
        self,
        uuid: Annotated[str, Field(description="The UUID of the block/entry or page/entity")],
        key: Annotated[str, Field(description="The property key to add or update")],
        value: Annotated[str, Field(description="The property value (use [[Page Name]] for relationships)")],
    ) -> str:
        self._require(
            uuid,
            "A UUID or page name is required. Please provide the identifier for the entity to which to add/update the property.",
        )
        self._require(
            key, "A property key is required. Please provide the name of the attribute you wish to add/update."
        )
        if self.ontological:
            key = to_snake_case(key)
        try:
            await self.client.upsert_property(uuid, key, value)
        except LogseqError as err:
            logger.error(f"add_property failed for {uuid} ({key}): {err}")
            raise ToolError(f"Failed to add/update the property: {err}. Please ensure the entity exists.") from err
        return f"Property '{key}' successfully added/updated on {uuid}."


# (tool name, handler attribute, description, modes it is registered in)
_BOTH = (LogseqMode.GENERAL, LogseqMode.ONTOLOGICAL)
_GENERAL = (LogseqMode.GENERAL,)
_ONTOLOGICAL = (LogseqMode.ONTOLOGICAL,)

TOOL_TABLE: list[tuple[str, str, str, tuple[LogseqMode, ...]]] = [
    ("read_graph_info", "read_graph_info", "Get information about the current graph", _BOTH),
    (
        "query",
        "query",
        "Execute an advanced Datalog query against the Logseq database. Recommended for complex data "
        "retrieval and filtering. Examples: '[:find (pull ?p [*]) :where [?p :block/name]]' (all pages), "
        "'[:find (pull ?b [*]) :where [?b :block/content ?c] [(clojure.string/includes? ?c \"term\")]]' "
        "(blocks containing 'term').",
        _BOTH,
    ),
    ("list_namespaces", "list_namespaces", "List all existing namespaces/Classes in the graph.", _BOTH),
    ("get_daily_journal", "get_daily_journal", "Retrieve today's journal page details.", _BOTH),
    (
        "read_entity",
        "read_page",
        "Retrieve structured data for an Instance (Particular). Use this to inspect record Attributes "
        "(data) and Relationships (links).",
        _ONTOLOGICAL,
    ),
    (
        "update_entity",
        "update_page",
        "Modify Instance Attributes or Relationships. Ensures data integrity by normalizing property keys to snake_case.",
        _ONTOLOGICAL,
    ),
    ("delete_entity", "delete_page", "Permanently remove an Instance record from the database.", _ONTOLOGICAL),
    ("read_page", "read_page", "Get page details. Returns the page properties and metadata.", _GENERAL),
    (
        "create_entity",
        "create_entity",
        "Create a new Instance (Particular). Instances represent unique database entries. Classes "
        "(Universals) should be added as tags (e.g. #Person). Attributes (data) and Relationships (links) "
        "should be added as properties. Always use the returned UUID for subsequent operations.",
        _BOTH,
    ),
    ("create_pages", "create_pages", "Create multiple pages. Use create_entity for ontological items.", _GENERAL),
    ("update_page", "update_page", "Update page properties. Use this to modify entity attributes.", _GENERAL),
    ("delete_page", "delete_page", "Permanently delete a page/entity.", _GENERAL),
    ("delete_pages", "delete_pages", "Permanently delete multiple pages/entities.", _GENERAL),
    (
        "rename_page",
        "rename_page",
        "Rename a page. Note: This may break ontological references if not handled carefully.",
        _BOTH,
    ),
    (
        "read_namespace",
        "read_namespace",
        "List all Instances within a specific Class or namespace hierarchy.",
        _BOTH,
    ),
    (
        "create_namespace",
        "create_namespace",
        "Create a new namespace or category level. Defines a high-level grouping.",
        _GENERAL,
    ),
    ("read_entry", "read_block", "Read a specific entry (block) within an Instance outline.", _ONTOLOGICAL),
    (
        "update_entry",
        "update_block",
        "Modify an entry (block). In ontological mode, properties are normalized to snake_case.",
        _ONTOLOGICAL,
    ),
    ("remove_entry", "remove_block", "Permanently remove an entry from an Instance outline.", _ONTOLOGICAL),
    (
        "append_entry_to_entity",
        "append_block",
        "Append a new bullet point to an Instance. Use this to add data entries or notes in a clean "
        "outliner format. Do NOT use for bulk data; prefer create_entry_tree for structured trees.",
        _ONTOLOGICAL,
    ),
    ("create_entry", "create_block", "Insert an entry (block). Properties are normalized to snake_case.", _ONTOLOGICAL),
    (
        "create_entry_tree",
        "create_block_tree",
        "Insert a structured tree of entries. Preferred for complex data structures. This forces an "
        "outliner-style hierarchy. Example tree: '[{\"content\": \"Root\", \"children\": [{\"content\": \"Child\"}]}]'",
        _ONTOLOGICAL,
    ),
    ("read_block", "read_block", "Get block details, including content and nested properties.", _GENERAL),
    ("append_block", "append_block", "Append a block to the end of a page/entity.", _GENERAL),
    ("update_block", "update_block", "Update existing block content or properties.", _GENERAL),
    ("remove_block", "remove_block", "Permanently remove a block.", _GENERAL),
    ("remove_blocks", "remove_blocks", "Permanently remove multiple blocks.", _GENERAL),
    ("create_block", "create_block", "Insert a block.", _GENERAL),
    ("create_block_tree", "create_block_tree", "Insert a structured tree of blocks.", _GENERAL),
    (
        "add_tag",
        "add_tag",
        "Add a #tag for discoverability (Classes/Universals). If the target is a page and has no entries, "
        "a new empty block will be created to hold the tag.",
        _BOTH,
    ),
    ("remove_tag", "remove_tag", "Remove a discovery tag (Class/Universal).", _BOTH),
    ("remove_property", "remove_property", "Remove a specific property/attribute/relationship.", _BOTH),
    (
        "add_property",
        "add_property",
        "Add or update a specific property/attribute (data) or relationship (link).",
        _BOTH,
    ),
]


def tool_names(mode: LogseqMode) -> list[str]:
    """Names of the tools registered in ``mode``, in registration order."""
    return [name for name, _, _, modes in TOOL_TABLE if mode in modes]


def register_tools(mcp: FastMCP, tools: LogseqTools) -> None:
    for name, attribute, description, modes in TOOL_TABLE:
        if tools.mode not in modes:
            continue
        handler: Callable[..., Any] = getattr(tools, attribute)
        mcp.tool(name=name, description=description)(handler)


def create_server(config: ServerConfig, client: LogseqClient | None = None) -> FastMCP:
    """Build the FastMCP server for one configuration.

    The client is owned by the server and closed when the server shuts down.
    """
    logseq_client = client or LogseqClient(config.get_api_config())
    tools = LogseqTools(logseq_client, config.mode)

    @asynccontextmanager
    async def lifespan(_app: FastMCP):  # type: ignore[no-untyped-def]
        logger.info(f"Starting Logseq MCP server ({config.mode.value} mode) for {config.url}")
        try:
            yield
        finally:
            logger.info("Shutting down Logseq MCP server")
            await logseq_client.close()

    mcp = FastMCP(
        "logseq-mcp",
        version=__version__,
        instructions=(
            "MCP server for a Logseq graph: pages, namespaces, blocks and properties "
            "through the Logseq HTTP API"
        ),
        lifespan=lifespan,
    )
    register_tools(mcp, tools)
    return mcp


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="logseq-mcp", description="Logseq MCP Server")
    parser.add_argument("--logseq-url", dest="url", help="Logseq API URL (env: LOGSEQ_URL)")
    parser.add_argument("--logseq-token", dest="token", help="Logseq API token (env: LOGSEQ_TOKEN)")
    parser.add_argument(
        "--logseq-mode",
        dest="mode",
        choices=[mode.value for mode in LogseqMode],
        help="Logseq mode, general or ontological (env: LOGSEQ_MODE)",
    )
    parser.add_argument("--debug", action="store_true", default=None, help="Enable debug logging")
    return parser.parse_args(argv)


def load_config(argv: list[str] | None = None) -> ServerConfig:
    """Environment settings, overridden by any command-line flags given."""
    args = _parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    return ServerConfig(**overrides)


def main(argv: list[str] | None = None) -> None:
    """Console entry point."""
    config = load_config(argv)
    setup_logging(config.debug)
    create_server(config).run(transport="stdio")


if __name__ == "__main__":
    main()
