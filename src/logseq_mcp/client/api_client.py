"""Logseq API client - block writes, batch trees and tags."""

from typing import Any, Iterable

from ..models import (
    Block,
    BlockContent,
    DecodeError,
    LogseqError,
    NodeNotFoundError,
    Page,
    PropertyMap,
    parse_properties,
    properties_to_wire,
)
from .api_client_links import LogseqClientLinks, SyncResult
from .link_helper import normalize_tag
from .result_helper import decode_block, decode_blocks, extract_uuid


class LogseqClient(LogseqClientLinks):
    """Full Logseq client: Core -> Pages -> Links -> block writes.

    Every write that carries text first runs ensure_linked_pages, so the
    content that reaches Logseq never holds a namespaced ``[[A/B]]`` link
    whose target could be resolved to a UUID.
    """

    def _report_sync(self, sync: SyncResult) -> None:
        logger = self._logger("FACADE")
        for message in sync.diagnostics:
            logger.warning(message)

    async def _sync(self, content: str, properties: PropertyMap | None) -> SyncResult:
        sync = await self.ensure_linked_pages(content, properties)
        self._report_sync(sync)
        return sync

    async def _block_from_response(self, data: Any, known_uuid: str | None, context: str) -> Block:
        """Accept a full block, a bare UUID string, or anything else.

        Anything that is not a populated block object is re-read by UUID so
        the caller always gets the stored state rather than a partial echo.
        """
        if isinstance(data, dict) and extract_uuid(data):
            return decode_block(data, context)

        uuid = extract_uuid(data) if isinstance(data, str) else ""
        uuid = uuid or known_uuid or ""
        if not uuid:
            raise DecodeError(context, TypeError(f"unexpected response: {data!r}"))

        block = await self.get_block(uuid)
        if block is None:
            raise NodeNotFoundError(uuid, f"{context}: block not found")
        return block

    async def get_page_blocks_tree(self, page: str) -> list[Block]:
        data = await self.call("logseq.Editor.getPageBlocksTree", page)
        return decode_blocks(data, "page blocks tree")

    async def insert_block(
        self,
        parent_uuid: str,
        content: str,
        properties: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> Block:
        """Insert one block under (or beside) ``parent_uuid``.

        Properties are applied with a follow-up updateBlock carrying the same
        content, then the block is re-read.
        """
        props = parse_properties(properties)
        sync = await self._sync(content, props)

        args: list[Any] = [parent_uuid, sync.content]
        if options:
            args.append(options)
        data = await self.call("logseq.Editor.insertBlock", *args)
        block = await self._block_from_response(data, None, "inserted block")

        if props:
            try:
                await self._update_block_remote(block.uuid, sync.content, props)
            except LogseqError as err:
                self._logger("FACADE").error(f"block {block.uuid} created but properties failed: {err}")
                raise
            refreshed = await self.get_block(block.uuid)
            if refreshed is not None:
                return refreshed

        return block

    async def insert_batch_block(
        self,
        parent_uuid: str,
        batch: Iterable[BlockContent | dict[str, Any]],
        options: dict[str, Any] | None = None,
    ) -> list[Block]:
        """Insert a whole block tree with one insertBatchBlock call.

        Links are synchronized depth-first over every node before the call.
        """
        tree = [node if isinstance(node, BlockContent) else BlockContent.model_validate(node) for node in batch]

        async def sync_nodes(nodes: list[BlockContent]) -> None:
            for node in nodes:
                sync = await self._sync(node.content, node.properties)
                node.content = sync.content
                if node.children:
                    await sync_nodes(node.children)

        await sync_nodes(tree)

        args: list[Any] = [parent_uuid, [node.to_wire() for node in tree]]
        if options:
            args.append(options)
        data = await self.call("logseq.Editor.insertBatchBlock", *args)
        return decode_blocks(data, "batch blocks")

    async def _update_block_remote(self, uuid: str, content: str, properties: PropertyMap | None) -> Any:
        args: list[Any] = [uuid, content]
        if properties is not None:
            args.append({"properties": properties_to_wire(properties)})
        return await self.call("logseq.Editor.updateBlock", *args)

    async def update_block(
        self,
        uuid: str,
        content: str,
        properties: dict[str, Any] | None = None,
    ) -> Block:
        """Replace a block's content (and optionally properties) in one call."""
        props = parse_properties(properties) if properties is not None else None
        sync = await self._sync(content, props)
        data = await self._update_block_remote(uuid, sync.content, props)
        return await self._block_from_response(data, uuid, "updated block")

    async def delete_block(self, uuid: str) -> None:
        await self.call("logseq.Editor.removeBlock", uuid)

    async def append_block_in_page(
        self,
        page: str,
        content: str,
        options: dict[str, Any] | None = None,
    ) -> Block:
        """Append a block at the end of a page (by name or UUID)."""
        sync = await self._sync(content, None)

        args: list[Any] = [page, sync.content]
        if options:
            args.append(options)
        data = await self.call("logseq.Editor.appendBlockInPage", *args)
        return await self._block_from_response(data, None, "appended block")

    # Tags are plain-text "#Tag" markers in a block's content. For a page the
    # marker goes into the page's own block, or its first block.

    async def _find_content_block(self, uuid: str) -> tuple[Block | None, Page | None]:
        block = await self.get_block(uuid)
        if block is not None:
            return block, None

        page = await self.get_page(uuid)
        if page is None:
            return None, None

        block = await self.get_block(page.uuid)
        if block is not None:
            return block, page

        blocks = await self.get_page_blocks_tree(page.uuid)
        if blocks:
            return blocks[0], page

        return None, page

    async def add_tag(self, uuid: str, tag: str) -> Block:
        """Append ``#tag`` to the entity's content block (no-op when present).

        A page without any block gets a new empty block to hold the tag.
        """
        block, page = await self._find_content_block(uuid)
        if block is None:
            if page is None:
                raise NodeNotFoundError(uuid)
            block = await self.append_block_in_page(page.uuid, "")

        marker = normalize_tag(tag)
        if marker in block.content:
            return block

        new_content = " ".join(part for part in (block.content.strip(), marker) if part)
        return await self.update_block(block.uuid, new_content)

    async def remove_tag(self, uuid: str, tag: str) -> Block:
        block, page = await self._find_content_block(uuid)
        if block is None:
            if page is None:
                raise NodeNotFoundError(uuid)
            raise NodeNotFoundError(uuid, "failed to find content block for page")

        marker = normalize_tag(tag)
        if marker not in block.content:
            return block

        new_content = block.content.replace(marker, "").replace("  ", " ").strip()
        return await self.update_block(block.uuid, new_content)
