"""Logseq API client - link synchronization for content and properties."""

from dataclasses import dataclass, field

from ..models import LogseqError, PropertyMap, Reference
from .api_client_pages import LogseqClientPages
from .link_helper import (
    extract_block_refs,
    extract_links,
    is_namespaced,
    link_markup,
    merge_unique,
    ref_markup,
    replace_link,
    string_values,
)


@dataclass
class SyncResult:
    """Outcome of ensure_linked_pages.

    ``content`` is the text to submit. ``properties`` is the caller's map,
    rewritten in place. ``rewritten`` maps each namespaced link to the UUID
    it was replaced with. ``missing_refs`` lists ``((uuid))`` targets that
    could not be resolved; together with ``diagnostics`` these are advisory
    and never block the write.
    """

    content: str
    properties: PropertyMap
    rewritten: dict[str, str] = field(default_factory=dict)
    missing_refs: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)


class LogseqClientLinks(LogseqClientPages):
    """Link synchronization - extends Pages.

    Logseq resolves ``[[Page]]`` by name reliably, but lookups of namespaced
    names such as ``[[Projects/Alpha]]`` are not, and the API never creates
    missing namespace levels on its own. Before content is written every
    linked page is materialized, and namespaced links are replaced with
    direct ``((uuid))`` references.
    """

    async def _link_properties(self, properties: PropertyMap) -> None:
        if properties:
            await self.ensure_linked_pages("", properties)

    async def ensure_linked_pages(self, content: str, properties: PropertyMap | None = None) -> SyncResult:
        """Materialize linked pages and rewrite namespaced links.

        Only ``str`` property values are scanned and rewritten; every other
        value is left exactly as it was.
        """
        logger = self._logger("SYNC")
        props: PropertyMap = properties if properties is not None else {}
        result = SyncResult(content=content or "", properties=props)

        links = merge_unique(
            extract_links(result.content),
            *(extract_links(value) for value in string_values(props)),
        )

        for link in links:
            materialized = await self.materialize_namespace(link)
            result.diagnostics.extend(materialized.diagnostics)

            if not is_namespaced(link) or not materialized.uuid:
                continue

            uuid = materialized.uuid
            replaced = False
            if link_markup(link) in result.content:
                result.content = replace_link(result.content, link, uuid)
                replaced = True
            for key, value in props.items():
                if isinstance(value, str) and link_markup(link) in value:
                    props[key] = replace_link(value, link, uuid)
                    replaced = True

            # "[[ A/B ]]" is extracted trimmed but never matches literally
            if replaced:
                logger.debug(f"Replaced namespaced link {link_markup(link)} with {ref_markup(uuid)}")
                result.rewritten[link] = uuid

        refs = merge_unique(
            extract_block_refs(result.content),
            *(extract_block_refs(value) for value in string_values(props)),
            (value.uuid for value in props.values() if isinstance(value, Reference)),
        )
        for uuid in refs:
            if not await self._reference_exists(uuid, result):
                logger.warning(f"Referenced block not found: {uuid}")
                result.missing_refs.append(uuid)

        return result

    async def _reference_exists(self, uuid: str, result: SyncResult) -> bool:
        # Rewritten links point at pages, which getBlock may not return.
        try:
            if await self.get_block(uuid) is not None:
                return True
            return await self.get_page(uuid) is not None
        except LogseqError as err:
            result.diagnostics.append(f"reference check failed for {uuid}: {err}")
            return False
