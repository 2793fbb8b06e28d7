"""Logseq API client - page resolution, upsert and namespace materialization."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..models import (
    APIError,
    Block,
    BusinessError,
    DecodeError,
    EntityCreationError,
    LogseqError,
    Page,
    PropertyMap,
    PropertyValue,
    parse_properties,
    properties_to_wire,
)
from ..models.properties import parse_property_value, property_to_wire
from .api_client_core import LogseqClientCore
from .link_helper import namespace_prefixes
from .result_helper import (
    decode_block,
    decode_optional_page,
    decode_page,
    decode_pages,
    extract_uuid,
    first_string_column,
    is_empty_result,
)

ALL_PAGES_QUERY = "[:find (pull ?p [*]) :where [?p :block/name]]"
NAMESPACE_PARENTS_QUERY = (
    "[:find ?parentName :where [?p :block/name] [?p :block/parent ?parent] "
    "[?parent :block/name ?parentName]]"
)


def _datalog_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


@dataclass
class MaterializeResult:
    """Outcome of materializing a hierarchical page name.

    ``uuid`` is the leaf page's UUID, or ``None`` when the leaf could not be
    resolved or created. ``created`` lists the levels that were created, in
    ascending depth. ``diagnostics`` holds the non-fatal failures.
    """

    name: str
    uuid: str | None = None
    created: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.uuid) and not self.diagnostics


class LogseqClientPages(LogseqClientCore):
    """Page operations - extends Core.

    ``create_page`` is a check-then-act upsert. The API has no transactions,
    so two concurrent upserts of the same name can both observe "absent" and
    both issue createPage. Each caller issues at most one create per upsert;
    the window is not closed here.
    """

    async def get_page(self, name_or_uuid: str) -> Page | None:
        """Look up a page by name or UUID. Returns None when there is no match."""
        data = await self.call("logseq.Editor.getPage", name_or_uuid)
        return decode_optional_page(data, "page")

    async def get_block(self, uuid: str, include_children: bool = True) -> Block | None:
        """Look up a block by UUID (with its children). Returns None when absent."""
        data = await self.call("logseq.Editor.getBlock", uuid, include_children)
        if is_empty_result(data):
            self._logger("RESOLVER").debug(f"getBlock returned null for {uuid}")
            return None
        return decode_block(data, "block")

    async def _link_properties(self, properties: PropertyMap) -> None:
        """Synchronize links inside property values before they are written.

        No-op here; LogseqClientLinks overrides it with the real rewriter.
        """

    async def _apply_properties(self, uuid: str, properties: PropertyMap) -> None:
        # One upsertBlockProperty per key: a failure leaves earlier keys applied.
        logger = self._logger("RESOLVER")
        for key, value in properties.items():
            try:
                await self.call("logseq.Editor.upsertBlockProperty", uuid, key, property_to_wire(value))
            except LogseqError as err:
                logger.error(f"failed to update property {key} on {uuid}: {err}")
                raise

    async def create_page(
        self,
        name: str,
        properties: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> Page:
        """Idempotent page upsert.

        1. Existing page, no properties: returned unchanged.
        2. Existing page with properties: each key is upserted, then the page
           is re-read by UUID.
        3. Missing page: createPage, then the properties are upserted key by
           key (createPage does not reliably persist them) and the page is
           re-read.

        Raises:
            EntityCreationError: createPage answered without a UUID.
        """
        logger = self._logger("RESOLVER")
        props = parse_properties(properties)

        existing = await self.get_page(name)
        if existing is not None:
            if not props:
                return existing
            updated = await self.update_page(existing.uuid, props)
            return updated or existing

        await self._link_properties(props)

        args: list[Any] = [name, properties_to_wire(props)]
        if options:
            args.append(options)

        logger.debug(f"Attempting createPage {name!r}")
        data = await self.call("logseq.Editor.createPage", *args)

        if not isinstance(data, dict) or not extract_uuid(data):
            logger.warning(f"createPage returned no UUID for {name!r}: {data!r}")
            raise EntityCreationError(name)
        page = decode_page(data, "created page")

        if props:
            await self._apply_properties(page.uuid, props)
            refreshed = await self.get_page(page.uuid)
            if refreshed is not None:
                return refreshed

        return page

    async def update_page(self, uuid: str, properties: dict[str, Any]) -> Page | None:
        """Upsert each property on a page, then return the refreshed page.

        Links inside string values are synchronized first (namespaced links
        become ``((uuid))`` references).
        """
        props = parse_properties(properties)
        await self._link_properties(props)
        await self._apply_properties(uuid, props)
        return await self.get_page(uuid)

    async def upsert_property(self, uuid: str, key: str, value: PropertyValue | Any) -> None:
        props: PropertyMap = {key: parse_property_value(value)}
        await self._link_properties(props)
        await self._apply_properties(uuid, props)

    async def remove_property(self, uuid: str, key: str) -> None:
        await self.call("logseq.Editor.removeBlockProperty", uuid, key)

    async def rename_page(self, uuid: str, new_name: str) -> None:
        await self.call("logseq.Editor.renamePage", uuid, new_name)

    async def delete_page(self, name_or_uuid: str) -> None:
        await self.call("logseq.Editor.deletePage", name_or_uuid)

    async def list_pages(self) -> list[Page]:
        """All pages: getAllPages first, a pull query when that yields nothing.

        Client API only; no tool exposes a full page listing.
        """
        logger = self._logger("RESOLVER")
        try:
            data = await self.call("logseq.Editor.getAllPages")
        except (APIError, BusinessError, DecodeError) as err:
            logger.warning(f"getAllPages failed, falling back to query: {err}")
        else:
            if not is_empty_result(data):
                return decode_pages(data)

        rows = await self.call("logseq.DB.q", ALL_PAGES_QUERY)
        return decode_pages(rows)

    async def materialize_namespace(self, name: str) -> MaterializeResult:
        """Ensure every level of ``A/B/C`` exists and return the leaf UUID.

        Levels are checked and created in ascending depth. A failure at one
        level is recorded as a diagnostic and deeper levels are still
        attempted; the leaf UUID is set only when the deepest level resolved.
        """
        logger = self._logger("NAMESPACE")
        result = MaterializeResult(name=name)
        prefixes = namespace_prefixes(name)

        for depth, prefix in enumerate(prefixes, start=1):
            is_leaf = depth == len(prefixes)
            logger.debug(f"Checking linked page existence: {prefix}")

            try:
                page = await self.get_page(prefix)
            except LogseqError as err:
                message = f"lookup failed for {prefix!r}: {err}"
                logger.error(message)
                result.diagnostics.append(message)
                continue

            if page is None:
                logger.info(f"Auto-creating missing linked page/namespace: {prefix}")
                try:
                    page = await self.create_page(prefix)
                except LogseqError as err:
                    message = f"failed to auto-create {prefix!r}: {err}"
                    logger.error(message)
                    result.diagnostics.append(message)
                    continue
                result.created.append(prefix)

            if is_leaf and page.uuid:
                result.uuid = page.uuid

        return result

    async def get_namespace_pages(self, namespace: str) -> list[Page]:
        """Pages whose namespace parent is ``namespace`` (matched lower-cased)."""
        datalog = (
            "[:find (pull ?p [*]) :where [?p :block/name] [?p :block/parent ?parent] "
            f"[?parent :block/name {_datalog_string(namespace.lower())}]]"
        )
        self._logger("NAMESPACE").debug(f"GetNamespacePages query: {datalog}")
        results = await self.query(datalog)
        return decode_pages(results, require_uuid=True)

    async def list_namespaces(self) -> list[str]:
        """Names of all pages that are a namespace parent of another page, sorted."""
        results = await self.query(NAMESPACE_PARENTS_QUERY)
        return sorted(set(first_string_column(results)))

    async def get_daily_journal(self, today: date | None = None) -> Page | dict[str, Any] | None:
        """Today's journal page.

        ``logseq.App.getTodayJournalPage`` is missing from some Logseq builds
        (it fails with a 500), so an error or empty answer falls back to a
        ``:block/journal-day`` query. A payload that does not decode as a page
        is returned as the raw mapping.
        """
        logger = self._logger("JOURNAL")
        try:
            data = await self.call("logseq.App.getTodayJournalPage")
        except (APIError, BusinessError, DecodeError) as err:
            logger.warning(f"getTodayJournalPage unavailable, using query fallback: {err}")
        else:
            found = self._journal_from_payload(data)
            if found is not None:
                return found

        day = (today or date.today()).strftime("%Y%m%d")
        datalog = f"[:find (pull ?p [*]) :where [?p :block/journal-day {day}]]"
        logger.debug(f"GetDailyJournal fallback query: {datalog}")
        results = await self.query(datalog)
        if isinstance(results, list) and results:
            return self._journal_from_payload(results[0])
        return None

    @staticmethod
    def _journal_from_payload(data: Any) -> Page | dict[str, Any] | None:
        if is_empty_result(data) or not isinstance(data, dict):
            return None
        try:
            page = decode_page(data, "journal page")
        except DecodeError:
            return data
        return page if page.uuid else data
