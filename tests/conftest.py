"""
Pytest fixtures for the Logseq client and server tests.

The Logseq HTTP API is replaced by FakeLogseq, an in-memory graph served
through httpx.MockTransport. Every call is recorded so tests can assert on
the exact sequence of API methods issued.
"""

import asyncio
import json
from datetime import date
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from pydantic import SecretStr

from logseq_mcp.client import LogseqClient
from logseq_mcp.models import APIConfiguration

BASE_URL = "http://logseq.test"
TOKEN = "test-token"


class FakeLogseq:
    """In-memory stand-in for the Logseq HTTP API."""

    def __init__(self) -> None:
        self.pages: Dict[str, Dict[str, Any]] = {}  # keyed by lower-cased name
        self.blocks: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self.requests: List[httpx.Request] = []
        self.overrides: Dict[str, Callable[[list], Any]] = {}
        self.query_results: Dict[str, Any] = {}
        self.graph: Optional[Dict[str, Any]] = {"name": "test-graph", "path": "/graphs/test-graph"}
        self._next_id = 1

    # Helpers for tests

    def _new_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def _new_uuid(self, prefix: str) -> str:
        return f"{prefix}-{self._next_id:04d}-0000-0000-000000000000"

    def add_page(self, name: str, properties: Optional[dict] = None, journal_day: Optional[int] = None) -> Dict[str, Any]:
        uuid = self._new_uuid("page")
        page = {
            "id": self._new_id(),
            "uuid": uuid,
            "name": name.lower(),
            "originalName": name,
            "properties": dict(properties or {}),
            "journal?": journal_day is not None,
        }
        if journal_day is not None:
            page["journalDay"] = journal_day
        self.pages[name.lower()] = page
        return page

    def add_block(self, page_name: str, content: str, properties: Optional[dict] = None) -> Dict[str, Any]:
        page = self.pages[page_name.lower()]
        return self._make_block(page, page["id"], content, properties)

    def _make_block(self, page: dict, parent_id: int, content: str, properties: Optional[dict] = None) -> Dict[str, Any]:
        uuid = self._new_uuid("block")
        block = {
            "id": self._new_id(),
            "uuid": uuid,
            "content": content,
            "format": "markdown",
            "page": {"id": page["id"]},
            "parent": {"id": parent_id},
            "properties": dict(properties or {}),
            "children": [],
        }
        self.blocks[uuid] = block
        return block

    def find_page(self, name_or_uuid: str) -> Optional[Dict[str, Any]]:
        page = self.pages.get(str(name_or_uuid).lower())
        if page is not None:
            return page
        for candidate in self.pages.values():
            if candidate["uuid"] == name_or_uuid:
                return candidate
        return None

    def page_by_id(self, page_id: int) -> Optional[Dict[str, Any]]:
        for candidate in self.pages.values():
            if candidate["id"] == page_id:
                return candidate
        return None

    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def args_of(self, method: str) -> List[list]:
        return [args for name, args in self.calls if name == method]

    # Transport

    async def handle(self, request: httpx.Request) -> httpx.Response:
        # Yield so concurrent callers interleave between API calls.
        await asyncio.sleep(0)
        self.requests.append(request)
        payload = json.loads(request.content)
        method = payload["method"]
        args = payload.get("args", [])
        self.calls.append((method, args))

        if method in self.overrides:
            result = self.overrides[method](args)
        else:
            handler = getattr(self, "_" + method.rsplit(".", 1)[-1], None)
            if handler is None:
                return httpx.Response(404, text=f"MethodNotExist: {method}")
            result = handler(*args)

        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json=result)

    # API methods

    def _getCurrentGraph(self):
        return self.graph

    def _getPage(self, name_or_uuid):
        return self.find_page(name_or_uuid)

    def _createPage(self, name, properties=None, options=None):
        existing = self.pages.get(name.lower())
        if existing is not None:
            return existing
        return self.add_page(name, properties)

    def _getAllPages(self):
        return list(self.pages.values())

    def _renamePage(self, name_or_uuid, new_name):
        page = self.find_page(name_or_uuid)
        if page is None:
            return {"error": f"page not found: {name_or_uuid}"}
        del self.pages[page["name"]]
        page["name"] = new_name.lower()
        page["originalName"] = new_name
        self.pages[page["name"]] = page
        return None

    def _deletePage(self, name_or_uuid):
        page = self.find_page(name_or_uuid)
        if page is not None:
            del self.pages[page["name"]]
        return None

    def _upsertBlockProperty(self, uuid, key, value):
        target = self.blocks.get(uuid) or self.find_page(uuid)
        if target is None:
            return {"error": f"entity not found: {uuid}"}
        target["properties"][key] = value
        return None

    def _removeBlockProperty(self, uuid, key):
        target = self.blocks.get(uuid) or self.find_page(uuid)
        if target is not None:
            target["properties"].pop(key, None)
        return None

    def _getBlock(self, uuid, include_children=None):
        return self.blocks.get(uuid)

    def _insertBlock(self, parent, content, options=None):
        if parent in self.blocks:
            parent_block = self.blocks[parent]
            page = self.page_by_id(parent_block["page"]["id"])
            parent_id = parent_block["parent"]["id"] if (options or {}).get("sibling") else parent_block["id"]
        else:
            page = self.find_page(parent)
            if page is None:
                return None
            parent_id = page["id"]
        return self._make_block(page, parent_id, content)

    def _insertBatchBlock(self, parent, batch, options=None):
        parent_block = self.blocks.get(parent)
        page = self.page_by_id(parent_block["page"]["id"]) if parent_block else self.find_page(parent)
        if page is None:
            return None
        parent_id = parent_block["id"] if parent_block else page["id"]

        def insert(nodes, under):
            created = []
            for node in nodes:
                block = self._make_block(page, under, node["content"], node.get("properties"))
                block["children"] = insert(node.get("children", []), block["id"])
                created.append(block)
            return created

        return insert(batch, parent_id)

    def _updateBlock(self, uuid, content, options=None):
        block = self.blocks.get(uuid)
        if block is None:
            return {"error": f"block not found: {uuid}"}
        block["content"] = content
        if options and isinstance(options.get("properties"), dict):
            block["properties"].update(options["properties"])
        return None

    def _removeBlock(self, uuid):
        self.blocks.pop(uuid, None)
        return None

    def _appendBlockInPage(self, page_name, content, options=None):
        page = self.find_page(page_name)
        if page is None:
            return None
        return self._make_block(page, page["id"], content)

    def _getPageBlocksTree(self, name_or_uuid):
        page = self.find_page(name_or_uuid)
        if page is None:
            return None
        return [
            block for block in self.blocks.values()
            if block["page"]["id"] == page["id"] and block["parent"]["id"] == page["id"]
        ]

    def _getTodayJournalPage(self):
        return self._journal_for(int(date.today().strftime("%Y%m%d")))

    def _journal_for(self, day: int):
        for page in self.pages.values():
            if page.get("journalDay") == day:
                return page
        return None

    def _q(self, query):
        if query in self.query_results:
            return self.query_results[query]
        return self._datalog(query)

    def _datascriptQuery(self, query):
        return []

    def _datalog(self, query: str):
        """Answer the handful of query shapes the client issues."""
        if ":block/journal-day" in query:
            day = int(query.split(":block/journal-day", 1)[1].split("]", 1)[0])
            page = self._journal_for(day)
            return [[page]] if page else []
        if "?parentName" in query:
            parents = {page["name"].rsplit("/", 1)[0] for page in self.pages.values() if "/" in page["name"]}
            return [[name] for name in parents]
        if "[?parent :block/name" in query:
            target = query.split('[?parent :block/name "', 1)[1].split('"', 1)[0]
            return [
                [page] for page in self.pages.values()
                if "/" in page["name"] and page["name"].rsplit("/", 1)[0] == target
            ]
        if "(pull ?p [*])" in query and ":block/name]" in query:
            return [[page] for page in self.pages.values()]
        return []


def error_response(status: int, body: str = "boom") -> Callable[[list], httpx.Response]:
    return lambda args: httpx.Response(status, text=body)


def business_error(message: str) -> Callable[[list], Dict[str, Any]]:
    return lambda args: {"error": message}


@pytest.fixture
def fake_logseq():
    """Empty in-memory Logseq graph."""
    return FakeLogseq()


@pytest.fixture
def api_config():
    return APIConfiguration(base_url=BASE_URL, api_token=SecretStr(TOKEN), timeout=5.0)


@pytest.fixture
def client(fake_logseq, api_config):
    """LogseqClient wired to the fake graph."""
    return LogseqClient(api_config, transport=httpx.MockTransport(fake_logseq.handle))
