"""Tests for result normalization across the API's response shapes."""

import pytest

from logseq_mcp.client.result_helper import (
    decode_block,
    decode_blocks,
    decode_graph,
    decode_optional_page,
    decode_page,
    decode_pages,
    extract_uuid,
    first_string_column,
    flatten_rows,
    is_empty_result,
)
from logseq_mcp.models import DecodeError


class TestEmptyAndRows:
    @pytest.mark.parametrize("value", [None, []])
    def test_empty_results(self, value):
        assert is_empty_result(value)

    @pytest.mark.parametrize("value", [{}, "", [None], 0])
    def test_non_empty_results(self, value):
        assert not is_empty_result(value)

    def test_flatten_single_column_rows(self):
        assert flatten_rows([[{"a": 1}], [{"a": 2}]]) == [{"a": 1}, {"a": 2}]

    def test_flatten_takes_first_column_and_drops_empty_rows(self):
        assert flatten_rows([["x", "extra"], [], ["y"]]) == ["x", "y"]

    def test_flatten_leaves_flat_lists(self):
        assert flatten_rows([{"a": 1}, {"a": 2}]) == [{"a": 1}, {"a": 2}]

    def test_flatten_leaves_non_lists(self):
        assert flatten_rows({"a": 1}) == {"a": 1}
        assert flatten_rows(None) is None


class TestPages:
    def test_decode_page(self):
        page = decode_page({"id": 3, "uuid": "u", "name": "home", "originalName": "Home"})
        assert page.uuid == "u"
        assert page.display_name == "Home"

    def test_decode_page_rejects_non_objects(self):
        with pytest.raises(DecodeError):
            decode_page("u-1")

    def test_optional_page_none_for_empty(self):
        assert decode_optional_page(None) is None
        assert decode_optional_page([]) is None

    def test_decode_pages_accepts_both_encodings(self):
        rows = [[{"uuid": "a", "name": "a"}], [{"uuid": "b", "name": "b"}]]
        flat = [{"uuid": "a", "name": "a"}, {"uuid": "b", "name": "b"}]
        assert [p.uuid for p in decode_pages(rows)] == ["a", "b"]
        assert [p.uuid for p in decode_pages(flat)] == ["a", "b"]

    def test_decode_pages_skips_bad_items(self):
        pages = decode_pages([[{"uuid": "a"}], "junk", [], [42], {"uuid": "b", "id": "not-an-int"}])
        assert [p.uuid for p in pages] == ["a"]

    def test_decode_pages_require_uuid(self):
        pages = decode_pages([{"name": "no-uuid"}, {"name": "ok", "uuid": "u"}], require_uuid=True)
        assert [p.name for p in pages] == ["ok"]

    def test_decode_pages_non_list(self):
        assert decode_pages(None) == []


class TestBlocks:
    def test_decode_block_with_bare_page_id(self):
        block = decode_block({"uuid": "b", "content": "hi", "page": 7, "parent": {"id": 7}})
        assert block.page.id == 7
        assert block.parent.id == 7

    def test_decode_block_with_null_collections(self):
        block = decode_block({"uuid": "b", "properties": None, "children": None, "refs": None})
        assert block.properties == {}
        assert block.children == []
        assert block.refs == []

    def test_decode_blocks_shapes(self):
        assert decode_blocks(None) == []
        assert [b.uuid for b in decode_blocks({"uuid": "one"})] == ["one"]
        assert [b.uuid for b in decode_blocks([[{"uuid": "a"}], [{"uuid": "b"}]])] == ["a", "b"]

    def test_decode_blocks_rejects_strings(self):
        with pytest.raises(DecodeError):
            decode_blocks("b-1")


class TestMisc:
    def test_extract_uuid(self):
        assert extract_uuid(" u-1 ") == "u-1"
        assert extract_uuid({"uuid": "u-2"}) == "u-2"
        assert extract_uuid({"uuid": 5}) == ""
        assert extract_uuid(None) == ""

    def test_first_string_column(self):
        assert first_string_column([["a"], "b", [""], [1], []]) == ["a", "b"]
        assert first_string_column({"a": 1}) == []

    def test_decode_graph(self):
        assert decode_graph({"name": "g", "path": "/p", "url": "x"}).name == "g"
        with pytest.raises(DecodeError):
            decode_graph(None)
