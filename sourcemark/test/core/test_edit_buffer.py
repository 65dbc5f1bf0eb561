"""Tests for sourcemark.core.edit_buffer."""

from __future__ import annotations

import base64
import json

import pytest

from sourcemark.core.edit_buffer import EditBuffer, EditError, utf16_length
from sourcemark.core.vlq import decode_mappings


class TestRendering:
    def test_untouched_buffer(self) -> None:
        buf = EditBuffer("ab\ncd")
        assert buf.to_string() == "ab\ncd"
        assert str(buf) == "ab\ncd"
        assert not buf.has_changed()

    def test_prepends_stack_in_front(self) -> None:
        buf = EditBuffer("x").prepend("b").prepend("a")
        assert buf.to_string() == "abx"

    def test_appends_stack_behind(self) -> None:
        buf = EditBuffer("x").append("a").append("b")
        assert buf.to_string() == "xab"

    def test_insert(self) -> None:
        buf = EditBuffer("foo();").insert(3, "Bar")
        assert buf.to_string() == "fooBar();"
        assert buf.has_changed()

    def test_insert_out_of_range(self) -> None:
        with pytest.raises(EditError, match="out of range"):
            EditBuffer("abc").insert(4, "x")

    def test_empty_insert_is_ignored(self) -> None:
        buf = EditBuffer("abc").insert(1, "")
        assert not buf.has_changed()


class TestReplaceMatch:
    def test_plain_replacement(self) -> None:
        buf = EditBuffer("var a = 1;").replace_match(r"a = 1", "b = 2")
        assert buf.to_string() == "var b = 2;"

    def test_first_match_only(self) -> None:
        buf = EditBuffer("a a a").replace_match("a", "b")
        assert buf.to_string() == "b a a"

    def test_callable_replacer_keeping_prefix(self) -> None:
        buf = EditBuffer("foo()").replace_match("foo", lambda m: m + "Bar")
        assert buf.to_string() == "fooBar()"

    def test_callable_replacer_keeping_suffix(self) -> None:
        buf = EditBuffer("foo()").replace_match("foo", lambda m: "bar" + m)
        assert buf.to_string() == "barfoo()"

    def test_no_match_is_noop(self) -> None:
        buf = EditBuffer("foo").replace_match(r"z+", "y")
        assert buf.to_string() == "foo"
        assert not buf.has_changed()

    def test_empty_match_is_rejected(self) -> None:
        with pytest.raises(EditError, match="empty match"):
            EditBuffer("foo").replace_match(r"x*", "y")

    def test_overlapping_replacements_are_rejected(self) -> None:
        buf = EditBuffer("var a = 1;").replace_match(r"a = 1", "x")
        with pytest.raises(EditError, match="overlaps"):
            buf.replace_match(r"= 1;", "y")

    def test_replacement_spanning_insertion_is_rejected(self) -> None:
        buf = EditBuffer("abcdef").insert(3, "X")
        with pytest.raises(EditError, match="spans an insertion"):
            buf.replace_match("bcde", "Y")

    def test_matches_against_original_text(self) -> None:
        buf = EditBuffer("abc").prepend("zzz").replace_match("z", "y")
        assert buf.to_string() == "zzzabc"


class TestGenerateMap:
    def test_identity_map(self) -> None:
        source_map = EditBuffer("ab\ncd", filename="a.js").generate_map()
        assert source_map.mappings == "AAAA;AACA"
        assert source_map.sources == ("a.js",)

    def test_appended_text_is_unmapped(self) -> None:
        buf = EditBuffer("foo();").append('\n\n;import "x";')
        lines = decode_mappings(buf.generate_map().mappings)
        assert lines == [[(0, 0, 0, 0)], [], []]

    def test_prepended_text_shifts_original(self) -> None:
        buf = EditBuffer("foo();").prepend("S;")
        lines = decode_mappings(buf.generate_map().mappings)
        assert lines == [[(2, 0, 0, 0)]]

    def test_original_lines_after_insertion_keep_their_position(self) -> None:
        code = '"use strict";\n// comment\nfoo();'
        buf = EditBuffer(code).insert(13, "INJECTED;")
        lines = decode_mappings(buf.generate_map().mappings)
        assert lines[0] == [(0, 0, 0, 0), (13 + len("INJECTED;"), 0, 0, 13)]
        assert lines[1] == [(0, 0, 1, 0)]
        assert lines[2] == [(0, 0, 2, 0)]

    def test_replacement_maps_its_first_character(self) -> None:
        buf = EditBuffer("var a = 1;").replace_match(r"a = 1", "b = 2")
        lines = decode_mappings(buf.generate_map().mappings)
        assert lines == [[(0, 0, 0, 0), (4, 0, 0, 4), (9, 0, 0, 9)]]

    def test_columns_count_utf16_units(self) -> None:
        # U+1F600 is a surrogate pair in UTF-16.
        buf = EditBuffer("/*\U0001f600*/x").insert(5, "AB")
        lines = decode_mappings(buf.generate_map().mappings)
        assert lines == [[(0, 0, 0, 0), (8, 0, 0, 6)]]

    def test_utf16_length(self) -> None:
        assert utf16_length("abc") == 3
        assert utf16_length("é") == 1
        assert utf16_length("\U0001f600") == 2

    def test_source_and_file_fields(self) -> None:
        source_map = EditBuffer("x", filename="in.js").generate_map(file="out.js", source="src/in.js")
        data = source_map.to_dict()
        assert data["version"] == 3
        assert data["file"] == "out.js"
        assert data["sources"] == ["src/in.js"]
        assert "sourcesContent" not in data

    def test_include_content(self) -> None:
        source_map = EditBuffer("let x;\n", filename="a.js").generate_map(include_content=True)
        assert source_map.to_dict()["sourcesContent"] == ["let x;\n"]

    def test_data_url(self) -> None:
        source_map = EditBuffer("x", filename="a.js").generate_map()
        url = source_map.to_url()
        prefix = "data:application/json;charset=utf-8;base64,"
        assert url.startswith(prefix)
        decoded = json.loads(base64.b64decode(url[len(prefix) :]))
        assert decoded["mappings"] == source_map.mappings
