#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Integration tests running whole filters from JSON text to JSON text."""

import io
import json

import pytest
from utils import document_json, node, words

from panfilter import FilterRuntime, MetaList, MetaString, decode_document, make_node, stringify


def run_filter(runtime, text, target_format="html"):
    output = io.StringIO()
    result = runtime.run(io.StringIO(text), output, target_format)
    return result, json.loads(output.getvalue())


@pytest.mark.integration
class TestMetadataPipeline:
    """Metadata edits made by actions reach the output."""

    def test_merge_yaml_front_matter(self):
        """Test merging YAML text into empty metadata."""
        runtime = FilterRuntime()

        @runtime.rule("Para")
        def merge(node, context):
            context.metadata.merge_from_text("title: Hi\nkeywords:\n- a\n- b\n")
            assert context.metadata.get("title") == MetaString("Hi")
            assert context.metadata.get("keywords") == MetaList([MetaString("a"), MetaString("b")])

        _, data = run_filter(runtime, document_json([node("Para", words("body"))]))

        assert data["meta"]["title"] == node("MetaString", "Hi")
        assert data["meta"]["keywords"] == node("MetaList", [node("MetaString", "a"), node("MetaString", "b")])

    def test_shallow_merge_of_maps(self, sample_json):
        """Test that setting a map keeps existing keys."""
        runtime = FilterRuntime()
        runtime.add_rule("HorizontalRule", lambda n, context: context.metadata.set("opts", {"toc": True}))

        _, data = run_filter(runtime, sample_json)

        assert data["meta"]["opts"] == node(
            "MetaMap", {"from": node("MetaString", "markdown"), "toc": node("MetaBool", True)}
        )

    def test_unknown_metadata_kind_is_dropped(self):
        """Test that unrecognized metadata disappears and stays gone."""
        meta = {"future": node("FutureKind", 42), "kept": node("MetaString", "yes")}
        text = document_json([node("Para", words("x"))], meta)

        _, data = run_filter(FilterRuntime(), text)

        assert data["meta"] == {"kept": node("MetaString", "yes")}
        assert "future" not in decode_document(json.dumps(data)).meta.entries


@pytest.mark.integration
class TestEarlyStop:
    """A halted run still writes a complete document."""

    def test_halt_keeps_prior_mutations(self, sample_json):
        """Test stopping at the second header."""
        visited = []
        runtime = FilterRuntime()

        @runtime.rule("Header")
        def upcase_then_stop(node, context):
            visited.append(stringify(node))
            for child in node.children:
                if child.kind == "Str":
                    child.text = child.text.upper()
            if len(visited) == 2:
                return context.stop()

        runtime.add_rule("CodeBlock", lambda n, context: visited.append("code"))

        result, data = run_filter(runtime, sample_json)

        assert result.halted
        assert visited == ["An Introduction", "Inside"]
        document = decode_document(json.dumps(data))
        assert len(document.blocks) == 6
        assert stringify(document.blocks[0]) == "AN INTRODUCTION"
        assert stringify(document.blocks[3]) == "INSIDE"
        assert document.blocks[4].text == "print('hi')"

    def test_halt_before_any_edit_writes_input_unchanged(self, sample_json):
        """Test stopping at the first block."""
        runtime = FilterRuntime()
        runtime.add_rule("Header", lambda n, context: context.stop())

        result, data = run_filter(runtime, sample_json)

        assert result.visited == 2
        assert data == json.loads(sample_json)


@pytest.mark.integration
class TestTypicalFilters:
    """Filters of the kind people write for pandoc."""

    def test_numbered_chapters(self, sample_json):
        """Test numbering level 1 headers and counting all of them."""
        runtime = FilterRuntime()

        @runtime.rule("Header")
        def number(node, context):
            if node.level == 1:
                count = context.get_shared("chapter", 0) + 1
                context.set_shared("chapter", count)
                context.set_inner_markup(f"Chapter {count}. {context.inner_markup()}")
            context.set_shared("headers", context.get_shared("headers", 0) + 1)

        @runtime.rule("HorizontalRule")
        def record(node, context):
            context.metadata.set("filtered-for", context.target_format)

        _, data = run_filter(runtime, sample_json, "latex")

        document = decode_document(json.dumps(data))
        assert stringify(document.blocks[0]) == "Chapter 1. An Introduction"
        assert stringify(document.blocks[3].children[0]) == "Inside"
        assert document.meta.entries["filtered-for"] == MetaString("latex")

    def test_replace_images_with_links(self, sample_json):
        """Test swapping nodes for new ones."""
        runtime = FilterRuntime()

        @runtime.rule("Para > Image")
        def to_link(node, context):
            node.replace_with(make_node("Link", list(node.children), attr=node.attr, target=node.target))

        _, data = run_filter(runtime, sample_json)

        last = data["blocks"][1]["c"][-1]
        assert last["t"] == "Link"
        assert last["c"][2] == ["cat.png", ""]

    def test_sibling_selector_with_distance(self, sample_json):
        """Test tagging code that follows a div."""
        tagged = []
        runtime = FilterRuntime()
        runtime.add_rule("Div + CodeBlock", lambda n, context: tagged.append(n.text))
        runtime.add_rule("Div +1 CodeBlock", lambda n, context: tagged.append("adjacent"))

        run_filter(runtime, sample_json)

        assert tagged == ["print('hi')"]

    def test_v1_in_v1_out(self, sample_v1_json):
        """Test that the input layout is kept."""
        runtime = FilterRuntime()

        @runtime.rule("Str")
        def shout(node, context):
            node.text = node.text.upper()

        _, data = run_filter(runtime, sample_v1_json)

        assert isinstance(data, list)
        assert data[0]["unMeta"]["draft"] == node("MetaBool", True)
        assert data[1][0]["c"][2] == words("AN INTRODUCTION")
