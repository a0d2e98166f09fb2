#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for the filter runtime."""

import io
import json

import pytest
from utils import document_json, header, node, para, words

from panfilter import (
    Document,
    FilterContext,
    FilterError,
    FilterOptions,
    FilterRuntime,
    FilterSignal,
    MetaBool,
    MetaString,
    PathNotFoundError,
    Rule,
    SelectorSyntaxError,
    decode_document,
    make_node,
    stringify,
)


@pytest.fixture
def runtime():
    """Create a runtime without rules."""
    return FilterRuntime()


@pytest.mark.unit
class TestRegistration:
    """Tests for adding rules."""

    def test_add_rule(self, runtime):
        """Test registering an action."""

        def action(node, context):
            return None

        runtime.add_rule("Para", action)

        assert runtime.rules == [Rule("Para", action)]

    def test_rule_decorator(self, runtime):
        """Test the decorator form."""

        @runtime.rule("Header")
        def action(node, context):
            return None

        assert runtime.rules[0].selector == "Header"
        assert runtime.rules[0].action is action

    def test_rules_in_constructor(self):
        """Test rules given as pairs and Rule objects."""

        def action(node, context):
            return None

        runtime = FilterRuntime(rules=[("Para", action), Rule("Str", action)])

        assert [rule.selector for rule in runtime.rules] == ["Para", "Str"]

    def test_non_callable_action(self, runtime):
        """Test that actions must be callable."""
        with pytest.raises(TypeError):
            runtime.add_rule("Para", "not callable")

    def test_selector_errors_surface_before_traversal(self, runtime, sample_document):
        """Test that a bad selector fails before any action runs."""
        calls = []
        runtime.add_rule("Para", lambda node, context: calls.append(node))
        runtime.add_rule("Para >", lambda node, context: None)

        with pytest.raises(SelectorSyntaxError):
            runtime.apply(sample_document)

        assert calls == []


@pytest.mark.unit
class TestDispatch:
    """Tests for visiting and dispatching."""

    def test_document_is_visited_first(self, runtime, sample_document):
        """Test the history of a full run."""
        seen = []
        runtime.add_rule("Block", lambda node, context: seen.append(list(context.history)))

        result = runtime.apply(sample_document)

        assert result.visited == 27
        assert not result.halted
        assert seen[0][0] is sample_document

    def test_rules_run_in_registration_order(self, runtime):
        """Test ordering of rules for one node."""
        order = []
        runtime.add_rule("Para", lambda node, context: order.append("first"))
        runtime.add_rule("Block", lambda node, context: order.append("second"))

        runtime.apply(Document(children=[para("a")]))

        assert order == ["first", "second"]

    def test_context_fields(self, runtime):
        """Test what actions see in the context."""
        captured = {}

        def action(node, context):
            captured["node"] = context.current_node is node
            captured["format"] = context.target_format
            captured["last"] = context.history[-1] is node

        runtime.add_rule("Para", action)
        runtime.apply(Document(children=[para("a")]), target_format="html")

        assert captured == {"node": True, "format": "html", "last": True}

    def test_in_place_edits(self, runtime, sample_document):
        """Test mutating visited nodes."""

        @runtime.rule("Header")
        def demote(node, context):
            node.level += 1

        runtime.apply(sample_document)

        levels = [block.level for block in sample_document.blocks if block.kind == "Header"]
        assert levels == [2]
        assert sample_document.blocks[3].children[0].level == 3

    def test_shared_state(self, runtime, sample_document):
        """Test passing data between actions."""

        @runtime.rule("Image")
        def count(node, context):
            context.set_shared("images", context.get_shared("images", 0) + 1)

        @runtime.rule("HorizontalRule")
        def report(node, context):
            context.metadata.replace("image-count", str(context.get_shared("images")))

        runtime.apply(sample_document)

        assert sample_document.meta["image-count"] == MetaString("1")

    def test_child_selector_in_run(self, runtime, sample_document):
        """Test a child-of selector against a real traversal."""
        found = []
        runtime.add_rule("Div > Header", lambda node, context: found.append(stringify(node)))

        runtime.apply(sample_document)

        assert found == ["Inside"]

    def test_occurrence_selector_in_run(self, runtime, sample_document):
        """Test an occurrence selector against a real traversal."""
        found = []
        runtime.add_rule("Header + Image", lambda node, context: found.append(node.target.url))
        runtime.add_rule("Image + Header", lambda node, context: found.append(stringify(node)))

        runtime.apply(sample_document)

        assert found == ["cat.png", "Inside"]

    def test_unexpected_return_value_is_ignored(self, runtime, caplog):
        """Test that odd return values log a warning."""
        runtime.add_rule("Para", lambda node, context: "oops")

        with caplog.at_level("WARNING", logger="panfilter.filter"):
            result = runtime.apply(Document(children=[para("a")]))

        assert not result.halted
        assert "Ignoring unexpected return value" in caplog.text

    def test_inner_markup_from_context(self, runtime):
        """Test the context's markup helpers."""

        @runtime.rule("Header")
        def prefix(node, context):
            if not context.get_shared("done"):
                context.set_shared("done", True)
                context.set_inner_markup("1. " + context.inner_markup())

        doc = Document(children=[header(1, "Intro")])
        runtime.apply(doc)

        assert stringify(doc.blocks[0]) == "1. Intro"

    def test_runtime_is_reusable(self, runtime):
        """Test that state does not leak between runs."""
        runtime.add_rule("Para", lambda node, context: context.set_shared("n", context.get_shared("n", 0) + 1))
        counts = []
        runtime.add_rule("Para", lambda node, context: counts.append(context.get_shared("n")))

        runtime.apply(Document(children=[para("a")]))
        runtime.apply(Document(children=[para("b")]))

        assert counts == [1, 1]


@pytest.mark.unit
class TestReplacement:
    """Tests for replacing the visited node."""

    def test_replacement_law(self, runtime):
        """Test that the replacement takes over the history slot."""
        doc = Document(children=[para("old"), para("next")])
        new = header(1, "new")
        observed = []

        @runtime.rule("Para")
        def replace(node, context):
            if node.children[0].text == "old":
                index = len(context.history) - 1
                node.replace_with(new)
                observed.append(index)

        @runtime.rule("Header")
        def check(node, context):
            observed.append((context.current_node is new, context.history[-1] is new, len(context.history) - 1))

        runtime.apply(doc)

        assert observed == [1, (True, True, 1)]
        assert doc.blocks[0] is new

    def test_no_duplicate_history_entry(self, runtime):
        """Test the history after a replacement."""
        doc = Document(children=[para("old")])
        histories = []

        @runtime.rule("Para")
        def replace(node, context):
            node.replace_with(make_node("Plain", [make_node("Str", text="new")]))

        @runtime.rule("Str")
        def record(node, context):
            histories.append([entry.kind for entry in context.history])

        runtime.apply(doc)

        assert histories == [["Document", "Plain", "Str"]]

    def test_remaining_rules_see_old_node(self, runtime):
        """Test that later rules in the same dispatch get the replaced node."""
        doc = Document(children=[para("old")])
        seen = []

        runtime.add_rule("Para", lambda node, context: node.replace_with(header(1, "h")))
        runtime.add_rule("Para", lambda node, context: seen.append((node.kind, node.has_been_replaced)))

        runtime.apply(doc)

        assert seen == [("Para", True)]

    def test_replacement_children_are_walked(self, runtime):
        """Test that the old node's children are not visited."""
        doc = Document(children=[para("old")])
        texts = []
        runtime.add_rule("Para", lambda node, context: node.replace_with(header(1, "new")))
        runtime.add_rule("Str", lambda node, context: texts.append(node.text))

        runtime.apply(doc)

        assert texts == ["new"]

    def test_replacement_visit_counts(self, runtime):
        """Test that the replacement visit is counted."""
        doc = Document(children=[para("old")])
        runtime.add_rule("Para", lambda node, context: node.replace_with(header(1, "new")))

        result = runtime.apply(doc)

        # Document, Para, Header (replacement), Str
        assert result.visited == 4

    def test_wrap_in_div(self, runtime):
        """Test replacing a node with a container holding it."""
        doc = Document(children=[para("a")])

        @runtime.rule("Para")
        def wrap(node, context):
            if node.parent is context.document:
                node.replace_with(make_node("Div", [node]))

        result = runtime.apply(doc)

        assert [block.kind for block in doc.blocks] == ["Div"]
        assert doc.blocks[0].children[0].kind == "Para"
        assert result.visited == 5

    def test_wrap_by_appending_after_replace(self, runtime):
        """Test moving the visited node into its replacement."""
        doc = Document(children=[para("a")])
        kinds = []

        @runtime.rule("Block")
        def wrap(node, context):
            kinds.append(node.kind)
            if node.kind == "Para" and node.parent is context.document:
                div = make_node("Div")
                node.replace_with(div)
                div.append(node)

        result = runtime.apply(doc)

        assert kinds == ["Para", "Div", "Para"]
        assert doc.blocks[0].children[0].kind == "Para"
        assert not doc.blocks[0].children[0].has_been_replaced
        assert result.visited == 5


@pytest.mark.unit
class TestEarlyStop:
    """Tests for halting a run."""

    def test_stop_at_first_match(self, runtime, sample_document):
        """Test that no later node is visited after a stop."""
        visited = []
        runtime.add_rule("Inline", lambda node, context: visited.append(node.kind))
        runtime.add_rule("Para", lambda node, context: context.stop())

        result = runtime.apply(sample_document)

        assert result.halted
        assert visited == ["Str", "Space", "Str"]
        assert result.visited == 6

    def test_stop_skips_later_rules(self, runtime):
        """Test that rules after the stopping rule do not run."""
        calls = []
        runtime.add_rule("Para", lambda node, context: FilterSignal.HALT)
        runtime.add_rule("Para", lambda node, context: calls.append(node))

        runtime.apply(Document(children=[para("a")]))

        assert calls == []

    def test_stop_keeps_prior_edits_and_metadata(self, runtime, sample_document):
        """Test the state of a halted document."""

        @runtime.rule("Header")
        def edit(node, context):
            node.level = 4
            context.metadata.replace("edited", True)
            return context.stop()

        runtime.apply(sample_document)

        assert sample_document.blocks[0].level == 4
        assert sample_document.meta["edited"] == MetaBool(True)

    def test_continue_signal(self, runtime):
        """Test that CONTINUE is the same as None."""
        runtime.add_rule("Para", lambda node, context: FilterSignal.CONTINUE)

        assert not runtime.apply(Document(children=[para("a")])).halted


@pytest.mark.unit
class TestActionErrors:
    """Tests for errors raised by actions."""

    def test_filter_error_propagates_unchanged(self, runtime):
        """Test that panfilter errors are not wrapped."""
        error = FilterError("stop here")

        def action(node, context):
            raise error

        runtime.add_rule("Para", action)

        with pytest.raises(FilterError) as exc_info:
            runtime.apply(Document(children=[para("a")]))

        assert exc_info.value is error

    def test_metadata_errors_propagate(self, runtime):
        """Test a metadata path error raised inside an action."""
        runtime.add_rule("Para", lambda node, context: context.metadata.replace("a.b", 1))

        with pytest.raises(PathNotFoundError):
            runtime.apply(Document(children=[para("a")]))

    def test_other_errors_are_wrapped(self, runtime, caplog):
        """Test wrapping of unexpected exceptions."""

        def action(node, context):
            raise KeyError("missing")

        runtime.add_rule("Para", action)

        with caplog.at_level("ERROR", logger="panfilter.filter"):
            with pytest.raises(FilterError) as exc_info:
                runtime.apply(Document(children=[para("a")]))

        assert isinstance(exc_info.value.original_error, KeyError)
        assert exc_info.value.selector == "Para"
        assert "failed on Para node" in caplog.text

    def test_no_output_on_error(self, runtime, make_input):
        """Test that a failed run writes nothing."""
        runtime.add_rule("Str", lambda node, context: 1 / 0)
        output = io.StringIO()

        with pytest.raises(FilterError):
            runtime.run(make_input(), output)

        assert output.getvalue() == ""


@pytest.fixture
def make_input():
    """Provide a builder of input streams holding a small document."""

    def _make():
        return io.StringIO(document_json([node("Para", words("hello world"))], {"k": node("MetaString", "v")}))

    return _make


@pytest.mark.unit
class TestProcessBoundary:
    """Tests for filter_text and run."""

    def test_identity_run(self, runtime, sample_json):
        """Test that a run without rules reproduces its input."""
        output = io.StringIO()
        runtime.run(io.StringIO(sample_json), output)

        assert json.loads(output.getvalue()) == json.loads(sample_json)

    def test_filter_text(self, runtime):
        """Test filtering JSON text."""
        runtime.add_rule("Str", lambda node, context: setattr(node, "text", node.text.upper()))
        text = document_json([node("Para", words("hello world"))])

        data = json.loads(runtime.filter_text(text))

        assert data["blocks"][0]["c"][0] == {"t": "Str", "c": "HELLO"}

    def test_v1_input_gives_v1_output(self, runtime, sample_v1_json):
        """Test that the input layout is kept."""
        assert isinstance(json.loads(runtime.filter_text(sample_v1_json)), list)

    def test_options_control_output(self, sample_v1_json):
        """Test output schema and indentation options."""
        runtime = FilterRuntime(options=FilterOptions(output_schema="v2", json_indent=2))
        output = runtime.filter_text(sample_v1_json)

        assert isinstance(json.loads(output), dict)
        assert output.startswith("{\n  ")

    def test_run_halted_output_is_complete(self, runtime, make_input):
        """Test that a halted run still writes a full document."""
        runtime.add_rule("Para", lambda node, context: context.stop())
        output = io.StringIO()

        result = runtime.run(make_input(), output, "html")

        assert result.halted
        assert decode_document(output.getvalue()) == decode_document(make_input().getvalue())


@pytest.mark.unit
class TestFilterContext:
    """Tests for FilterContext helpers."""

    def test_markup_without_current_node(self):
        """Test the error when no node is being visited."""
        doc = Document()
        runtime = FilterRuntime()
        context = FilterContext(document=doc, metadata=None, renderer=runtime.renderer)

        with pytest.raises(FilterError):
            context.inner_markup()

    def test_stop_returns_halt(self):
        """Test the stop helper."""
        context = FilterContext(document=Document(), metadata=None, renderer=FilterRuntime().renderer)

        assert context.stop() is FilterSignal.HALT
        assert context.stop_requested
