#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/ast/renderer.py
"""Conversion between node content and markup text.

Filters often find it easier to edit the markup of a node's content than to
build nodes by hand. That conversion belongs to the document converter, so it
is reached through the :class:`Renderer` protocol:

- ``render(children) -> str``: markup for a list of nodes
- ``parse(text) -> list[Node]``: block nodes for a piece of markup

:class:`PlainTextRenderer` is a dependency-free implementation that treats
markup as plain text. It is the default renderer of the filter runtime and is
sufficient for filters that only read or replace words.

Examples
--------
    >>> renderer = PlainTextRenderer()
    >>> header = make_node("Header", [make_node("Str", text="Intro")], level=1)
    >>> set_inner_markup(header, "Chapter 1. Intro", renderer)
    >>> get_inner_markup(header, renderer)
    'Chapter 1. Intro'

"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Protocol, Sequence, Union, runtime_checkable

from panfilter.ast.nodes import Node
from panfilter.ast.shapes import BLOCKS, INLINES, child_codec, make_node
from panfilter.exceptions import FilterError

_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n+")
_INLINE_TOKEN = re.compile(r"(\n)|([ \t]+)|([^\s]+)")

_QUOTES = {"SingleQuote": ("‘", "’"), "DoubleQuote": ("“", "”")}


@runtime_checkable
class Renderer(Protocol):
    """Converts between a node's children and markup text."""

    def render(self, children: Sequence[Node]) -> str:
        """Return the markup for ``children``."""
        ...

    def parse(self, text: str) -> list[Node]:
        """Return the block nodes described by ``text``."""
        ...


def _stringify_node(node: Node, out: list[str]) -> None:
    kind = node.kind
    if kind in ("Str", "Code", "Math"):
        out.append(node.text)
    elif kind in ("Space", "SoftBreak", "LineBreak"):
        out.append(" ")
    elif kind in ("RawInline", "RawBlock", "Note", "Null", "HorizontalRule"):
        return
    elif kind == "CodeBlock":
        out.append(node.text)
    elif kind == "Quoted":
        opening, closing = _QUOTES[node.quote_type]
        out.append(opening)
        _stringify_children(node.children, out)
        out.append(closing)
    else:
        _stringify_children(node.children, out)


def _stringify_children(children: Iterable[Node], out: list[str]) -> None:
    previous_block = False
    for child in children:
        is_block = not child.is_inline
        if is_block and previous_block:
            out.append("\n")
        _stringify_node(child, out)
        previous_block = is_block


def stringify(content: Union[Node, Sequence[Node]]) -> str:
    """Return the plain text of a node or a list of nodes.

    Formatting is dropped, spaces and breaks become single spaces, raw
    content and notes are omitted, and sibling blocks are separated by a
    newline.
    """
    out: list[str] = []
    if isinstance(content, Node):
        _stringify_node(content, out)
    else:
        _stringify_children(content, out)
    return "".join(out)


def _tokenize_inlines(text: str) -> list[Node]:
    inlines = []
    for match in _INLINE_TOKEN.finditer(text.strip()):
        newline, spaces, word = match.groups()
        if newline:
            inlines.append(make_node("SoftBreak"))
        elif spaces:
            inlines.append(make_node("Space"))
        else:
            inlines.append(make_node("Str", text=word))
    return inlines


class PlainTextRenderer:
    """Renderer that reads and writes plain text.

    ``render`` joins the plain text of blocks with blank lines. ``parse``
    turns every blank-line separated paragraph into a Para of Str, Space and
    SoftBreak nodes.
    """

    def render(self, children: Sequence[Node]) -> str:
        if children and all(child.is_inline for child in children):
            return stringify(children)
        return "\n\n".join(stringify(child) for child in children)

    def parse(self, text: str) -> list[Node]:
        blocks = []
        for paragraph in _PARAGRAPH_BREAK.split(text.strip()):
            if paragraph.strip():
                blocks.append(make_node("Para", _tokenize_inlines(paragraph)))
        return blocks


def get_inner_markup(node: Node, renderer: Renderer) -> str:
    """Return the markup of the children of ``node``."""
    return renderer.render(node.children)


def set_inner_markup(node: Node, text: str, renderer: Renderer) -> None:
    """Replace the children of ``node`` with the parse of ``text``.

    For inline containers a parse consisting of a single Para or Plain is
    unwrapped to its inlines.

    Raises
    ------
    FilterError
        If ``node`` holds no markup content (leaves, tables, lists) or the
        parsed content does not fit an inline container

    """
    codec = child_codec(node.kind)
    if codec not in (INLINES, BLOCKS):
        raise FilterError(f"{node.kind} node has no markup content to set")

    parsed = renderer.parse(text)
    if codec == INLINES:
        if len(parsed) == 1 and parsed[0].kind in ("Para", "Plain"):
            parsed = list(parsed[0].children)
        elif not all(child.is_inline for child in parsed):
            raise FilterError(f"Markup for a {node.kind} node must be a single paragraph of inline content")

    node.children[:] = parsed
    node.adopt_children()


def row_texts(row: Node, renderer: Optional[Renderer] = None) -> list[str]:
    """Return the markup of each cell of a table row or header.

    Each cell gives one string: the stripped markup of its blocks joined by
    newlines.

    Raises
    ------
    FilterError
        If ``row`` is not a TableRow or TableHeader

    """
    if row.kind not in ("TableRow", "TableHeader"):
        raise FilterError(f"Expected a TableRow or TableHeader node, got {row.kind}")

    renderer = renderer or PlainTextRenderer()
    return ["\n".join(renderer.render([block]).strip() for block in cell.children) for cell in row.children]
