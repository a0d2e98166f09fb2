#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/ast/shapes.py
"""Per-kind content shapes of the pandoc JSON format.

Each kind maps to an ordered tuple of slots describing the positional layout
of its ``"c"`` contents. A slot is either a payload value (stored under its
name in ``Node.payload``) or a child slot (decoded into ``Node.children``).

Layout rules shared by the decoder and the encoder:

- no slots: ``"c"`` is omitted (Space, HorizontalRule, ...)
- one slot: ``"c"`` is that slot's value (Para: ``[Inline]``)
- several slots: ``"c"`` is a positional array
  (Link: ``[Attr, [Inline], Target]``)

Child slots hold either a run of nodes (``inlines``, ``blocks``, ``parts``)
or exactly one structural part (``part``). A shape has at most one run
slot; the ``children`` list of a node is the concatenation of its child
slots in order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from panfilter.ast.nodes import Attr, ListAttributes, Node, Target
from panfilter.constants import (
    ALIGNMENTS,
    BLOCK_KINDS,
    INLINE_KINDS,
    MATH_TYPES,
    PART_KINDS,
    QUOTE_TYPES,
)
from panfilter.exceptions import UnknownNodeKindError

# Value codecs
INT = "int"
TEXT = "text"
ATTR = "attr"
TARGET = "target"
LIST_ATTRIBUTES = "list_attributes"
ENUM = "enum"
ENUM_LIST = "enum_list"
FLOAT_LIST = "float_list"
CITATIONS = "citations"

# Child codecs
INLINES = "inlines"
BLOCKS = "blocks"
PARTS = "parts"
PART = "part"

CHILD_CODECS = frozenset({INLINES, BLOCKS, PARTS, PART})
RUN_CODECS = frozenset({INLINES, BLOCKS, PARTS})


@dataclass(frozen=True)
class Slot:
    """One positional element of a kind's contents.

    Parameters
    ----------
    codec : str
        How the raw JSON value is read and written
    name : str or None
        Payload key for value slots, None for child slots
    choices : tuple of str or None
        Allowed constructor names for enum codecs
    part_kind : str or None
        Structural part kind for ``parts``/``part`` slots
    default : callable or None
        Factory for the payload default used by :func:`make_node`

    """

    codec: str
    name: Optional[str] = None
    choices: Optional[tuple[str, ...]] = None
    part_kind: Optional[str] = None
    default: Optional[Callable[[], Any]] = None

    @property
    def is_child(self) -> bool:
        return self.codec in CHILD_CODECS

    @property
    def is_run(self) -> bool:
        return self.codec in RUN_CODECS


def _value(name: str, codec: str, default: Callable[[], Any], choices: Optional[tuple[str, ...]] = None) -> Slot:
    return Slot(codec=codec, name=name, choices=choices, default=default)


def _parts(kind: str) -> Slot:
    return Slot(codec=PARTS, part_kind=kind)


def _part(kind: str) -> Slot:
    return Slot(codec=PART, part_kind=kind)


_INLINE_RUN = Slot(codec=INLINES)
_BLOCK_RUN = Slot(codec=BLOCKS)
_ATTR = _value("attr", ATTR, Attr)
_TEXT = _value("text", TEXT, str)
_FORMAT = _value("format", TEXT, lambda: "html")
_TARGET = _value("target", TARGET, Target)

SHAPES: dict[str, tuple[Slot, ...]] = {
    # Blocks
    "Plain": (_INLINE_RUN,),
    "Para": (_INLINE_RUN,),
    "LineBlock": (_parts("Line"),),
    "CodeBlock": (_ATTR, _TEXT),
    "RawBlock": (_FORMAT, _TEXT),
    "BlockQuote": (_BLOCK_RUN,),
    "OrderedList": (_value("list_attributes", LIST_ATTRIBUTES, ListAttributes), _parts("ListItem")),
    "BulletList": (_parts("ListItem"),),
    "DefinitionList": (_parts("DefinitionItem"),),
    "Header": (_value("level", INT, lambda: 1), _ATTR, _INLINE_RUN),
    "HorizontalRule": (),
    "Table": (
        _part("TableCaption"),
        _value("alignments", ENUM_LIST, list, ALIGNMENTS),
        _value("widths", FLOAT_LIST, list),
        _part("TableHeader"),
        _parts("TableRow"),
    ),
    "Div": (_ATTR, _BLOCK_RUN),
    "Null": (),
    # Inlines
    "Str": (_TEXT,),
    "Emph": (_INLINE_RUN,),
    "Strong": (_INLINE_RUN,),
    "Strikeout": (_INLINE_RUN,),
    "Superscript": (_INLINE_RUN,),
    "Subscript": (_INLINE_RUN,),
    "SmallCaps": (_INLINE_RUN,),
    "Quoted": (_value("quote_type", ENUM, lambda: "DoubleQuote", QUOTE_TYPES), _INLINE_RUN),
    "Cite": (_value("citations", CITATIONS, list), _INLINE_RUN),
    "Code": (_ATTR, _TEXT),
    "Space": (),
    "SoftBreak": (),
    "LineBreak": (),
    "Math": (_value("math_type", ENUM, lambda: "InlineMath", MATH_TYPES), _TEXT),
    "RawInline": (_FORMAT, _TEXT),
    "Link": (_ATTR, _INLINE_RUN, _TARGET),
    "Image": (_ATTR, _INLINE_RUN, _TARGET),
    "Note": (_BLOCK_RUN,),
    "Span": (_ATTR, _INLINE_RUN),
    # Structural parts
    "ListItem": (_BLOCK_RUN,),
    "Line": (_INLINE_RUN,),
    "DefinitionItem": (_part("DefinitionTerm"), _parts("Definition")),
    "DefinitionTerm": (_INLINE_RUN,),
    "Definition": (_BLOCK_RUN,),
    "TableCaption": (_INLINE_RUN,),
    "TableHeader": (_parts("TableCell"),),
    "TableRow": (_parts("TableCell"),),
    "TableCell": (_BLOCK_RUN,),
}

# The shape table must cover the whole vocabulary
assert set(SHAPES) == set(BLOCK_KINDS) | set(INLINE_KINDS) | set(PART_KINDS)


def get_shape(kind: str) -> tuple[Slot, ...]:
    """Return the slots of ``kind``.

    Raises
    ------
    UnknownNodeKindError
        If ``kind`` has no shape

    """
    try:
        return SHAPES[kind]
    except KeyError:
        raise UnknownNodeKindError(kind) from None


def child_codec(kind: str) -> Optional[str]:
    """Return the run codec holding the children of ``kind``, if any.

    Returns ``"inlines"`` for inline containers, ``"blocks"`` for block
    containers, ``"parts"`` for nodes built from structural parts, and None
    for leaves. The Document holds blocks.
    """
    if kind == "Document":
        return BLOCKS
    for slot in get_shape(kind):
        if slot.is_run:
            return slot.codec
    return None


def payload_names(kind: str) -> list[str]:
    """Return the payload keys carried by ``kind``, in wire order."""
    return [slot.name for slot in get_shape(kind) if slot.name is not None]


def make_node(kind: str, children: Optional[list[Node]] = None, **payload: Any) -> Node:
    """Create a node, filling payload defaults from the shape table.

    Parameters
    ----------
    kind : str
        Vocabulary or structural part kind
    children : list of Node, optional
        Child nodes
    **payload
        Payload values; unspecified slots get their defaults

    Returns
    -------
    Node
        The new node. Parent links of the children are set once the node
        is attached to a tree and walked.

    Raises
    ------
    UnknownNodeKindError
        If ``kind`` is not in the vocabulary
    TypeError
        If a payload key is not part of the kind's shape

    Examples
    --------
    >>> link = make_node("Link", [make_node("Str", text="home")], target=Target("/", ""))
    >>> link.attr
    Attr(identifier='', classes=[], attributes=[])

    """
    slots = get_shape(kind)
    names = {slot.name for slot in slots if slot.name is not None}
    unknown = set(payload) - names
    if unknown:
        raise TypeError(f"{kind} has no payload field(s): {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {}
    for slot in slots:
        if slot.name is None:
            continue
        if slot.name in payload:
            values[slot.name] = payload[slot.name]
        elif slot.default is not None:
            values[slot.name] = slot.default()

    return Node(kind, list(children or []), values)
