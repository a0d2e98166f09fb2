#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/ast/nodes.py
"""AST node model for pandoc documents.

Every element of a pandoc document is a :class:`Node`: a kind tag from the
closed vocabulary, an ordered list of owned children, and a kind-specific
payload. The payload slots each kind carries are listed in
:mod:`panfilter.ast.shapes`, which is also what the JSON codec is driven by.

Node Vocabulary
---------------
Block kinds:
    Plain, Para, LineBlock, CodeBlock, RawBlock, BlockQuote, OrderedList,
    BulletList, DefinitionList, Header, HorizontalRule, Table, Div, Null

Inline kinds:
    Str, Emph, Strong, Strikeout, Superscript, Subscript, SmallCaps, Quoted,
    Cite, Code, Space, SoftBreak, LineBreak, Math, RawInline, Link, Image,
    Note, Span

Structural parts group children where the wire format nests plain lists
(list items, table rows and cells, definition items, line block lines).
Parts are real nodes in the tree but traversal and parent lookups look
through them.

Payload values are reachable as attributes:

    >>> header = make_node("Header", [make_node("Str", text="Intro")], level=2)
    >>> header.level
    2
    >>> header.level = 3
    >>> header.payload["level"]
    3

"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Any, Optional

from panfilter.constants import BLOCK_KINDS, DOCUMENT_KIND, INLINE_KINDS, PART_KINDS
from panfilter.exceptions import FilterError, UnknownNodeKindError

_BLOCK_SET = frozenset(BLOCK_KINDS)
_INLINE_SET = frozenset(INLINE_KINDS)
_PART_SET = frozenset(PART_KINDS)
_NODE_FIELDS = frozenset({"kind", "children", "payload"})


@dataclass
class Attr:
    """Identifier, classes and key-value attributes of a node.

    Parameters
    ----------
    identifier : str, default = ""
        The element id
    classes : list of str, default = empty list
        CSS-like classes
    attributes : list of tuple, default = empty list
        Ordered ``(key, value)`` pairs

    """

    identifier: str = ""
    classes: list[str] = field(default_factory=list)
    attributes: list[tuple[str, str]] = field(default_factory=list)

    def has_class(self, name: str) -> bool:
        """Return True if ``name`` is one of the classes."""
        return name in self.classes

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of the first attribute named ``key``."""
        for attr_key, value in self.attributes:
            if attr_key == key:
                return value
        return default

    def set(self, key: str, value: str) -> None:
        """Set attribute ``key``, replacing an existing value in place."""
        for index, (attr_key, _) in enumerate(self.attributes):
            if attr_key == key:
                self.attributes[index] = (key, value)
                return
        self.attributes.append((key, value))


@dataclass
class Target:
    """URL and title of a Link or Image."""

    url: str = ""
    title: str = ""


@dataclass
class ListAttributes:
    """Start number, numbering style and delimiter of an OrderedList."""

    start: int = 1
    style: str = "DefaultStyle"
    delimiter: str = "DefaultDelim"


@dataclass
class Citation:
    """A single citation inside a Cite node.

    Parameters
    ----------
    id : str
        Citation key
    prefix : list of Node, default = empty list
        Inlines printed before the citation
    suffix : list of Node, default = empty list
        Inlines printed after the citation
    mode : str, default = "NormalCitation"
        One of AuthorInText, SuppressAuthor, NormalCitation
    note_num : int, default = 0
        Note number assigned by pandoc
    hash : int, default = 0
        Hash assigned by pandoc

    """

    id: str
    prefix: list[Node] = field(default_factory=list)
    suffix: list[Node] = field(default_factory=list)
    mode: str = "NormalCitation"
    note_num: int = 0
    hash: int = 0


@dataclass
class Node:
    """A node of the document tree.

    Parameters
    ----------
    kind : str
        Vocabulary kind, structural part kind, or ``"Document"``
    children : list of Node, default = empty list
        Owned child nodes in document order
    payload : dict, default = empty dict
        Kind-specific values; see :data:`panfilter.ast.shapes.SHAPES`

    Notes
    -----
    The parent reference is a weak reference and never owns the parent. It is
    set by the decoder and by the structural editing methods, and refreshed by
    traversal, so it is reliable for any node handed to a filter action.

    """

    kind: str
    children: list[Node] = field(default_factory=list)
    payload: dict[str, Any] = field(default_factory=dict)
    _parent: Optional[weakref.ReferenceType[Node]] = field(default=None, init=False, repr=False, compare=False)
    _replacement: Optional[Node] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Reject kinds outside the vocabulary."""
        if self.kind not in _BLOCK_SET and self.kind not in _INLINE_SET and self.kind not in _PART_SET:
            if self.kind != DOCUMENT_KIND:
                raise UnknownNodeKindError(self.kind)

    def __getattr__(self, name: str) -> Any:
        if not name.startswith("_"):
            payload = self.__dict__.get("payload")
            if payload is not None and name in payload:
                return payload[name]
        raise AttributeError(f"{self.__dict__.get('kind', type(self).__name__)} node has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        payload = self.__dict__.get("payload")
        if payload is not None and name in payload and name not in _NODE_FIELDS:
            payload[name] = value
        else:
            object.__setattr__(self, name, value)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @property
    def is_block(self) -> bool:
        return self.kind in _BLOCK_SET

    @property
    def is_inline(self) -> bool:
        return self.kind in _INLINE_SET

    @property
    def is_part(self) -> bool:
        """True for structural grouping nodes such as ListItem or TableCell."""
        return self.kind in _PART_SET

    @property
    def is_document(self) -> bool:
        return self.kind == DOCUMENT_KIND

    @property
    def is_leaf(self) -> bool:
        return not self.children

    # ------------------------------------------------------------------
    # Parent links
    # ------------------------------------------------------------------

    @property
    def structural_parent(self) -> Optional[Node]:
        """The node whose ``children`` list holds this node, parts included."""
        if self._parent is None:
            return None
        return self._parent()

    @property
    def parent(self) -> Optional[Node]:
        """The nearest ancestor that is a vocabulary node or the Document.

        Structural parts are skipped, so the parent of a Para inside a
        BulletList item is the BulletList.
        """
        ancestor = self.structural_parent
        while ancestor is not None and ancestor.is_part:
            ancestor = ancestor.structural_parent
        return ancestor

    def ancestors(self) -> list[Node]:
        """Return the chain of parents from nearest to the root."""
        result = []
        ancestor = self.parent
        while ancestor is not None:
            result.append(ancestor)
            ancestor = ancestor.parent
        return result

    def _adopt(self, child: Node) -> Node:
        object.__setattr__(child, "_parent", weakref.ref(self))
        return child

    def adopt_children(self) -> None:
        """Point the parent reference of every direct child at this node."""
        for child in self.children:
            self._adopt(child)

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def has_class(self, name: str) -> bool:
        """Return True if this node has an ``attr`` with class ``name``."""
        attr = self.payload.get("attr")
        return attr is not None and attr.has_class(name)

    # ------------------------------------------------------------------
    # Structural editing
    # ------------------------------------------------------------------

    def index_of(self, child: Node) -> Optional[int]:
        """Return the position of ``child`` by identity, or None."""
        for index, candidate in enumerate(self.children):
            if candidate is child:
                return index
        return None

    def _take(self, node: Node) -> Node:
        """Detach ``node`` from the parent still holding it, then adopt it."""
        previous = node.structural_parent
        if previous is not None:
            index = previous.index_of(node)
            if index is not None:
                del previous.children[index]
        return self._adopt(node)

    def append(self, node: Node) -> Node:
        """Add ``node`` as the last child, moving it out of any other parent."""
        self.children.append(self._take(node))
        return node

    def prepend(self, node: Node) -> Node:
        self.children.insert(0, self._take(node))
        return node

    def insert(self, index: int, node: Node) -> Node:
        self.children.insert(index, self._take(node))
        return node

    def remove(self, child: Node) -> Node:
        """Remove ``child`` from this node and return it.

        Raises
        ------
        ValueError
            If ``child`` is not a direct child of this node

        """
        index = self.index_of(child)
        if index is None:
            raise ValueError(f"{child.kind} node is not a child of this {self.kind} node")
        del self.children[index]
        object.__setattr__(child, "_parent", None)
        return child

    def replace(self, child: Node, new_node: Node) -> Node:
        """Put ``new_node`` where ``child`` is and mark ``child`` as replaced.

        A ``new_node`` attached elsewhere is moved out of its old parent first.

        Raises
        ------
        ValueError
            If ``child`` is not a direct child of this node

        """
        index = self.index_of(child)
        if index is None:
            raise ValueError(f"{child.kind} node is not a child of this {self.kind} node")
        if new_node is child:
            return child
        ancestor: Optional[Node] = self
        while ancestor is not None:
            if ancestor is new_node:
                raise ValueError(f"Replacing {child.kind} with {new_node.kind} would create a cycle")
            ancestor = ancestor.structural_parent
        self._take(new_node)
        index = self.index_of(child)
        self.children[index] = new_node
        object.__setattr__(child, "_replacement", new_node)
        return new_node

    def replace_with(self, new_node: Node) -> Node:
        """Swap this node for ``new_node`` in its parent.

        Traversal continues from ``new_node``: it is visited next, at the
        same history position, and its children are walked instead of this
        node's.

        Raises
        ------
        FilterError
            If this node is not attached to a parent

        """
        parent = self.structural_parent
        if parent is None or parent.index_of(self) is None:
            raise FilterError(f"Cannot replace a {self.kind} node that has no parent")
        return parent.replace(self, new_node)

    @property
    def has_been_replaced(self) -> bool:
        return self._replacement is not None

    @property
    def replacement(self) -> Optional[Node]:
        return self._replacement

    def _clear_replacement(self) -> None:
        if self._replacement is not None:
            object.__setattr__(self, "_replacement", None)

    def final_replacement(self) -> Node:
        """Follow the replacement chain to the node now in the tree."""
        node = self
        while node._replacement is not None:
            node = node._replacement
        return node
