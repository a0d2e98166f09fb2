#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/ast/document.py
"""The root node of a pandoc document."""

from __future__ import annotations

from dataclasses import dataclass, field

from panfilter.ast.meta import MetaMap
from panfilter.ast.nodes import Node
from panfilter.constants import DEFAULT_API_VERSION, DEFAULT_SCHEMA, DOCUMENT_KIND, SchemaVersion


@dataclass
class Document(Node):
    """Root document node.

    The children of a Document are its top-level blocks. Filters see the
    Document as the first visited node of every run.

    Parameters
    ----------
    kind : str, default = "Document"
        Always ``"Document"``
    children : list of Node, default = empty list
        Top-level block nodes
    meta : MetaMap, default = empty map
        Document metadata
    api_version : tuple of int
        pandoc API version written for the v2 schema
    schema : {"v1", "v2"}, default = "v2"
        Wire schema the document was read from

    Notes
    -----
    ``api_version`` and ``schema`` do not take part in equality, so the same
    content read from either schema compares equal.

    """

    kind: str = DOCUMENT_KIND
    meta: MetaMap = field(default_factory=MetaMap)
    api_version: tuple[int, ...] = field(default=DEFAULT_API_VERSION, compare=False)
    schema: SchemaVersion = field(default=DEFAULT_SCHEMA, compare=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.adopt_children()

    @property
    def blocks(self) -> list[Node]:
        return self.children
