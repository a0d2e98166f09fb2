#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/ast/__init__.py
"""Abstract Syntax Tree of pandoc documents.

The module consists of several components:

- nodes: the Node sum type and its payload records
- shapes: the per-kind content layout table
- meta: metadata values and YAML conversion
- document: the Document root node
- serialization: pandoc JSON decoding and encoding
- traversal: the edit-tolerant depth-first walker
- renderer: markup conversion through a Renderer

Examples
--------
    >>> from panfilter.ast import decode_document, encode_document, walk
    >>> doc = decode_document(json_text)
    >>> for node in walk(doc):
    ...     if node.kind == "Header":
    ...         node.level += 1
    >>> output = encode_document(doc)

"""

from __future__ import annotations

from panfilter.ast.document import Document
from panfilter.ast.meta import (
    META_TYPES,
    MetaBlocks,
    MetaBool,
    MetaInlines,
    MetaList,
    MetaMap,
    MetaString,
    MetaValue,
    meta_from_python,
    meta_from_yaml,
)
from panfilter.ast.nodes import Attr, Citation, ListAttributes, Node, Target
from panfilter.ast.renderer import PlainTextRenderer, Renderer, get_inner_markup, row_texts, set_inner_markup, stringify
from panfilter.ast.serialization import (
    decode_document,
    decode_meta_map,
    decode_node,
    document_from_data,
    document_to_data,
    dump_document,
    encode_document,
    encode_meta_map,
    encode_meta_value,
    encode_node,
    load_document,
)
from panfilter.ast.shapes import SHAPES, Slot, child_codec, get_shape, make_node, payload_names
from panfilter.ast.traversal import DepthFirstWalker, walk

__all__ = [
    # Nodes
    "Attr",
    "Citation",
    "Document",
    "ListAttributes",
    "Node",
    "Target",
    # Shapes
    "SHAPES",
    "Slot",
    "child_codec",
    "get_shape",
    "make_node",
    "payload_names",
    # Metadata values
    "META_TYPES",
    "MetaBlocks",
    "MetaBool",
    "MetaInlines",
    "MetaList",
    "MetaMap",
    "MetaString",
    "MetaValue",
    "meta_from_python",
    "meta_from_yaml",
    # Serialization
    "decode_document",
    "decode_meta_map",
    "decode_node",
    "document_from_data",
    "document_to_data",
    "dump_document",
    "encode_document",
    "encode_meta_map",
    "encode_meta_value",
    "encode_node",
    "load_document",
    # Traversal
    "DepthFirstWalker",
    "walk",
    # Rendering
    "PlainTextRenderer",
    "Renderer",
    "get_inner_markup",
    "row_texts",
    "set_inner_markup",
    "stringify",
]
