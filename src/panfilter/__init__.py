"""panfilter - pandoc JSON filters in Python.

panfilter reads the JSON document pandoc produces with ``-t json`` or hands
to ``--filter`` programs, lets rules keyed by selectors edit it during one
depth-first pass, and writes the result back in the same wire layout.

Key Features
------------
- A single node type covering pandoc's block and inline vocabulary, with
  lossless decoding and encoding of both JSON document layouts
- Selectors with child-of (``Div > Header``) and occurrence
  (``Header +1 Para``) combinators
- Node replacement during traversal; the replacement is visited in place of
  the old node
- Dot-path access to document metadata, with YAML text accepted as values
- Early stop that still writes a complete document

Requirements
------------
- Python 3.10+
- PyYAML for metadata text and configuration files

Examples
--------
A filter script that turns every image into a link to itself:

    >>> from panfilter import FilterRuntime, make_node
    >>> runtime = FilterRuntime()
    >>>
    >>> @runtime.rule("Image")
    ... def link_images(node, context):
    ...     link = make_node("Link", [make_node("Str", text="image")], target=node.target)
    ...     node.replace_with(link)
    >>>
    >>> if __name__ == "__main__":
    ...     raise SystemExit(runtime.main())

Editing metadata without a traversal:

    >>> from panfilter import MetadataStore, decode_document
    >>> doc = decode_document(json_text)
    >>> store = MetadataStore(doc.meta)
    >>> store.set("title", "A better title")

"""

from __future__ import annotations

from panfilter.ast import (
    Attr,
    Citation,
    Document,
    ListAttributes,
    MetaBlocks,
    MetaBool,
    MetaInlines,
    MetaList,
    MetaMap,
    MetaString,
    MetaValue,
    Node,
    PlainTextRenderer,
    Renderer,
    Target,
    decode_document,
    decode_node,
    dump_document,
    encode_document,
    encode_node,
    load_document,
    make_node,
    meta_from_python,
    meta_from_yaml,
    row_texts,
    stringify,
    walk,
)
from panfilter.exceptions import (
    FilterError,
    MalformedInputError,
    PanfilterError,
    PathNotFoundError,
    SelectorSyntaxError,
    UnknownNodeKindError,
)
from panfilter.filter import FilterContext, FilterResult, FilterRuntime, FilterSignal, Rule
from panfilter.metadata import MetadataStore
from panfilter.options import FilterOptions, load_options
from panfilter.selectors import Selector, compile_selector

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Runtime
    "FilterContext",
    "FilterResult",
    "FilterRuntime",
    "FilterSignal",
    "Rule",
    # Selectors
    "Selector",
    "compile_selector",
    # Metadata
    "MetadataStore",
    "MetaBlocks",
    "MetaBool",
    "MetaInlines",
    "MetaList",
    "MetaMap",
    "MetaString",
    "MetaValue",
    "meta_from_python",
    "meta_from_yaml",
    # Nodes
    "Attr",
    "Citation",
    "Document",
    "ListAttributes",
    "Node",
    "Target",
    "make_node",
    "walk",
    "stringify",
    "row_texts",
    # Serialization
    "decode_document",
    "decode_node",
    "dump_document",
    "encode_document",
    "encode_node",
    "load_document",
    # Rendering
    "PlainTextRenderer",
    "Renderer",
    # Options
    "FilterOptions",
    "load_options",
    # Exceptions
    "FilterError",
    "MalformedInputError",
    "PanfilterError",
    "PathNotFoundError",
    "SelectorSyntaxError",
    "UnknownNodeKindError",
]
