#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/ast/serialization.py
"""JSON serialization and deserialization of pandoc documents.

Two top-level layouts are read transparently:

- v2: ``{"pandoc-api-version": [1, 17, 5, 4], "meta": {...}, "blocks": [...]}``
- v1: ``[{"unMeta": {...}}, [...]]``

Nodes use ``{"t": kind, "c": contents}`` where the layout of ``contents``
follows :data:`panfilter.ast.shapes.SHAPES`. Decoding and encoding both walk
the same slot tuples, so a kind can only be read the way it is written.

Unknown block or inline tags are a hard failure. Unknown metadata tags are
dropped without error so that documents from newer converters still load.

Examples
--------
Round trip a document:

    >>> doc = decode_document('{"pandoc-api-version":[1,17,5,4],"meta":{},'
    ...                       '"blocks":[{"t":"Para","c":[{"t":"Str","c":"Hi"}]}]}')
    >>> doc.children[0].children[0].text
    'Hi'
    >>> encode_document(doc)
    '{"pandoc-api-version":[1,17,5,4],"meta":{},"blocks":[{"t":"Para","c":[{"t":"Str","c":"Hi"}]}]}'

"""

from __future__ import annotations

import json
import logging
from typing import IO, Any, Optional

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
)
from panfilter.ast.nodes import Attr, Citation, ListAttributes, Node, Target
from panfilter.ast.shapes import (
    ATTR,
    BLOCKS,
    CITATIONS,
    ENUM,
    ENUM_LIST,
    FLOAT_LIST,
    INLINES,
    INT,
    LIST_ATTRIBUTES,
    PART,
    PARTS,
    TARGET,
    TEXT,
    Slot,
    get_shape,
)
from panfilter.constants import (
    API_VERSION_KEY,
    BLOCK_KINDS,
    BLOCKS_KEY,
    CITATION_MODES,
    CONTENTS_KEY,
    DEFAULT_API_VERSION,
    INLINE_KINDS,
    LIST_NUMBER_DELIMS,
    LIST_NUMBER_STYLES,
    META_KEY,
    TYPE_KEY,
    UNMETA_KEY,
    SchemaVersion,
)
from panfilter.exceptions import MalformedInputError, UnknownNodeKindError

logger = logging.getLogger(__name__)

_BLOCK_SET = frozenset(BLOCK_KINDS)
_INLINE_SET = frozenset(INLINE_KINDS)
_CATEGORY_OF_RUN = {INLINES: ("inline", _INLINE_SET), BLOCKS: ("block", _BLOCK_SET)}


# ============================================================================
# Value codecs
# ============================================================================


def _expect(condition: bool, message: str) -> None:
    if not condition:
        raise MalformedInputError(message)


def _decode_enum(raw: Any, choices: tuple[str, ...], context: str) -> str:
    _expect(isinstance(raw, dict) and TYPE_KEY in raw, f"{context}: expected a constructor object, got {raw!r}")
    name = raw[TYPE_KEY]
    _expect(name in choices, f"{context}: unknown constructor {name!r}")
    return name


def _encode_enum(name: str) -> dict[str, Any]:
    return {TYPE_KEY: name}


def _decode_attr(raw: Any, context: str) -> Attr:
    _expect(isinstance(raw, list) and len(raw) == 3, f"{context}: malformed Attr {raw!r}")
    identifier, classes, attributes = raw
    _expect(isinstance(identifier, str), f"{context}: Attr identifier must be a string")
    _expect(isinstance(classes, list) and all(isinstance(c, str) for c in classes), f"{context}: malformed classes")
    _expect(
        isinstance(attributes, list) and all(isinstance(p, list) and len(p) == 2 for p in attributes),
        f"{context}: malformed key-value attributes",
    )
    return Attr(identifier, list(classes), [(str(key), str(value)) for key, value in attributes])


def _encode_attr(attr: Attr) -> list[Any]:
    return [attr.identifier, list(attr.classes), [[key, value] for key, value in attr.attributes]]


def _decode_target(raw: Any, context: str) -> Target:
    _expect(
        isinstance(raw, list) and len(raw) == 2 and all(isinstance(v, str) for v in raw),
        f"{context}: malformed Target {raw!r}",
    )
    return Target(raw[0], raw[1])


def _decode_list_attributes(raw: Any, context: str) -> ListAttributes:
    _expect(isinstance(raw, list) and len(raw) == 3, f"{context}: malformed ListAttributes {raw!r}")
    start, style, delimiter = raw
    _expect(isinstance(start, int) and not isinstance(start, bool), f"{context}: list start must be an integer")
    return ListAttributes(
        start,
        _decode_enum(style, LIST_NUMBER_STYLES, context),
        _decode_enum(delimiter, LIST_NUMBER_DELIMS, context),
    )


def _decode_citation(raw: Any, context: str) -> Citation:
    _expect(isinstance(raw, dict) and "citationId" in raw, f"{context}: malformed Citation {raw!r}")
    return Citation(
        id=raw["citationId"],
        prefix=_decode_run(raw.get("citationPrefix", []), INLINES, context),
        suffix=_decode_run(raw.get("citationSuffix", []), INLINES, context),
        mode=_decode_enum(raw.get("citationMode", {TYPE_KEY: "NormalCitation"}), CITATION_MODES, context),
        note_num=raw.get("citationNoteNum", 0),
        hash=raw.get("citationHash", 0),
    )


def _encode_citation(citation: Citation) -> dict[str, Any]:
    return {
        "citationId": citation.id,
        "citationPrefix": [encode_node(node) for node in citation.prefix],
        "citationSuffix": [encode_node(node) for node in citation.suffix],
        "citationMode": _encode_enum(citation.mode),
        "citationNoteNum": citation.note_num,
        "citationHash": citation.hash,
    }


def _decode_value(slot: Slot, raw: Any, context: str) -> Any:
    codec = slot.codec
    if codec == INT:
        _expect(isinstance(raw, int) and not isinstance(raw, bool), f"{context}: {slot.name} must be an integer")
        return raw
    if codec == TEXT:
        _expect(isinstance(raw, str), f"{context}: {slot.name} must be a string")
        return raw
    if codec == ATTR:
        return _decode_attr(raw, context)
    if codec == TARGET:
        return _decode_target(raw, context)
    if codec == LIST_ATTRIBUTES:
        return _decode_list_attributes(raw, context)
    if codec == ENUM:
        return _decode_enum(raw, slot.choices or (), context)
    if codec == ENUM_LIST:
        _expect(isinstance(raw, list), f"{context}: {slot.name} must be a list")
        return [_decode_enum(item, slot.choices or (), context) for item in raw]
    if codec == FLOAT_LIST:
        _expect(
            isinstance(raw, list) and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in raw),
            f"{context}: {slot.name} must be a list of numbers",
        )
        return [float(v) for v in raw]
    if codec == CITATIONS:
        _expect(isinstance(raw, list), f"{context}: citations must be a list")
        return [_decode_citation(item, context) for item in raw]
    raise AssertionError(f"unhandled codec {codec}")


def _encode_value(slot: Slot, value: Any) -> Any:
    codec = slot.codec
    if codec in (INT, TEXT):
        return value
    if codec == ATTR:
        return _encode_attr(value)
    if codec == TARGET:
        return [value.url, value.title]
    if codec == LIST_ATTRIBUTES:
        return [value.start, _encode_enum(value.style), _encode_enum(value.delimiter)]
    if codec == ENUM:
        return _encode_enum(value)
    if codec == ENUM_LIST:
        return [_encode_enum(item) for item in value]
    if codec == FLOAT_LIST:
        return [float(v) for v in value]
    if codec == CITATIONS:
        return [_encode_citation(citation) for citation in value]
    raise AssertionError(f"unhandled codec {codec}")


# ============================================================================
# Node codec
# ============================================================================


def _decode_run(raw: Any, codec: str, context: str, part_kind: Optional[str] = None) -> list[Node]:
    _expect(isinstance(raw, list), f"{context}: expected a list of {part_kind or codec}, got {type(raw).__name__}")
    if codec == PARTS:
        assert part_kind is not None
        return [_decode_part(part_kind, item) for item in raw]
    label, allowed = _CATEGORY_OF_RUN[codec]
    nodes = []
    for item in raw:
        node = decode_node(item)
        if node.kind not in allowed:
            raise MalformedInputError(f"{context}: {node.kind} cannot appear where {label} nodes are expected")
        nodes.append(node)
    return nodes


def _decode_contents(kind: str, contents: Any) -> tuple[list[Node], dict[str, Any]]:
    slots = get_shape(kind)
    if not slots:
        return [], {}

    if len(slots) == 1:
        values = [contents]
    else:
        _expect(
            isinstance(contents, list) and len(contents) == len(slots),
            f"{kind}: expected {len(slots)} content fields, got {contents!r:.80}",
        )
        values = contents

    children: list[Node] = []
    payload: dict[str, Any] = {}
    for slot, raw in zip(slots, values):
        if slot.codec == PART:
            assert slot.part_kind is not None
            children.append(_decode_part(slot.part_kind, raw))
        elif slot.is_run:
            children.extend(_decode_run(raw, slot.codec, kind, slot.part_kind))
        else:
            payload[slot.name] = _decode_value(slot, raw, kind)  # type: ignore[index]
    return children, payload


def _decode_part(kind: str, raw: Any) -> Node:
    children, payload = _decode_contents(kind, raw)
    node = Node(kind, children, payload)
    node.adopt_children()
    return node


def decode_node(data: Any) -> Node:
    """Convert a ``{"t": ..., "c": ...}`` object to a Node.

    Parameters
    ----------
    data : dict
        Parsed JSON of a single block or inline node

    Returns
    -------
    Node
        The decoded node with parent links set below it

    Raises
    ------
    UnknownNodeKindError
        If the tag is not a block or inline kind
    MalformedInputError
        If the object or its contents do not fit the kind's shape

    """
    _expect(isinstance(data, dict) and TYPE_KEY in data, f"Expected a node object, got {data!r:.80}")
    kind = data[TYPE_KEY]
    if not isinstance(kind, str) or (kind not in _BLOCK_SET and kind not in _INLINE_SET):
        raise UnknownNodeKindError(str(kind))

    slots = get_shape(kind)
    if slots and CONTENTS_KEY not in data:
        raise MalformedInputError(f"{kind} node is missing its contents")

    children, payload = _decode_contents(kind, data.get(CONTENTS_KEY))
    node = Node(kind, children, payload)
    node.adopt_children()
    return node


def _check_run(node: Node, children: list[Node], codec: str, part_kind: Optional[str]) -> None:
    if codec == PARTS:
        for child in children:
            if child.kind != part_kind:
                raise MalformedInputError(f"{node.kind} expects {part_kind} parts, found {child.kind}")
        return
    label, allowed = _CATEGORY_OF_RUN[codec]
    for child in children:
        if child.kind not in allowed:
            raise MalformedInputError(f"{node.kind} cannot hold {child.kind}: {label} nodes expected")


def _encode_contents(node: Node) -> Any:
    slots = get_shape(node.kind)
    if not slots:
        return None

    single_parts = sum(1 for slot in slots if slot.codec == PART)
    run_size = len(node.children) - single_parts
    if run_size < 0 or (run_size > 0 and not any(slot.is_run for slot in slots)):
        raise MalformedInputError(f"{node.kind} has {len(node.children)} children, which does not fit its shape")

    values = []
    cursor = 0
    for slot in slots:
        if slot.codec == PART:
            part = node.children[cursor]
            if part.kind != slot.part_kind:
                raise MalformedInputError(f"{node.kind} expects a {slot.part_kind} part, found {part.kind}")
            values.append(_encode_contents(part))
            cursor += 1
        elif slot.is_run:
            run = node.children[cursor : cursor + run_size]
            _check_run(node, run, slot.codec, slot.part_kind)
            if slot.codec == PARTS:
                values.append([_encode_contents(part) for part in run])
            else:
                values.append([encode_node(child) for child in run])
            cursor += run_size
        else:
            try:
                value = node.payload[slot.name]  # type: ignore[index]
            except KeyError:
                raise MalformedInputError(f"{node.kind} node is missing payload field {slot.name!r}") from None
            values.append(_encode_value(slot, value))

    return values[0] if len(slots) == 1 else values


def encode_node(node: Node) -> dict[str, Any]:
    """Convert a block or inline Node to its ``{"t": ..., "c": ...}`` object.

    Raises
    ------
    MalformedInputError
        If the node is a structural part or its children do not fit its shape

    """
    if node.kind not in _BLOCK_SET and node.kind not in _INLINE_SET:
        raise MalformedInputError(f"{node.kind} cannot be encoded as a standalone node")
    result: dict[str, Any] = {TYPE_KEY: node.kind}
    if get_shape(node.kind):
        result[CONTENTS_KEY] = _encode_contents(node)
    return result


# ============================================================================
# Metadata codec
# ============================================================================


def _decode_meta_value(raw: Any) -> Optional[MetaValue]:
    """Decode one metadata value, returning None for unknown tags."""
    if not isinstance(raw, dict) or not isinstance(raw.get(TYPE_KEY), str) or raw[TYPE_KEY] not in META_TYPES:
        tag = raw.get(TYPE_KEY) if isinstance(raw, dict) else type(raw).__name__
        logger.debug(f"Dropping metadata value with unsupported tag {tag!r}")
        return None

    tag = raw[TYPE_KEY]
    contents = raw.get(CONTENTS_KEY)
    if tag == "MetaMap":
        return decode_meta_map(contents)
    if tag == "MetaList":
        _expect(isinstance(contents, list), "MetaList contents must be a list")
        items = [_decode_meta_value(item) for item in contents]
        return MetaList([item for item in items if item is not None])
    if tag == "MetaBool":
        _expect(isinstance(contents, bool), "MetaBool contents must be a boolean")
        return MetaBool(contents)
    if tag == "MetaString":
        _expect(isinstance(contents, str), "MetaString contents must be a string")
        return MetaString(contents)
    if tag == "MetaInlines":
        return MetaInlines(_decode_run(contents, INLINES, "MetaInlines"))
    return MetaBlocks(_decode_run(contents, BLOCKS, "MetaBlocks"))


def decode_meta_map(raw: Any) -> MetaMap:
    """Decode a ``{key: {"t": ..., "c": ...}}`` object.

    Entries whose tag is not a metadata kind are dropped silently.
    """
    _expect(isinstance(raw, dict), f"Metadata must be an object, got {type(raw).__name__}")
    entries: dict[str, MetaValue] = {}
    for key, value in raw.items():
        decoded = _decode_meta_value(value)
        if decoded is not None:
            entries[key] = decoded
    return MetaMap(entries)


def encode_meta_value(value: MetaValue) -> dict[str, Any]:
    """Convert a metadata value to its ``{"t": ..., "c": ...}`` object."""
    if isinstance(value, MetaMap):
        contents: Any = encode_meta_map(value)
    elif isinstance(value, MetaList):
        contents = [encode_meta_value(item) for item in value.items]
    elif isinstance(value, (MetaBool, MetaString)):
        contents = value.value
    elif isinstance(value, (MetaInlines, MetaBlocks)):
        contents = [encode_node(node) for node in value.children]
    else:
        raise TypeError(f"Not a metadata value: {value!r}")
    return {TYPE_KEY: value.tag, CONTENTS_KEY: contents}


def encode_meta_map(meta: MetaMap) -> dict[str, Any]:
    return {key: encode_meta_value(value) for key, value in meta.entries.items()}


# ============================================================================
# Documents
# ============================================================================


def _decode_api_version(raw: Any) -> tuple[int, ...]:
    _expect(
        isinstance(raw, list) and bool(raw) and all(isinstance(v, int) and not isinstance(v, bool) for v in raw),
        f"Malformed {API_VERSION_KEY}: {raw!r}",
    )
    return tuple(raw)


def document_from_data(data: Any) -> Document:
    """Build a Document from already parsed JSON data.

    Raises
    ------
    MalformedInputError
        If the layout matches neither schema or a required key is missing

    """
    if isinstance(data, dict):
        for key in (META_KEY, BLOCKS_KEY):
            if key not in data:
                raise MalformedInputError(f"Document is missing the required {key!r} key")
        api_version = _decode_api_version(data[API_VERSION_KEY]) if API_VERSION_KEY in data else DEFAULT_API_VERSION
        meta_raw, blocks_raw = data[META_KEY], data[BLOCKS_KEY]
        schema: SchemaVersion = "v2"
    elif isinstance(data, list) and len(data) == 2 and isinstance(data[0], dict) and UNMETA_KEY in data[0]:
        api_version = DEFAULT_API_VERSION
        meta_raw, blocks_raw = data[0][UNMETA_KEY], data[1]
        schema = "v1"
    else:
        raise MalformedInputError("Unsupported document layout: expected a v2 object or a v1 [unMeta, blocks] pair")

    blocks = _decode_run(blocks_raw, BLOCKS, "Document")
    document = Document(children=blocks, meta=decode_meta_map(meta_raw), api_version=api_version, schema=schema)
    logger.debug(f"Decoded {schema} document with {len(blocks)} top-level block(s)")
    return document


def decode_document(text: str | bytes) -> Document:
    """Decode a pandoc JSON document.

    Parameters
    ----------
    text : str or bytes
        The complete JSON document

    Returns
    -------
    Document
        The decoded document

    Raises
    ------
    MalformedInputError
        If the text is not JSON or does not describe a document
    UnknownNodeKindError
        If a block or inline tag is outside the vocabulary

    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedInputError(f"Invalid JSON input: {e}", original_error=e) from e
    return document_from_data(data)


def load_document(stream: IO[str]) -> Document:
    """Read and decode a whole document from a text stream."""
    return decode_document(stream.read())


def document_to_data(document: Document, schema: Optional[SchemaVersion] = None) -> Any:
    """Convert a Document to JSON-ready data in the given schema.

    ``schema`` defaults to the schema the document was read from.
    """
    schema = schema or document.schema
    _check_run(document, document.children, BLOCKS, None)
    blocks = [encode_node(block) for block in document.children]
    meta = encode_meta_map(document.meta)
    if schema == "v1":
        return [{UNMETA_KEY: meta}, blocks]
    if schema == "v2":
        return {API_VERSION_KEY: list(document.api_version), META_KEY: meta, BLOCKS_KEY: blocks}
    raise ValueError(f"Unsupported schema: {schema!r}")


def encode_document(
    document: Document,
    schema: Optional[SchemaVersion] = None,
    indent: Optional[int] = None,
    ensure_ascii: bool = False,
) -> str:
    """Serialize a Document to a JSON string.

    Parameters
    ----------
    document : Document
        The document to serialize
    schema : {"v1", "v2"}, optional
        Output layout; defaults to the document's own schema
    indent : int, optional
        Indentation for pretty output; compact when None
    ensure_ascii : bool, default = False
        Escape non-ASCII characters

    Returns
    -------
    str
        The JSON text

    """
    data = document_to_data(document, schema)
    separators = (",", ":") if indent is None else None
    return json.dumps(data, indent=indent, ensure_ascii=ensure_ascii, separators=separators)


def dump_document(document: Document, stream: IO[str], **kwargs: Any) -> None:
    """Serialize ``document`` and write it to ``stream`` in one call."""
    stream.write(encode_document(document, **kwargs))


__all__ = [
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
]
