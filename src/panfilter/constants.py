#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for panfilter.

This module centralizes the closed node vocabulary, the pandoc API version
written into v2 documents, and the defaults shared by the runtime and the
configuration layer.

Constants are organized by category:
1. Type Definitions - Literal types and type aliases
2. Node Vocabulary - Block, inline and structural part kinds
3. Wire Format - Top-level JSON keys and schema defaults
4. Runtime Defaults - Configuration defaults
"""

from __future__ import annotations

from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

SchemaVersion = Literal["v1", "v2"]
OutputSchema = Literal["auto", "v1", "v2"]

# =============================================================================
# Node Vocabulary
# =============================================================================

BLOCK_KINDS: tuple[str, ...] = (
    "Plain",
    "Para",
    "LineBlock",
    "CodeBlock",
    "RawBlock",
    "BlockQuote",
    "OrderedList",
    "BulletList",
    "DefinitionList",
    "Header",
    "HorizontalRule",
    "Table",
    "Div",
    "Null",
)

INLINE_KINDS: tuple[str, ...] = (
    "Str",
    "Emph",
    "Strong",
    "Strikeout",
    "Superscript",
    "Subscript",
    "SmallCaps",
    "Quoted",
    "Cite",
    "Code",
    "Space",
    "SoftBreak",
    "LineBreak",
    "Math",
    "RawInline",
    "Link",
    "Image",
    "Note",
    "Span",
)

# Grouping nodes for the nested lists of the wire format. They never carry
# a "t" tag and are skipped by traversal and by parent lookups.
PART_KINDS: tuple[str, ...] = (
    "ListItem",
    "Line",
    "DefinitionItem",
    "DefinitionTerm",
    "Definition",
    "TableCaption",
    "TableHeader",
    "TableRow",
    "TableCell",
)

DOCUMENT_KIND = "Document"

NODE_KINDS: tuple[str, ...] = BLOCK_KINDS + INLINE_KINDS

CATEGORY_BLOCK = "Block"
CATEGORY_INLINE = "Inline"
CATEGORIES: tuple[str, ...] = (CATEGORY_BLOCK, CATEGORY_INLINE)

QUOTE_TYPES: tuple[str, ...] = ("SingleQuote", "DoubleQuote")
MATH_TYPES: tuple[str, ...] = ("DisplayMath", "InlineMath")
CITATION_MODES: tuple[str, ...] = ("AuthorInText", "SuppressAuthor", "NormalCitation")
ALIGNMENTS: tuple[str, ...] = ("AlignLeft", "AlignRight", "AlignCenter", "AlignDefault")
LIST_NUMBER_STYLES: tuple[str, ...] = (
    "DefaultStyle",
    "Example",
    "Decimal",
    "LowerRoman",
    "UpperRoman",
    "LowerAlpha",
    "UpperAlpha",
)
LIST_NUMBER_DELIMS: tuple[str, ...] = ("DefaultDelim", "Period", "OneParen", "TwoParens")

# =============================================================================
# Wire Format
# =============================================================================

API_VERSION_KEY = "pandoc-api-version"
META_KEY = "meta"
BLOCKS_KEY = "blocks"
UNMETA_KEY = "unMeta"
TYPE_KEY = "t"
CONTENTS_KEY = "c"

DEFAULT_API_VERSION: tuple[int, ...] = (1, 17, 5, 4)
DEFAULT_SCHEMA: SchemaVersion = "v2"

# =============================================================================
# Runtime Defaults
# =============================================================================

DEFAULT_OUTPUT_SCHEMA: OutputSchema = "auto"
DEFAULT_JSON_INDENT: int | None = None
DEFAULT_ENSURE_ASCII = False
DEFAULT_LOG_LEVEL = "WARNING"
METADATA_PATH_SEPARATOR = "."

CONFIG_FILENAMES: tuple[str, ...] = (".panfilter.toml", ".panfilter.yaml", ".panfilter.yml", ".panfilter.json")
CONFIG_ENV_VAR = "PANFILTER_CONFIG"

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_ERROR = 1
