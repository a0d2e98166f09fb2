#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/ast/meta.py
"""Metadata values of a pandoc document.

Document metadata is a map from names to :class:`MetaValue` variants:

- MetaString, MetaBool: scalars
- MetaList, MetaMap: containers
- MetaInlines, MetaBlocks: formatted content as AST nodes

The JSON codec for these lives in :mod:`panfilter.ast.serialization`. This
module converts between metadata values and plain Python values, and parses
YAML metadata blocks with PyYAML.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar, Iterator

import yaml

from panfilter.ast.nodes import Node
from panfilter.exceptions import MalformedInputError

logger = logging.getLogger(__name__)

_YAML_OPEN_FENCE = re.compile(r"\A\s*---[ \t]*\n")
_YAML_CLOSE_FENCE = re.compile(r"\n(?:---|\.\.\.)[ \t]*\s*\Z")


class MetaValue:
    """Base class of the metadata variants."""

    tag: ClassVar[str] = ""

    def to_python(self) -> Any:
        """Convert to plain Python values."""
        raise NotImplementedError


@dataclass
class MetaString(MetaValue):
    tag: ClassVar[str] = "MetaString"

    value: str = ""

    def to_python(self) -> str:
        return self.value


@dataclass
class MetaBool(MetaValue):
    tag: ClassVar[str] = "MetaBool"

    value: bool = False

    def to_python(self) -> bool:
        return self.value


@dataclass
class MetaList(MetaValue):
    tag: ClassVar[str] = "MetaList"

    items: list[MetaValue] = field(default_factory=list)

    def to_python(self) -> list[Any]:
        return [item.to_python() for item in self.items]

    def __iter__(self) -> Iterator[MetaValue]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> MetaValue:
        return self.items[index]


@dataclass
class MetaMap(MetaValue):
    """Map of names to metadata values.

    Lookup ignores insertion order; serialization keeps it.
    """

    tag: ClassVar[str] = "MetaMap"

    entries: dict[str, MetaValue] = field(default_factory=dict)

    def to_python(self) -> dict[str, Any]:
        return {key: value.to_python() for key, value in self.entries.items()}

    def __getitem__(self, key: str) -> MetaValue:
        return self.entries[key]

    def __setitem__(self, key: str, value: MetaValue) -> None:
        self.entries[key] = value

    def __delitem__(self, key: str) -> None:
        del self.entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str, default: MetaValue | None = None) -> MetaValue | None:
        return self.entries.get(key, default)

    def keys(self):
        return self.entries.keys()

    def items(self):
        return self.entries.items()


@dataclass
class MetaInlines(MetaValue):
    tag: ClassVar[str] = "MetaInlines"

    children: list[Node] = field(default_factory=list)

    def to_python(self) -> str:
        from panfilter.ast.renderer import stringify

        return stringify(self.children)


@dataclass
class MetaBlocks(MetaValue):
    tag: ClassVar[str] = "MetaBlocks"

    children: list[Node] = field(default_factory=list)

    def to_python(self) -> str:
        from panfilter.ast.renderer import stringify

        return stringify(self.children)


META_TYPES: dict[str, type[MetaValue]] = {
    cls.tag: cls for cls in (MetaMap, MetaList, MetaBool, MetaString, MetaInlines, MetaBlocks)
}


def meta_from_python(value: Any) -> MetaValue:
    """Convert a plain Python value to a metadata value.

    Parameters
    ----------
    value : Any
        A MetaValue (returned as is), dict, list, tuple, bool, str, number,
        date or None

    Returns
    -------
    MetaValue
        Maps become MetaMap, sequences MetaList, booleans MetaBool and every
        other scalar a MetaString. None becomes an empty MetaString.

    Examples
    --------
    >>> meta_from_python({"draft": True, "tags": ["a"]})
    MetaMap(entries={'draft': MetaBool(value=True), 'tags': MetaList(items=[MetaString(value='a')])})

    """
    if isinstance(value, MetaValue):
        return value
    if isinstance(value, dict):
        return MetaMap({str(key): meta_from_python(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return MetaList([meta_from_python(item) for item in value])
    # bool before the numeric fallback; bool is an int subclass
    if isinstance(value, bool):
        return MetaBool(value)
    if value is None:
        return MetaString("")
    if isinstance(value, (datetime, date)):
        return MetaString(value.isoformat())
    return MetaString(str(value))


def _strip_yaml_fences(text: str) -> str:
    text = _YAML_OPEN_FENCE.sub("", text, count=1)
    return _YAML_CLOSE_FENCE.sub("\n", text, count=1)


def meta_from_yaml(text: str) -> MetaValue:
    """Parse a YAML metadata block into a metadata value.

    Leading ``---`` and trailing ``---``/``...`` fences are accepted. An
    empty block yields an empty MetaMap.

    Raises
    ------
    MalformedInputError
        If the text is not valid YAML

    """
    try:
        data = yaml.safe_load(_strip_yaml_fences(text))
    except yaml.YAMLError as e:
        raise MalformedInputError(f"Invalid YAML metadata block: {e}", original_error=e) from e

    if data is None:
        return MetaMap()
    return meta_from_python(data)
